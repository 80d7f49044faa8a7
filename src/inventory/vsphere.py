"""vSphere inventory client built on pyVmomi.

Implements InventoryClient against a vCenter ServiceInstance. References
are Folder managed object ids (e.g. group-v123); long-running operations
return vim.Task objects which await_task() polls until they finish.
"""

import http.client
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional
from urllib.parse import unquote

from pyVim.connect import Disconnect, SmartConnect
from pyVmomi import vim, vmodl

from common import CallContext
from config import VCenterConfig
from inventory.base import FolderProperties, InventoryError, Resolution, TaskError

logger = logging.getLogger(__name__)

TASK_SUCCESS = 'success'
TASK_ERROR = 'error'

# Server faults plus transport failures (socket, TLS, HTTP framing)
REMOTE_ERRORS = (vmodl.MethodFault, OSError, http.client.HTTPException)


def _fault_message(fault: Exception) -> str:
    if isinstance(fault, vmodl.MethodFault):
        return fault.msg or type(fault).__name__
    return getattr(fault, 'msg', None) or str(fault) or type(fault).__name__


def escape_name(name: str) -> str:
    """Escape an entity name the way vSphere stores it (%, / and \\)."""
    return name.replace('%', '%25').replace('/', '%2f').replace('\\', '%5c')


def unescape_name(name: str) -> str:
    """Undo vSphere entity-name escaping."""
    return unquote(name)


class VsphereInventory:
    """InventoryClient backed by a connected pyVmomi ServiceInstance."""

    def __init__(self, service_instance: Any, task_poll_interval: float = 1.0):
        self.si = service_instance
        self.content = service_instance.RetrieveContent()
        self.task_poll_interval = task_poll_interval

    def _folder(self, ref: str) -> Any:
        return vim.Folder(ref, self.si._stub)

    def inventory_path(self, entity: Any) -> str:
        """Build the inventory path of an entity (root folder excluded)."""
        root_id = self.content.rootFolder._moId
        names = []
        obj = entity
        while obj is not None and obj._moId != root_id:
            names.append(unescape_name(obj.name))
            obj = obj.parent
        return '/'.join(reversed(names))

    def resolve_path(self, full_path: str, ctx: CallContext) -> Resolution:
        ctx.check()
        logger.debug(f"Looking up inventory path {full_path}")
        try:
            obj = self.content.searchIndex.FindByInventoryPath(
                '/'.join(escape_name(part) for part in full_path.split('/'))
            )
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e
        if obj is None:
            return Resolution.not_found()
        if isinstance(obj, vim.Folder):
            return Resolution.folder(obj._moId, full_path)
        return Resolution.other(obj._moId, full_path)

    def resolve_reference(self, ref: str, ctx: CallContext) -> Resolution:
        ctx.check()
        logger.debug(f"Resolving folder reference {ref}")
        folder = self._folder(ref)
        try:
            path = self.inventory_path(folder)
        except vmodl.fault.ManagedObjectNotFound:
            return Resolution.not_found()
        except (vmodl.fault.InvalidArgument, vmodl.fault.InvalidType):
            return Resolution.other(ref)
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e
        return Resolution.folder(ref, path)

    def create_child_folder(self, parent_ref: str, name: str, ctx: CallContext) -> str:
        ctx.check()
        try:
            folder = self._folder(parent_ref).CreateFolder(escape_name(name))
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e
        ref: str = folder._moId
        return ref

    def get_properties(self, ref: str, ctx: CallContext) -> FolderProperties:
        ctx.check()
        folder = self._folder(ref)
        try:
            name = unescape_name(folder.name)
            parent = folder.parent
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e
        return FolderProperties(name=name, parent_ref=parent._moId if parent is not None else None)

    def list_children(self, ref: str, ctx: CallContext) -> list[str]:
        ctx.check()
        try:
            children = self._folder(ref).childEntity
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e
        return [child._moId for child in children]

    def rename(self, ref: str, new_name: str, ctx: CallContext) -> Any:
        ctx.check()
        try:
            return self._folder(ref).Rename_Task(newName=escape_name(new_name))
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e

    def move_into(self, parent_ref: str, refs: list[str], ctx: CallContext) -> Any:
        ctx.check()
        entities = [self._folder(r) for r in refs]
        try:
            return self._folder(parent_ref).MoveIntoFolder_Task(list=entities)
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e

    def destroy(self, ref: str, ctx: CallContext) -> Any:
        ctx.check()
        try:
            return self._folder(ref).Destroy_Task()
        except REMOTE_ERRORS as e:
            raise InventoryError(_fault_message(e)) from e

    def await_task(self, task: Any, ctx: CallContext) -> Any:
        """Poll task.info until it leaves the queued/running states."""
        while True:
            ctx.check()
            try:
                info = task.info
            except REMOTE_ERRORS as e:
                raise InventoryError(_fault_message(e)) from e
            if info.state == TASK_SUCCESS:
                return info.result
            if info.state == TASK_ERROR:
                raise TaskError(_fault_message(info.error) if info.error else 'Task failed')
            logger.debug(f"Task {info.key} is {info.state}, retrying in {self.task_poll_interval}s...")
            ctx.sleep(self.task_poll_interval)


@contextmanager
def connect(config: VCenterConfig, client_timeout: Optional[float] = None) -> Iterator[VsphereInventory]:
    """Open a vCenter session for the duration of the block."""
    logger.info(f"Connecting to vCenter {config.host}:{config.port} as {config.user}")
    try:
        si = SmartConnect(
            host=config.host,
            user=config.user,
            pwd=config.get_password(),
            port=config.port,
            disableSslCertValidation=config.insecure,
            httpConnectionTimeout=client_timeout or config.timeout,
        )
    except REMOTE_ERRORS as e:
        raise InventoryError(f"Cannot connect to {config.host}: {_fault_message(e)}") from e
    try:
        yield VsphereInventory(si, task_poll_interval=config.task_poll_interval)
    finally:
        Disconnect(si)
