"""Folder reconciler: create, read, update and delete a VM folder.

Each operation is a short, fail-fast sequence of inventory calls. The
only state carried between calls is the identity (the folder's managed
object id), which is re-resolved to a live reference on every read,
update and delete. Timeout and cancellation from the call context
propagate unwrapped.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from common import APPLIED, FAILED, SKIPPED, CallContext, UpdateResult
from folder.errors import (
    CreateFailedError,
    DatacenterChangedError,
    DeleteFailedError,
    FolderError,
    MoveFailedError,
    NotAFolderError,
    ParentNotFoundError,
    ReadFailedError,
    RenameFailedError,
)
from folder.guard import ensure_empty
from folder.spec import FolderSpec
from inventory.base import InventoryClient, InventoryError
from inventory.paths import to_declarative, to_fully_qualified

logger = logging.getLogger(__name__)


@dataclass
class FolderReconciler:
    """Lifecycle operations for one VM folder resource.

    Attributes:
        client: Remote inventory client
    """
    client: InventoryClient

    def _resolve_identity(self, identity: Optional[str], operation: str, ctx: CallContext,
                          wrap: Optional[Callable[[InventoryError], FolderError]] = None) -> Optional[str]:
        """Map a persisted identity to a live folder reference.

        Returns None when the folder no longer exists. A lookup failure is
        raised as wrap(error), defaulting to ReadFailedError.
        """
        if not identity:
            return None
        try:
            resolution = self.client.resolve_reference(identity, ctx)
        except InventoryError as e:
            raise (wrap(e) if wrap else ReadFailedError(e, operation)) from e
        if not resolution.found:
            logger.info(f"Folder {identity} no longer exists")
            return None
        if not resolution.is_folder:
            raise NotAFolderError(identity, operation)
        return resolution.ref

    def _locate_parent(self, spec: FolderSpec, operation: str, ctx: CallContext) -> str:
        path = to_fully_qualified(spec.datacenter, spec.parent)
        try:
            resolution = self.client.resolve_path(path, ctx)
        except InventoryError as e:
            raise ParentNotFoundError(path, operation, e) from e
        if not resolution.is_folder or resolution.ref is None:
            raise ParentNotFoundError(path, operation)
        logger.debug(f"Parent folder {path} is {resolution.ref}")
        return resolution.ref

    def create(self, spec: FolderSpec, ctx: CallContext) -> str:
        """Create the folder and return its identity."""
        parent_ref = self._locate_parent(spec, 'create', ctx)

        logger.info(f"Creating folder '{spec.name}' in {spec.datacenter}{spec.parent}")
        try:
            ref = self.client.create_child_folder(parent_ref, spec.name, ctx)
        except InventoryError as e:
            raise CreateFailedError(e) from e

        logger.info(f"Created folder '{spec.name}' ({ref})")
        return ref

    def read(self, identity: Optional[str], datacenter: str, ctx: CallContext) -> Optional[FolderSpec]:
        """Return the observed spec, or None if the folder is gone.

        Never mutates the inventory.
        """
        ref = self._resolve_identity(identity, 'read', ctx)
        if ref is None:
            return None

        try:
            props = self.client.get_properties(ref, ctx)
        except InventoryError as e:
            raise ReadFailedError(e) from e
        if props.parent_ref is None:
            raise ReadFailedError(ValueError(f"{ref} has no parent"))

        try:
            parent = self.client.resolve_reference(props.parent_ref, ctx)
        except InventoryError as e:
            raise ReadFailedError(e) from e
        if not parent.is_folder or parent.path is None:
            raise ReadFailedError(ValueError(f"parent {props.parent_ref} of {ref} is not a resolvable folder"))

        return FolderSpec(
            datacenter=datacenter,
            parent=to_declarative(parent.path, datacenter),
            name=props.name,
        )

    def update(self, identity: Optional[str], old: FolderSpec, new: FolderSpec, ctx: CallContext) -> UpdateResult:
        """Apply name and parent changes, in that order.

        A failed step raises with the partial UpdateResult attached as
        error.result; earlier steps are not rolled back.
        """
        if old.datacenter != new.datacenter:
            raise DatacenterChangedError(old.datacenter, new.datacenter)

        result = UpdateResult()
        name_changed = old.name != new.name
        parent_changed = old.parent != new.parent

        def first_step_failed(e: InventoryError) -> FolderError:
            if name_changed:
                result.name = FAILED
                if parent_changed:
                    result.parent = SKIPPED
                return RenameFailedError(e, result)
            if parent_changed:
                result.parent = FAILED
                return MoveFailedError(e, result)
            return ReadFailedError(e, 'update')

        ref = self._resolve_identity(identity, 'update', ctx, first_step_failed)
        if ref is None:
            result.absent = True
            return result

        if name_changed:
            logger.info(f"Renaming folder {ref} from '{old.name}' to '{new.name}'")
            try:
                task = self.client.rename(ref, new.name, ctx)
                self.client.await_task(task, ctx)
            except InventoryError as e:
                result.name = FAILED
                if parent_changed:
                    result.parent = SKIPPED
                raise RenameFailedError(e, result) from e
            result.name = APPLIED

        if parent_changed:
            try:
                parent_ref = self._locate_parent(new, 'update', ctx)
            except ParentNotFoundError as e:
                result.parent = FAILED
                e.result = result
                raise

            logger.info(f"Moving folder {ref} from {old.parent} to {new.parent}")
            try:
                task = self.client.move_into(parent_ref, [ref], ctx)
                self.client.await_task(task, ctx)
            except InventoryError as e:
                result.parent = FAILED
                raise MoveFailedError(e, result) from e
            result.parent = APPLIED

        return result

    def delete(self, identity: Optional[str], ctx: CallContext) -> None:
        """Destroy the folder if it exists and is empty."""
        ref = self._resolve_identity(identity, 'delete', ctx, DeleteFailedError)
        if ref is None:
            return

        ensure_empty(self.client, ref, ctx)

        logger.info(f"Destroying folder {ref}")
        try:
            task = self.client.destroy(ref, ctx)
            self.client.await_task(task, ctx)
        except InventoryError as e:
            raise DeleteFailedError(e) from e
        logger.info(f"Destroyed folder {ref}")
