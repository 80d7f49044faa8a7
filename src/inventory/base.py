"""Remote inventory client boundary.

Defines the protocol the folder reconciler drives, the tagged result of
reference/path lookups, and the errors a client raises. The concrete
vSphere implementation lives in inventory.vsphere.
"""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

from common import CallContext

# Resolution kinds
FOLDER = 'folder'
OTHER = 'other'
NOT_FOUND = 'not_found'


class InventoryError(Exception):
    """A remote inventory call failed."""


class TaskError(InventoryError):
    """A long-running remote task finished in the error state."""


@dataclass(frozen=True)
class Resolution:
    """Result of resolving a path or reference in the inventory.

    Attributes:
        kind: folder, other or not_found
        ref: Managed object id when found
        path: Inventory path (e.g. DC1/vm/eng) when known
    """
    kind: str
    ref: Optional[str] = None
    path: Optional[str] = None

    @classmethod
    def folder(cls, ref: str, path: Optional[str] = None) -> 'Resolution':
        return cls(FOLDER, ref, path)

    @classmethod
    def other(cls, ref: Optional[str] = None, path: Optional[str] = None) -> 'Resolution':
        return cls(OTHER, ref, path)

    @classmethod
    def not_found(cls) -> 'Resolution':
        return cls(NOT_FOUND)

    @property
    def is_folder(self) -> bool:
        return self.kind == FOLDER

    @property
    def found(self) -> bool:
        return self.kind != NOT_FOUND


@dataclass(frozen=True)
class FolderProperties:
    """Observed name and parent of a folder."""
    name: str
    parent_ref: Optional[str]


@runtime_checkable
class InventoryClient(Protocol):
    """Operations the reconciler needs from the remote inventory.

    References are managed object id strings. Long-running operations
    return an opaque task handle that must be passed to await_task().
    """

    def resolve_path(self, full_path: str, ctx: CallContext) -> Resolution:
        """Look up an object by inventory path."""

    def resolve_reference(self, ref: str, ctx: CallContext) -> Resolution:
        """Look up a folder by managed object id."""

    def create_child_folder(self, parent_ref: str, name: str, ctx: CallContext) -> str:
        """Create a folder under parent_ref and return its reference."""

    def get_properties(self, ref: str, ctx: CallContext) -> FolderProperties:
        """Fetch name and parent of a folder."""

    def list_children(self, ref: str, ctx: CallContext) -> list[str]:
        """List direct children of a folder."""

    def rename(self, ref: str, new_name: str, ctx: CallContext) -> Any:
        """Submit a rename task."""

    def move_into(self, parent_ref: str, refs: list[str], ctx: CallContext) -> Any:
        """Submit a task moving refs under parent_ref."""

    def destroy(self, ref: str, ctx: CallContext) -> Any:
        """Submit a destroy task."""

    def await_task(self, task: Any, ctx: CallContext) -> Any:
        """Block until the task completes; raise TaskError on failure."""
