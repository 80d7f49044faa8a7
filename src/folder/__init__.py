"""VM folder resource: spec, reconciler and error taxonomy.

The pyVmomi-backed client is imported separately from inventory.vsphere
so the reconciler can run against any InventoryClient.
"""

from folder.errors import (
    FolderError,
    ParentNotFoundError,
    CreateFailedError,
    ReadFailedError,
    NotAFolderError,
    RenameFailedError,
    MoveFailedError,
    NotEmptyError,
    DeleteFailedError,
    DatacenterChangedError,
    SpecValidationError,
)
from folder.reconciler import FolderReconciler
from folder.spec import FolderSpec, changed_fields, load_spec, requires_replacement

__all__ = [
    "FolderError",
    "ParentNotFoundError",
    "CreateFailedError",
    "ReadFailedError",
    "NotAFolderError",
    "RenameFailedError",
    "MoveFailedError",
    "NotEmptyError",
    "DeleteFailedError",
    "DatacenterChangedError",
    "SpecValidationError",
    "FolderReconciler",
    "FolderSpec",
    "changed_fields",
    "load_spec",
    "requires_replacement",
]
