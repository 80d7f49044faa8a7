"""Inventory package: remote client boundary and path resolution."""

from inventory.base import (
    FOLDER,
    OTHER,
    NOT_FOUND,
    FolderProperties,
    InventoryClient,
    InventoryError,
    Resolution,
    TaskError,
)
from inventory.paths import normalize_parent, to_declarative, to_fully_qualified

__all__ = [
    "FOLDER",
    "OTHER",
    "NOT_FOUND",
    "FolderProperties",
    "InventoryClient",
    "InventoryError",
    "Resolution",
    "TaskError",
    "normalize_parent",
    "to_declarative",
    "to_fully_qualified",
]
