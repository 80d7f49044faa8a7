"""Deletion guard: refuse to destroy a folder that still has children."""

import logging

from common import CallContext
from folder.errors import DeleteFailedError, NotEmptyError
from inventory.base import InventoryClient, InventoryError

logger = logging.getLogger(__name__)


def ensure_empty(client: InventoryClient, ref: str, ctx: CallContext) -> None:
    """Raise NotEmptyError if the folder has any direct child.

    A failed listing raises DeleteFailedError; an unverified folder is
    never treated as empty.
    """
    try:
        children = client.list_children(ref, ctx)
    except InventoryError as e:
        raise DeleteFailedError(e) from e

    if children:
        logger.error(f"Folder {ref} has {len(children)} children, refusing to delete")
        raise NotEmptyError(children)
