"""Error taxonomy for folder reconciliation.

Each error carries a stable code, the operation that failed, and the
underlying client error (if any) as cause. "Resource absent" is not an
error: read() returns None and delete() succeeds.
"""

from typing import Optional


class FolderError(Exception):
    """Base exception for folder driver errors."""

    retryable = True

    def __init__(self, code: str, message: str, operation: str = '', cause: Optional[Exception] = None):
        self.code = code
        self.message = message
        self.operation = operation
        self.cause = cause
        self.result = None
        super().__init__(f"{code}: {message}")


def _detail(prefix: str, cause: Optional[Exception]) -> str:
    return f"{prefix}: {cause}" if cause is not None else prefix


class ParentNotFoundError(FolderError):
    """Parent folder does not exist at the declared path."""

    def __init__(self, path: str, operation: str = 'create', cause: Optional[Exception] = None):
        self.path = path
        detail = cause if cause is not None else f"{path} not found"
        super().__init__("E101", f"Cannot find parent folder: {detail}", operation, cause)


class CreateFailedError(FolderError):
    def __init__(self, cause: Exception):
        super().__init__("E102", _detail("Cannot create folder", cause), 'create', cause)


class ReadFailedError(FolderError):
    def __init__(self, cause: Exception, operation: str = 'read', code: str = "E103"):
        super().__init__(code, _detail("Cannot read folder", cause), operation, cause)


class NotAFolderError(ReadFailedError):
    """Identity resolves to an object that is not a Folder."""

    retryable = False

    def __init__(self, ref: str, operation: str = 'read'):
        self.ref = ref
        super().__init__(ValueError(f"{ref} is not a Folder"), operation, code="E104")


class RenameFailedError(FolderError):
    def __init__(self, cause: Exception, result=None):
        super().__init__("E105", _detail("Cannot rename folder", cause), 'update', cause)
        self.result = result


class MoveFailedError(FolderError):
    def __init__(self, cause: Exception, result=None):
        super().__init__("E106", _detail("Cannot move folder", cause), 'update', cause)
        self.result = result


class NotEmptyError(FolderError):
    """Refusal to delete a folder that still has children."""

    retryable = False

    def __init__(self, children: Optional[list] = None):
        self.children = list(children or [])
        super().__init__("E107", "Folder is not empty", 'delete')


class DeleteFailedError(FolderError):
    def __init__(self, cause: Exception):
        super().__init__("E108", _detail("Cannot delete folder", cause), 'delete', cause)


class DatacenterChangedError(FolderError):
    """Datacenter is create-time only; changing it needs a new resource."""

    retryable = False

    def __init__(self, old: str, new: str):
        self.old = old
        self.new = new
        super().__init__(
            "E109",
            f"Cannot change datacenter from '{old}' to '{new}': destroy and recreate the folder",
            'update',
        )


class SpecValidationError(FolderError):
    retryable = False

    def __init__(self, message: str):
        super().__init__("E110", message, 'validate')
