"""Inventory path resolution.

Folders are declared with a parent path relative to the datacenter's VM
folder (e.g. /eng/ci). The inventory addresses the same parent as
<datacenter>/vm/eng/ci. Both directions re-normalize so that declared and
observed values compare equal.
"""

VM_ROOT = 'vm'


def normalize_parent(path: str) -> str:
    """Return the canonical /a/b form of a parent path.

    Surrounding and repeated slashes are dropped; an empty path is the
    root, '/'.
    """
    segments = [s for s in (path or '').split('/') if s]
    return '/' + '/'.join(segments)


def vm_root(datacenter: str) -> str:
    """Inventory path of a datacenter's VM folder."""
    return f"{datacenter.strip('/')}/{VM_ROOT}"


def to_fully_qualified(datacenter: str, parent: str) -> str:
    """Build the inventory lookup path for a declared parent.

    >>> to_fully_qualified('DC1', '/eng')
    'DC1/vm/eng'
    """
    parent = normalize_parent(parent)
    if parent == '/':
        return vm_root(datacenter)
    return vm_root(datacenter) + parent


def to_declarative(full_path: str, datacenter: str) -> str:
    """Convert an observed inventory path back to the declared form.

    A path outside the datacenter's VM folder is normalized as-is so the
    difference shows up as drift.
    """
    path = (full_path or '').lstrip('/')
    prefix = vm_root(datacenter)
    if path == prefix:
        return '/'
    if path.startswith(prefix + '/'):
        path = path[len(prefix):]
    return normalize_parent(path)
