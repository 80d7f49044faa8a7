"""Declarative folder specification.

A FolderSpec names a folder by datacenter, parent path (relative to the
datacenter's VM folder) and name. The parent path is normalized on
construction so that declared and observed values compare equal.
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from folder.errors import SpecValidationError
from inventory.paths import normalize_parent

# vSphere limit for managed entity names
MAX_NAME_LENGTH = 80

FIELDS = ('datacenter', 'parent', 'name')

# Fields that can be changed in place by update()
MUTABLE_FIELDS = ('name', 'parent')


@dataclass(frozen=True)
class FolderSpec:
    """Desired state of a VM folder.

    Attributes:
        datacenter: Containing datacenter (create-time only)
        parent: Parent path relative to the VM folder, e.g. /eng
        name: Folder name
    """
    datacenter: str
    parent: str
    name: str

    def __post_init__(self):
        for key in FIELDS:
            if not isinstance(getattr(self, key), str):
                raise SpecValidationError(f"Field '{key}' must be a string")
        if not self.datacenter.strip('/'):
            raise SpecValidationError("Field 'datacenter' must not be empty")
        if not self.name:
            raise SpecValidationError("Field 'name' must not be empty")
        if '/' in self.name:
            raise SpecValidationError(f"Folder name must not contain '/': {self.name}")
        if len(self.name) > MAX_NAME_LENGTH:
            raise SpecValidationError(
                f"Folder name longer than {MAX_NAME_LENGTH} characters: {self.name}"
            )
        object.__setattr__(self, 'parent', normalize_parent(self.parent))

    @classmethod
    def from_dict(cls, data: dict) -> 'FolderSpec':
        """Create FolderSpec from a mapping, rejecting unknown or missing fields."""
        if not isinstance(data, dict):
            raise SpecValidationError("Folder spec must be a mapping")
        unknown = sorted(set(data) - set(FIELDS))
        if unknown:
            raise SpecValidationError(f"Unknown fields: {', '.join(unknown)}")
        missing = [key for key in FIELDS if key not in data]
        if missing:
            raise SpecValidationError(f"Missing required fields: {', '.join(missing)}")
        return cls(datacenter=data['datacenter'], parent=data['parent'], name=data['name'])

    def to_dict(self) -> dict:
        return {
            'datacenter': self.datacenter,
            'parent': self.parent,
            'name': self.name,
        }


def load_spec(path: Path) -> FolderSpec:
    """Load a FolderSpec from a YAML file."""
    try:
        with open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise SpecValidationError(f"Cannot read spec file {path}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise SpecValidationError(f"Invalid YAML in {path}: {e}") from e
    return FolderSpec.from_dict(data or {})


def changed_fields(old: FolderSpec, new: FolderSpec) -> list[str]:
    """Fields whose value differs between two specs, in field order."""
    return [key for key in FIELDS if getattr(old, key) != getattr(new, key)]


def requires_replacement(old: FolderSpec, new: FolderSpec) -> bool:
    """True when the change cannot be applied in place."""
    return any(key not in MUTABLE_FIELDS for key in changed_fields(old, new))
