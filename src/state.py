"""Persisted folder state for the CLI.

Stores the folder identity together with the last applied spec so that
read/update/delete can be driven from the command line. State is kept
in .states/folders/{resource}.json under the working directory.
"""

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from config import get_state_dir
from folder.spec import FolderSpec

logger = logging.getLogger(__name__)


@dataclass
class FolderState:
    """Per-resource state.

    Attributes:
        resource: Resource key (state file name)
        identity: Folder managed object id ('' when absent)
        spec: Last applied or observed spec
        status: present or absent
        updated_at: Timestamp of the last change
    """
    resource: str
    identity: str = ''
    spec: Optional[FolderSpec] = None
    status: str = 'absent'
    updated_at: Optional[float] = None

    def record(self, identity: str, spec: FolderSpec) -> None:
        self.identity = identity
        self.spec = spec
        self.status = 'present'
        self.updated_at = time.time()

    def clear(self, status: str = 'absent') -> None:
        self.identity = ''
        self.status = status
        self.updated_at = time.time()

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            'resource': self.resource,
            'identity': self.identity,
            'status': self.status,
        }
        if self.spec is not None:
            d['spec'] = self.spec.to_dict()
        if self.updated_at is not None:
            d['updated_at'] = self.updated_at
        return d

    @classmethod
    def from_dict(cls, data: dict) -> 'FolderState':
        spec = data.get('spec')
        return cls(
            resource=data['resource'],
            identity=data.get('identity', ''),
            spec=FolderSpec.from_dict(spec) if spec else None,
            status=data.get('status', 'absent'),
            updated_at=data.get('updated_at'),
        )

    @staticmethod
    def default_path(resource: str) -> Path:
        return get_state_dir() / 'folders' / f'{resource}.json'

    def save(self, path: Optional[Path] = None) -> Path:
        """Save state to JSON file.

        Returns:
            Path where state was saved
        """
        if path is None:
            path = self.default_path(self.resource)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.debug(f"Saved folder state to {path}")
        return path

    @classmethod
    def load(cls, resource: str, path: Optional[Path] = None) -> 'FolderState':
        """Load state from JSON file; a missing file yields empty state."""
        if path is None:
            path = cls.default_path(resource)
        if not path.exists():
            return cls(resource=resource)
        with open(path, encoding='utf-8') as f:
            data = json.load(f)
        logger.debug(f"Loaded folder state from {path}")
        return cls.from_dict(data)

    def remove(self, path: Optional[Path] = None) -> bool:
        """Delete the state file.

        Returns:
            True if a file was removed
        """
        if path is None:
            path = self.default_path(self.resource)
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"Removed folder state {path}")
        return True
