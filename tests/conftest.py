"""Shared pytest fixtures for vmfolder-driver tests."""

import itertools
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from inventory.base import FolderProperties, InventoryError, Resolution  # noqa: E402

MUTATING_CALLS = {'create_child_folder', 'rename', 'move_into', 'destroy'}


class FakeTask:
    """Deferred inventory change, applied when awaited."""

    def __init__(self, op, apply):
        self.op = op
        self.apply = apply


class FakeInventory:
    """In-memory inventory implementing the InventoryClient protocol.

    Starts with a root folder, datacenter DC1 and its vm folder. Records
    every call in self.calls. Set submit_errors[op] to make a call fail
    on submission and task_errors[op] to make its task fail when awaited.
    """

    ROOT = 'group-d1'

    def __init__(self):
        self.objects = {
            self.ROOT: {'name': 'Datacenters', 'parent': None, 'type': 'Folder'},
            'datacenter-1': {'name': 'DC1', 'parent': self.ROOT, 'type': 'Datacenter'},
            'group-v1': {'name': 'vm', 'parent': 'datacenter-1', 'type': 'Folder'},
        }
        self.calls = []
        self.submit_errors = {}
        self.task_errors = {}
        self._ids = itertools.count(100)

    # helpers

    def add(self, parent_path, name, type_='Folder'):
        parent = self.find(parent_path)
        assert parent is not None, f"no parent {parent_path}"
        prefix = 'group-v' if type_ == 'Folder' else 'vm-'
        ref = f"{prefix}{next(self._ids)}"
        self.objects[ref] = {'name': name, 'parent': parent, 'type': type_}
        return ref

    def path(self, ref):
        names = []
        while ref is not None and ref != self.ROOT:
            obj = self.objects[ref]
            names.append(obj['name'])
            ref = obj['parent']
        return '/'.join(reversed(names))

    def find(self, full_path):
        full_path = full_path.strip('/')
        for ref in self.objects:
            if ref != self.ROOT and self.path(ref) == full_path:
                return ref
        return None

    def children(self, ref):
        return [r for r, obj in self.objects.items() if obj['parent'] == ref]

    @property
    def mutating_calls(self):
        return [c for c in self.calls if c[0] in MUTATING_CALLS]

    def _record(self, op, *args):
        self.calls.append((op,) + args)
        if op in self.submit_errors:
            raise self.submit_errors[op]

    def _check_name(self, parent, name, ref=None):
        for child in self.children(parent):
            if child != ref and self.objects[child]['name'] == name:
                raise InventoryError(f"The name '{name}' already exists.")

    # InventoryClient

    def resolve_path(self, full_path, ctx):
        ctx.check()
        self._record('resolve_path', full_path)
        ref = self.find(full_path)
        if ref is None:
            return Resolution.not_found()
        if self.objects[ref]['type'] != 'Folder':
            return Resolution.other(ref, full_path)
        return Resolution.folder(ref, full_path)

    def resolve_reference(self, ref, ctx):
        ctx.check()
        self._record('resolve_reference', ref)
        if ref not in self.objects:
            return Resolution.not_found()
        if self.objects[ref]['type'] != 'Folder':
            return Resolution.other(ref)
        return Resolution.folder(ref, self.path(ref))

    def create_child_folder(self, parent_ref, name, ctx):
        ctx.check()
        self._record('create_child_folder', parent_ref, name)
        self._check_name(parent_ref, name)
        ref = f"group-v{next(self._ids)}"
        self.objects[ref] = {'name': name, 'parent': parent_ref, 'type': 'Folder'}
        return ref

    def get_properties(self, ref, ctx):
        ctx.check()
        self._record('get_properties', ref)
        obj = self.objects[ref]
        return FolderProperties(name=obj['name'], parent_ref=obj['parent'])

    def list_children(self, ref, ctx):
        ctx.check()
        self._record('list_children', ref)
        return self.children(ref)

    def rename(self, ref, new_name, ctx):
        ctx.check()
        self._record('rename', ref, new_name)

        def apply():
            self._check_name(self.objects[ref]['parent'], new_name, ref)
            self.objects[ref]['name'] = new_name
        return FakeTask('rename', apply)

    def move_into(self, parent_ref, refs, ctx):
        ctx.check()
        self._record('move_into', parent_ref, list(refs))

        def apply():
            for ref in refs:
                self._check_name(parent_ref, self.objects[ref]['name'], ref)
                self.objects[ref]['parent'] = parent_ref
        return FakeTask('move_into', apply)

    def destroy(self, ref, ctx):
        ctx.check()
        self._record('destroy', ref)

        def apply():
            del self.objects[ref]
        return FakeTask('destroy', apply)

    def await_task(self, task, ctx):
        ctx.check()
        self.calls.append(('await_task', task.op))
        if task.op in self.task_errors:
            raise self.task_errors[task.op]
        task.apply()
        return None


@pytest.fixture
def inventory():
    """In-memory inventory with /DC1/vm/eng and /DC1/vm/eng/ci folders."""
    inv = FakeInventory()
    inv.add('DC1/vm', 'eng')
    inv.add('DC1/vm/eng', 'ci')
    inv.calls.clear()
    return inv


@pytest.fixture
def site_config_dir(tmp_path):
    """Create temporary site-config directory structure.

    Creates minimal site-config with:
    - site.yaml (defaults)
    - secrets.yaml (passwords)
    - vcenters/vc1.yaml
    - vcenters/vc2.yaml (no password in secrets)
    """
    (tmp_path / 'vcenters').mkdir(parents=True, exist_ok=True)

    (tmp_path / 'site.yaml').write_text("""
defaults:
  port: 443
  insecure: true
  task_poll_interval: 0.5
  user: administrator@vsphere.local
""")

    (tmp_path / 'secrets.yaml').write_text("""
passwords:
  vc1-admin: "s3cret"
""")

    (tmp_path / 'vcenters/vc1.yaml').write_text("""
host: vcenter1.example.com
password: vc1-admin
timeout: 30
""")

    (tmp_path / 'vcenters/vc2.yaml').write_text("""
host: vcenter2.example.com
port: 8443
user: automation@vsphere.local
insecure: false
""")

    return tmp_path
