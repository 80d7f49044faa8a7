"""Tests for folder.spec module."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from folder.errors import SpecValidationError
from folder.spec import FolderSpec, changed_fields, load_spec, requires_replacement


class TestFolderSpec:
    """Tests for FolderSpec dataclass."""

    def test_parent_normalized(self):
        spec = FolderSpec(datacenter='DC1', parent='eng/ci/', name='build')
        assert spec.parent == '/eng/ci'

    def test_empty_parent_is_root(self):
        spec = FolderSpec(datacenter='DC1', parent='', name='build')
        assert spec.parent == '/'

    def test_equal_after_normalization(self):
        a = FolderSpec(datacenter='DC1', parent='/eng', name='build')
        b = FolderSpec(datacenter='DC1', parent='eng/', name='build')
        assert a == b

    def test_empty_name_rejected(self):
        with pytest.raises(SpecValidationError):
            FolderSpec(datacenter='DC1', parent='/eng', name='')

    def test_slash_in_name_rejected(self):
        with pytest.raises(SpecValidationError) as exc_info:
            FolderSpec(datacenter='DC1', parent='/eng', name='a/b')
        assert exc_info.value.code == 'E110'

    def test_long_name_rejected(self):
        with pytest.raises(SpecValidationError):
            FolderSpec(datacenter='DC1', parent='/eng', name='x' * 81)

    def test_empty_datacenter_rejected(self):
        with pytest.raises(SpecValidationError):
            FolderSpec(datacenter='', parent='/eng', name='build')

    def test_non_string_rejected(self):
        with pytest.raises(SpecValidationError):
            FolderSpec(datacenter='DC1', parent='/eng', name=42)

    def test_frozen(self):
        spec = FolderSpec(datacenter='DC1', parent='/eng', name='build')
        with pytest.raises(AttributeError):
            spec.name = 'other'

    def test_from_dict(self):
        spec = FolderSpec.from_dict({'datacenter': 'DC1', 'parent': 'eng', 'name': 'build'})
        assert spec.to_dict() == {'datacenter': 'DC1', 'parent': '/eng', 'name': 'build'}

    def test_from_dict_missing_field(self):
        with pytest.raises(SpecValidationError) as exc_info:
            FolderSpec.from_dict({'datacenter': 'DC1', 'name': 'build'})
        assert 'parent' in str(exc_info.value)

    def test_from_dict_unknown_field(self):
        with pytest.raises(SpecValidationError) as exc_info:
            FolderSpec.from_dict({'datacenter': 'DC1', 'parent': '/', 'name': 'x', 'recursive': True})
        assert 'recursive' in str(exc_info.value)

    def test_from_dict_not_mapping(self):
        with pytest.raises(SpecValidationError):
            FolderSpec.from_dict(['DC1'])


class TestLoadSpec:
    """Tests for load_spec()."""

    def test_load_yaml(self, tmp_path):
        path = tmp_path / 'build.yaml'
        path.write_text("datacenter: DC1\nparent: /eng/\nname: build\n")
        spec = load_spec(path)
        assert spec == FolderSpec(datacenter='DC1', parent='/eng', name='build')

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'bad.yaml'
        path.write_text("datacenter: [unclosed\n")
        with pytest.raises(SpecValidationError):
            load_spec(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / 'empty.yaml'
        path.write_text("")
        with pytest.raises(SpecValidationError):
            load_spec(path)


class TestChangeDetection:
    """Tests for changed_fields() and requires_replacement()."""

    def test_no_change(self):
        spec = FolderSpec(datacenter='DC1', parent='/eng', name='build')
        assert changed_fields(spec, spec) == []
        assert requires_replacement(spec, spec) is False

    def test_name_and_parent(self):
        old = FolderSpec(datacenter='DC1', parent='/eng', name='build')
        new = FolderSpec(datacenter='DC1', parent='/eng/ci', name='release')
        assert changed_fields(old, new) == ['parent', 'name']
        assert requires_replacement(old, new) is False

    def test_datacenter_requires_replacement(self):
        old = FolderSpec(datacenter='DC1', parent='/eng', name='build')
        new = FolderSpec(datacenter='DC2', parent='/eng', name='build')
        assert requires_replacement(old, new) is True
