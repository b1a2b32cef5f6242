import json

import pytest

from barclamp_mgmt.manifest import ManifestBuilder
from barclamp_mgmt.utils import DescriptorError


def test_fragments_deep_merge(config, write_manifest):
    write_manifest("a.json", {"a": {"b": 1}})
    write_manifest("b.json", {"a": {"c": 2}})
    assert ManifestBuilder(config).build_manifest() == {"a": {"b": 1, "c": 2}}


def test_last_file_wins(config, write_manifest):
    write_manifest("crowbar.json", {"assets": {"application.js": "application-1.js"}})
    write_manifest("network.json", {"assets": {"application.js": "application-2.js"}})
    manifest = ManifestBuilder(config).build_manifest()
    assert manifest["assets"]["application.js"] == "application-2.js"


def test_null_and_other_files_are_ignored(config, write_manifest):
    write_manifest("a.json", {"files": {"x": 1}})
    (config.manifests_dir / "b.json").write_text("null")
    (config.manifests_dir / "README").write_text("ignored")
    assert ManifestBuilder(config).build_manifest() == {"files": {"x": 1}}


def test_write_creates_directory_and_compact_json(config, write_manifest):
    write_manifest("a.json", {"files": {"app-abc.js": {"logical_path": "app.js"}}})
    path = ManifestBuilder(config).write_manifest()
    assert path == config.crowbar_path / "public" / "assets" / "manifest.json"
    assert path.read_text() == '{"files":{"app-abc.js":{"logical_path":"app.js"}}}'
    first = path.read_bytes()
    ManifestBuilder(config).write_manifest()
    assert path.read_bytes() == first


def test_no_manifests_writes_empty_object(config):
    path = ManifestBuilder(config).write_manifest()
    assert json.loads(path.read_text()) == {}


def test_invalid_json_aborts(config, write_manifest):
    write_manifest("a.json", {"a": 1})
    (config.manifests_dir / "b.json").write_text("{not json")
    with pytest.raises(DescriptorError):
        ManifestBuilder(config).write_manifest()
    assert not config.assets_manifest_path.exists()
