import pytest

from barclamp_mgmt import utils
from barclamp_mgmt.catalog import CatalogBuilder
from barclamp_mgmt.utils import DescriptorError


NETWORK = """\
barclamp:
  name: network
  display: Network
  description: Instantiates network interfaces on the nodes
  member:
    - crowbar
crowbar:
  order: 10
  run_order: 11
  chef_order: 12
git:
  commit: 4d5c2ff
  date: Mon Jan 6 12:00:00 2014
"""


def test_entry_fields(config, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    barclamps = CatalogBuilder(config).build_catalog()["barclamps"]
    assert barclamps["network"] == {
        "description": "Instantiates network interfaces on the nodes",
        "display": "Network",
        "user_managed": True,
        "order": 10,
        "run_order": 11,
        "chef_order": 12,
        "date": "Mon Jan 6 12:00:00 2014",
        "commit": "4d5c2ff",
    }


def test_missing_description_gets_placeholder(config, write_descriptor):
    write_descriptor("bare.yml", "barclamp:\n  name: bare\n")
    builder = CatalogBuilder(config)
    entry = builder.build_catalog()["barclamps"]["bare"]
    assert entry["description"] == "No description for bare"
    assert entry["display"] == ""
    assert entry["date"] == "Unknown"
    assert entry["commit"] == "Not Set"
    assert "order" not in entry
    assert any("bare has no description" in w for w in builder.logger.warnings)


def test_group_membership_backfill(config, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    group = CatalogBuilder(config).build_catalog()["barclamps"]["crowbar"]
    assert group["members"] == {"network": 10}
    assert group["description"] == "No description for crowbar"


def test_group_declared_after_member_keeps_members(config, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    write_descriptor(
        "zz-crowbar.yml",
        "barclamp:\n  name: crowbar\n  description: The framework\ncrowbar:\n  order: 0\n",
    )
    group = CatalogBuilder(config).build_catalog()["barclamps"]["crowbar"]
    assert group["members"] == {"network": 10}
    assert group["description"] == "The framework"
    assert group["order"] == 0


def test_user_managed_false_is_kept(config, write_descriptor):
    write_descriptor("hidden.yml", "barclamp:\n  name: hidden\n  user_managed: false\n")
    entry = CatalogBuilder(config).build_catalog()["barclamps"]["hidden"]
    assert entry["user_managed"] is False


def test_write_catalog_is_idempotent(config, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    write_descriptor("bare.yml", "barclamp:\n  name: bare\n")
    path = CatalogBuilder(config).write_catalog()
    first = path.read_bytes()
    CatalogBuilder(config).write_catalog()
    assert path.read_bytes() == first
    assert path == config.crowbar_path / "config" / "catalog.yml"
    loaded = utils.load_yaml_file(path)
    assert set(loaded["barclamps"]) == {"network", "crowbar", "bare"}


def test_bad_descriptor_writes_no_catalog(config, write_descriptor):
    write_descriptor("network.yml", NETWORK)
    write_descriptor("zz-broken.yml", "barclamp: {name: [\n")
    with pytest.raises(DescriptorError):
        CatalogBuilder(config).write_catalog()
    assert not config.catalog_path.exists()


def test_previous_catalog_is_replaced(config, write_descriptor):
    config.catalog_path.parent.mkdir(parents=True)
    config.catalog_path.write_text("stale: true\n" * 100)
    write_descriptor("bare.yml", "barclamp:\n  name: bare\n")
    CatalogBuilder(config).write_catalog()
    assert "stale" not in config.catalog_path.read_text()


def test_scalar_member_names_one_group(config, write_descriptor):
    write_descriptor(
        "network.yml",
        "barclamp:\n  name: network\n  description: d\n  member: crowbar\ncrowbar:\n  order: 10\n",
    )
    barclamps = CatalogBuilder(config).build_catalog()["barclamps"]
    assert set(barclamps) == {"network", "crowbar"}
    assert barclamps["crowbar"]["members"] == {"network": 10}


def test_nameless_descriptor_is_fatal(config, write_descriptor):
    write_descriptor("a.yml", "barclamp:\n  description: no name\n")
    write_descriptor("b.yml", "barclamp:\n  name: ok\n")
    with pytest.raises(DescriptorError):
        CatalogBuilder(config).build_catalog()


def test_nameless_descriptor_skipped_when_lenient(config, write_descriptor):
    config.skip_invalid_descriptors = True
    write_descriptor("a.yml", "barclamp:\n  description: no name\n")
    write_descriptor("b.yml", "barclamp:\n  name: ok\n")
    builder = CatalogBuilder(config)
    assert set(builder.build_catalog()["barclamps"]) == {"ok"}
    assert any("a.yml" in warning for warning in builder.logger.warnings)


def test_non_ascii_description_is_utf8(config, write_descriptor):
    path = config.descriptors_dir / "network.yml"
    path.parent.mkdir(parents=True)
    path.write_bytes("barclamp:\n  name: network\n  description: Réseau\n".encode("utf-8"))
    CatalogBuilder(config).write_catalog()
    first = config.catalog_path.read_bytes()
    assert "description: Réseau".encode("utf-8") in first
    CatalogBuilder(config).write_catalog()
    assert config.catalog_path.read_bytes() == first
