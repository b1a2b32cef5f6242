import json
import textwrap

import pytest

from barclamp_mgmt import logger
from barclamp_mgmt.config import BarclampConfig


@pytest.fixture(autouse=True)
def fresh_logger():
    logger.reset_logger()
    yield
    logger.reset_logger()


@pytest.fixture
def config(tmp_path):
    return BarclampConfig(
        base_path=tmp_path / "opt",
        update_path=tmp_path / "root" / "updates",
        root_path=tmp_path / "root",
        install_log=tmp_path / "install.log",
        color="off",
    )


@pytest.fixture
def write_descriptor(config):
    def _write(filename, text):
        path = config.descriptors_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text))
        return path

    return _write


@pytest.fixture
def write_manifest(config):
    def _write(filename, obj):
        path = config.manifests_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(obj))
        return path

    return _write
