"""Merging of per-barclamp asset manifests into public/assets/manifest.json."""

from pathlib import Path
from typing import Any

from . import utils
from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .descriptors import DescriptorLoader
from .merge import merge_all
from .constants import MANIFEST_SUFFIXES


class ManifestBuilder(BarclampConfigurable, BarclampLoggable):
    """Combines the compiled-asset manifests shipped by each barclamp."""

    def __init__(self, config=None):
        super().__init__(config)
        self.loader = DescriptorLoader(self.config)

    def build_manifest(self) -> dict[str, Any]:
        self.logger.debug("Generating assets manifest")
        documents = self.loader.load_documents(
            self.config.manifests_dir, MANIFEST_SUFFIXES
        )
        return merge_all(document for _path, document in documents)

    def write_manifest(self) -> Path:
        manifest = self.build_manifest()
        path = utils.atomic_write(
            self.config.assets_manifest_path, utils.json_dumps(manifest)
        )
        self.logger.info(f"Wrote assets manifest with {len(manifest)} keys.")
        return path
