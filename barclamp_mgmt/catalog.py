"""Regeneration of the barclamp catalog, config/catalog.yml.

The catalog is rebuilt from scratch on every install from the descriptors
currently present, never updated incrementally.
"""

from pathlib import Path
from typing import Any

from . import utils
from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .descriptors import Descriptor, DescriptorLoader
from .merge import plain
from .utils import DescriptorError
from .constants import NO_DESCRIPTION


class CatalogBuilder(BarclampConfigurable, BarclampLoggable):
    """Aggregates barclamp descriptors into the catalog of barclamps and groups."""

    def __init__(self, config=None):
        super().__init__(config)
        self.loader = DescriptorLoader(self.config)

    def build_catalog(self) -> dict[str, Any]:
        """Return {"barclamps": {name: entry}} for every descriptor and group."""
        self.logger.debug("Creating catalog")
        barclamps: dict[str, dict[str, Any]] = {}
        for descriptor in self.loader.load_descriptors(self.config.descriptors_dir):
            try:
                self.add_descriptor(barclamps, descriptor)
            except DescriptorError as e:
                self.loader.reject(descriptor.path, e.msg)
        self.finalize(barclamps)
        return {"barclamps": barclamps}

    def add_descriptor(
        self, barclamps: dict[str, dict[str, Any]], descriptor: Descriptor
    ) -> None:
        name = descriptor.name
        self.logger.debug(f"Adding catalog info for {name}")
        entry = barclamps.setdefault(name, {})

        description = descriptor.description
        if description is None:
            self.logger.warning(f"Barclamp {name} has no description!")
            description = descriptor.placeholder_description
        entry["description"] = description
        entry["display"] = descriptor.display
        entry["user_managed"] = descriptor.user_managed

        for group in descriptor.members_of:
            group_entry = barclamps.setdefault(group, {})
            group_entry.setdefault("members", {})[name] = descriptor.order

        for key in ["order", "run_order", "chef_order"]:
            value = getattr(descriptor, key)
            if value is not None and value is not False:
                entry[key] = value

        entry["date"] = descriptor.date
        entry["commit"] = descriptor.commit

    def finalize(self, barclamps: dict[str, dict[str, Any]]) -> None:
        """Groups only known through membership still need a description."""
        for name, entry in barclamps.items():
            if entry.get("description") is None:
                self.logger.debug(f"Group {name} has no descriptor of its own.")
                entry["description"] = NO_DESCRIPTION.format(name=name)

    def write_catalog(self) -> Path:
        """Build the catalog and replace the catalog file with it."""
        catalog = self.build_catalog()
        path = utils.atomic_write(
            self.config.catalog_path, utils.yaml_dumps(plain(catalog))
        )
        self.logger.info(f"Wrote catalog of {len(catalog['barclamps'])} barclamps.")
        return path
