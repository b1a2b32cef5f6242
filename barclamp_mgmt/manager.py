# barclamp_mgmt/manager.py
"""Main BarclampManager class orchestrating an install or maintenance run."""

from pathlib import Path

from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .installer import BarclampInstaller
from .catalog import CatalogBuilder
from .navigation import NavigationBuilder
from .manifest import ManifestBuilder
from .chef import ChefInstaller


class BarclampManager(BarclampConfigurable, BarclampLoggable):
    """Runs the steps selected in the config in install order."""

    def __init__(self, config=None, chef: ChefInstaller | None = None):
        super().__init__(config)
        self.installer = BarclampInstaller(self.config)
        self._chef = chef

    @property
    def chef(self) -> ChefInstaller:
        """Created on first use, generation-only runs never touch knife."""
        if self._chef is None:
            self._chef = ChefInstaller(self.config)
        return self._chef

    @property
    def barclamp_paths(self) -> list[Path]:
        return [Path(source) for source in self.config.barclamp_sources]

    @property
    def barclamp_names(self) -> list[str]:
        return [path.name for path in self.barclamp_paths]

    def main(self) -> bool:
        """Main processing method.  InstallErrors propagate to the caller."""
        self.logger.debug(f"Starting barclamp-mgmt configuration: {self.config}")
        flags_and_steps = [
            (self.config.uninstall, self._uninstall),
            (self.config.install_app, self._install_app),
            (self.config.generate_catalog, self._generate_catalog),
            (self.config.generate_navigation, self._generate_navigation),
            (self.config.generate_assets_manifest, self._generate_assets_manifest),
            (self.config.install_chef, self._install_chef),
            (self.config.migrate, self._migrate),
            (self.config.update_config_db, self._update_config_db),
        ]
        selected = [step for flag, step in flags_and_steps if flag]
        if not selected:
            return self.logger.error("No steps selected, see --help.")
        for step in selected:
            self.logger.debug("Running step", step.__name__)
            if not step():
                self.logger.error("FAILED step", step.__name__, "... stopping...")
                return False
        return True

    def _require_barclamps(self) -> bool:
        if not self.barclamp_paths:
            return self.logger.error("This step requires one or more barclamp paths.")
        return True

    def _uninstall(self) -> bool:
        if not self._require_barclamps():
            return False
        for name in self.barclamp_names:
            self.installer.remove(name)
        return True

    def _install_app(self) -> bool:
        if not self._require_barclamps():
            return False
        for path in self.barclamp_paths:
            self.installer.install_app(path)
        return True

    def _generate_catalog(self) -> bool:
        CatalogBuilder(self.config).write_catalog()
        return True

    def _generate_navigation(self) -> bool:
        NavigationBuilder(self.config).write_navigation()
        return True

    def _generate_assets_manifest(self) -> bool:
        ManifestBuilder(self.config).write_manifest()
        return True

    def _install_chef(self) -> bool:
        if not self._require_barclamps():
            return False
        return self.chef.install_chef(self.barclamp_paths)

    def _migrate(self) -> bool:
        if not self._require_barclamps():
            return False
        for name in self.barclamp_names:
            if self.chef.check_schema_migration(name):
                self.chef.migrate(name)
            else:
                self.logger.debug(f"No schema migration needed for {name}.")
        return True

    def _update_config_db(self) -> bool:
        if not self._require_barclamps():
            return False
        return self.chef.update_config_db(self.barclamp_names)
