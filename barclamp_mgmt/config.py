# barclamp_mgmt/config.py
"""Configuration management for barclamp-mgmt."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import argparse

from .constants import (
    BASE_PATH,
    UPDATE_PATH,
    ROOT_PATH,
    BARCLAMPS_DIR,
    FRAMEWORK_DIR,
    BIN_DIR,
    MANIFESTS_DIR,
    CATALOG_FILE,
    NAVIGATION_FILE,
    ASSETS_MANIFEST_FILE,
    FILELIST_SUFFIX,
    DEFAULT_INSTALL_LOG,
    DEFAULT_CHEF_KEY,
    DEFAULT_CHEF_USER,
    DEFAULT_KNIFE_COMMAND,
    DEFAULT_RAILS_ENV,
    DEFAULT_LOG_TIMES_MODE,
    DEFAULT_COLOR_MODE,
    DEBUG_ENABLED,
    LOG_FILE,
)


@dataclass
class BarclampConfig:
    """Configuration for one barclamp-mgmt run.

    Built once at process start and handed to every component, all paths
    are derived from `base_path` rather than module level globals.
    """

    base_path: Path = BASE_PATH
    update_path: Path = UPDATE_PATH
    root_path: Path = ROOT_PATH

    barclamp_sources: list[str] = field(default_factory=list)
    install_log: Path = Path(DEFAULT_INSTALL_LOG)
    rails_env: str = DEFAULT_RAILS_ENV
    knife_command: str = DEFAULT_KNIFE_COMMAND
    chef_key: str = DEFAULT_CHEF_KEY
    chef_user: str = DEFAULT_CHEF_USER

    verbose: bool = DEBUG_ENABLED
    debug: bool = False
    log_times: str = DEFAULT_LOG_TIMES_MODE
    color: str = DEFAULT_COLOR_MODE
    log_file: str = LOG_FILE

    skip_invalid_descriptors: bool = False
    from_rpm: bool = False

    generate_catalog: bool = False
    generate_navigation: bool = False
    generate_assets_manifest: bool = False
    install_app: bool = False
    install_chef: bool = False
    migrate: bool = False
    update_config_db: bool = False
    uninstall: bool = False

    def __post_init__(self):
        """Post-initialization processing."""
        self.base_path = Path(self.base_path)
        self.update_path = Path(self.update_path)
        self.root_path = Path(self.root_path)
        self.install_log = Path(self.install_log)

    @classmethod
    def from_env(cls, **overrides) -> "BarclampConfig":
        """Create BarclampConfig from the process environment alone."""
        keys = dict(
            base_path=Path(os.environ.get("CROWBAR_DIR", BASE_PATH)),
            verbose=os.environ.get("DEBUG") == "true",
            rails_env=os.environ.get("RAILS_ENV", DEFAULT_RAILS_ENV),
        )
        keys.update(overrides)
        return cls(**keys)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "BarclampConfig":
        """Create BarclampConfig from argparse Namespace."""
        return cls.from_env(
            base_path=Path(args.crowbar_dir),
            barclamp_sources=list(args.barclamps),
            install_log=Path(args.log),
            rails_env=args.rails_env,
            verbose=args.verbose or DEBUG_ENABLED,
            debug=args.debug,
            log_times=args.log_times,
            color=args.color,
            log_file=args.log_file,
            skip_invalid_descriptors=args.skip_invalid_descriptors,
            from_rpm=args.from_rpm,
            generate_catalog=args.catalog or args.generate_all,
            generate_navigation=args.navigation or args.generate_all,
            generate_assets_manifest=args.assets_manifest or args.generate_all,
            install_app=args.install_app,
            install_chef=args.install_chef,
            migrate=args.migrate,
            update_config_db=args.update_config_db,
            uninstall=args.uninstall,
        )

    # ------------------------------ derived layout ------------------------------

    @property
    def barclamp_path(self) -> Path:
        """Where uninstall file lists are kept."""
        return self.base_path / BARCLAMPS_DIR

    @property
    def crowbar_path(self) -> Path:
        return self.base_path / FRAMEWORK_DIR

    @property
    def bin_path(self) -> Path:
        return self.base_path / BIN_DIR

    @property
    def chef_path(self) -> Path:
        return self.base_path / "chef"

    @property
    def descriptors_dir(self) -> Path:
        return self.crowbar_path / BARCLAMPS_DIR

    @property
    def manifests_dir(self) -> Path:
        return self.descriptors_dir / MANIFESTS_DIR

    @property
    def catalog_path(self) -> Path:
        return self.crowbar_path / CATALOG_FILE

    @property
    def navigation_path(self) -> Path:
        return self.crowbar_path / NAVIGATION_FILE

    @property
    def assets_manifest_path(self) -> Path:
        return self.crowbar_path / ASSETS_MANIFEST_FILE

    def filelist_path(self, component: str) -> Path:
        return self.barclamp_path / f"{component}{FILELIST_SUFFIX}"

    @property
    def knife_auth(self) -> list[str]:
        return ["-V", "-k", self.chef_key, "-u", self.chef_user]


class BarclampConfigurable:
    """Mixin which results in self.config being defined for subclasses."""

    def __init__(self, config: Optional[BarclampConfig] = None):
        self.config = config or BarclampConfig.from_env()
        super().__init__()
