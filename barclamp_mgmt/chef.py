"""Upload of barclamp chef parts and rails side schema maintenance.

All interaction with the Chef server goes through the ConfigStore interface,
KnifeConfigStore implements it by running the `knife` CLI with the webui
client key, appending everything knife prints to the install log.
"""

import abc
import json
import re
import shlex
from pathlib import Path
from typing import Any, Iterable, Optional

from . import utils
from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .process import Runnable
from .installer import BarclampInstaller
from .utils import InstallError
from .constants import (
    ALL_COOKBOOKS,
    CROWBAR_USER,
    DIR_MODE,
    FILE_MODE,
    KNIFE_TIMEOUT,
    RAKE_TIMEOUT,
)


class ConfigStore(abc.ABC):
    """Operations the installer needs from the configuration management server."""

    @abc.abstractmethod
    def create_bag(self, bag: str) -> None: ...

    @abc.abstractmethod
    def upload_bag_item(self, bag: str, item_path: Path | str) -> None: ...

    @abc.abstractmethod
    def upload_cookbooks(self, cookbooks_dir: Path | str, cookbooks: list[str]) -> None:
        """Upload `cookbooks` found in `cookbooks_dir`, [ALL] uploads every one."""

    @abc.abstractmethod
    def upload_role(self, role_path: Path | str) -> None: ...

    @abc.abstractmethod
    def show_bag_item(self, bag: str, item: str) -> Optional[dict[str, Any]]:
        """The stored data bag item, or None if it cannot be retrieved."""


class KnifeConfigStore(ConfigStore, BarclampConfigurable, BarclampLoggable, Runnable):
    """ConfigStore backed by the knife command line tool."""

    def __init__(self, config=None, log: Optional[Path | str] = None):
        super().__init__(config)
        self.log = Path(log) if log else self.config.install_log

    def knife(self, *words: str) -> list[str]:
        return [self.config.knife_command, *words, *self.config.knife_auth]

    def _run(self, command: list[str], cwd=None) -> None:
        self.logger.debug(f"running {shlex.join(command)}")
        self.runner.run_logged(command, self.log, cwd=cwd, timeout=KNIFE_TIMEOUT)

    def create_bag(self, bag: str) -> None:
        self._run(self.knife("data", "bag", "create", bag))

    def upload_bag_item(self, bag: str, item_path: Path | str) -> None:
        self._run(self.knife("data", "bag", "from", "file", bag, str(item_path)))

    def upload_cookbooks(self, cookbooks_dir: Path | str, cookbooks: list[str]) -> None:
        selection = ["-a"] if cookbooks == [ALL_COOKBOOKS] else list(cookbooks)
        self._run(
            self.knife("cookbook", "upload", "-o", ".", *selection), cwd=cookbooks_dir
        )

    def upload_role(self, role_path: Path | str) -> None:
        self._run(self.knife("role", "from", "file", str(role_path)))

    def show_bag_item(self, bag: str, item: str) -> Optional[dict[str, Any]]:
        command = [
            self.config.knife_command,
            "data",
            "bag",
            "show",
            "-F",
            "json",
            bag,
            item,
            "-k",
            self.config.chef_key,
            "-u",
            self.config.chef_user,
        ]
        result = self.runner.run(command, check=False, timeout=KNIFE_TIMEOUT)
        if result.returncode != 0:  # type: ignore[union-attr]
            self.logger.debug(f"Failed to retrieve {bag} {item}.")
            return None
        try:
            return json.loads(result.stdout)  # type: ignore[union-attr]
        except ValueError as e:
            self.logger.debug(f"Unreadable {bag} {item}: {e}")
            return None


class ChefInstaller(BarclampConfigurable, BarclampLoggable, Runnable):
    """Uploads cookbooks, data bags, and roles, and runs the rake tasks
    which keep the framework database in step with them.
    """

    def __init__(self, config=None, store: Optional[ConfigStore] = None):
        super().__init__(config)
        self.log = self.config.install_log
        self.store = store or KnifeConfigStore(self.config, self.log)
        self.installer = BarclampInstaller(self.config)

    @property
    def cookbooks_dir(self) -> Path:
        return self.config.chef_path / "cookbooks"

    @property
    def data_bags_dir(self) -> Path:
        return self.config.chef_path / "data_bags"

    @property
    def roles_dir(self) -> Path:
        return self.config.chef_path / "roles"

    def banner(self, title: str) -> None:
        utils.append_log(self.log, f"======== {title} -- {utils.timestamp()} ========")

    # ------------------------------ install -----------------------------------

    def install_chef(
        self, component_paths: Iterable[Path | str], from_rpm: Optional[bool] = None
    ) -> bool:
        """Upload the chef parts of each barclamp, either from its source
        directory or from the files its package installed.
        """
        component_paths = [Path(path) for path in component_paths]
        components = [path.name for path in component_paths]
        from_rpm = self.config.from_rpm if from_rpm is None else from_rpm

        self.banner("Installing chef components")
        self.logger.debug(f"Capturing chef install logs to {self.log}")

        if from_rpm:
            rpm_files: list[str] = []
            for component in components:
                rpm = self.installer.rpm_name(component)
                self.logger.debug(f"obtaining chef components from {rpm} rpm")
                rpm_files += self.installer.rpm_file_list(rpm)
            self.upload_cookbooks_from_rpm(rpm_files)
            self.upload_data_bags_from_rpm(rpm_files)
            self.upload_roles_from_rpm(rpm_files)
        else:
            for path in component_paths:
                chef = path / "chef"
                self.logger.debug(f"obtaining chef components from {path} directory")
                self.upload_cookbooks_from_dir(chef / "cookbooks", [ALL_COOKBOOKS])
                self.upload_data_bags_from_dir(chef / "data_bags")
                self.upload_roles_from_dir(chef / "roles")

        return self.logger.info(
            f"Chef components for ({', '.join(components)}) (format v1) uploaded."
        )

    def upload_cookbooks_from_dir(self, cookbooks_dir: Path, cookbooks: list[str]) -> None:
        if cookbooks_dir.is_dir():
            self.logger.debug(f"uploading {cookbooks} from {cookbooks_dir}")
            self.store.upload_cookbooks(cookbooks_dir, cookbooks)
        else:
            self.logger.debug(f"\tNOTE: could not find cookbooks dir {cookbooks_dir}")

    def upload_data_bags_from_dir(self, data_bags_dir: Path) -> None:
        if not data_bags_dir.is_dir():
            self.logger.debug(f"\tNOTE: could not find data bags dir {data_bags_dir}")
            return
        for bag_path in sorted(data_bags_dir.iterdir()):
            if not bag_path.is_dir():
                continue
            bag_path.chmod(DIR_MODE)
            self.installer.chmod_dir(FILE_MODE, bag_path)
            for item_path in sorted(bag_path.glob("*.json")):
                self.upload_data_bag_item(bag_path.name, item_path)

    def upload_data_bag_item(self, bag: str, item_path: Path | str) -> None:
        self.store.create_bag(bag)
        self.store.upload_bag_item(bag, item_path)

    def upload_roles_from_dir(self, roles_dir: Path) -> None:
        if not roles_dir.is_dir():
            self.logger.debug(f"\tNOTE: could not find roles dir {roles_dir}")
            return
        for role_path in sorted(roles_dir.glob("*.rb")):
            self.logger.debug(f"will upload {role_path}")
            self.store.upload_role(role_path)

    # ------------------------------ from rpm ----------------------------------

    def upload_cookbooks_from_rpm(self, rpm_files: list[str]) -> None:
        cookbooks_dir = self.cookbooks_dir
        pattern = re.compile(rf"^{re.escape(str(cookbooks_dir))}/([^/]+)$")
        cookbooks = []
        for file in rpm_files:
            match = pattern.match(file)
            if match and Path(file).is_dir():
                self.logger.debug(f"will upload {match.group(1)} from {file}")
                cookbooks.append(match.group(1))
        if not cookbooks:
            self.logger.warning(f"didn't find any cookbooks in {cookbooks_dir}")
        else:
            self.upload_cookbooks_from_dir(cookbooks_dir, cookbooks)

    def upload_data_bags_from_rpm(self, rpm_files: list[str]) -> None:
        data_bags_dir = self.data_bags_dir
        pattern = re.compile(rf"^{re.escape(str(data_bags_dir))}/([^/]+)/[^/]+\.json$")
        items = [
            (match.group(1), file)
            for file in rpm_files
            if (match := pattern.match(file))
        ]
        if not items:
            self.logger.warning(f"didn't find any data bags in {data_bags_dir}")
        for bag, item_path in items:
            self.logger.debug(f"uploading {bag}")
            self.upload_data_bag_item(bag, item_path)

    def upload_roles_from_rpm(self, rpm_files: list[str]) -> None:
        roles_dir = self.roles_dir
        pattern = re.compile(rf"^{re.escape(str(roles_dir))}/[^/]+$")
        roles = [file for file in rpm_files if pattern.match(file)]
        if not roles:
            self.logger.warning(f"didn't find any roles in {roles_dir}")
        for role_path in roles:
            self.logger.debug(f"will upload {role_path}")
            self.store.upload_role(role_path)

    # ------------------------------ rake tasks --------------------------------

    def rake_command(self, task: str) -> list[str]:
        """Run `task` as the crowbar user from the framework directory."""
        inner = (
            f"cd {shlex.quote(str(self.config.crowbar_path))} && "
            f"RAILS_ENV={shlex.quote(self.config.rails_env)} "
            f"bin/rake --silent {shlex.quote(task)} 2>&1"
        )
        return ["su", "-s", "/bin/sh", "-", CROWBAR_USER, "-c", inner]

    def run_rake_task(self, task: str) -> bool:
        command = self.rake_command(task)
        self.logger.debug(f"running {shlex.join(command)}")
        result = self.runner.run(
            command,
            check=False,
            output_mode="log",
            log=self.log,
            timeout=RAKE_TIMEOUT,
        )
        return result.returncode == 0  # type: ignore[union-attr]

    def migrate(self, bc: str) -> bool:
        self.logger.debug("Migrating schema to new revision...")
        self.banner(f"Migrating {bc} barclamp")
        if not self.run_rake_task(f"crowbar:schema_migrate_prod[{bc}]"):
            raise InstallError(
                f"Failed to migrate barclamp {bc} to new schema revision.", self.log
            )
        return self.logger.info(f"Barclamp {bc} (format v1) Chef Components Migrated.")

    def update_config_db(self, barclamps: list[str]) -> bool:
        names = ", ".join(barclamps)
        self.banner(f"Updating configuration DB for {names}")
        if not self.run_rake_task(f"crowbar:update_config_db[{' '.join(barclamps)}]"):
            raise InstallError(f"Failed to update configuration DB for {names}.", self.log)
        return self.logger.info(f"Configuration DB updated for {names}.")

    # ------------------------------ schema revisions --------------------------

    def template_path(self, bc: str) -> Path:
        return self.data_bags_dir / "crowbar" / f"template-{bc}.json"

    def _schema_revision(self, template: Any, bc: str) -> Any:
        try:
            return template["deployment"][bc]["schema-revision"]
        except (KeyError, TypeError):
            return None

    def check_schema_migration(self, bc: str) -> bool:
        """True if the installed template's schema-revision differs from the
        one stored on the Chef server, i.e. a migration is needed.
        """
        template_file = self.template_path(bc)
        self.logger.debug(f"Looking for new schema-revision in {template_file}...")
        new_revision = None
        if template_file.exists():
            try:
                new_revision = self._schema_revision(
                    utils.load_json_file(template_file), bc
                )
            except (OSError, ValueError) as e:
                self.logger.debug(f"Unreadable template {template_file}: {e}")
        if new_revision is None:
            self.logger.debug(f"No new schema-revision found for {bc}")
        else:
            self.logger.debug(f"New schema-revision for {bc} is {new_revision}")

        self.logger.debug("Looking for previous schema-revision...")
        stored = self.store.show_bag_item("crowbar", f"template-{bc}")
        if stored is None:
            self.logger.debug(f"Failed to retrieve template-{bc}, no migration necessary")
            return False
        old_revision = self._schema_revision(stored, bc)
        if old_revision is None:
            self.logger.debug(f"No previous schema-revision found for {bc}")
        else:
            self.logger.debug(f"Previous schema-revision for {bc} is {old_revision}")
        return old_revision != new_revision
