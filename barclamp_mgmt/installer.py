"""Installation of barclamp file trees into the framework layout.

A barclamp source tree looks like:

    <barclamp>/
      <name>.yml            descriptor, copied to crowbar_framework/barclamps
      crowbar_framework/    rails parts, copied under the base path
      bin/                  command line tools
      chef/                 cookbooks, data_bags, roles
      updates/              files copied relative to /

Every file copied is recorded in `<barclamps>/<name>-filelist.txt` which is
what an uninstall removes again.
"""

import os
import shutil
from pathlib import Path
from typing import Optional

from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .process import Runnable
from .descriptors import DescriptorLoader
from .utils import InstallError
from .constants import (
    DIR_MODE,
    FILE_MODE,
    EXEC_MODE,
    FRAMEWORK_DIR,
    BIN_DIR,
    RPM_PREFIX,
    RPM_QUERY_TIMEOUT,
)


class BarclampInstaller(BarclampConfigurable, BarclampLoggable, Runnable):
    """Copies barclamp trees into place and removes them again."""

    def __init__(self, config=None):
        super().__init__(config)
        self.loader = DescriptorLoader(self.config)

    # ------------------------------ file helpers ------------------------------

    def clone_tree(self, item: str, source: Path | str, target: Path | str) -> list[Path]:
        """Recursively copy `source`/`item` to `target`/`item` skipping dotfiles.

        Returns the list of files created, directories are not listed.
        """
        new_source = Path(source) / item
        new_file = Path(target) / item
        self.logger.debug(f"clone_tree: {new_source} -> {new_file}")
        files = []
        if new_source.is_dir():
            self.logger.debug(f"\tcreating directory {new_file}.")
            new_file.mkdir(parents=True, exist_ok=True)
            for entry in sorted(os.listdir(new_source)):
                if entry.startswith("."):
                    continue
                files += self.clone_tree(entry, new_source, new_file)
        else:
            self.logger.debug(f"\t\tcopying file {new_file}.")
            shutil.copy(new_source, new_file)
            files.append(new_file)
        return files

    def chmod_dir(self, mode: int, path: Path | str) -> None:
        """Set `mode` on the regular files directly inside `path`.
        Directories are left alone.
        """
        path = Path(path)
        for entry in sorted(os.listdir(path)):
            if entry.startswith("."):
                continue
            file = path / entry
            if file.is_dir():
                self.logger.debug(f"\tchmod_dir: {file} is a directory. Skipping it.")
            elif file.exists():
                file.chmod(mode)
                self.logger.debug(f"\tchmod {mode:#o} for {file}")
            else:
                self.logger.warning(
                    f"chmod_dir: missing file {file} for chmod {mode:#o} operation."
                )

    def chmod_recursive(self, mode: int, path: Path | str) -> None:
        path = Path(path)
        if not path.exists():
            return
        path.chmod(mode)
        for root, dirs, files in os.walk(path):
            for name in dirs + files:
                Path(root, name).chmod(mode)

    def framework_permissions(self) -> None:
        for name in ["db", "tmp"]:
            path = self.config.crowbar_path / name
            if path.is_dir():
                path.chmod(DIR_MODE)
                self.chmod_dir(FILE_MODE, path)
        self.logger.debug("\tfixed crowbar_framework permissions")

    # ------------------------------ install / remove --------------------------

    def install_app(self, bc_path: Path | str, from_rpm: Optional[bool] = None) -> list[Path]:
        """Install the framework files of the barclamp at `bc_path`.

        When installing from an RPM the package already put the framework,
        bin, and chef files in place, only `updates` is copied.
        """
        bc_path = Path(bc_path)
        from_rpm = self.config.from_rpm if from_rpm is None else from_rpm
        component = bc_path.name
        self.logger.info(f"Installing component {component} from {bc_path}")
        if not from_rpm and not bc_path.is_dir():
            raise InstallError(f"Barclamp source {bc_path} is not a directory.")

        dirs = set(os.listdir(bc_path)) if bc_path.is_dir() else set()
        self.logger.debug(f"path entries {sorted(dirs)}")
        files: list[Path] = []
        base_path = self.config.base_path
        if not from_rpm:
            if FRAMEWORK_DIR in dirs:
                files += self.clone_tree(FRAMEWORK_DIR, bc_path, base_path)
                self.framework_permissions()
            if BIN_DIR in dirs:
                files += self.clone_tree(BIN_DIR, bc_path, base_path)
                self.chmod_recursive(EXEC_MODE, self.config.bin_path)
                self.logger.debug("\tcopied command line files")
            if "chef" in dirs:
                files += self.clone_tree("chef", bc_path, base_path)
                self.logger.debug(f"\tcopied over chef parts from {bc_path} to {base_path}")
            files += self.install_descriptors(bc_path)

        if "updates" in dirs:
            files += self.clone_tree("updates", bc_path, self.config.root_path)
            self.chmod_recursive(EXEC_MODE, self.config.update_path)
            self.logger.debug("\tcopied updates files")

        filelist = self.write_filelist(component, files)
        self.logger.debug(
            f"Component {component} added to Crowbar Framework.  Review {filelist} for files created."
        )
        return files

    def install_descriptors(self, bc_path: Path) -> list[Path]:
        """Copy the descriptor(s) at the top of `bc_path` where the catalog
        and navigation builders will find them.
        """
        files = []
        target_dir = self.config.descriptors_dir
        for yml_source in self.loader.yml_paths(bc_path):
            target_dir.mkdir(parents=True, exist_ok=True)
            yml_created = target_dir / yml_source.name
            if yml_source.resolve() != yml_created.resolve():
                shutil.copy(yml_source, yml_created)
            files.append(yml_created)
        return files

    def write_filelist(self, component: str, files: list[Path]) -> Path:
        filelist = self.config.filelist_path(component)
        filelist.parent.mkdir(parents=True, exist_ok=True)
        with filelist.open("w", encoding="utf-8") as out:
            for file in files:
                out.write(f"{file}\n")
        return filelist

    def remove(self, component: str) -> bool:
        """Remove every file recorded for `component`, then its file list.
        Returns False if the component has no file list.
        """
        filelist = self.config.filelist_path(component)
        if not filelist.exists():
            self.logger.warning(
                f"No file list {filelist} for {component}, nothing to remove."
            )
            return False
        with filelist.open(encoding="utf-8") as opened:
            for line in opened:
                self._remove_file(Path(line.rstrip("\n")))
        self._remove_file(filelist)
        self.logger.info(f"Component {component} Uninstalled")
        return True

    def _remove_file(self, path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            self.logger.debug(f"\t{path} already removed.")
        except OSError as e:
            self.logger.warning(f"Could not remove {path}: {e}")

    # ------------------------------ rpm ---------------------------------------

    def rpm_name(self, component: str) -> str:
        return f"{RPM_PREFIX}{component}"

    def rpm_file_list(self, rpm: str) -> list[str]:
        """Files owned by the installed package `rpm`."""
        output = self.runner.run(["rpm", "-ql", rpm], timeout=RPM_QUERY_TIMEOUT)
        self.logger.debug(f"obtained file list from {rpm} rpm")
        return [line.rstrip() for line in str(output).splitlines()]

    def yml_paths_from_rpm(self, component: str) -> list[str]:
        """Descriptor files the barclamp's package installed."""
        descriptors_dir = str(self.config.descriptors_dir)
        return [
            file
            for file in self.rpm_file_list(self.rpm_name(component))
            if os.path.dirname(file) == descriptors_dir and file.endswith(".yml")
        ]
