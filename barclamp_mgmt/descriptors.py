"""Loading of the per-barclamp descriptor documents.

Each installed barclamp drops a `<name>.yml` descriptor into the framework's
barclamps directory, e.g.:

    barclamp:
      name: network
      display: Network
      description: Instantiates network interfaces on the nodes
      member:
        - crowbar
    crowbar:
      order: 10
      run_order: 10
      chef_order: 10
    git:
      commit: 4d5c2ff
      date: Mon Jan 6 12:00:00 2014 +0100
    nav:
      barclamps:
        network:
          order: 20
          route: barclamp_modules_path
          params:
            id: network

Files are always visited in lexical order so every merge built from them is
reproducible regardless of how the filesystem lists the directory.
"""

from pathlib import Path
from typing import Any, Iterable, Optional

from . import utils
from .config import BarclampConfigurable
from .logger import BarclampLoggable
from .utils import DescriptorError
from .constants import (
    DESCRIPTOR_SUFFIXES,
    JSON_SUFFIXES,
    YAML_SUFFIXES,
    NO_DESCRIPTION,
    UNKNOWN_DATE,
    UNSET_COMMIT,
)


class Descriptor:
    """Read-only view of one parsed descriptor document."""

    def __init__(self, path: Path, document: dict[str, Any]):
        self.path = Path(path)
        self._doc = document

    def __repr__(self):
        return f"Descriptor({self.name!r}, {str(self.path)!r})"

    # ---------------------------- sections -------------------------------

    @property
    def barclamp(self) -> dict[str, Any]:
        return self._doc.get("barclamp") or {}

    @property
    def crowbar(self) -> dict[str, Any]:
        return self._doc.get("crowbar") or {}

    @property
    def git(self) -> dict[str, Any]:
        return self._doc.get("git") or {}

    @property
    def nav(self) -> Optional[dict[str, Any]]:
        return self._doc.get("nav")

    # ---------------------------- identity -------------------------------

    @property
    def name(self) -> str:
        name = self.barclamp.get("name")
        if not name:
            raise DescriptorError(f"Descriptor {self.path} has no barclamp name.")
        return str(name)

    @property
    def description(self) -> Optional[str]:
        return self.barclamp.get("description")

    @property
    def placeholder_description(self) -> str:
        return NO_DESCRIPTION.format(name=self.name)

    @property
    def display(self) -> str:
        return self.barclamp.get("display") or ""

    @property
    def user_managed(self) -> bool:
        value = self.barclamp.get("user_managed")
        return True if value is None else value

    @property
    def members_of(self) -> list[str]:
        """Names of the groups this barclamp belongs to."""
        members = self.barclamp.get("member") or []
        if isinstance(members, str):
            members = [members]
        return [str(group) for group in members]

    # ---------------------------- ordering -------------------------------

    @property
    def order(self) -> Optional[int]:
        return self.crowbar.get("order")

    @property
    def run_order(self) -> Optional[int]:
        return self.crowbar.get("run_order")

    @property
    def chef_order(self) -> Optional[int]:
        return self.crowbar.get("chef_order")

    # ---------------------------- provenance -----------------------------

    @property
    def commit(self) -> str:
        commit = self.git.get("commit")
        return UNSET_COMMIT if commit is None or commit is False else commit

    @property
    def date(self) -> str:
        date = self.git.get("date")
        return UNKNOWN_DATE if date is None or date is False else date


class DescriptorLoader(BarclampConfigurable, BarclampLoggable):
    """Finds and parses the descriptor documents of a directory."""

    def __init__(self, config=None, strict: Optional[bool] = None):
        super().__init__(config)
        self.strict = (
            not self.config.skip_invalid_descriptors if strict is None else strict
        )

    def descriptor_paths(
        self, directory: Path | str, suffixes: Iterable[str] = DESCRIPTOR_SUFFIXES
    ) -> list[Path]:
        """Return the non-hidden files of `directory` with one of `suffixes`,
        sorted by file name.  A missing directory has no descriptors.
        """
        directory = Path(directory)
        if not directory.is_dir():
            self.logger.debug(f"No descriptor directory {directory}.")
            return []
        suffixes = tuple(suffixes)
        return sorted(
            (
                path
                for path in directory.iterdir()
                if not path.name.startswith(".")
                and path.suffix in suffixes
                and path.is_file()
            ),
            key=lambda path: path.name,
        )

    def parse(self, path: Path) -> Any:
        """Parse one document according to its extension."""
        if path.suffix in JSON_SUFFIXES:
            return utils.load_json_file(path)
        elif path.suffix in YAML_SUFFIXES:
            return utils.load_yaml_file(path)
        else:
            raise DescriptorError(f"Unsupported descriptor format for {path}.")

    def load_documents(
        self, directory: Path | str, suffixes: Iterable[str] = DESCRIPTOR_SUFFIXES
    ) -> list[tuple[Path, dict[str, Any]]]:
        """Load every descriptor document in `directory` as (path, mapping) pairs.

        Empty documents are skipped.  A document which cannot be read or parsed,
        or which is not a mapping, raises DescriptorError unless the loader is
        lenient in which case it is skipped with a warning.
        """
        documents = []
        for path in self.descriptor_paths(directory, suffixes):
            self.logger.debug(f"Loading {path.name}")
            try:
                document = self.parse(path)
            except DescriptorError:
                raise
            except (OSError, ValueError, utils.YAMLError) as e:
                self.reject(path, f"Failed to load descriptor {path}: {e}")
                continue
            if document is None:
                self.logger.debug(f"Skipping empty descriptor {path.name}.")
                continue
            if not isinstance(document, dict):
                self.reject(path, f"Descriptor {path} is not a mapping.")
                continue
            documents.append((path, document))
        return documents

    def load_descriptors(self, directory: Path | str) -> list[Descriptor]:
        return [
            Descriptor(path, document)
            for path, document in self.load_documents(directory, DESCRIPTOR_SUFFIXES)
        ]

    def reject(self, path: Path, msg: str) -> None:
        if self.strict:
            raise DescriptorError(msg)
        self.logger.warning(msg, "... skipping.")

    # ------------------------- barclamp source trees ----------------------

    def yml_paths(
        self, directory: Path | str, suggested_name: Optional[str] = None
    ) -> list[Path]:
        """Descriptor files shipped at the top of a barclamp source tree,
        optionally only those named after `suggested_name`.
        """
        directory = Path(directory)
        ending = f"{suggested_name or ''}.yml"
        return sorted(
            path
            for path in directory.iterdir()
            if path.name.endswith(ending) and path.is_file()
        )
