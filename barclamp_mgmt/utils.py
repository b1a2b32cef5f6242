"""Utility functions for barclamp-mgmt."""

import os
import io
import json
import datetime
import tempfile
from pathlib import Path
from typing import Any, Optional

from ruamel.yaml import YAML  # type: ignore[import]
from ruamel.yaml import YAMLError  # noqa: F401

from .constants import FILE_MODE


# NOTE: to keep this module easily importable everywhere in our code, avoid
# barclamp_mgmt imports other than constants.

# --------------------------- YAML helpers to isolate ruamel.yaml details -------------------


def get_yaml() -> YAML:
    """Return configured ruamel.yaml instance.  Descriptor key order is
    preserved on load so that merge order and catalog output follow the
    files rather than hash order.
    """
    yaml = YAML()
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def yaml_dumps(obj) -> str:
    """Convert an object, e.g. the barclamp catalog, to our YAML format."""
    with io.StringIO() as string_stream:
        get_yaml().dump(obj, string_stream)
        return string_stream.getvalue()


def load_yaml_file(path: Path | str) -> Any:
    with open(path, encoding="utf-8") as opened:
        return get_yaml().load(opened)


def load_json_file(path: Path | str) -> Any:
    with open(path, encoding="utf-8") as opened:
        return json.load(opened)


def json_dumps(obj) -> str:
    """Compact JSON, no whitespace between tokens."""
    return json.dumps(obj, separators=(",", ":"))


# -------------------------------------------------------------------------


class InstallError(RuntimeError):
    """A fatal installation error.  Raised wherever the installer cannot
    continue without leaving a half-applied state, and reported once by
    the CLI before exiting non-zero.
    """

    def __init__(self, msg: str, log: Optional[Path | str] = None, exit_code: int = 1):
        self.msg = msg
        self.log = log
        self.exit_code = exit_code
        super().__init__(self.render())

    def render(self) -> str:
        text = f"{self.msg}  Aborting."
        if self.log:
            text += f" Examine {self.log} for more info."
        return text


class DescriptorError(InstallError):
    """A barclamp descriptor could not be read or parsed."""


# -------------------------------------------------------------------------


def elapsed_time(start_time: datetime.datetime) -> tuple[datetime.datetime, str]:
    """Returns a string representing the elapsed time between the `start_time`
    and current time.
    """
    now = datetime.datetime.now()
    delta = now - start_time
    total_seconds = int(delta.total_seconds())
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    microseconds = delta.microseconds
    return (
        now,
        f"{hours:02d}:{minutes:02d}:{seconds:02d}.{microseconds//1000:03d}",
    )


def timestamp() -> str:
    """Local time in the ctime-like format used for install log banners."""
    return datetime.datetime.now().strftime("%c")


def append_log(log: Path | str, line: str) -> None:
    log = Path(log)
    log.parent.mkdir(parents=True, exist_ok=True)
    with log.open("a", encoding="utf-8") as opened:
        opened.write(line + "\n")


# ------------------------------- artifact writing -------------------------


def atomic_write(path: Path | str, text: str, mode: int = FILE_MODE) -> Path:
    """Write `text` to `path` via a temporary file in the same directory
    which is then renamed over `path`.  Creates the parent directory.

    Readers never see a partially written file, and two concurrent writers
    each produce a complete file with the last rename winning.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as opened:
            opened.write(text)
        os.chmod(temp_name, mode)
        os.replace(temp_name, path)
    except BaseException:
        if os.path.exists(temp_name):
            os.unlink(temp_name)
        raise
    return path


# ------------------------- Ruby literal formatting -------------------------

RUBY_STRING_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\x1b": "\\e",
}


def ruby_string(s: str) -> str:
    """Double quoted Ruby literal for `s`, matching String#inspect."""
    out = []
    for i, char in enumerate(s):
        if char in RUBY_STRING_ESCAPES:
            out.append(RUBY_STRING_ESCAPES[char])
        elif char == "#" and s[i + 1 : i + 2] in ("{", "$", "@"):
            out.append("\\#")
        else:
            out.append(char)
    return '"' + "".join(out) + '"'


def ruby_inspect(value: Any) -> str:
    """Ruby source text for a plain YAML/JSON value as Object#inspect shows it."""
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return ruby_string(value)
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return repr(float(value))
    if isinstance(value, dict):
        items = ", ".join(
            f"{ruby_inspect(key)}=>{ruby_inspect(val)}" for key, val in value.items()
        )
        return "{" + items + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(ruby_inspect(item) for item in value) + "]"
    return ruby_string(str(value))
