"""Global constants for barclamp-mgmt package."""

import os
from pathlib import Path

# Version
__version__ = "0.3.0"

# Path constants, CROWBAR_DIR overrides the packaged install location.
DEFAULT_BASE_PATH = Path("/opt/dell")
BASE_PATH = Path(os.environ.get("CROWBAR_DIR", DEFAULT_BASE_PATH))
UPDATE_PATH = Path("/updates")
ROOT_PATH = Path("/")

BARCLAMPS_DIR = "barclamps"
FRAMEWORK_DIR = "crowbar_framework"
BIN_DIR = "bin"
MANIFESTS_DIR = "manifests"

CATALOG_FILE = Path("config") / "catalog.yml"
NAVIGATION_FILE = Path("config") / "navigation.rb"
ASSETS_MANIFEST_FILE = Path("public") / "assets" / "manifest.json"
FILELIST_SUFFIX = "-filelist.txt"
DEFAULT_INSTALL_LOG = "/var/log/crowbar/barclamp_install.log"

DESCRIPTOR_SUFFIXES = (".yml",)
MANIFEST_SUFFIXES = (".json",)
YAML_SUFFIXES = (".yml", ".yaml")
JSON_SUFFIXES = (".json",)

RPM_PREFIX = "crowbar-"

# Catalog defaults
UNKNOWN_DATE = "Unknown"
UNSET_COMMIT = "Not Set"
NO_DESCRIPTION = "No description for {name}"

# Navigation
DEFAULT_NAV_ORDER = 1000
NAV_ROOT_INDENT = 4
NAV_INDENT_STEP = 2
NAV_CONTROL_KEYS = ("order", "url", "route", "params", "path", "html", "options")

# Chef / knife
DEFAULT_CHEF_KEY = "/etc/chef/webui.pem"
DEFAULT_CHEF_USER = "chef-webui"
DEFAULT_KNIFE_COMMAND = os.environ.get("BARCLAMP_KNIFE_CMD", "knife")
DEFAULT_RAILS_ENV = os.environ.get("RAILS_ENV", "production")
CROWBAR_USER = "crowbar"
ALL_COOKBOOKS = "ALL"

# Timeout constants (in seconds)
DEFAULT_TIMEOUT = 300
KNIFE_TIMEOUT = 900
RAKE_TIMEOUT = 1800
RPM_QUERY_TIMEOUT = 60

# Permissions
DIR_MODE = 0o755
FILE_MODE = 0o644
EXEC_MODE = 0o755

# Logger configuration constants
VALID_LOG_TIME_MODES = ["none", "normal", "elapsed", "both"]
DEFAULT_LOG_TIMES_MODE = "none"
VALID_COLOR_MODES = ["auto", "on", "off"]
DEFAULT_COLOR_MODE = "auto"
DEBUG_ENABLED = os.environ.get("DEBUG") == "true"
LOG_FILE = os.environ.get("BARCLAMP_LOG_FILE", "")
