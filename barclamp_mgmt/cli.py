# barclamp_mgmt/cli.py
"""Command line interface for barclamp-mgmt."""

import sys
import argparse
import cProfile
import pstats

from . import manager
from . import logger
from .config import BarclampConfig
from .utils import InstallError
from .constants import (
    __version__,
    BASE_PATH,
    DEFAULT_INSTALL_LOG,
    DEFAULT_RAILS_ENV,
    VALID_LOG_TIME_MODES,
    DEFAULT_LOG_TIMES_MODE,
    VALID_COLOR_MODES,
    DEFAULT_COLOR_MODE,
    LOG_FILE,
)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Install barclamps into the Crowbar framework and regenerate its catalog, navigation, and asset manifest."
    )
    parser.add_argument(
        "barclamps",
        nargs="*",
        default=[],
        help="Barclamp source directories (or, with --from-rpm, barclamp names) to operate on.",
    )
    parser.add_argument("--version", action="version", version=__version__)

    generate_group = parser.add_argument_group(
        "Generate", "Regenerate framework artifacts from the installed barclamp descriptors."
    )
    generate_group.add_argument(
        "--catalog",
        action="store_true",
        help="Rebuild config/catalog.yml.",
    )
    generate_group.add_argument(
        "--navigation",
        action="store_true",
        help="Rebuild config/navigation.rb.",
    )
    generate_group.add_argument(
        "--assets-manifest",
        action="store_true",
        dest="assets_manifest",
        help="Rebuild public/assets/manifest.json.",
    )
    generate_group.add_argument(
        "-g",
        "--generate-all",
        action="store_true",
        help="Rebuild the catalog, navigation, and assets manifest.",
    )
    generate_group.add_argument(
        "--skip-invalid-descriptors",
        action="store_true",
        help="Warn about and skip descriptors which fail to parse instead of aborting.",
    )

    install_group = parser.add_argument_group(
        "Install", "Install, upload, and migrate barclamps."
    )
    install_group.add_argument(
        "--install-app",
        action="store_true",
        help="Copy barclamp framework, bin, chef, and descriptor files into place.",
    )
    install_group.add_argument(
        "--install-chef",
        action="store_true",
        help="Upload barclamp cookbooks, data bags, and roles with knife.",
    )
    install_group.add_argument(
        "--migrate",
        action="store_true",
        help="Migrate barclamp proposals whose schema-revision changed.",
    )
    install_group.add_argument(
        "--update-config-db",
        action="store_true",
        help="Update the framework configuration DB for the barclamps.",
    )
    install_group.add_argument(
        "--uninstall",
        action="store_true",
        help="Remove the files recorded in each barclamp's file list.",
    )
    install_group.add_argument(
        "--from-rpm",
        action="store_true",
        help="Barclamps were installed by their crowbar-<name> packages.",
    )
    install_group.add_argument(
        "--log",
        default=DEFAULT_INSTALL_LOG,
        help="Install log which knife and rake output is appended to.",
    )
    install_group.add_argument(
        "--rails-env",
        default=DEFAULT_RAILS_ENV,
        help="RAILS_ENV for rake tasks.",
    )

    misc_group = parser.add_argument_group("Miscellaneous", "Global settings.")
    misc_group.add_argument(
        "--crowbar-dir",
        default=str(BASE_PATH),
        help="Base installation path, defaults to $CROWBAR_DIR or /opt/dell.",
    )
    misc_group.add_argument(
        "--verbose",
        action="store_true",
        help="Enable DEBUG log output, also enabled by DEBUG=true.",
    )
    misc_group.add_argument(
        "--debug",
        action="store_true",
        help="Drop into debugging with pdb on exceptions.",
    )
    misc_group.add_argument(
        "--profile",
        action="store_true",
        help="Run with cProfile and output profiling results to console.",
    )
    misc_group.add_argument(
        "--log-times",
        type=str,
        choices=VALID_LOG_TIME_MODES,
        default=DEFAULT_LOG_TIMES_MODE,
        help="Include timestamps in log messages, either as absolute/normal or elapsed times, both, or none.",
    )
    misc_group.add_argument(
        "--color",
        choices=VALID_COLOR_MODES,
        default=DEFAULT_COLOR_MODE,
        help="Colorize the log.",
    )
    misc_group.add_argument(
        "--log-file",
        default=LOG_FILE,
        help="Also write log messages to this file.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    args = parse_args(argv)
    if args.profile:
        with cProfile.Profile() as pr:
            exit_code = _main(args)
            pstats.Stats(pr).sort_stats("cumulative").print_stats(50)
    else:
        exit_code = _main(args)
    return exit_code


def _main(args) -> int:
    config = BarclampConfig.from_args(args)
    log = logger.get_configured_logger(config)
    try:
        barclamp_manager = manager.BarclampManager(config)
        success = barclamp_manager.main()
        log.print_log_counters()
    except InstallError as e:
        log.error(e.render())
        return e.exit_code
    except KeyboardInterrupt:
        log.error("Operation cancelled by user")
        return 1
    except Exception as e:
        log.exception(e, "Failed:")
        return 1
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(int(main()))
