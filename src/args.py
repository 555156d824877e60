"""Argument parsing functionality for crateclone."""

import argparse

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _add_source_args(parser):
    """Add the version, source selection and destination options to a sub-command."""
    parser.add_argument("--vers",
                        dest="VERSION",
                        help="Version requirement of the crate to clone (e.g. 1.2.3)",
                        action="store",
                        type=str)
    parser.add_argument("--prefix",
                        dest="PREFIX",
                        help="Directory to clone the package into",
                        action="store",
                        type=str)

    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument("--path",
                              dest="PATH",
                              help="Filesystem path to a local package tree",
                              action="store",
                              type=str)
    source_group.add_argument("--git",
                              dest="GIT",
                              help="Git URL to clone the package from",
                              action="store",
                              type=str)
    source_group.add_argument("--registry",
                              dest="REGISTRY",
                              help="Name of a registry configured in the sources section",
                              action="store",
                              type=str)
    source_group.add_argument("--index",
                              dest="INDEX",
                              help="Sparse registry index URL to use instead of crates.io",
                              action="store",
                              type=str)

    ref_group = parser.add_mutually_exclusive_group()
    ref_group.add_argument("--branch",
                           dest="BRANCH",
                           help="Branch to use when cloning from git",
                           action="store",
                           type=str)
    ref_group.add_argument("--tag",
                           dest="TAG",
                           help="Tag to use when cloning from git",
                           action="store",
                           type=str)
    ref_group.add_argument("--rev",
                           dest="REV",
                           help="Specific commit to use when cloning from git",
                           action="store",
                           type=str)


def build_parser():
    """Build the top-level parser with its sub-commands."""
    parser = argparse.ArgumentParser(
        prog="crate-clone",
        description=(
            "crateclone - Clone Rust crate sources from a registry, git or a local path"
        ),
        add_help=True,
    )

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML, YML, or JSON)",
                        action="store",
                        type=str)
    parser.add_argument("--home",
                        dest="HOME",
                        help="Directory holding the download cache and git checkouts",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=LOG_LEVELS)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Only report errors on the console.",
                        action="store_true")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    clone_parser = subparsers.add_parser(
        "clone",
        help="Clone a crate into a new directory",
    )
    clone_parser.add_argument("NAME",
                              help="Crate to clone; optional with --path or --git",
                              nargs="?")
    _add_source_args(clone_parser)

    rdeps_parser = subparsers.add_parser(
        "reverse-deps",
        help="Clone every crate depending on a crate",
    )
    rdeps_parser.add_argument("NAME",
                              help="Crate whose reverse dependencies are cloned")
    rdeps_parser.add_argument("--api",
                              dest="API_URL",
                              help="Registry web API base URL (default: crates.io)",
                              action="store",
                              type=str)
    _add_source_args(rdeps_parser)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if (args.BRANCH or args.TAG or args.REV) and not args.GIT:
        parser.error("--branch, --tag and --rev require --git")
    return args
