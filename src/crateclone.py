"""crateclone - clone Rust crate sources into local directories

    Returns:
        int: Exit code
"""
import logging
import os
import sys

from constants import ExitCodes, Constants
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
import cli_config
from errors import CloneError, exit_code_for
from cloning import clone, clone_reverse_deps
from sources import GitReference, SourceConfigMap, SourceLocation
from versioning import PackageQuery


def _setup_logging(args):
    """Configure logging from --loglevel, --logfile and --quiet."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()
    if getattr(args, "QUIET", False):
        logging.getLogger().setLevel(logging.ERROR)
    if getattr(args, "LOG_FILE", None):
        handler = logging.FileHandler(args.LOG_FILE, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s " + Constants.LOG_FORMAT))
        logging.getLogger().addHandler(handler)


def build_source(args):
    """Build the SourceLocation selected by the CLI options."""
    if args.PATH:
        return SourceLocation.for_path(args.PATH)
    if args.GIT:
        reference = None
        if args.BRANCH:
            reference = GitReference("branch", args.BRANCH)
        elif args.TAG:
            reference = GitReference("tag", args.TAG)
        elif args.REV:
            reference = GitReference("rev", args.REV)
        return SourceLocation.for_git(args.GIT, reference)
    if args.INDEX:
        return SourceLocation.for_registry(Constants.CRATES_IO_NAME, args.INDEX)
    if args.REGISTRY:
        return SourceLocation.for_registry(args.REGISTRY)
    return SourceLocation.for_registry()


def run(args):
    """Execute the selected sub-command and return the exit code."""
    logger = logging.getLogger(__name__)
    source = build_source(args)
    source_map = SourceConfigMap.from_constants()

    if args.command == "clone":
        clone(PackageQuery(name=args.NAME, version=args.VERSION), source, args.PREFIX,
              source_map=source_map)
        return ExitCodes.SUCCESS.value

    report = clone_reverse_deps(
        args.NAME,
        source,
        args.PREFIX,
        args.VERSION,
        source_map=source_map,
        api_url=args.API_URL,
    )
    if is_debug_enabled(logger):
        logger.debug(
            "Reverse dependency batch finished",
            extra=extra_context(
                event="function_exit",
                component="cli",
                action="reverse_deps",
                outcome="success" if report.ok else "partial",
                count=report.total
            )
        )
    logging.info("Cloned %d of %d reverse dependencies of %s",
                 len(report.cloned), report.total, args.NAME)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    logger = logging.getLogger(__name__)

    args = parse_args(argv)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.command)
        )

    try:
        cli_config.apply_config(cli_config.load_config(args.CONFIG))
        cli_config.apply_cli_overrides(args)
        code = run(args)
    except (CloneError, OSError) as exc:
        logger.debug("Command failed", exc_info=True)
        sys.stderr.write(f"error: {exc}\n")
        sys.exit(exit_code_for(exc))
    sys.exit(code)


if __name__ == "__main__":
    main()
