"""solresolve - resolve, cache and flatten Solidity imports

    Returns:
        int: Exit code
"""
import logging
import os
import sys

import yaml

from adapters.local import LocalIOAdapter
from args import parse_args
from cli_config import apply_cli_overrides, resolve_log_level
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, load_config
from flattener import SourceFlattener
from resolver.errors import FetchError, MalformedSpecifierError


def _exit_code_for(exc, entry):
    if isinstance(exc, MalformedSpecifierError):
        return ExitCodes.INVALID_IMPORT
    if isinstance(exc, FetchError) and exc.target != entry:
        return ExitCodes.CONNECTION_ERROR
    return ExitCodes.FILE_ERROR


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(resolve_log_level(args), args.LOG_FILE)
    logger = logging.getLogger(__name__)

    if args.CWD:
        try:
            os.chdir(args.CWD)
        except OSError as exc:
            sys.stderr.write(f"Failed to chdir to {args.CWD}: {exc}\n")
            return ExitCodes.FILE_ERROR.value

    try:
        load_config(args.CONFIG)
    except (OSError, yaml.YAMLError) as exc:
        sys.stderr.write(f"Failed to load configuration: {exc}\n")
        return ExitCodes.FILE_ERROR.value
    apply_cli_overrides(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main", target=args.entry)
        )

    flattener = SourceFlattener(LocalIOAdapter("."), cache_enabled=Constants.CACHE_ENABLED)
    try:
        if args.OUT:
            result = flattener.flatten_to_file(
                args.entry, args.OUT, args.REMAP, args.REMAPPINGS_FILE, args.PRAGMA
            )
            sys.stderr.write(f"Wrote flattened file to {result.out_file} (sources: {len(result.order)})\n")
        else:
            result = flattener.flatten(args.entry, args.REMAP, args.REMAPPINGS_FILE, args.PRAGMA)
            sys.stdout.write(result.flattened)
    except (MalformedSpecifierError, OSError) as exc:
        sys.stderr.write(f"Flatten failed: {exc}\n")
        return _exit_code_for(exc, args.entry).value

    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
