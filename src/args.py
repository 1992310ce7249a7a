"""Argument parsing functionality for solresolve."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="solresolve",
        description=(
            "solresolve - resolve, cache and flatten Solidity imports"
        ),
        epilog=(
            "examples:\n"
            "  solresolve contracts/MyToken.sol\n"
            "  solresolve contracts/MyToken.sol -o flat/MyToken.flat.sol\n"
            "  solresolve contracts/MyToken.sol -r @openzeppelin/=node_modules/@openzeppelin/\n"
            "  solresolve contracts/MyToken.sol -R remappings.txt"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=True,
    )

    parser.add_argument("entry",
                        help="Entry source file to flatten",
                        type=str)
    parser.add_argument("-o", "--out",
                        dest="OUT",
                        help="Write output to file (default: stdout)",
                        action="store",
                        type=str)
    parser.add_argument("-r", "--remap",
                        dest="REMAP",
                        help="Add a remapping prefix=target (can be repeated)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("-R", "--remappings-file",
                        dest="REMAPPINGS_FILE",
                        help="Read remappings from a solc-style file",
                        action="store",
                        type=str)
    parser.add_argument("--pragma",
                        dest="PRAGMA",
                        help="Override the header pragma, e.g. ^0.8.26",
                        action="store",
                        type=str)
    parser.add_argument("--cwd",
                        dest="CWD",
                        help="Change working directory before running",
                        action="store",
                        type=str)
    parser.add_argument("--config",
                        dest="CONFIG",
                        help="Path to a YAML configuration file",
                        action="store",
                        type=str)
    parser.add_argument("--no-cache",
                        dest="NO_CACHE",
                        help="Refetch remote content even when it is cached under .deps",
                        action="store_true")
    parser.add_argument("--npm-url",
                        dest="NPM_URL",
                        help="Base URL for npm package content",
                        action="store",
                        type=str)
    parser.add_argument("--ipfs-gateway",
                        dest="IPFS_GATEWAY",
                        help="Base URL of the IPFS gateway",
                        action="store",
                        type=str)
    parser.add_argument("--swarm-gateway",
                        dest="SWARM_GATEWAY",
                        help="Base URL of the Swarm gateway",
                        action="store",
                        type=str)
    parser.add_argument("--debug",
                        dest="DEBUG",
                        help="Enable verbose logging",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
