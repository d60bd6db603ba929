#!/usr/bin/env python3
"""
Main entry point for evmtrace

This module serves as the CLI entry point, handling argument parsing
and routing to the appropriate command implementations in the cli/ module.
"""

import sys
import argparse

from evmtrace import __version__
from evmtrace.utils.logging import setup_logging
from .export import FORMATS, export_command
from .show import show_command
from .account import account_command


def _add_decode_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('arena', help='Arena dump (JSON) to read')
    parser.add_argument('--abi', '-a', action='append', help='ABI file or directory of ABI files. Can be specified multiple times')
    parser.add_argument('--labels', '-l', help='JSON file mapping addresses to labels')
    parser.add_argument('--no-decode', dest='decode', action='store_false', help='Skip decoding, keep payloads raw')
    parser.add_argument('--lookup-signatures', action='store_true', help='Resolve unknown selectors through public signature databases')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='evmtrace - call trace decoding and export tool')
    parser.add_argument('--version', '-v', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--debug', action='store_true', help='Enable debug logging')
    parser.add_argument('--verbose', action='store_true', help='Enable trace logging (very detailed)')
    parser.add_argument('--quiet', '-q', action='store_true', help='Suppress log output')
    parser.add_argument('--log-file', help='Also write logs to this file')

    subparsers = parser.add_subparsers(dest='command', help='Commands')
    subparsers.required = True

    # export command
    export_parser = subparsers.add_parser('export', help='Decode an arena dump and export it as JSON')
    _add_decode_arguments(export_parser)
    export_parser.add_argument('--format', '-f', choices=FORMATS, default='parity', help='Output format (default: parity)')

    # show command
    show_parser = subparsers.add_parser('show', help='Print the decoded call tree of an arena dump')
    _add_decode_arguments(show_parser)

    # account command
    account_parser = subparsers.add_parser('account', help='Fetch the on-chain state of an account')
    account_parser.add_argument('address', help='Account address')
    account_parser.add_argument('--rpc-url', '-r', default=None, help='RPC URL (default: $EVMTRACE_RPC_URL or http://localhost:8545)')
    account_parser.add_argument('--block', '-b', type=int, default=None, help='Block number (default: latest)')
    account_parser.add_argument('--slot', '-s', action='append', help='Storage slot to read (decimal or 0x-hex). Can be specified multiple times')
    account_parser.add_argument('--json', action='store_true', help='Output as JSON')

    return parser


def main(argv=None):
    """Main entry point for evmtrace CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(
        quiet=args.quiet,
        debug=args.debug,
        verbose=args.verbose,
        log_file=args.log_file,
    )

    if args.command == 'export':
        return export_command(args)
    elif args.command == 'show':
        return show_command(args)
    elif args.command == 'account':
        return account_command(args)

    return 0


if __name__ == '__main__':
    sys.exit(main())
