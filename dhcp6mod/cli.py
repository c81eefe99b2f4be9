#!/usr/bin/env python3
"""
DHCP6Mod - Main Entry Point

Command-line interface for building DHCPv6 messages out of modifiers and
printing, reporting or capturing the result.

Environment Variable Support:
Every build option has a DHCP6MOD_* environment variable (see
dhcp6mod.config). Environment variables are applied as defaults when CLI
arguments are not provided; CLI arguments always take precedence.

Additional variables:
- DHCP6MOD_PROFILE: Path to a modifier profile file
- DHCP6MOD_VERBOSE: Verbosity level (0, 1, 2)
- DHCP6MOD_PCAP_FILE: Path to PCAP output file
- DHCP6MOD_REPORT_FILE: Path to Markdown report file

Example usage:
  dhcp6mod --mac 00:11:22:33:44:55 --netboot --arch efi-x86-64
  dhcp6mod examples/basic/01_netboot_profile.py --relay 2001:db8::1 fe80::1 --hex
"""

# ===========================
# Standard Library Imports
# ===========================
import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

# ===========================
# Local Imports
# ===========================
from .config import (
    BuildConfig,
    build_from_config,
    describe,
    load_profile,
    parse_arch_type,
    parse_hex,
    parse_message_type,
    parse_option_code,
)
from .exceptions import DHCP6ModError
from .utils.packet_report import format_option_table, write_packet_report, write_pcap

logger = logging.getLogger(__name__)


def configure_logging(verbosity: int) -> None:
    """
    Configure console logging for the given verbosity.

    0=WARNING, 1=INFO, 2+=DEBUG. An existing console handler is reused.
    """
    level = logging.DEBUG if verbosity >= 2 else logging.INFO if verbosity >= 1 else logging.WARNING
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = next((h for h in root_logger.handlers
                            if isinstance(h, logging.StreamHandler)
                            and not isinstance(h, logging.FileHandler)), None)
    if console_handler:
        console_handler.setLevel(level)
    else:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(console_handler)

    if verbosity >= 2:
        logger.debug(f"Logging configured - Console: {logging.getLevelName(level)} (verbosity: {verbosity})")


def apply_cli_overrides(config: BuildConfig, args: argparse.Namespace) -> BuildConfig:
    """
    Apply CLI flags on top of an environment-derived config.

    Only flags the user actually gave replace config values; list flags
    replace the whole list rather than extending it.
    """
    overrides = {}
    if args.msg_type is not None:
        overrides['msg_type'] = args.msg_type
    if args.mac is not None:
        overrides['mac'] = args.mac
        overrides['duid_time'] = None
    if args.client_id is not None:
        overrides['client_id'] = args.client_id
    if args.server_id is not None:
        overrides['server_id'] = args.server_id
    if args.request:
        overrides['requested_options'] = args.request
    if args.dns:
        overrides['dns_servers'] = args.dns
    if args.search:
        overrides['search_list'] = args.search
    if args.user_class is not None:
        overrides['user_class'] = args.user_class
    if args.arch is not None:
        overrides['arch_type'] = args.arch
    if args.address:
        overrides['addresses'] = args.address
    if args.netboot:
        overrides['netboot'] = True
    if args.transaction_id is not None:
        overrides['transaction_id'] = args.transaction_id
    if args.relay:
        overrides['relay_link'], overrides['relay_peer'] = args.relay
    # replace() re-runs __post_init__, so names and strings are normalised again
    return replace(config, **overrides)


def _int_auto(value: str) -> int:
    return int(value, 0)


def build_parser(env_defaults: dict) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="DHCP6Mod - Build DHCPv6 messages from composable option modifiers",
        epilog="Environment variables (DHCP6MOD_*) can be used as defaults for all options. "
               "CLI arguments take precedence over environment variables.",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "profile",
        type=Path,
        nargs='?',
        default=env_defaults['profile'],
        help="Python file defining MODIFIERS (or build()) applied after the CLI options "
             "(or set DHCP6MOD_PROFILE)"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=env_defaults['verbose'],
        help="Increase verbosity: -v (INFO), -vv (DEBUG). Can also set DHCP6MOD_VERBOSE"
    )

    message_group = parser.add_argument_group("Message")
    message_group.add_argument("--msg-type", type=parse_message_type, default=None,
                               help="Message type name or number (default: solicit)")
    message_group.add_argument("--transaction-id", type=_int_auto, default=None,
                               help="Transaction id, decimal or 0x-prefixed hex (default: random)")
    message_group.add_argument("--relay", nargs=2, metavar=("LINK", "PEER"), default=None,
                               help="Wrap the message in a RELAY-FORW with these link and peer addresses")

    option_group = parser.add_argument_group("Options")
    option_group.add_argument("--mac", default=None,
                              help="Client MAC address; derives a DUID-LLT client identifier")
    option_group.add_argument("--client-id", type=parse_hex, default=None,
                              help="Client identifier DUID as hex (overrides --mac)")
    option_group.add_argument("--server-id", type=parse_hex, default=None,
                              help="Server identifier DUID as hex")
    option_group.add_argument("--request", nargs='+', type=parse_option_code, default=None,
                              help="Option codes or names to add to the Option Request option")
    option_group.add_argument("--dns", nargs='+', default=None,
                              help="DNS recursive name servers (replaces any previous list)")
    option_group.add_argument("--search", nargs='+', default=None,
                              help="Domain search list (replaces any previous list)")
    option_group.add_argument("--user-class", default=None,
                              help="User class string")
    option_group.add_argument("--arch", type=parse_arch_type, default=None,
                              help="Client architecture name (e.g. efi-x86-64) or number")
    option_group.add_argument("--address", nargs='+', default=None,
                              help="IA_NA addresses to bind (accumulate)")
    option_group.add_argument("--netboot", action="store_true",
                              help="Request the bootfile URL and bootfile parameter options")

    output_group = parser.add_argument_group("Output Control")
    output_group.add_argument("--hex", action="store_true",
                              help="Print the encoded message as hex instead of the option table")
    output_group.add_argument("--pcap-file", type=Path, default=env_defaults['pcap_file'],
                              help="Write the message to a PCAP inside IPv6/UDP. "
                                   "Can also set DHCP6MOD_PCAP_FILE")
    output_group.add_argument("--report-file", type=Path, default=env_defaults['report_file'],
                              help="Write a Markdown packet report. Can also set DHCP6MOD_REPORT_FILE")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the dhcp6mod CLI."""
    env_defaults = {
        'profile': os.getenv('DHCP6MOD_PROFILE'),
        'verbose': int(os.getenv('DHCP6MOD_VERBOSE', '0') or 0),
        'pcap_file': os.getenv('DHCP6MOD_PCAP_FILE'),
        'report_file': os.getenv('DHCP6MOD_REPORT_FILE'),
    }
    parser = build_parser(env_defaults)
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = apply_cli_overrides(BuildConfig.from_env(), args)
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    logger.info(f"Build configuration: {describe(config)}")

    profile_modifiers = []
    if args.profile:
        try:
            profile_modifiers = load_profile(args.profile)
        except DHCP6ModError as e:
            logger.error(f"Failed to load profile: {e}")
            return 1

    try:
        packet = build_from_config(config, profile_modifiers)
        encoded = bytes(packet)
    except Exception as e:
        logger.error(f"Failed to build packet: {e}")
        return 1

    if args.hex:
        print(encoded.hex())
    else:
        print(packet.summary())
        print(format_option_table(packet))

    if args.report_file:
        try:
            write_packet_report(packet, str(args.report_file), mode="w",
                                metadata=describe(config))
        except OSError as e:
            logger.error(f"Failed to write report {args.report_file}: {e}")
            return 1
        logger.info(f"Report written to {args.report_file}")
    if args.pcap_file:
        try:
            write_pcap(packet, str(args.pcap_file))
        except OSError as e:
            logger.error(f"Failed to write PCAP {args.pcap_file}: {e}")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
