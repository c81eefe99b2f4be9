#!/usr/bin/env python3
"""
Basic Example 1: Netboot Profile

A profile is a plain Python file exposing MODIFIERS. The CLI applies them
after its own options, in order.

To run this example with the DHCP6Mod CLI:
    python -m dhcp6mod examples/basic/01_netboot_profile.py --mac 00:11:22:33:44:55
"""

# Local imports
from dhcp6mod import (
    ArchType,
    OptionCode,
    with_arch_type,
    with_netboot,
    with_requested_options,
    with_user_class,
)

MODIFIERS = [
    with_netboot,
    with_arch_type(ArchType.EFI_X86_64_HTTP),
    with_user_class(b"iPXE"),
    with_requested_options(OptionCode.NTP_SERVER),
]
