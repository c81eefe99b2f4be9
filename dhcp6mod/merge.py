#!/usr/bin/env python3
"""
Option Merge Primitives

Given an existing option (or none) and new data, produce the option that a
modifier writes back into the packet. Each option family has a fixed merge
discipline:

    Option family            Absent              Present
    -----------------------  ------------------  ---------------------------------
    Client/Server ID         new singleton       replaced
    Option Request (ORO)     empty list          codes appended, duplicates kept
    User Class               list of one         replaced by a new list of one
    Client Arch Type         list of one         replaced by a new list of one
    IA_NA                    empty binding       addresses appended
    DNS name servers         new                 replaced (copy of the addresses)
    Domain search list       new                 replaced

Accumulating primitives mutate and return the working copy they are given,
always assigning fresh lists so no list object is shared with the caller or
with a Scapy field default. IA addresses must be IPv6 literals, since Scapy
would resolve anything else as a host name. No other primitive validates
its input; a malformed value surfaces when Scapy encodes the option.
"""

# Standard library imports
import logging
from ipaddress import IPv6Address
from typing import Iterable, Optional, Type

# Third-party imports
from scapy.layers.dhcp6 import DHCP6OptIA_NA, DHCP6OptIAAddress, DHCP6OptOptReq
from scapy.packet import Packet

# Local imports
from .options import (
    AddressLike,
    DuidLike,
    OPTION_CLASSES,
    OptionCode,
    ZERO_VALUES,
    arch_type_option,
    client_id_option,
    dns_servers_option,
    domain_search_list_option,
    ia_address,
    option_name,
    server_id_option,
    user_class_option,
)
from .packet import DHCPv6

logger = logging.getLogger(__name__)


def existing_or_zero(packet: DHCPv6, code: int, expected: Optional[Type[Packet]] = None) -> Optional[Packet]:
    """
    Fetch a private working copy of the option stored under `code`.

    Falls back to the zero value for the code when the packet has none.
    Returns None (after logging a warning) if the stored option is not an
    instance of `expected` (default: the Scapy class registered for the code);
    the caller then leaves the packet untouched.
    """
    if expected is None:
        expected = OPTION_CLASSES[code]
    current = packet.get_one_option(code)
    if current is None:
        return ZERO_VALUES[code]()
    if not isinstance(current, expected):
        logger.warning(
            f"{option_name(code)}: expected {expected.__name__}, found "
            f"{type(current).__name__}; leaving packet unchanged"
        )
        return None
    return current.copy()


def add_requested_options(oro: DHCP6OptOptReq, codes: Iterable[int]) -> DHCP6OptOptReq:
    """Append option codes to an ORO. Codes already present are appended again."""
    oro.reqopts = list(oro.reqopts or []) + [int(code) for code in codes]
    return oro


def add_ia_addresses(iana: DHCP6OptIA_NA, addresses: Iterable[DHCP6OptIAAddress]) -> DHCP6OptIA_NA:
    """Append a copy of each IA address to the binding list of an IA_NA. Unusable addresses are skipped."""
    bindings = [as_ia_address(addr) for addr in addresses]
    iana.ianaopts = list(iana.ianaopts or []) + [b for b in bindings if b is not None]
    return iana


def as_ia_address(addr) -> Optional[DHCP6OptIAAddress]:
    """
    Copy an IA Address option, or build one from a plain IPv6 address.

    Strings must be IPv6 literals. Scapy would otherwise treat them as host
    names and resolve them, so anything else is logged and None returned.
    """
    if isinstance(addr, Packet):
        return addr.copy()
    try:
        IPv6Address(str(addr))
    except ValueError:
        logger.warning(f"IA_NA: {addr!r} is not an IPv6 address literal, skipping binding")
        return None
    return ia_address(addr)


def replace_identifier(code: int, duid: DuidLike) -> Packet:
    """Build a fresh client or server identifier option."""
    if int(code) == OptionCode.SERVERID:
        return server_id_option(duid)
    return client_id_option(duid)


def single_user_class(data: bytes) -> Packet:
    """User Class option holding exactly one entry; any previous entries are dropped."""
    return user_class_option([data])


def single_arch_type(arch: int) -> Packet:
    """Client Arch Type option holding exactly one architecture."""
    return arch_type_option([arch])


def replace_dns_servers(servers: Iterable[AddressLike]) -> Packet:
    return dns_servers_option(list(servers))


def replace_domain_search_list(labels: Iterable[str]) -> Packet:
    return domain_search_list_option(list(labels))
