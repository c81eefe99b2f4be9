"""
DHCP6Mod - Composable DHCPv6 message construction.

This package provides tools for building DHCPv6 packets, including:
- Packet shapes keyed by option code (messages and relay messages)
- Option merge primitives with per-option replace/accumulate rules
- Modifier combinators folded over a packet
- Message builders for client/server exchanges and relay wrapping
"""

from .builder import (
    decapsulate,
    encapsulate,
    new_advertise_from_solicit,
    new_message,
    new_reply_from_message,
    new_request_from_advertise,
    new_solicit,
    new_solicit_for_mac,
)
from .exceptions import DecodeError, DHCP6ModError, MessageShapeError, ProfileLoadError
from .modifiers import (
    Modifier,
    apply_modifiers,
    with_arch_type,
    with_client_id,
    with_dns,
    with_domain_search_list,
    with_iana,
    with_netboot,
    with_requested_options,
    with_server_id,
    with_user_class,
)
from .options import ArchType, OptionCode, duid_en, duid_ll, duid_llt, ia_address
from .packet import DHCPv6, DHCPv6Message, DHCPv6Relay, MessageType, decode, from_scapy

__version__ = "1.0.0"
__all__ = [
    "ArchType",
    "DHCP6ModError",
    "DHCPv6",
    "DHCPv6Message",
    "DHCPv6Relay",
    "DecodeError",
    "MessageShapeError",
    "MessageType",
    "Modifier",
    "OptionCode",
    "ProfileLoadError",
    "apply_modifiers",
    "decapsulate",
    "decode",
    "duid_en",
    "duid_ll",
    "duid_llt",
    "encapsulate",
    "from_scapy",
    "ia_address",
    "new_advertise_from_solicit",
    "new_message",
    "new_reply_from_message",
    "new_request_from_advertise",
    "new_solicit",
    "new_solicit_for_mac",
    "with_arch_type",
    "with_client_id",
    "with_dns",
    "with_domain_search_list",
    "with_iana",
    "with_netboot",
    "with_requested_options",
    "with_server_id",
    "with_user_class",
]
