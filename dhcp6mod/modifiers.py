#!/usr/bin/env python3
"""
Modifier Combinators for DHCPv6 Packets

A modifier is a callable `DHCPv6 -> DHCPv6` that adds or updates one logical
option. Factories close over their parameters; `with_netboot` takes none and
is used directly. Modifiers are folded left to right over a packet:

    packet = apply_modifiers(
        new_message(MessageType.SOLICIT),
        [with_client_id(duid_ll("00:11:22:33:44:55")),
         with_requested_options(OptionCode.DNS_RECURSIVE_NAME_SERVER),
         with_netboot],
    )

Every modifier writes back with replace-by-code and returns the packet it was
given. None of them raise: if the packet or a stored option has an
unexpected shape, a warning is logged and the packet is returned unchanged,
so one mismatched modifier never aborts a whole fold.
"""

# Standard library imports
import logging
from typing import Callable, Iterable

# Local imports
from .merge import (
    add_ia_addresses,
    add_requested_options,
    as_ia_address,
    existing_or_zero,
    replace_dns_servers,
    replace_domain_search_list,
    replace_identifier,
    single_arch_type,
    single_user_class,
)
from .options import AddressLike, DuidLike, OptionCode
from .packet import DHCPv6

logger = logging.getLogger(__name__)

Modifier = Callable[[DHCPv6], DHCPv6]

NETBOOT_OPTIONS = (OptionCode.BOOTFILE_URL, OptionCode.BOOTFILE_PARAM)


def with_client_id(duid: DuidLike) -> Modifier:
    """Set the Client Identifier option, replacing any previous one."""
    def modifier(packet: DHCPv6) -> DHCPv6:
        packet.update_option(replace_identifier(OptionCode.CLIENTID, duid))
        return packet
    return modifier


def with_server_id(duid: DuidLike) -> Modifier:
    """Set the Server Identifier option, replacing any previous one."""
    def modifier(packet: DHCPv6) -> DHCPv6:
        packet.update_option(replace_identifier(OptionCode.SERVERID, duid))
        return packet
    return modifier


def _request_options(packet: DHCPv6, codes: Iterable[int]) -> DHCPv6:
    oro = existing_or_zero(packet, OptionCode.ORO)
    if oro is None:
        return packet
    packet.update_option(add_requested_options(oro, codes))
    return packet


def with_netboot(packet: DHCPv6) -> DHCPv6:
    """
    Request the bootfile URL and bootfile parameter options.

    Only client/server messages are enriched; any other packet shape is
    logged and returned unchanged.
    """
    message = packet.as_message()
    if message is None:
        logger.warning(f"with_netboot: {type(packet).__name__} is not a DHCPv6 message, skipping")
        return packet
    _request_options(message, NETBOOT_OPTIONS)
    return packet


def with_user_class(user_class: bytes) -> Modifier:
    """
    Set a User Class option carrying a single entry.

    The option is rebuilt on every application, so classes from earlier
    applications are not kept.
    """
    def modifier(packet: DHCPv6) -> DHCPv6:
        packet.update_option(single_user_class(user_class))
        return packet
    return modifier


def with_arch_type(arch: int) -> Modifier:
    """Set a Client Arch Type option carrying a single architecture."""
    def modifier(packet: DHCPv6) -> DHCPv6:
        packet.update_option(single_arch_type(arch))
        return packet
    return modifier


def with_iana(*addresses) -> Modifier:
    """
    Add IA Address bindings to the packet's IA_NA, creating it if needed.

    Args:
        addresses: DHCP6OptIAAddress layers or plain IPv6 addresses

    Bindings accumulate across applications; each application appends its
    own copy of every address. Strings that are not IPv6 literals are
    logged and left out when the modifier is built, without any name lookup.
    """
    bindings = [b for b in map(as_ia_address, addresses) if b is not None]

    def modifier(packet: DHCPv6) -> DHCPv6:
        iana = existing_or_zero(packet, OptionCode.IA_NA)
        if iana is None:
            return packet
        packet.update_option(add_ia_addresses(iana, bindings))
        return packet
    return modifier


def with_dns(*servers: AddressLike) -> Modifier:
    """Set the DNS Recursive Name Server option, replacing any previous server list."""
    def modifier(packet: DHCPv6) -> DHCPv6:
        packet.update_option(replace_dns_servers(servers))
        return packet
    return modifier


def with_domain_search_list(*labels: str) -> Modifier:
    """Set the Domain Search List option, replacing any previous list."""
    def modifier(packet: DHCPv6) -> DHCPv6:
        packet.update_option(replace_domain_search_list(labels))
        return packet
    return modifier


def with_requested_options(*codes: int) -> Modifier:
    """Append option codes to the Option Request option, creating it if needed."""
    def modifier(packet: DHCPv6) -> DHCPv6:
        return _request_options(packet, codes)
    return modifier


def apply_modifiers(packet: DHCPv6, modifiers: Iterable[Modifier]) -> DHCPv6:
    """Fold `modifiers` left to right over `packet` and return the result."""
    for modify in modifiers:
        packet = modify(packet)
        logger.debug(f"Applied {getattr(modify, '__qualname__', modify)}: {packet!r}")
    return packet
