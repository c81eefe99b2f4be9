#!/usr/bin/env python3
"""
DHCPv6 Option Tables and Constructors

Option codes, client architecture codes and zero-value constructors for the
option variants the modifiers work with. The byte layout of every option is
owned by Scapy's DHCPv6 layers; this module only decides which Scapy class
backs which option code and what an "empty" instance of it looks like.
"""

# Standard library imports
import logging
import time
from enum import IntEnum
from ipaddress import IPv6Address
from typing import Iterable, Optional, Union

# Third-party imports
from scapy.config import conf
from scapy.layers.dhcp6 import (
    DHCP6OptClientArchType,
    DHCP6OptClientId,
    DHCP6OptDNSDomains,
    DHCP6OptDNSServers,
    DHCP6OptElapsedTime,
    DHCP6OptIA_NA,
    DHCP6OptIAAddress,
    DHCP6OptOptReq,
    DHCP6OptRapidCommit,
    DHCP6OptRelayMsg,
    DHCP6OptServerId,
    DHCP6OptUserClass,
    DUID_EN,
    DUID_LL,
    DUID_LLT,
    USER_CLASS_DATA,
    dhcp6opts,
)
from scapy.packet import Packet

logger = logging.getLogger(__name__)

# Seconds between the Unix epoch and the DUID-LLT epoch (2000-01-01 00:00 UTC)
DUID_TIME_EPOCH = 946684800

# IAID used by solicit messages built without an explicit binding
DEFAULT_IAID = 0xFACEB00C
DEFAULT_T1 = 3600
DEFAULT_T2 = 5400

AddressLike = Union[str, IPv6Address]
DuidLike = Union[Packet, bytes, None]


class OptionCode(IntEnum):
    """DHCPv6 option codes (RFC 8415 and companion RFCs)"""
    CLIENTID = 1
    SERVERID = 2
    IA_NA = 3
    IA_TA = 4
    IAADDR = 5
    ORO = 6
    PREFERENCE = 7
    ELAPSED_TIME = 8
    RELAY_MSG = 9
    AUTH = 11
    UNICAST = 12
    STATUS_CODE = 13
    RAPID_COMMIT = 14
    USER_CLASS = 15
    VENDOR_CLASS = 16
    VENDOR_OPTS = 17
    INTERFACE_ID = 18
    RECONF_MSG = 19
    RECONF_ACCEPT = 20
    DNS_RECURSIVE_NAME_SERVER = 23
    DOMAIN_SEARCH_LIST = 24
    IA_PD = 25
    IAPREFIX = 26
    INFORMATION_REFRESH_TIME = 32
    REMOTE_ID = 37
    FQDN = 39
    NTP_SERVER = 56
    BOOTFILE_URL = 59
    BOOTFILE_PARAM = 60
    CLIENT_ARCH_TYPE = 61
    NII = 62
    CLIENT_LINKLAYER_ADDR = 79


class ArchType(IntEnum):
    """Client system architecture codes (RFC 4578, IANA processor architecture registry)"""
    INTEL_X86PC = 0
    NEC_PC98 = 1
    EFI_ITANIUM = 2
    DEC_ALPHA = 3
    ARC_X86 = 4
    INTEL_LEAN_CLIENT = 5
    EFI_IA32 = 6
    EFI_BC = 7
    EFI_XSCALE = 8
    EFI_X86_64 = 9
    EFI_ARM32 = 10
    EFI_ARM64 = 11
    EFI_X86_HTTP = 15
    EFI_X86_64_HTTP = 16
    EFI_BC_HTTP = 17
    EFI_ARM32_HTTP = 18
    EFI_ARM64_HTTP = 19


# Scapy class backing each option code the modifiers touch
OPTION_CLASSES = {
    OptionCode.CLIENTID: DHCP6OptClientId,
    OptionCode.SERVERID: DHCP6OptServerId,
    OptionCode.IA_NA: DHCP6OptIA_NA,
    OptionCode.IAADDR: DHCP6OptIAAddress,
    OptionCode.ORO: DHCP6OptOptReq,
    OptionCode.ELAPSED_TIME: DHCP6OptElapsedTime,
    OptionCode.RELAY_MSG: DHCP6OptRelayMsg,
    OptionCode.RAPID_COMMIT: DHCP6OptRapidCommit,
    OptionCode.USER_CLASS: DHCP6OptUserClass,
    OptionCode.DNS_RECURSIVE_NAME_SERVER: DHCP6OptDNSServers,
    OptionCode.DOMAIN_SEARCH_LIST: DHCP6OptDNSDomains,
    OptionCode.CLIENT_ARCH_TYPE: DHCP6OptClientArchType,
}

_DUID_CLASSES = {
    1: DUID_LLT,
    2: DUID_EN,
    3: DUID_LL,
}


def option_code(option: Packet) -> Optional[int]:
    """Return the option code of a Scapy DHCPv6 option layer, or None if it has none."""
    if option is None:
        return None
    for field_desc in option.fields_desc:
        if field_desc.name == "optcode":
            return int(option.getfieldval("optcode"))
    return None


def option_name(code: int) -> str:
    """Human readable name for an option code."""
    try:
        return OptionCode(code).name
    except ValueError:
        name = dhcp6opts.get(code)
        return name if name else f"OPTION_{code}"


# =========================
# DUID helpers
# =========================

def as_duid(value: DuidLike) -> DuidLike:
    """
    Turn raw DUID bytes into the matching Scapy DUID layer.

    Packets are copied and None is passed through; bytes with an unknown
    DUID type end up as a raw layer so they still encode verbatim.
    """
    if isinstance(value, Packet):
        return value.copy()
    if not isinstance(value, (bytes, bytearray)):
        return value
    data = bytes(value)
    if len(data) >= 2:
        duid_cls = _DUID_CLASSES.get(int.from_bytes(data[:2], "big"))
        if duid_cls is not None:
            return duid_cls(data)
    logger.debug(f"Unrecognised DUID type in {data.hex()}, keeping raw bytes")
    return conf.raw_layer(data)


def duid_llt(mac: str, timestamp: Optional[int] = None) -> DUID_LLT:
    """Build a DUID-LLT for an Ethernet MAC. `timestamp` is Unix time, default now."""
    if timestamp is None:
        timestamp = int(time.time())
    return DUID_LLT(hwtype=1, timeval=max(timestamp - DUID_TIME_EPOCH, 0), lladdr=mac)


def duid_ll(mac: str) -> DUID_LL:
    """Build a DUID-LL for an Ethernet MAC."""
    return DUID_LL(hwtype=1, lladdr=mac)


def duid_en(enterprise: int, identifier: bytes) -> DUID_EN:
    """Build a DUID-EN from an enterprise number and identifier bytes."""
    return DUID_EN(enterprisenum=enterprise, id=identifier)


# =========================
# Option constructors
# =========================

def client_id_option(duid: DuidLike) -> DHCP6OptClientId:
    return DHCP6OptClientId(duid=as_duid(duid))


def server_id_option(duid: DuidLike) -> DHCP6OptServerId:
    return DHCP6OptServerId(duid=as_duid(duid))


def requested_option_list(codes: Iterable[int] = ()) -> DHCP6OptOptReq:
    """
    Build an Option Request option.

    Scapy defaults `reqopts` to [23, 24]; the zero value here is a truly
    empty list.
    """
    return DHCP6OptOptReq(reqopts=[int(code) for code in codes])


def user_class_option(classes: Iterable[bytes]) -> DHCP6OptUserClass:
    return DHCP6OptUserClass(userclassdata=[USER_CLASS_DATA(data=uc) for uc in classes])


def arch_type_option(archs: Iterable[int]) -> DHCP6OptClientArchType:
    return DHCP6OptClientArchType(archtypes=[int(arch) for arch in archs])


def iana_option(iaid: int = 0, t1: int = 0, t2: int = 0) -> DHCP6OptIA_NA:
    """Build an IA_NA with no address bindings."""
    return DHCP6OptIA_NA(iaid=iaid, T1=t1, T2=t2, ianaopts=[])


def ia_address(addr: AddressLike, preferred: int = 0, valid: int = 0) -> DHCP6OptIAAddress:
    """Build an IA Address option, the binding entry of an IA_NA."""
    return DHCP6OptIAAddress(addr=str(addr), preflft=preferred, validlft=valid)


def dns_servers_option(servers: Iterable[AddressLike] = ()) -> DHCP6OptDNSServers:
    return DHCP6OptDNSServers(dnsservers=[str(server) for server in servers])


def domain_search_list_option(labels: Iterable[str] = ()) -> DHCP6OptDNSDomains:
    """Build a Domain Search List option; label compression happens in Scapy at encode time."""
    return DHCP6OptDNSDomains(dnsdomains=list(labels))


def elapsed_time_option(hundredths: int = 0) -> DHCP6OptElapsedTime:
    return DHCP6OptElapsedTime(elapsedtime=hundredths)


def relay_message_option(message: Packet) -> DHCP6OptRelayMsg:
    """Wrap an encoded DHCPv6 layer in a Relay Message option."""
    return DHCP6OptRelayMsg(message=message)


def rapid_commit_option() -> DHCP6OptRapidCommit:
    return DHCP6OptRapidCommit()


# Zero-value factories used when a modifier finds no option under its code
ZERO_VALUES = {
    OptionCode.ORO: requested_option_list,
    OptionCode.IA_NA: iana_option,
    OptionCode.USER_CLASS: lambda: user_class_option([]),
    OptionCode.CLIENT_ARCH_TYPE: lambda: arch_type_option([]),
    OptionCode.DNS_RECURSIVE_NAME_SERVER: dns_servers_option,
    OptionCode.DOMAIN_SEARCH_LIST: domain_search_list_option,
}
