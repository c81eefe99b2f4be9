#!/usr/bin/env python3
"""
Build Configuration for DHCP6Mod

Describes the message the CLI should build as a dataclass, turns it into an
ordered modifier list and loads additional modifiers from profile files.

Environment Variable Support:
- DHCP6MOD_MSG_TYPE: Message type name or number (default: solicit)
- DHCP6MOD_MAC: Client MAC, used to derive a DUID-LLT client identifier
- DHCP6MOD_CLIENT_ID / DHCP6MOD_SERVER_ID: Identifier DUIDs as hex
- DHCP6MOD_REQUEST: Comma-separated option codes or names for the ORO
- DHCP6MOD_DNS: Comma-separated DNS server addresses
- DHCP6MOD_SEARCH: Comma-separated domain search list
- DHCP6MOD_USER_CLASS: User class string
- DHCP6MOD_ARCH: Client architecture name or number
- DHCP6MOD_ADDRESSES: Comma-separated IA_NA addresses
- DHCP6MOD_NETBOOT: "true", "1", "yes" or "on" (any case) requests the netboot options
- DHCP6MOD_TRANSACTION_ID: Transaction id (decimal or 0x-prefixed hex)
"""

# Standard library imports
from __future__ import annotations
import importlib.util
import logging
import os
import time
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Type

# Local imports
from .builder import encapsulate, new_message, new_solicit
from .exceptions import ProfileLoadError
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
from .options import ArchType, OptionCode, duid_llt
from .packet import DHCPv6, MessageType

logger = logging.getLogger(__name__)

ENV_PREFIX = "DHCP6MOD_"
# Accepted (case-insensitive) values for boolean variables such as DHCP6MOD_NETBOOT
TRUE_VALUES = ("true", "1", "yes", "on")


def _parse_enum(enum_cls: Type[IntEnum], value) -> int:
    """Accept an enum member, an int, a decimal/hex string or a member name (any case, '-' or '_')."""
    if isinstance(value, int):
        return int(value)
    text = str(value).strip()
    try:
        return int(text, 0)
    except ValueError:
        pass
    name = text.upper().replace("-", "_")
    try:
        return int(enum_cls[name])
    except KeyError:
        raise ValueError(f"Unknown {enum_cls.__name__} '{value}'") from None


def parse_message_type(value) -> int:
    return _parse_enum(MessageType, value)


def parse_option_code(value) -> int:
    return _parse_enum(OptionCode, value)


def parse_arch_type(value) -> int:
    return _parse_enum(ArchType, value)


def parse_hex(value: str) -> bytes:
    """Parse 'aa:bb:cc', 'aa-bb-cc' or 'aabbcc' into bytes."""
    return bytes.fromhex(value.replace(":", "").replace("-", "").strip())


def _split_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class BuildConfig:
    """Everything needed to build one DHCPv6 packet from the command line or environment"""
    msg_type: int = MessageType.SOLICIT
    mac: Optional[str] = None
    client_id: Optional[bytes] = None
    server_id: Optional[bytes] = None
    requested_options: List[int] = field(default_factory=list)
    dns_servers: List[str] = field(default_factory=list)
    search_list: List[str] = field(default_factory=list)
    user_class: Optional[bytes] = None
    arch_type: Optional[int] = None
    addresses: List[str] = field(default_factory=list)
    netboot: bool = False
    transaction_id: Optional[int] = None
    relay_link: Optional[str] = None  # Wrap the message in a RELAY-FORW when set
    relay_peer: Optional[str] = None
    duid_time: Optional[int] = None  # DUID-LLT timestamp for `mac`, fixed at construction

    def __post_init__(self):
        """Normalise single values into lists and names into codes"""
        self.msg_type = parse_message_type(self.msg_type)
        for list_attr in ("requested_options", "dns_servers", "search_list", "addresses"):
            value = getattr(self, list_attr)
            if isinstance(value, str):
                setattr(self, list_attr, _split_list(value))
        self.requested_options = [parse_option_code(code) for code in self.requested_options]
        if isinstance(self.user_class, str):
            self.user_class = self.user_class.encode()
        if self.arch_type is not None:
            self.arch_type = parse_arch_type(self.arch_type)
        if self.mac and self.duid_time is None:
            self.duid_time = int(time.time())

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> BuildConfig:
        """Build a config from DHCP6MOD_* environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + name)
            return value if value else None

        client_id = get("CLIENT_ID")
        server_id = get("SERVER_ID")
        transaction_id = get("TRANSACTION_ID")
        return cls(
            msg_type=get("MSG_TYPE") or MessageType.SOLICIT,
            mac=get("MAC"),
            client_id=parse_hex(client_id) if client_id else None,
            server_id=parse_hex(server_id) if server_id else None,
            requested_options=_split_list(get("REQUEST")),
            dns_servers=_split_list(get("DNS")),
            search_list=_split_list(get("SEARCH")),
            user_class=get("USER_CLASS"),
            arch_type=get("ARCH"),
            addresses=_split_list(get("ADDRESSES")),
            netboot=(get("NETBOOT") or "").strip().lower() in TRUE_VALUES,
            transaction_id=int(transaction_id, 0) if transaction_id else None,
        )

    def client_duid(self):
        """Client identifier from the explicit DUID, else a DUID-LLT for the MAC, else None."""
        if self.client_id is not None:
            return self.client_id
        if self.mac:
            return duid_llt(self.mac, self.duid_time)
        return None

    def to_modifiers(self) -> List[Modifier]:
        """Translate the configured values into modifiers, in a fixed order."""
        modifiers: List[Modifier] = []
        duid = self.client_duid()
        if duid is not None:
            modifiers.append(with_client_id(duid))
        if self.server_id is not None:
            modifiers.append(with_server_id(self.server_id))
        if self.requested_options:
            modifiers.append(with_requested_options(*self.requested_options))
        if self.netboot:
            modifiers.append(with_netboot)
        if self.user_class is not None:
            modifiers.append(with_user_class(self.user_class))
        if self.arch_type is not None:
            modifiers.append(with_arch_type(self.arch_type))
        if self.addresses:
            modifiers.append(with_iana(*self.addresses))
        if self.dns_servers:
            modifiers.append(with_dns(*self.dns_servers))
        if self.search_list:
            modifiers.append(with_domain_search_list(*self.search_list))
        return modifiers


def build_from_config(config: BuildConfig, extra_modifiers: Sequence[Modifier] = ()) -> DHCPv6:
    """
    Build the packet described by `config`.

    A SOLICIT with a client identity starts from the full solicit template;
    anything else starts from an empty message. Config modifiers run first,
    then `extra_modifiers` (e.g. from a profile), then relay wrapping.
    """
    duid = config.client_duid()
    if config.msg_type == MessageType.SOLICIT and duid is not None:
        packet = new_solicit(duid)
        if config.transaction_id is not None:
            packet.transaction_id = config.transaction_id & 0xFFFFFF
    else:
        packet = new_message(config.msg_type, transaction_id=config.transaction_id)

    packet = apply_modifiers(packet, config.to_modifiers())
    packet = apply_modifiers(packet, extra_modifiers)

    if config.relay_link or config.relay_peer:
        packet = encapsulate(packet, link_addr=config.relay_link or "::",
                             peer_addr=config.relay_peer or "::")
    return packet


def load_profile(profile_file: Path) -> List[Modifier]:
    """
    Load modifiers from a profile file.

    The profile is a Python module exposing either a MODIFIERS sequence or a
    build() function returning one.

    Args:
        profile_file: Path to the profile module

    Returns:
        List of modifiers in application order

    Raises:
        ProfileLoadError: If the file cannot be imported or exposes no modifiers
    """
    profile_file = Path(profile_file)
    spec = importlib.util.spec_from_file_location("dhcp6mod_profile", profile_file)
    if spec is None or spec.loader is None:
        raise ProfileLoadError(f"Could not load profile from {profile_file}")

    profile_module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(profile_module)
    except Exception as e:
        raise ProfileLoadError(f"Error executing profile {profile_file}: {e}") from e

    if hasattr(profile_module, "MODIFIERS"):
        modifiers = list(profile_module.MODIFIERS)
    elif callable(getattr(profile_module, "build", None)):
        modifiers = list(profile_module.build())
    else:
        raise ProfileLoadError(f"Profile {profile_file} defines neither MODIFIERS nor build()")

    not_callable = [m for m in modifiers if not callable(m)]
    if not_callable:
        raise ProfileLoadError(f"Profile {profile_file} contains non-callable modifiers: {not_callable}")
    logger.info(f"Loaded {len(modifiers)} modifiers from {profile_file}")
    return modifiers


def describe(config: BuildConfig) -> Dict[str, object]:
    """Flat view of the non-empty config values, for logging and reports."""
    described: Dict[str, object] = {}
    for name, value in vars(config).items():
        if value is None or value is False or value == []:
            continue
        if isinstance(value, bytes):
            value = value.hex()
        described[name] = value
    return described
