#!/usr/bin/env python3
"""
DHCPv6 Packet Shapes and Option Container

Defines the packet abstraction the modifiers operate on:

- OptionContainer: options keyed by option code, so replace-by-code is a
  structural property rather than a convention.
- DHCPv6: common base with the option accessors every modifier relies on.
- DHCPv6Message / DHCPv6Relay: the closed set of packet shapes. Narrowing
  from the base class goes through `as_message()`, which returns None on
  a relay instead of failing.

Wire encoding and decoding are delegated to Scapy's DHCPv6 layers.
"""

# Standard library imports
from __future__ import annotations
import logging
from enum import IntEnum
from functools import reduce
from typing import Dict, Iterator, List, Optional

# Third-party imports
from scapy.layers.dhcp6 import (
    DHCP6,
    DHCP6_Advertise,
    DHCP6_Confirm,
    DHCP6_Decline,
    DHCP6_InfoRequest,
    DHCP6_Rebind,
    DHCP6_Reconf,
    DHCP6_RelayForward,
    DHCP6_RelayReply,
    DHCP6_Release,
    DHCP6_Renew,
    DHCP6_Reply,
    DHCP6_Request,
    DHCP6_Solicit,
)
from scapy.packet import NoPayload, Packet, Padding, Raw

# Local imports
from .exceptions import DecodeError
from .options import option_code, option_name

logger = logging.getLogger(__name__)


class MessageType(IntEnum):
    """DHCPv6 message types (RFC 8415 section 7.3)"""
    SOLICIT = 1
    ADVERTISE = 2
    REQUEST = 3
    CONFIRM = 4
    RENEW = 5
    REBIND = 6
    REPLY = 7
    RELEASE = 8
    DECLINE = 9
    RECONFIGURE = 10
    INFORMATION_REQUEST = 11
    RELAY_FORW = 12
    RELAY_REPL = 13


RELAY_MESSAGE_TYPES = (MessageType.RELAY_FORW, MessageType.RELAY_REPL)

MESSAGE_CLASSES = {
    MessageType.SOLICIT: DHCP6_Solicit,
    MessageType.ADVERTISE: DHCP6_Advertise,
    MessageType.REQUEST: DHCP6_Request,
    MessageType.CONFIRM: DHCP6_Confirm,
    MessageType.RENEW: DHCP6_Renew,
    MessageType.REBIND: DHCP6_Rebind,
    MessageType.REPLY: DHCP6_Reply,
    MessageType.RELEASE: DHCP6_Release,
    MessageType.DECLINE: DHCP6_Decline,
    MessageType.RECONFIGURE: DHCP6_Reconf,
    MessageType.INFORMATION_REQUEST: DHCP6_InfoRequest,
    MessageType.RELAY_FORW: DHCP6_RelayForward,
    MessageType.RELAY_REPL: DHCP6_RelayReply,
}


def message_type_name(msg_type: int) -> str:
    try:
        return MessageType(msg_type).name
    except ValueError:
        return f"MSGTYPE_{msg_type}"


class OptionContainer:
    """
    Ordered mapping from option code to the option instances stored under it.

    `update()` leaves exactly one instance under a code (the code keeps its
    original position if it was already present); `add()` appends another
    instance. Iteration yields options grouped by code, codes in first
    insertion order.
    """

    def __init__(self, options: Optional[List[Packet]] = None):
        self._options: Dict[int, List[Packet]] = {}
        for option in options or []:
            self.add(option)

    @staticmethod
    def _code_of(option: Packet) -> int:
        code = option_code(option)
        if code is None:
            raise TypeError(f"{type(option).__name__} is not a DHCPv6 option layer")
        return code

    def get(self, code: int) -> List[Packet]:
        return list(self._options.get(int(code), []))

    def get_one(self, code: int) -> Optional[Packet]:
        instances = self._options.get(int(code))
        return instances[0] if instances else None

    def add(self, option: Packet) -> None:
        self._options.setdefault(self._code_of(option), []).append(option)

    def update(self, option: Packet) -> None:
        self._options[self._code_of(option)] = [option]

    def delete(self, code: int) -> None:
        self._options.pop(int(code), None)

    def codes(self) -> List[int]:
        return list(self._options)

    def copy(self) -> OptionContainer:
        clone = OptionContainer()
        for code, instances in self._options.items():
            clone._options[code] = [option.copy() for option in instances]
        return clone

    def __contains__(self, code: object) -> bool:
        return code in self._options

    def __iter__(self) -> Iterator[Packet]:
        for instances in self._options.values():
            yield from instances

    def __len__(self) -> int:
        return sum(len(instances) for instances in self._options.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OptionContainer):
            return NotImplemented
        return self._options == other._options

    def __repr__(self) -> str:
        names = ", ".join(f"{option_name(code)}x{len(v)}" for code, v in self._options.items())
        return f"<OptionContainer [{names}]>"


class DHCPv6:
    """
    Base packet shape: a message type plus an option container.

    Subclasses add their own header fields and the Scapy layer used to
    encode them.
    """

    def __init__(self, msg_type: int, options: Optional[List[Packet]] = None):
        self.msg_type = int(msg_type)
        self.options = OptionContainer(options)

    # --- option accessors -------------------------------------------------

    def get_option(self, code: int) -> List[Packet]:
        """Return every option stored under `code` (possibly empty)."""
        return self.options.get(code)

    def get_one_option(self, code: int) -> Optional[Packet]:
        """Return the first option stored under `code`, or None."""
        return self.options.get_one(code)

    def add_option(self, option: Packet) -> None:
        """Append an option without touching existing instances of its code."""
        self.options.add(option)

    def update_option(self, option: Packet) -> None:
        """Replace all options of the same code with `option`, inserting it if absent."""
        self.options.update(option)

    def del_option(self, code: int) -> None:
        self.options.delete(code)

    # --- shape narrowing --------------------------------------------------

    def is_relay(self) -> bool:
        return False

    def as_message(self) -> Optional[DHCPv6Message]:
        """Narrow to a client/server message, or None if this is another shape."""
        return None

    def as_relay(self) -> Optional[DHCPv6Relay]:
        """Narrow to a relay message, or None if this is another shape."""
        return None

    # --- codec ------------------------------------------------------------

    def _header_layer(self) -> Packet:
        raise NotImplementedError()

    def to_scapy(self) -> Packet:
        """Build the equivalent Scapy layer stack (header / option / option ...)."""
        return reduce(lambda layer, option: layer / option, self.options, self._header_layer())

    def __bytes__(self) -> bytes:
        return bytes(self.to_scapy())

    def summary(self) -> str:
        return self.to_scapy().summary()

    def copy(self):
        raise NotImplementedError()

    def _header(self) -> tuple:
        raise NotImplementedError()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DHCPv6):
            return NotImplemented
        return (type(self) is type(other)
                and self._header() == other._header()
                and self.options == other.options)


class DHCPv6Message(DHCPv6):
    """Client/server message: message type, 24-bit transaction id, options."""

    def __init__(self, msg_type: int = MessageType.SOLICIT, transaction_id: int = 0,
                 options: Optional[List[Packet]] = None):
        super().__init__(msg_type, options)
        self.transaction_id = transaction_id & 0xFFFFFF

    def as_message(self) -> Optional[DHCPv6Message]:
        return self

    def _header(self) -> tuple:
        return (self.msg_type, self.transaction_id)

    def _header_layer(self) -> Packet:
        message_cls = MESSAGE_CLASSES.get(self.msg_type)
        if message_cls is None or self.msg_type in RELAY_MESSAGE_TYPES:
            return DHCP6(msgtype=self.msg_type, trid=self.transaction_id)
        return message_cls(trid=self.transaction_id)

    def copy(self) -> DHCPv6Message:
        clone = DHCPv6Message(self.msg_type, self.transaction_id)
        clone.options = self.options.copy()
        return clone

    def __repr__(self) -> str:
        return (f"<DHCPv6Message {message_type_name(self.msg_type)} "
                f"trid=0x{self.transaction_id:06x} {self.options!r}>")


class DHCPv6Relay(DHCPv6):
    """Relay-forward / relay-reply message."""

    def __init__(self, msg_type: int = MessageType.RELAY_FORW, hop_count: int = 0,
                 link_addr: str = "::", peer_addr: str = "::",
                 options: Optional[List[Packet]] = None):
        super().__init__(msg_type, options)
        self.hop_count = hop_count
        self.link_addr = str(link_addr)
        self.peer_addr = str(peer_addr)

    def is_relay(self) -> bool:
        return True

    def as_relay(self) -> Optional[DHCPv6Relay]:
        return self

    def _header(self) -> tuple:
        return (self.msg_type, self.hop_count, self.link_addr, self.peer_addr)

    def _header_layer(self) -> Packet:
        relay_cls = DHCP6_RelayReply if self.msg_type == MessageType.RELAY_REPL else DHCP6_RelayForward
        return relay_cls(hopcount=self.hop_count, linkaddr=self.link_addr, peeraddr=self.peer_addr)

    def copy(self) -> DHCPv6Relay:
        clone = DHCPv6Relay(self.msg_type, self.hop_count, self.link_addr, self.peer_addr)
        clone.options = self.options.copy()
        return clone

    def __repr__(self) -> str:
        return (f"<DHCPv6Relay {message_type_name(self.msg_type)} hops={self.hop_count} "
                f"link={self.link_addr} peer={self.peer_addr} {self.options!r}>")


# =========================
# Decoding
# =========================

# Relay messages are not DHCP6 subclasses in Scapy; RelayReply subclasses RelayForward
DHCPV6_LAYERS = (DHCP6, DHCP6_RelayForward)


def _find_dhcpv6_layer(layer: Optional[Packet]) -> Optional[Packet]:
    """Outermost DHCPv6 message or relay layer in a stack, or None."""
    current = layer
    while current is not None and not isinstance(current, NoPayload):
        if isinstance(current, DHCPV6_LAYERS):
            return current
        current = current.payload
    return None


def _collect_options(layer: Packet) -> List[Packet]:
    options = []
    current = layer.payload
    while not isinstance(current, NoPayload):
        if isinstance(current, (Raw, Padding)):
            logger.debug(f"Ignoring {len(bytes(current))} trailing bytes after DHCPv6 options")
            break
        if option_code(current) is None:
            raise DecodeError(f"Unexpected layer {type(current).__name__} in DHCPv6 option chain")
        option = current.copy()
        option.remove_payload()
        options.append(option)
        current = current.payload
    return options


def from_scapy(layer: Packet) -> DHCPv6:
    """
    Build a packet shape from a Scapy DHCPv6 layer.

    Args:
        layer: A Scapy DHCP6 layer, or any stack containing one

    Returns:
        DHCPv6Relay for relay-forward/relay-reply, DHCPv6Message otherwise

    Raises:
        DecodeError: If no DHCPv6 layer is present
    """
    if not isinstance(layer, DHCPV6_LAYERS):
        found = _find_dhcpv6_layer(layer)
        if found is None:
            raise DecodeError(f"No DHCPv6 layer found in {type(layer).__name__}")
        layer = found

    options = _collect_options(layer)
    if isinstance(layer, DHCP6_RelayForward):
        return DHCPv6Relay(
            msg_type=layer.msgtype,
            hop_count=layer.hopcount or 0,
            link_addr=layer.linkaddr,
            peer_addr=layer.peeraddr,
            options=options,
        )
    return DHCPv6Message(msg_type=layer.msgtype, transaction_id=layer.trid or 0, options=options)


def decode(data: bytes) -> DHCPv6:
    """Decode raw DHCPv6 bytes (UDP payload) into a packet shape."""
    if not data:
        raise DecodeError("Empty DHCPv6 payload")
    msg_type = data[0]
    message_cls = MESSAGE_CLASSES.get(msg_type)
    if message_cls is None:
        raise DecodeError(f"Unknown DHCPv6 message type {msg_type}")
    try:
        layer = message_cls(bytes(data))
    except Exception as e:
        raise DecodeError(f"Failed to dissect {message_type_name(msg_type)}: {e}") from e
    return from_scapy(layer)
