#!/usr/bin/env python3
"""
DHCPv6 Message Builders

Constructors for the messages of a client/server exchange, each finished
off by folding caller-supplied modifiers over the result:

- new_message / new_solicit / new_solicit_for_mac: fresh client messages
- new_advertise_from_solicit / new_request_from_advertise /
  new_reply_from_message: the next message of an exchange, carrying over the
  transaction id and identifiers
- encapsulate / decapsulate: relay-forward wrapping

Unlike the modifiers, builders raise MessageShapeError when handed a packet
they cannot continue the exchange from.
"""

# Standard library imports
import logging
import secrets
from typing import Optional

# Local imports
from .exceptions import MessageShapeError
from .modifiers import Modifier, apply_modifiers
from .options import (
    DEFAULT_IAID,
    DEFAULT_T1,
    DEFAULT_T2,
    DuidLike,
    OptionCode,
    client_id_option,
    duid_llt,
    elapsed_time_option,
    iana_option,
    option_name,
    relay_message_option,
    requested_option_list,
)
from .packet import (
    DHCPv6,
    DHCPv6Message,
    DHCPv6Relay,
    MessageType,
    from_scapy,
    message_type_name,
)

logger = logging.getLogger(__name__)

# Message types a server answers with a REPLY
REPLY_TRIGGERS = (
    MessageType.SOLICIT,
    MessageType.REQUEST,
    MessageType.CONFIRM,
    MessageType.RENEW,
    MessageType.REBIND,
    MessageType.RELEASE,
    MessageType.INFORMATION_REQUEST,
)

# Hop limit for relay agents (RFC 8415 section 7.6, HOP_COUNT_LIMIT)
HOP_COUNT_LIMIT = 8


def new_transaction_id() -> int:
    """Random 24-bit transaction id."""
    return secrets.randbits(24)


def new_message(msg_type: int = MessageType.SOLICIT, *modifiers: Modifier,
                transaction_id: Optional[int] = None) -> DHCPv6Message:
    """Build an empty message of `msg_type` with a fresh transaction id and apply `modifiers`."""
    if transaction_id is None:
        transaction_id = new_transaction_id()
    message = DHCPv6Message(msg_type=msg_type, transaction_id=transaction_id)
    return apply_modifiers(message, modifiers)


def new_solicit(duid: DuidLike, *modifiers: Modifier) -> DHCPv6Message:
    """
    Build a SOLICIT for the client identified by `duid`.

    The message carries a client identifier, an ORO asking for DNS servers
    and the domain search list, a zero elapsed time and an IA_NA with the
    default IAID and timers. Modifiers are applied last, so they can replace
    or extend any of these.
    """
    solicit = new_message(MessageType.SOLICIT)
    solicit.add_option(client_id_option(duid))
    solicit.add_option(requested_option_list([
        OptionCode.DNS_RECURSIVE_NAME_SERVER,
        OptionCode.DOMAIN_SEARCH_LIST,
    ]))
    solicit.add_option(elapsed_time_option())
    solicit.add_option(iana_option(iaid=DEFAULT_IAID, t1=DEFAULT_T1, t2=DEFAULT_T2))
    logger.debug(f"Built SOLICIT trid=0x{solicit.transaction_id:06x}")
    return apply_modifiers(solicit, modifiers)


def new_solicit_for_mac(mac: str, *modifiers: Modifier) -> DHCPv6Message:
    """Build a SOLICIT whose client identifier is a DUID-LLT derived from `mac`."""
    return new_solicit(duid_llt(mac), *modifiers)


def _require_message(packet: DHCPv6, expected: tuple, building: str) -> DHCPv6Message:
    if packet is None:
        raise MessageShapeError(f"Cannot build {building} from None")
    message = packet.as_message()
    if message is None:
        raise MessageShapeError(f"Cannot build {building} from a {type(packet).__name__}")
    if message.msg_type not in expected:
        raise MessageShapeError(
            f"Cannot build {building} from {message_type_name(message.msg_type)}"
        )
    return message


def _require_option(message: DHCPv6, code: int, building: str):
    option = message.get_one_option(code)
    if option is None:
        raise MessageShapeError(
            f"{option_name(code)} missing in {message_type_name(message.msg_type)}, "
            f"cannot build {building}"
        )
    return option.copy()


def new_advertise_from_solicit(solicit: DHCPv6, *modifiers: Modifier) -> DHCPv6Message:
    """Build the ADVERTISE answering `solicit`, echoing its transaction id and client id."""
    message = _require_message(solicit, (MessageType.SOLICIT,), "ADVERTISE")
    advertise = DHCPv6Message(MessageType.ADVERTISE, message.transaction_id)
    advertise.add_option(_require_option(message, OptionCode.CLIENTID, "ADVERTISE"))
    return apply_modifiers(advertise, modifiers)


def new_request_from_advertise(advertise: DHCPv6, *modifiers: Modifier) -> DHCPv6Message:
    """
    Build the REQUEST that follows `advertise`.

    Client id, server id and IA_NA are copied from the advertise; the ORO is
    reset to DNS servers and domain search list. A vendor class option is
    carried over only if the advertise had one.

    Raises:
        MessageShapeError: If `advertise` is not an ADVERTISE message or lacks
            one of the required options
    """
    message = _require_message(advertise, (MessageType.ADVERTISE,), "REQUEST")
    request = DHCPv6Message(MessageType.REQUEST, message.transaction_id)
    request.add_option(_require_option(message, OptionCode.CLIENTID, "REQUEST"))
    request.add_option(_require_option(message, OptionCode.SERVERID, "REQUEST"))
    request.add_option(elapsed_time_option())
    request.add_option(_require_option(message, OptionCode.IA_NA, "REQUEST"))
    request.add_option(requested_option_list([
        OptionCode.DNS_RECURSIVE_NAME_SERVER,
        OptionCode.DOMAIN_SEARCH_LIST,
    ]))
    vendor_class = message.get_one_option(OptionCode.VENDOR_CLASS)
    if vendor_class is not None:
        request.add_option(vendor_class.copy())
    return apply_modifiers(request, modifiers)


def new_reply_from_message(message: DHCPv6, *modifiers: Modifier) -> DHCPv6Message:
    """
    Build the REPLY answering `message`.

    A SOLICIT is only answered with a REPLY when it carries the rapid commit
    option.
    """
    original = _require_message(message, REPLY_TRIGGERS, "REPLY")
    if (original.msg_type == MessageType.SOLICIT
            and original.get_one_option(OptionCode.RAPID_COMMIT) is None):
        raise MessageShapeError("Cannot build REPLY from a SOLICIT without rapid commit")
    reply = DHCPv6Message(MessageType.REPLY, original.transaction_id)
    reply.add_option(_require_option(original, OptionCode.CLIENTID, "REPLY"))
    return apply_modifiers(reply, modifiers)


def encapsulate(packet: DHCPv6, link_addr: str = "::", peer_addr: str = "::",
                msg_type: int = MessageType.RELAY_FORW) -> DHCPv6Relay:
    """
    Wrap `packet` in a relay message.

    The hop count is one more than the inner packet's when it is itself a
    relay message, zero otherwise.
    """
    hop_count = 0
    inner_relay = packet.as_relay()
    if inner_relay is not None:
        hop_count = inner_relay.hop_count + 1
        if hop_count > HOP_COUNT_LIMIT:
            logger.warning(f"Relay hop count {hop_count} exceeds HOP_COUNT_LIMIT ({HOP_COUNT_LIMIT})")
    relay = DHCPv6Relay(msg_type=msg_type, hop_count=hop_count,
                        link_addr=link_addr, peer_addr=peer_addr)
    relay.add_option(relay_message_option(packet.to_scapy()))
    return relay


def decapsulate(relay: DHCPv6) -> DHCPv6:
    """Return the packet carried in a relay message's Relay Message option."""
    narrowed = relay.as_relay()
    if narrowed is None:
        raise MessageShapeError(f"Cannot decapsulate a {type(relay).__name__}")
    option = _require_option(narrowed, OptionCode.RELAY_MSG, "inner message")
    return from_scapy(option.message)
