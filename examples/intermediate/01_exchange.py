#!/usr/bin/env python3
"""
Intermediate Example 1: A Full Exchange

Walks a SOLICIT / ADVERTISE / REQUEST / REPLY exchange, showing which
options accumulate and which are replaced, then relays the REQUEST.

    python examples/intermediate/01_exchange.py
"""

# Local imports
from dhcp6mod import (
    DHCPv6Relay,
    MessageType,
    duid_ll,
    encapsulate,
    ia_address,
    new_advertise_from_solicit,
    new_reply_from_message,
    new_request_from_advertise,
    new_solicit_for_mac,
    with_dns,
    with_iana,
    with_netboot,
    with_server_id,
)
from dhcp6mod.utils.packet_report import format_option_table

SERVER_DUID = duid_ll("02:00:00:00:00:01")


def run_exchange(build_relay: bool = True):
    solicit = new_solicit_for_mac("00:11:22:33:44:55", with_netboot)

    # Two IA_NA modifiers: bindings accumulate in the one IA_NA
    advertise = new_advertise_from_solicit(
        solicit,
        with_server_id(SERVER_DUID),
        with_iana(ia_address("2001:db8::10", 3600, 7200)),
        with_iana(ia_address("2001:db8::11", 3600, 7200)),
        # Two DNS modifiers: the second list replaces the first
        with_dns("2001:db8::53"),
        with_dns("2001:4860:4860::8888"),
    )
    request = new_request_from_advertise(advertise)
    reply = new_reply_from_message(request, with_server_id(SERVER_DUID))

    packets = [solicit, advertise, request, reply]
    if build_relay:
        packets.append(encapsulate(request, link_addr="2001:db8::1", peer_addr="fe80::1"))
    return packets


if __name__ == "__main__":
    for packet in run_exchange():
        kind = "relay" if isinstance(packet, DHCPv6Relay) else MessageType(packet.msg_type).name
        print(f"== {kind}: {packet.summary()}")
        print(format_option_table(packet))
        print()
