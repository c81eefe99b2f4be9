#!/usr/bin/env python3
"""
Shared test fixtures and utilities for the DHCP6Mod test suite.

This module provides common pytest fixtures, packet builders and helper
functions that are used across multiple test modules.
"""

import os
import sys
from typing import List

import pytest

# Add the parent directory to sys.path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from dhcp6mod.options import client_id_option, duid_ll, duid_llt, option_code
from dhcp6mod.packet import DHCPv6Message, DHCPv6Relay, MessageType

CLIENT_MAC = "00:11:22:33:44:55"
SERVER_MAC = "02:00:00:00:00:01"
OTHER_MAC = "66:77:88:99:aa:bb"
# 2024-01-01 00:00:00 UTC, so DUID-LLTs are reproducible
FIXED_TIME = 1704067200
TRANSACTION_ID = 0xABCDEF

ENV_PREFIX = "DHCP6MOD_"


def make_message(msg_type: int = MessageType.SOLICIT, with_client: bool = False) -> DHCPv6Message:
    """Build a bare message with a fixed transaction id."""
    message = DHCPv6Message(msg_type=msg_type, transaction_id=TRANSACTION_ID)
    if with_client:
        message.add_option(client_id_option(duid_ll(CLIENT_MAC)))
    return message


def make_relay(hop_count: int = 0) -> DHCPv6Relay:
    return DHCPv6Relay(hop_count=hop_count, link_addr="2001:db8::1", peer_addr="fe80::1")


def option_codes(packet) -> List[int]:
    """Codes of every option in container order, one entry per instance."""
    return [option_code(option) for option in packet.options]


def fixed_llt(mac: str = CLIENT_MAC):
    return duid_llt(mac, FIXED_TIME)


def reqopts(packet) -> List[int]:
    oro = packet.get_one_option(6)
    return list(oro.reqopts) if oro is not None else []


def addrs(iana) -> List[str]:
    return [sub.addr for sub in iana.ianaopts]


@pytest.fixture
def message() -> DHCPv6Message:
    return make_message()


@pytest.fixture
def relay() -> DHCPv6Relay:
    return make_relay()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep DHCP6MOD_* variables from the developer's shell out of every test."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key, raising=False)
    yield
