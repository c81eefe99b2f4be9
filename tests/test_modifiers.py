#!/usr/bin/env python3
"""
Tests for the modifier combinators

Covers replace vs accumulate behaviour per option family, fold order,
reuse of one modifier across packets, and the log-and-skip path for
packets of the wrong shape.
"""

import os
import sys
import unittest
from unittest import mock

from scapy.layers.dhcp6 import DUID_LL

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dhcp6mod.modifiers import (
    NETBOOT_OPTIONS,
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
from dhcp6mod.options import (
    ArchType,
    OptionCode,
    dns_servers_option,
    duid_ll,
    ia_address,
    requested_option_list,
)
from conftest import (
    CLIENT_MAC,
    OTHER_MAC,
    SERVER_MAC,
    addrs,
    make_message,
    make_relay,
    option_codes,
    reqopts,
)


class TestIdentifierModifiers(unittest.TestCase):

    def test_client_id_is_replaced(self):
        message = apply_modifiers(make_message(), [
            with_client_id(duid_ll(CLIENT_MAC)),
            with_client_id(duid_ll(OTHER_MAC)),
        ])
        self.assertEqual(len(message.get_option(OptionCode.CLIENTID)), 1)
        self.assertEqual(message.get_one_option(OptionCode.CLIENTID).duid.lladdr, OTHER_MAC)

    def test_server_id_from_bytes(self):
        raw = bytes(duid_ll(SERVER_MAC))
        message = with_server_id(raw)(make_message())
        duid = message.get_one_option(OptionCode.SERVERID).duid
        self.assertIsInstance(duid, DUID_LL)
        self.assertEqual(duid.lladdr, SERVER_MAC)

    def test_identifier_not_shared_between_packets(self):
        modifier = with_client_id(duid_ll(CLIENT_MAC))
        first = modifier(make_message())
        second = modifier(make_message())
        self.assertEqual(first, second)
        self.assertIsNot(first.get_one_option(OptionCode.CLIENTID).duid,
                         second.get_one_option(OptionCode.CLIENTID).duid)


class TestRequestedOptions(unittest.TestCase):
    """ORO accumulation"""

    def test_creates_oro_when_absent(self):
        message = with_requested_options(OptionCode.NTP_SERVER)(make_message())
        self.assertEqual(reqopts(message), [56])

    def test_appends_and_keeps_duplicates(self):
        message = make_message()
        message.add_option(requested_option_list([23, 24]))
        message = apply_modifiers(message, [
            with_requested_options(24),
            with_requested_options(59, 60),
        ])
        self.assertEqual(reqopts(message), [23, 24, 24, 59, 60])
        self.assertEqual(option_codes(message), [OptionCode.ORO])

    def test_mismatched_oro_leaves_packet_unchanged(self):
        message = make_message()
        message.options._options[OptionCode.ORO] = [dns_servers_option(["2001:db8::1"])]
        before = message.copy()
        with self.assertLogs("dhcp6mod.merge", "WARNING"):
            result = with_requested_options(59)(message)
        self.assertIs(result, message)
        self.assertEqual(result, before)


class TestNetboot(unittest.TestCase):
    """with_netboot is a modifier itself, not a factory"""

    def test_adds_bootfile_codes(self):
        message = with_netboot(make_message())
        self.assertEqual(reqopts(message), [59, 60])
        self.assertEqual(tuple(reqopts(message)), NETBOOT_OPTIONS)

    def test_extends_existing_oro(self):
        message = make_message()
        message.add_option(requested_option_list([23, 24]))
        self.assertEqual(reqopts(with_netboot(message)), [23, 24, 59, 60])

    def test_applied_twice_duplicates(self):
        message = apply_modifiers(make_message(), [with_netboot, with_netboot])
        self.assertEqual(reqopts(message), [59, 60, 59, 60])

    def test_relay_is_left_unchanged(self):
        relay = make_relay()
        before = relay.copy()
        with self.assertLogs("dhcp6mod.modifiers", "WARNING") as captured:
            result = with_netboot(relay)
        self.assertIs(result, relay)
        self.assertEqual(result, before)
        self.assertNotIn(OptionCode.ORO, result.options)
        self.assertIn("DHCPv6Relay", captured.output[0])


class TestReplacingModifiers(unittest.TestCase):
    """User class, arch type, DNS and search list replace on every application"""

    def test_user_class_keeps_only_latest(self):
        message = apply_modifiers(make_message(), [with_user_class(b"first"), with_user_class(b"iPXE")])
        option = message.get_one_option(OptionCode.USER_CLASS)
        self.assertEqual([entry.data for entry in option.userclassdata], [b"iPXE"])

    def test_arch_type_keeps_only_latest(self):
        message = apply_modifiers(make_message(), [
            with_arch_type(ArchType.INTEL_X86PC),
            with_arch_type(ArchType.EFI_X86_64),
        ])
        self.assertEqual(message.get_one_option(OptionCode.CLIENT_ARCH_TYPE).archtypes, [9])

    def test_dns_replaces_previous_servers(self):
        message = apply_modifiers(make_message(), [
            with_dns("2606:4700:4700::1111"),
            with_dns("2001:4860:4860::8888", "2001:4860:4860::8844"),
        ])
        servers = message.get_one_option(OptionCode.DNS_RECURSIVE_NAME_SERVER).dnsservers
        self.assertEqual(servers, ["2001:4860:4860::8888", "2001:4860:4860::8844"])

    def test_domain_search_list_replaces(self):
        message = apply_modifiers(make_message(), [
            with_domain_search_list("old.example"),
            with_domain_search_list("example.com", "example.org"),
        ])
        self.assertEqual(len(message.get_option(OptionCode.DOMAIN_SEARCH_LIST)), 1)
        domains = message.get_one_option(OptionCode.DOMAIN_SEARCH_LIST).dnsdomains
        self.assertEqual(len(domains), 2)


class TestIANA(unittest.TestCase):
    """IA_NA bindings accumulate"""

    def test_creates_iana_when_absent(self):
        message = with_iana("2001:db8::10")(make_message())
        iana = message.get_one_option(OptionCode.IA_NA)
        self.assertEqual(addrs(iana), ["2001:db8::10"])

    def test_bindings_accumulate(self):
        message = apply_modifiers(make_message(), [
            with_iana("2001:db8::10"),
            with_iana(ia_address("2001:db8::11", preferred=300, valid=600), "2001:db8::12"),
        ])
        iana = message.get_one_option(OptionCode.IA_NA)
        self.assertEqual(addrs(iana), ["2001:db8::10", "2001:db8::11", "2001:db8::12"])
        self.assertEqual(iana.ianaopts[1].validlft, 600)

    def test_modifier_reuse_has_no_shared_state(self):
        modifier = with_iana("2001:db8::10")
        first = modifier(make_message())
        second = modifier(make_message())
        self.assertEqual(first, second)

        first.get_one_option(OptionCode.IA_NA).ianaopts[0].addr = "2001:db8::99"
        self.assertEqual(addrs(second.get_one_option(OptionCode.IA_NA)), ["2001:db8::10"])
        # Applying again must not see the edit made through `first`
        third = modifier(make_message())
        self.assertEqual(addrs(third.get_one_option(OptionCode.IA_NA)), ["2001:db8::10"])

    def test_non_literal_address_is_skipped_without_lookup(self):
        with mock.patch("socket.getaddrinfo", side_effect=AssertionError("name lookup")):
            with self.assertLogs("dhcp6mod.merge", "WARNING") as captured:
                modifier = with_iana("not-an-address", "2001:db8::10")
            message = modifier(make_message())
        self.assertIn("not-an-address", captured.output[0])
        self.assertEqual(addrs(message.get_one_option(OptionCode.IA_NA)), ["2001:db8::10"])

    def test_mismatched_iana_leaves_packet_unchanged(self):
        message = make_message()
        message.options._options[OptionCode.IA_NA] = [requested_option_list([23])]
        before = message.copy()
        with self.assertLogs("dhcp6mod.merge", "WARNING") as captured:
            result = with_iana("2001:db8::10")(message)
        self.assertIs(result, message)
        self.assertEqual(result, before)
        self.assertIn("DHCP6OptOptReq", captured.output[0])


class TestApplyModifiers(unittest.TestCase):

    def test_empty_fold_returns_packet(self):
        message = make_message()
        self.assertIs(apply_modifiers(message, []), message)

    def test_fold_order(self):
        message = apply_modifiers(make_message(), [
            with_requested_options(23),
            with_client_id(duid_ll(CLIENT_MAC)),
            with_iana("2001:db8::10"),
        ])
        self.assertEqual(option_codes(message), [OptionCode.ORO, OptionCode.CLIENTID, OptionCode.IA_NA])

    def test_same_modifiers_build_equal_packets(self):
        modifiers = [
            with_client_id(duid_ll(CLIENT_MAC)),
            with_netboot,
            with_arch_type(ArchType.EFI_X86_64_HTTP),
            with_user_class(b"iPXE"),
            with_iana("2001:db8::10"),
            with_dns("2001:db8::53"),
        ]
        first = apply_modifiers(make_message(), modifiers)
        second = apply_modifiers(make_message(), modifiers)
        self.assertEqual(first, second)
        self.assertEqual(bytes(first), bytes(second))


if __name__ == '__main__':
    unittest.main()
