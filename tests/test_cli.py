#!/usr/bin/env python3
"""
Tests for the dhcp6mod command line interface
"""

import io
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path
from unittest import mock

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dhcp6mod.cli import main
from dhcp6mod.options import OptionCode
from dhcp6mod.packet import DHCPv6Relay, MessageType, decode
from conftest import CLIENT_MAC, option_codes, reqopts


def run_cli(*argv):
    """Run main() and return (exit code, captured stdout)."""
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        code = main(list(argv))
    return code, buffer.getvalue()


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.tmp = Path(self.tmpdir.name)

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_hex_output_decodes(self):
        code, out = run_cli("--mac", CLIENT_MAC, "--netboot", "--arch", "efi-x86-64", "--hex")
        self.assertEqual(code, 0)
        packet = decode(bytes.fromhex(out.strip()))
        self.assertEqual(packet.msg_type, MessageType.SOLICIT)
        self.assertIn(59, reqopts(packet))
        self.assertIn(60, reqopts(packet))
        self.assertIn(OptionCode.CLIENT_ARCH_TYPE, option_codes(packet))

    def test_option_table_output(self):
        code, out = run_cli("--mac", CLIENT_MAC, "--dns", "2001:db8::53")
        self.assertEqual(code, 0)
        self.assertIn("| Code | Option | Value |", out)
        self.assertIn("DNS_RECURSIVE_NAME_SERVER", out)
        self.assertIn("2001:db8::53", out)

    def test_transaction_id_and_type(self):
        code, out = run_cli("--msg-type", "information-request", "--transaction-id", "0x42",
                            "--request", "dns-recursive-name-server", "--hex")
        self.assertEqual(code, 0)
        packet = decode(bytes.fromhex(out.strip()))
        self.assertEqual(packet.msg_type, MessageType.INFORMATION_REQUEST)
        self.assertEqual(packet.transaction_id, 0x42)
        self.assertEqual(reqopts(packet), [23])

    def test_relay(self):
        code, out = run_cli("--mac", CLIENT_MAC, "--relay", "2001:db8::1", "fe80::1", "--hex")
        self.assertEqual(code, 0)
        packet = decode(bytes.fromhex(out.strip()))
        self.assertIsInstance(packet, DHCPv6Relay)
        self.assertEqual(packet.peer_addr, "fe80::1")

    def test_environment_defaults(self):
        env = {"DHCP6MOD_MSG_TYPE": "request", "DHCP6MOD_TRANSACTION_ID": "7"}
        with mock.patch.dict(os.environ, env):
            code, out = run_cli("--hex")
        self.assertEqual(code, 0)
        packet = decode(bytes.fromhex(out.strip()))
        self.assertEqual(packet.msg_type, MessageType.REQUEST)
        self.assertEqual(packet.transaction_id, 7)

    def test_cli_overrides_environment(self):
        with mock.patch.dict(os.environ, {"DHCP6MOD_MSG_TYPE": "request"}):
            code, out = run_cli("--msg-type", "renew", "--hex")
        self.assertEqual(code, 0)
        self.assertEqual(decode(bytes.fromhex(out.strip())).msg_type, MessageType.RENEW)

    def test_profile(self):
        profile = self.tmp / "profile.py"
        profile.write_text(
            "from dhcp6mod.modifiers import with_netboot\n"
            "MODIFIERS = [with_netboot]\n",
            encoding="utf-8",
        )
        code, out = run_cli(str(profile), "--mac", CLIENT_MAC, "--hex")
        self.assertEqual(code, 0)
        self.assertEqual(reqopts(decode(bytes.fromhex(out.strip()))), [23, 24, 59, 60])

    def test_bad_profile_fails(self):
        profile = self.tmp / "empty.py"
        profile.write_text("VALUE = 1\n", encoding="utf-8")
        code, _ = run_cli(str(profile))
        self.assertEqual(code, 1)

    def test_invalid_environment_fails(self):
        with mock.patch.dict(os.environ, {"DHCP6MOD_ARCH": "not-an-arch"}):
            code, _ = run_cli()
        self.assertEqual(code, 1)

    def test_report_and_pcap(self):
        report = self.tmp / "report.md"
        pcap = self.tmp / "out.pcap"
        code, _ = run_cli("--mac", CLIENT_MAC, "--report-file", str(report), "--pcap-file", str(pcap))
        self.assertEqual(code, 0)
        text = report.read_text(encoding="utf-8")
        self.assertIn("DHCPv6 PACKET REPORT", text)
        self.assertIn("SOLICIT", text)
        self.assertTrue(pcap.exists())
        self.assertGreater(pcap.stat().st_size, 0)

    def test_unwritable_report_fails(self):
        report = self.tmp / "missing" / "report.md"
        with self.assertLogs("dhcp6mod.cli", "ERROR"):
            code, _ = run_cli("--mac", CLIENT_MAC, "--report-file", str(report))
        self.assertEqual(code, 1)
        self.assertFalse(report.exists())

    def test_invalid_arch_flag_exits(self):
        with self.assertRaises(SystemExit):
            run_cli("--arch", "not-an-arch")


if __name__ == '__main__':
    unittest.main()
