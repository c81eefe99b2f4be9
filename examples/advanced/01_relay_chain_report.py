#!/usr/bin/env python3
"""
Advanced Example 1: Relay Chain with Report and PCAP

Builds an information-request, wraps it in two relay-forward layers and
writes a Markdown report plus a PCAP for each stage. Pass an output
directory to keep the files; a temporary one is used otherwise.

    python examples/advanced/01_relay_chain_report.py [OUTPUT_DIR]
"""

import logging
import sys
import tempfile
from pathlib import Path

# Local imports
from dhcp6mod import (
    MessageType,
    OptionCode,
    decapsulate,
    duid_en,
    encapsulate,
    new_message,
    with_client_id,
    with_domain_search_list,
    with_requested_options,
)
from dhcp6mod.utils.packet_report import write_packet_report

RELAY_HOPS = [
    ("2001:db8:1::1", "fe80::1"),
    ("2001:db8:2::1", "fe80::2"),
]


def build_chain():
    """Return [inner message, first relay, second relay]."""
    message = new_message(
        MessageType.INFORMATION_REQUEST,
        with_client_id(duid_en(32473, b"example-host")),
        with_requested_options(OptionCode.DNS_RECURSIVE_NAME_SERVER, OptionCode.NTP_SERVER),
        with_domain_search_list("lab.example"),
    )
    chain = [message]
    for link_addr, peer_addr in RELAY_HOPS:
        chain.append(encapsulate(chain[-1], link_addr=link_addr, peer_addr=peer_addr))
    return chain


def write_chain(output_dir: Path):
    chain = build_chain()
    report = output_dir / "relay_chain.md"
    pcap = output_dir / "relay_chain.pcap"
    write_packet_report(chain, str(report), mode="w",
                        metadata={"hops": len(RELAY_HOPS)}, pcap_path=str(pcap))

    # Unwrapping the outer relay twice gets back to the original message
    inner = decapsulate(decapsulate(chain[-1]))
    assert inner.transaction_id == chain[0].transaction_id
    return report, pcap


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) > 1:
        target = Path(sys.argv[1])
        target.mkdir(parents=True, exist_ok=True)
        for path in write_chain(target):
            print(f"Wrote {path}")
    else:
        with tempfile.TemporaryDirectory() as tmp:
            report, _ = write_chain(Path(tmp))
            print(report.read_text(encoding="utf-8"))
