#!/usr/bin/env python3
"""
Reusable Packet Report Generator for DHCP6Mod

Generates a formatted, Markdown-style report for a built DHCPv6 packet:
header fields, an option table, the Scapy dump, a Python-reconstructable
repr and the base64 encoded bytes. Optionally writes the packet to a PCAP
inside an IPv6/UDP envelope.
"""
import base64
import logging
from typing import Any, Dict, List, Optional, Union

from scapy.layers.dhcp6 import (
    DHCP6OptClientArchType,
    DHCP6OptClientId,
    DHCP6OptDNSDomains,
    DHCP6OptDNSServers,
    DHCP6OptIA_NA,
    DHCP6OptOptReq,
    DHCP6OptUserClass,
)
from scapy.layers.inet import UDP
from scapy.layers.inet6 import IPv6
from scapy.packet import Packet

from ..options import option_code, option_name
from ..packet import DHCPv6, message_type_name

logger = logging.getLogger(__name__)

CLIENT_PORT = 546
SERVER_PORT = 547
ALL_DHCP_RELAY_AGENTS_AND_SERVERS = "ff02::1:2"


def describe_option(option: Packet) -> str:
    """One-line description of an option's payload."""
    if isinstance(option, DHCP6OptOptReq):
        return ", ".join(option_name(code) for code in option.reqopts)
    if isinstance(option, DHCP6OptIA_NA):
        addrs = [sub.addr for sub in option.ianaopts if hasattr(sub, "addr")]
        return f"iaid=0x{(option.iaid or 0):08x} T1={option.T1} T2={option.T2} addrs=[{', '.join(addrs)}]"
    if isinstance(option, DHCP6OptDNSServers):
        return ", ".join(str(server) for server in option.dnsservers)
    if isinstance(option, DHCP6OptDNSDomains):
        return ", ".join(str(domain) for domain in option.dnsdomains)
    if isinstance(option, DHCP6OptUserClass):
        return ", ".join(repr(entry.data) for entry in option.userclassdata)
    if isinstance(option, DHCP6OptClientArchType):
        return ", ".join(str(arch) for arch in option.archtypes)
    if isinstance(option, DHCP6OptClientId) and option.duid is not None:
        duid = option.duid
        return duid.summary() if isinstance(duid, Packet) else repr(duid)
    return option.summary()


def format_option_table(packet: DHCPv6) -> str:
    """Markdown table with one row per option, in container order."""
    lines = ["| Code | Option | Value |", "|---|---|---|"]
    for option in packet.options:
        code = option_code(option)
        try:
            value = describe_option(option)
        except Exception as e:
            logger.warning(f"Failed to describe {option_name(code)}: {e}")
            value = f"(unavailable: {e})"
        lines.append(f"| {code} | {option_name(code)} | {value} |")
    return "\n".join(lines)


def to_udp_datagram(packet: DHCPv6, src: str = "::", dst: str = ALL_DHCP_RELAY_AGENTS_AND_SERVERS) -> Packet:
    """Wrap the packet in IPv6/UDP with the client-to-server ports."""
    return IPv6(src=src, dst=dst) / UDP(sport=CLIENT_PORT, dport=SERVER_PORT) / packet.to_scapy()


def write_pcap(packet: Union[DHCPv6, List[DHCPv6]], pcap_path: str, append: bool = False) -> None:
    packets = packet if isinstance(packet, (list, tuple)) else [packet]
    datagrams = [to_udp_datagram(p) for p in packets]
    if append:
        from scapy.utils import PcapWriter
        writer = PcapWriter(pcap_path, append=True, sync=True)
        for datagram in datagrams:
            writer.write(datagram)
        writer.close()
    else:
        from scapy.utils import wrpcap
        wrpcap(pcap_path, datagrams)
    logger.info(f"Wrote {len(datagrams)} packet(s) to {pcap_path}")


def write_packet_report(
    packet: Union[DHCPv6, List[DHCPv6]],
    file_path: str,
    mode: str = "a",
    metadata: Optional[Dict[str, Any]] = None,
    pcap_path: Optional[str] = None
) -> None:
    """
    Write a formatted packet report to file. Accepts a single packet or a list of packets.
    Args:
        packet: DHCPv6 packet or list of packets to report
        file_path: Path to output file
        mode: 'w' for write, 'a' for append
        metadata: Optional dict of metadata
        pcap_path: Optional path to PCAP file
    """
    if isinstance(packet, (list, tuple)):
        for idx, pkt in enumerate(packet):
            meta = dict(metadata) if metadata else {}
            meta["index"] = idx + 1
            # Only the first packet may truncate the files
            write_packet_report(
                pkt,
                file_path=file_path,
                mode=mode if idx == 0 else "a",
                metadata=meta,
                pcap_path=pcap_path,
            )
        return
    with open(file_path, mode, encoding="utf-8") as f:
        f.write("# ==== DHCPv6 PACKET REPORT ====\n")
        if metadata:
            f.write("\n## METADATA\n")
            for k, v in metadata.items():
                f.write(f"- **{k}**: {v}\n")

        f.write("\n## HEADER\n")
        f.write(f"- **msg_type**: {message_type_name(packet.msg_type)} ({packet.msg_type})\n")
        relay = packet.as_relay()
        if relay is not None:
            f.write(f"- **hop_count**: {relay.hop_count}\n")
            f.write(f"- **link_addr**: {relay.link_addr}\n")
            f.write(f"- **peer_addr**: {relay.peer_addr}\n")
        else:
            f.write(f"- **transaction_id**: 0x{packet.transaction_id:06x}\n")

        f.write("\n## OPTIONS\n")
        f.write(format_option_table(packet) + "\n")

        if pcap_path:
            f.write(f"\n## PCAP FILE\n- {pcap_path}\n")
            try:
                write_pcap(packet, pcap_path, append=(mode == "a"))
            except Exception as e:
                logger.error(f"Failed to write PCAP: {e}")
                f.write(f"(Failed to write PCAP: {e})\n")

        try:
            f.write("\n---\n\n## PACKET SUMMARY\n")
            f.write(f"{packet.summary()}\n")
        except Exception as e:
            logger.error(f"Failed to summarize packet: {e}")
            f.write(f"(Failed to summarize packet: {e})\n")

        f.write("\n---\n\n## PACKET DETAILS (Scapy Dump)\n")
        f.write("```\n")
        try:
            f.write(packet.to_scapy().show(dump=True) or "")
        except Exception as e:
            logger.error(f"Failed to dump packet: {e}")
            f.write(f"(Failed to dump packet: {e})")
        f.write("\n```\n")

        f.write("\n---\n\n## PYTHON RECONSTRUCTABLE PACKET\n")
        f.write("```python\n")
        try:
            f.write(repr(packet.to_scapy()))
        except Exception as e:
            logger.error(f"Failed to repr packet: {e}")
            f.write(f"# Repr failed: {e}")
        f.write("\n```\n")

        # Best-effort; an option with a malformed value fails here, not earlier
        f.write("\n---\n\n## BASE64 RAW BYTES\n")
        f.write("```\n")
        try:
            f.write(base64.b64encode(bytes(packet)).decode())
        except Exception as e:
            logger.error(f"Failed to serialize packet for raw bytes section: {e}")
            f.write(f"(Serialization failed: {e})")
        f.write("\n```\n")
        f.write("\n---\n\n")
