from __future__ import annotations

import ipaddress
import logging
import random
from dataclasses import dataclass
from typing import Protocol

from .icmp import FragmentationNeeded, build_icmp_message
from .ipv4 import IPPROTO_ICMP, IPV4_HEADER_LEN, IPv4Header, build_ip_header, parse_ipv4_address

LOGGER = logging.getLogger("pmtud_forge.packet")

MAX_IDENTIFICATION = 0xFFFF

_SYSTEM_RANDOM = random.SystemRandom()


class Transport(Protocol):
    def send(self, source: str, destination: str, packet: bytes) -> None: ...


def assemble_packet(
    source: str | ipaddress.IPv4Address,
    destination: str | ipaddress.IPv4Address,
    next_hop_mtu: int,
    *,
    rng: random.Random | None = None,
    identification: int | None = None,
    original_datagram: bytes | None = None,
) -> bytes:
    """Build the wire bytes of a forged ICMP Fragmentation Needed packet.

    ``identification`` wins over ``rng``; when neither is given the IP
    identification is drawn from the system random source. Identical inputs
    with the same identification always produce identical bytes.
    """
    message = build_icmp_message(next_hop_mtu, original_datagram)
    total_length = IPV4_HEADER_LEN + len(message)
    if identification is None:
        identification = (rng or _SYSTEM_RANDOM).randrange(MAX_IDENTIFICATION + 1)
    header = build_ip_header(source, destination, total_length, identification)
    return header + message


def send_fragmentation_needed(
    transport: Transport,
    source: str | ipaddress.IPv4Address,
    destination: str | ipaddress.IPv4Address,
    next_hop_mtu: int,
    *,
    rng: random.Random | None = None,
    identification: int | None = None,
    original_datagram: bytes | None = None,
) -> bytes:
    source_address = parse_ipv4_address(source)
    destination_address = parse_ipv4_address(destination)
    packet = assemble_packet(
        source_address,
        destination_address,
        next_hop_mtu,
        rng=rng,
        identification=identification,
        original_datagram=original_datagram,
    )
    LOGGER.debug("assembled %d byte packet: %s", len(packet), packet.hex())
    transport.send(str(source_address), str(destination_address), packet)
    LOGGER.info(
        "sent fragmentation-needed next_hop_mtu=%d from %s to %s",
        next_hop_mtu,
        source_address,
        destination_address,
    )
    return packet


@dataclass(frozen=True)
class ForgedPacket:
    header: IPv4Header
    message: FragmentationNeeded

    @staticmethod
    def from_bytes(buf: bytes) -> "ForgedPacket":
        header = IPv4Header.from_bytes(buf)
        if header.protocol != IPPROTO_ICMP:
            raise ValueError("not an ICMP packet")
        if header.total_length != len(buf):
            raise ValueError("total length mismatch")
        message = FragmentationNeeded.from_bytes(buf[header.header_len :])
        return ForgedPacket(header=header, message=message)
