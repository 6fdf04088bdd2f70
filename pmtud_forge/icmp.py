from __future__ import annotations

import struct
from dataclasses import dataclass

ICMP_DEST_UNREACHABLE = 3
ICMP_FRAGMENTATION_NEEDED_CODE = 4
ICMP_HEADER_LEN = 8
# Stand-in for the offending datagram's IP header plus its first 64 bits.
ORIGINAL_DATAGRAM_LEN = 28

ICMP_HEADER_STRUCT = struct.Struct("!BBHHH")


def internet_checksum(data: bytes) -> int:
    """RFC 1071 one's complement sum of ``data`` read as big-endian words.

    A trailing odd byte is treated as the high byte of a zero-padded word.
    The input is never modified.
    """
    if len(data) % 2:
        data = bytes(data) + b"\x00"
    total = sum(struct.unpack(f"!{len(data) // 2}H", data))
    while total >> 16:
        total = (total >> 16) + (total & 0xFFFF)
    return ~total & 0xFFFF


def build_icmp_message(next_hop_mtu: int, original_datagram: bytes | None = None) -> bytes:
    """Encode an ICMP Destination Unreachable / Fragmentation Needed message.

    ``next_hop_mtu`` is written as-is; no plausibility check is made against
    the RFC 1191 minimum. Without ``original_datagram`` the payload is
    ``ORIGINAL_DATAGRAM_LEN`` zero bytes.
    """
    if original_datagram is None:
        original_datagram = bytes(ORIGINAL_DATAGRAM_LEN)
    message = bytearray(
        ICMP_HEADER_STRUCT.pack(
            ICMP_DEST_UNREACHABLE,
            ICMP_FRAGMENTATION_NEEDED_CODE,
            0,
            0,
            next_hop_mtu,
        )
    )
    message += original_datagram
    struct.pack_into("!H", message, 2, internet_checksum(message))
    return bytes(message)


@dataclass(frozen=True)
class FragmentationNeeded:
    next_hop_mtu: int
    original_datagram: bytes
    icmp_checksum: int | None = None

    @staticmethod
    def from_bytes(buf: bytes) -> "FragmentationNeeded":
        if len(buf) < ICMP_HEADER_LEN:
            raise ValueError("packet too short")
        icmp_type, icmp_code, icmp_checksum, _unused, next_hop_mtu = ICMP_HEADER_STRUCT.unpack(
            buf[:ICMP_HEADER_LEN]
        )
        if icmp_type != ICMP_DEST_UNREACHABLE or icmp_code != ICMP_FRAGMENTATION_NEEDED_CODE:
            raise ValueError("not a fragmentation-needed message")
        message = FragmentationNeeded(
            next_hop_mtu=next_hop_mtu,
            original_datagram=bytes(buf[ICMP_HEADER_LEN:]),
            icmp_checksum=icmp_checksum,
        )
        if not message.validate_checksum():
            raise ValueError("invalid checksum")
        return message

    def calculate_checksum(self) -> int:
        return internet_checksum(self.to_bytes_no_checksum())

    def validate_checksum(self) -> bool:
        if self.icmp_checksum is None:
            return False
        return self.icmp_checksum == self.calculate_checksum()

    def to_bytes(self) -> bytes:
        return build_icmp_message(self.next_hop_mtu, self.original_datagram)

    def to_bytes_no_checksum(self) -> bytes:
        header = ICMP_HEADER_STRUCT.pack(
            ICMP_DEST_UNREACHABLE,
            ICMP_FRAGMENTATION_NEEDED_CODE,
            0,
            0,
            self.next_hop_mtu,
        )
        return header + self.original_datagram
