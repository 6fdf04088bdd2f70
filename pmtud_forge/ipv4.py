from __future__ import annotations

import ipaddress
import struct
from dataclasses import dataclass

from .icmp import internet_checksum

IPV4_VERSION = 4
IPV4_HEADER_LEN = 20
IPV4_VERSION_IHL = (IPV4_VERSION << 4) | (IPV4_HEADER_LEN // 4)
IPV4_FLAG_DONT_FRAGMENT = 0x4000
DEFAULT_TTL = 128
IPPROTO_ICMP = 1

IPV4_HEADER_STRUCT = struct.Struct("!BBHHHBBH4s4s")


class InvalidAddress(ValueError):
    pass


def parse_ipv4_address(value: str | ipaddress.IPv4Address) -> ipaddress.IPv4Address:
    if isinstance(value, ipaddress.IPv4Address):
        return value
    try:
        return ipaddress.IPv4Address(str(value).strip())
    except ValueError as exc:
        raise InvalidAddress(f"invalid IPv4 address: {value!r}") from exc


def build_ip_header(
    source: str | ipaddress.IPv4Address,
    destination: str | ipaddress.IPv4Address,
    total_length: int,
    identification: int,
) -> bytes:
    """Encode a 20-byte IPv4 header carrying ICMP with DF set and no options."""
    header = bytearray(
        IPV4_HEADER_STRUCT.pack(
            IPV4_VERSION_IHL,
            0,
            total_length,
            identification,
            IPV4_FLAG_DONT_FRAGMENT,
            DEFAULT_TTL,
            IPPROTO_ICMP,
            0,
            parse_ipv4_address(source).packed,
            parse_ipv4_address(destination).packed,
        )
    )
    struct.pack_into("!H", header, 10, internet_checksum(header))
    return bytes(header)


@dataclass(frozen=True)
class IPv4Header:
    version: int
    ihl: int
    tos: int
    total_length: int
    identification: int
    flags_fragment: int
    ttl: int
    protocol: int
    checksum: int
    source: ipaddress.IPv4Address
    destination: ipaddress.IPv4Address

    @property
    def header_len(self) -> int:
        return self.ihl * 4

    @property
    def dont_fragment(self) -> bool:
        return bool(self.flags_fragment & IPV4_FLAG_DONT_FRAGMENT)

    @staticmethod
    def from_bytes(buf: bytes) -> "IPv4Header":
        if len(buf) < IPV4_HEADER_LEN:
            raise ValueError("header too short")
        (
            version_ihl,
            tos,
            total_length,
            identification,
            flags_fragment,
            ttl,
            protocol,
            checksum,
            source,
            destination,
        ) = IPV4_HEADER_STRUCT.unpack(buf[:IPV4_HEADER_LEN])
        version = version_ihl >> 4
        ihl = version_ihl & 0x0F
        if version != IPV4_VERSION or ihl < 5:
            raise ValueError("not an IPv4 header")
        if len(buf) < ihl * 4:
            raise ValueError("header too short")
        if internet_checksum(buf[: ihl * 4]) != 0:
            raise ValueError("invalid checksum")
        return IPv4Header(
            version=version,
            ihl=ihl,
            tos=tos,
            total_length=total_length,
            identification=identification,
            flags_fragment=flags_fragment,
            ttl=ttl,
            protocol=protocol,
            checksum=checksum,
            source=ipaddress.IPv4Address(source),
            destination=ipaddress.IPv4Address(destination),
        )
