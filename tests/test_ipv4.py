import ipaddress

import pytest

from pmtud_forge.icmp import internet_checksum
from pmtud_forge.ipv4 import (
    IPV4_HEADER_LEN,
    InvalidAddress,
    IPv4Header,
    build_ip_header,
    parse_ipv4_address,
)


EXPECTED_HEADER = bytes.fromhex("45000038123440008001d87d0102030405060708")


def test_build_ip_header_layout() -> None:
    header = build_ip_header("1.2.3.4", "5.6.7.8", 56, 0x1234)

    assert len(header) == IPV4_HEADER_LEN
    assert header[0] == 0x45
    assert header[1] == 0x00
    assert header[2:4] == b"\x00\x38"
    assert header[4:6] == b"\x12\x34"
    assert header[6:8] == b"\x40\x00"
    assert header[8] == 0x80
    assert header[9] == 0x01
    assert header[12:16] == bytes([1, 2, 3, 4])
    assert header[16:20] == bytes([5, 6, 7, 8])


def test_build_ip_header_checksum() -> None:
    header = build_ip_header("1.2.3.4", "5.6.7.8", 56, 0x1234)

    assert header == EXPECTED_HEADER
    assert internet_checksum(header) == 0x0000


def test_build_ip_header_accepts_parsed_addresses() -> None:
    header = build_ip_header(
        ipaddress.IPv4Address("1.2.3.4"),
        ipaddress.IPv4Address("5.6.7.8"),
        56,
        0x1234,
    )

    assert header == EXPECTED_HEADER


def test_build_ip_header_rejects_malformed_address() -> None:
    with pytest.raises(InvalidAddress):
        build_ip_header("1.2.3", "5.6.7.8", 56, 1)


def test_parse_ipv4_address_rejects_ipv6() -> None:
    with pytest.raises(InvalidAddress, match="invalid IPv4 address"):
        parse_ipv4_address("::1")


def test_parse_ipv4_address_strips_whitespace() -> None:
    assert parse_ipv4_address(" 10.0.0.1 ") == ipaddress.IPv4Address("10.0.0.1")


def test_invalid_address_is_value_error() -> None:
    assert issubclass(InvalidAddress, ValueError)


def test_ipv4_header_round_trip_from_bytes() -> None:
    parsed = IPv4Header.from_bytes(build_ip_header("192.0.2.1", "198.51.100.7", 56, 0xBEEF))

    assert parsed.version == 4
    assert parsed.ihl == 5
    assert parsed.header_len == IPV4_HEADER_LEN
    assert parsed.tos == 0
    assert parsed.total_length == 56
    assert parsed.identification == 0xBEEF
    assert parsed.dont_fragment
    assert parsed.flags_fragment == 0x4000
    assert parsed.ttl == 128
    assert parsed.protocol == 1
    assert parsed.source == ipaddress.IPv4Address("192.0.2.1")
    assert parsed.destination == ipaddress.IPv4Address("198.51.100.7")


def test_ipv4_header_rejects_invalid_checksum() -> None:
    tampered = bytearray(EXPECTED_HEADER)
    tampered[10] ^= 0x01

    with pytest.raises(ValueError, match="invalid checksum"):
        IPv4Header.from_bytes(bytes(tampered))


def test_ipv4_header_rejects_short_buffer() -> None:
    with pytest.raises(ValueError, match="header too short"):
        IPv4Header.from_bytes(EXPECTED_HEADER[:19])


def test_ipv4_header_rejects_other_versions() -> None:
    with pytest.raises(ValueError, match="not an IPv4 header"):
        IPv4Header.from_bytes(b"\x60" + EXPECTED_HEADER[1:])
