import ipaddress
import random
import socket
import time

from pmtud_forge.packet import ForgedPacket, send_fragmentation_needed
from pmtud_forge.transport import RawSocketTransport


def _receive_forged_packet(listener: socket.socket, timeout_s: float) -> ForgedPacket | None:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        try:
            data = listener.recv(65535)
        except socket.timeout:
            continue
        try:
            return ForgedPacket.from_bytes(data)
        except ValueError:
            continue
    return None


def test_loopback_delivers_fragmentation_needed(require_root: None) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.settimeout(0.2)

        send_fragmentation_needed(
            RawSocketTransport(),
            "127.0.0.1",
            "127.0.0.1",
            1111,
            rng=random.Random(11),
        )

        received = _receive_forged_packet(listener, timeout_s=2.0)

    assert received is not None, "timed out waiting for the forged packet"
    assert received.header.source == ipaddress.IPv4Address("127.0.0.1")
    assert received.header.destination == ipaddress.IPv4Address("127.0.0.1")
    assert received.message.next_hop_mtu == 1111
