"""Forge ICMP Fragmentation Needed packets for path MTU discovery testing."""

from ._version import __version__

__all__ = ["RawSocketTransport", "assemble_packet", "__version__"]


def __getattr__(name: str):
    if name == "assemble_packet":
        from .packet import assemble_packet

        return assemble_packet
    if name == "RawSocketTransport":
        from .transport import RawSocketTransport

        return RawSocketTransport
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
