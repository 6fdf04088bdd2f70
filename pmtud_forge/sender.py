from __future__ import annotations

import argparse
import logging
from dataclasses import replace

from ._version import __version__
from .config import PacketConfig, load_sender_config
from .packet import Transport, send_fragmentation_needed
from .transport import RawSocketTransport, TransmissionFailed

LOGGER = logging.getLogger("pmtud_forge.sender")

MAX_NEXT_HOP_MTU = 0xFFFF


def configure_logging(level_name: str) -> None:
    level = getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _next_hop_mtu(value: str) -> int:
    try:
        mtu = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if not 0 <= mtu <= MAX_NEXT_HOP_MTU:
        raise argparse.ArgumentTypeError(f"must fit in 16 bits: {mtu}")
    return mtu


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Send a forged ICMP Fragmentation Needed message advertising a next-hop MTU.",
    )
    parser.add_argument("--source", help="source IPv4 address written into the packet")
    parser.add_argument("--destination", help="IPv4 address of the host whose path MTU is targeted")
    parser.add_argument("--mtu", type=_next_hop_mtu, help="next-hop MTU to advertise, in bytes")
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _apply_overrides(config: PacketConfig, args: argparse.Namespace) -> PacketConfig:
    overrides = {}
    if args.source is not None:
        overrides["source_host"] = args.source
    if args.destination is not None:
        overrides["destination_host"] = args.destination
    if args.mtu is not None:
        overrides["next_hop_mtu"] = args.mtu
    return replace(config, **overrides)


def run(config: PacketConfig, transport: Transport | None = None) -> bytes:
    if not 0 <= config.next_hop_mtu <= MAX_NEXT_HOP_MTU:
        raise ValueError(f"next_hop_mtu must fit in 16 bits: {config.next_hop_mtu}")
    return send_fragmentation_needed(
        transport or RawSocketTransport(),
        config.source_host,
        config.destination_host,
        config.next_hop_mtu,
    )


def main(argv: list[str] | None = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    try:
        config = load_sender_config()
    except ValueError as exc:
        configure_logging("INFO")
        LOGGER.error("invalid configuration: %s", exc)
        return 1
    configure_logging(config.common.log_level)
    packet_config = _apply_overrides(config.packet, args)
    try:
        run(packet_config)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 1
    except TransmissionFailed as exc:
        LOGGER.error("transmission failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
