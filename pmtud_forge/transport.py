from __future__ import annotations

import logging
import socket
from typing import Callable

LOGGER = logging.getLogger("pmtud_forge.transport")

SocketFactory = Callable[[int, int, int], socket.socket]


class TransmissionFailed(OSError):
    """Raised when the raw socket could not deliver a packet.

    Socket creation, ``IP_HDRINCL``, binding and ``sendto`` failures are all
    reported as this one kind; the original exception is kept in ``cause``
    and as ``__cause__``.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class RawSocketTransport:
    """Sends complete IPv4 packets (header included) from a raw socket."""

    def __init__(self, socket_factory: SocketFactory = socket.socket) -> None:
        self.socket_factory = socket_factory

    def send(self, source: str, destination: str, packet: bytes) -> None:
        try:
            connection = self.socket_factory(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_RAW)
        except PermissionError as exc:
            LOGGER.error("raw IPv4 socket requires elevated privileges (root or CAP_NET_RAW)")
            raise TransmissionFailed(f"cannot open raw socket: {exc}", exc) from exc
        except OSError as exc:
            raise TransmissionFailed(f"cannot open raw socket: {exc}", exc) from exc

        with connection:
            try:
                connection.setsockopt(socket.IPPROTO_IP, socket.IP_HDRINCL, 1)
                connection.bind((source, 0))
                sent = connection.sendto(packet, (destination, 0))
            except PermissionError as exc:
                # EACCES/EPERM here come from the destination or netfilter, not from privileges.
                LOGGER.error(
                    "kernel refused packet to %s; broadcast destinations and local firewall rules are denied",
                    destination,
                )
                raise TransmissionFailed(
                    f"permission denied sending {len(packet)} bytes from {source} to {destination}: {exc}",
                    exc,
                ) from exc
            except OSError as exc:
                raise TransmissionFailed(
                    f"failed to send {len(packet)} bytes from {source} to {destination}: {exc}",
                    exc,
                ) from exc

        if sent != len(packet):
            raise TransmissionFailed(f"short write to {destination}: sent {sent} of {len(packet)} bytes")
        LOGGER.debug("sent %d bytes from %s to %s", sent, source, destination)
