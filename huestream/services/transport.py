"""Secured datagram transport to the bridge's entertainment port.

The stream only needs an already-authenticated connection it can `write` to
and `close`; `SecureTransport` is that contract, and tests substitute their
own implementation. `DtlsTransport` is the real one: DTLS 1.2 with a single
PSK cipher suite, as required by the Hue Entertainment API.
"""

from __future__ import annotations

import asyncio
import socket
import time
from typing import Protocol, runtime_checkable

from loguru import logger
from mbedtls import tls
from mbedtls._tls import HandshakeStep, WantReadError, WantWriteError
from mbedtls.exceptions import TLSError

from ..errors import HandshakeError, WriteError

STREAM_PORT = 2100
PSK_CIPHER = "TLS-PSK-WITH-AES-128-GCM-SHA256"

# The first flights (ClientHello, then ClientHello with cookie) are sent twice
CLIENT_HELLO_COPIES = 2
RETRANSMIT_INTERVAL = 0.3
MAX_HANDSHAKE_FLIGHTS = 4


@runtime_checkable
class SecureTransport(Protocol):
    async def write(self, data: bytes) -> int: ...

    async def close(self) -> None: ...


class _RetransmittingSocket(tls.TLSWrappedSocket):
    """Connected DTLS socket whose handshake duplicates the opening flights.

    Hue bridges regularly miss the first ClientHello, and the plain
    `do_handshake` then only fails once the socket timeout expires.
    """

    def do_handshake(self):
        flights = 0
        while self._handshake_state is not HandshakeStep.HANDSHAKE_OVER:
            try:
                self._buffer.do_handshake()
            except WantReadError:
                self._buffer.receive_from_network(self._socket.recv(self.CHUNK_SIZE))
            except WantWriteError as exc:
                flights += 1
                if flights > MAX_HANDSHAKE_FLIGHTS:
                    raise HandshakeError(f"DTLS handshake did not complete after {MAX_HANDSHAKE_FLIGHTS} flights") from exc

                in_transit = self._buffer.peek_outgoing(self.CHUNK_SIZE)
                amount = self._socket.send(in_transit)
                if flights <= CLIENT_HELLO_COPIES:
                    time.sleep(RETRANSMIT_INTERVAL)
                    self._socket.send(in_transit)
                self._buffer.consume_outgoing(amount)


def _dial_blocking(host: str, port: int, identity: str, psk: bytes, timeout: float) -> tls.TLSWrappedSocket:
    conf = tls.DTLSConfiguration(
        pre_shared_key=(identity, psk),
        ciphers=[PSK_CIPHER],
        validate_certificates=False,
        lowest_supported_version=tls.DTLSVersion.DTLSv1_2,
        highest_supported_version=tls.DTLSVersion.DTLSv1_2,
    )
    ctx = tls.ClientContext(conf)

    udp = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    udp.settimeout(timeout)
    try:
        udp.connect((host, port))
        sock = _RetransmittingSocket(udp, ctx.wrap_buffers(server_hostname=host))
        sock.do_handshake()
    except BaseException:
        udp.close()
        raise
    return sock


def _close_abandoned(future: asyncio.Future) -> None:
    if not future.cancelled() and future.exception() is None:
        future.result().close()
        logger.debug("Closed DTLS socket of an abandoned handshake")


class DtlsTransport:
    def __init__(self, sock: tls.TLSWrappedSocket, address: tuple[str, int]):
        self._sock = sock
        self.address = address

    @classmethod
    async def dial(
        cls,
        host: str,
        identity: str,
        psk_hex: str,
        *,
        port: int = STREAM_PORT,
        timeout: float = 10.0,
    ) -> "DtlsTransport":
        """Open the UDP socket and complete the DTLS handshake.

        If the caller is cancelled while the handshake thread is still running,
        the socket it eventually produces is closed.

        Args:
            host: Bridge IP address
            identity: PSK identity, the Hue username
            psk_hex: Hex encoded client key
            port: Entertainment streaming port
            timeout: Socket timeout applied to the handshake

        Raises:
            HandshakeError: If the key is not hex or the handshake does not complete
        """
        try:
            psk = bytes.fromhex(psk_hex)
        except ValueError as exc:
            raise HandshakeError(f"client key must be hex encoded: {exc}") from exc

        address = (host, port)
        dialing = asyncio.ensure_future(asyncio.to_thread(_dial_blocking, host, port, identity, psk, timeout))
        try:
            sock = await asyncio.shield(dialing)
        except asyncio.CancelledError:
            dialing.add_done_callback(_close_abandoned)
            raise
        except (OSError, TLSError) as exc:
            raise HandshakeError(f"handshake with {host}:{port}: {exc}") from exc

        logger.debug("DTLS handshake complete: address={}:{}", host, port)
        return cls(sock, address)

    async def write(self, data: bytes) -> int:
        try:
            return await asyncio.to_thread(self._sock.send, data)
        except (OSError, TLSError) as exc:
            raise WriteError(f"write to {self.address[0]}:{self.address[1]}: {exc}") from exc

    async def close(self) -> None:
        try:
            await asyncio.to_thread(self._sock.close)
        except (OSError, TLSError) as exc:
            raise WriteError(f"close {self.address[0]}:{self.address[1]}: {exc}") from exc
        logger.debug("DTLS connection closed: address={}:{}", *self.address)


__all__ = ["PSK_CIPHER", "STREAM_PORT", "DtlsTransport", "SecureTransport"]
