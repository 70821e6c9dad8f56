"""Entertainment stream lifecycle.

`HueStreamClient.start_stream` asks the bridge to start streaming for an
entertainment area, completes the DTLS handshake and returns a `Stream`.
The stream owns the connection until `Stream.close`, which drains pending
updates, tells the bridge to stop and closes the connection, exactly once.

Usage:
    client = HueStreamClient(host, username, client_key)
    async with await client.start_stream(area_id) as stream:
        await stream.send({0: rgb(255, 0, 0), 1: rgb(0, 0, 255)})
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

from loguru import logger

from ..config import StreamSettings, get_stream_settings
from ..errors import ControlPlaneError, HandshakeError, StreamClosedError, StreamError, WriteError
from ..schemas.channel_update import ChannelUpdate, UpdateLike
from ..schemas.stream_state import StreamState
from ..shared.logger import format_error
from ..services.control_plane import ControlPlaneClient
from ..services.transport import STREAM_PORT, DtlsTransport, SecureTransport
from ..workers.send_pipeline import DEFAULT_ERROR_BUFFER, SendPipeline

Dialer = Callable[[], Awaitable[SecureTransport]]


class Stream:
    """Live streaming session for one entertainment area.

    Must be closed by its owner; nothing tears it down implicitly.
    """

    def __init__(
        self,
        control_plane: ControlPlaneClient,
        area_id: str,
        *,
        error_buffer: int = DEFAULT_ERROR_BUFFER,
    ):
        self.area_id = area_id
        self.state = StreamState.IDLE

        self._control_plane = control_plane
        self._error_buffer = error_buffer
        self._transport: SecureTransport | None = None
        self._pipeline: SendPipeline | None = None

        # Set once the bridge accepted the start action
        self._started = False
        self._handshake_error: HandshakeError | None = None

        self._close_lock = asyncio.Lock()
        self._close_task: asyncio.Future[StreamError | None] | None = None

    def __repr__(self) -> str:
        return f"Stream(area_id={self.area_id!r}, state={self.state})"

    def _activate(self, transport: SecureTransport) -> None:
        self._transport = transport
        self._pipeline = SendPipeline(transport, self.area_id, error_buffer=self._error_buffer)
        self._pipeline.start()
        self.state = StreamState.ACTIVE

    @property
    def sent(self) -> int:
        return self._pipeline.sent if self._pipeline else 0

    async def send(self, update: UpdateLike | None = None) -> None:
        """Queue one frame of channel colors.

        Validation happens here, before anything is queued. An empty or None
        update is accepted and produces no datagram.

        Raises:
            TooManyChannels: More than 20 channels
            InvalidChannel: Channel id outside 0..19
            StreamClosedError: The stream is not active
        """
        if self.state is not StreamState.ACTIVE or self._pipeline is None:
            raise StreamClosedError(f"stream for area {self.area_id} is {self.state}")
        await self._pipeline.submit(ChannelUpdate.parse(update))

    update = send

    async def next_error(self) -> StreamError | None:
        """Next asynchronous write failure, or None once the stream is closed and drained."""
        if self._pipeline is None:
            return None
        return await self._pipeline.next_error()

    async def errors(self) -> AsyncIterator[StreamError]:
        while (error := await self.next_error()) is not None:
            yield error

    async def close(self) -> None:
        """Tear the stream down.

        Safe to call any number of times, concurrently too: the teardown runs
        once and every caller gets its outcome, the same exception instance
        when it failed.

        Raises:
            ControlPlaneError: The stop action failed (reported even if closing the connection also failed)
            WriteError: Closing the connection failed
            HandshakeError: The stream never completed its handshake
        """
        async with self._close_lock:
            if self._close_task is None:
                self._close_task = asyncio.ensure_future(self._teardown())

        # A cancelled caller leaves the teardown running for everyone else
        error = await asyncio.shield(self._close_task)
        if error is not None:
            raise error

    async def _teardown(self) -> StreamError | None:
        self.state = StreamState.STOPPING

        if self._pipeline is not None:
            await self._pipeline.close()

        stop_error: ControlPlaneError | None = None
        if self._started:
            try:
                await self._control_plane.stop_stream(self.area_id)
            except ControlPlaneError as exc:
                stop_error = exc

        if self._transport is None:
            self.state = StreamState.CLOSED
            if stop_error is not None:
                logger.warning(
                    "Stop action after failed handshake also failed: area={}\n{}", self.area_id, format_error(stop_error)
                )
            return self._handshake_error or HandshakeError(
                f"stream for area {self.area_id} never completed its handshake"
            )

        close_error: StreamError | None = None
        try:
            await self._transport.close()
        except StreamError as exc:
            close_error = exc
        except OSError as exc:
            close_error = WriteError(f"close connection for area {self.area_id}: {exc}")
            close_error.__cause__ = exc

        self.state = StreamState.CLOSED

        if stop_error is not None:
            if close_error is not None:
                logger.warning("Connection close also failed: area={}\n{}", self.area_id, format_error(close_error))
            logger.warning("Entertainment stream closed with stop failure: area={} error={}", self.area_id, stop_error)
            return stop_error
        if close_error is not None:
            logger.warning("Entertainment stream closed with connection failure: area={} error={}", self.area_id, close_error)
            return close_error

        logger.info("Entertainment stream closed: area={} sent={}", self.area_id, self.sent)
        return None

    async def __aenter__(self) -> "Stream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class HueStreamClient:
    """Starts entertainment streams on one Hue Bridge.

    Holds no per-area state; starting a second stream for an area that is
    already streaming is left to the bridge to accept or reject.
    """

    def __init__(
        self,
        host: str,
        username: str,
        client_key: str,
        *,
        stream_port: int = STREAM_PORT,
        http_timeout: float = 10.0,
        handshake_timeout: float = 10.0,
        error_buffer: int = DEFAULT_ERROR_BUFFER,
        verify_tls: bool = False,
        control_plane: ControlPlaneClient | None = None,
        dialer: Dialer | None = None,
    ):
        """
        Args:
            host: Bridge IP address
            username: Hue username, used as application key and PSK identity
            client_key: Hex encoded client key, the DTLS pre-shared key
            stream_port: Entertainment streaming port (always 2100 on real bridges)
            http_timeout: Timeout for start/stop actions, seconds
            handshake_timeout: Socket timeout during the DTLS handshake, seconds
            error_buffer: Per-stream write error buffer size
            verify_tls: Verify the bridge certificate on CLIP requests
            control_plane: Override the CLIP client
            dialer: Override how the secure transport is opened
        """
        self.host = host
        self.username = username
        self.client_key = client_key
        self.stream_port = stream_port
        self.handshake_timeout = handshake_timeout
        self.error_buffer = error_buffer

        self.control_plane = control_plane or ControlPlaneClient(
            host, username, timeout=http_timeout, verify=verify_tls
        )
        self._dialer = dialer or self._dial_dtls

    @classmethod
    def from_config(cls, settings: StreamSettings | None = None) -> "HueStreamClient":
        settings = settings or get_stream_settings()
        settings.require_credentials()
        return cls(
            settings.BRIDGE_HOST,
            settings.USERNAME,
            settings.CLIENT_KEY,
            stream_port=settings.STREAM_PORT,
            http_timeout=settings.HTTP_TIMEOUT,
            handshake_timeout=settings.HANDSHAKE_TIMEOUT,
            error_buffer=settings.ERROR_BUFFER,
            verify_tls=settings.VERIFY_TLS,
        )

    async def _dial_dtls(self) -> SecureTransport:
        return await DtlsTransport.dial(
            self.host,
            self.username,
            self.client_key,
            port=self.stream_port,
            timeout=self.handshake_timeout,
        )

    async def _handshake(self) -> SecureTransport:
        try:
            return await self._dialer()
        except HandshakeError:
            raise
        except Exception as exc:
            raise HandshakeError(f"handshake with {self.host}:{self.stream_port}: {exc!r}") from exc

    async def start_stream(self, area_id: str) -> Stream:
        """Start streaming to an entertainment area.

        Only one stream per area can be active on the bridge at a time.

        Raises:
            ControlPlaneError: The bridge refused the start action; no handshake was attempted
            HandshakeError: The DTLS handshake failed; a best-effort stop action was issued
        """
        stream = Stream(self.control_plane, area_id, error_buffer=self.error_buffer)
        stream.state = StreamState.STARTING

        try:
            await self.control_plane.start_stream(area_id)
        except ControlPlaneError:
            stream.state = StreamState.CLOSED
            raise
        stream._started = True

        try:
            transport = await self._handshake()
        except BaseException as exc:
            # Cancellation included: the stop action still goes out
            if isinstance(exc, HandshakeError):
                stream._handshake_error = exc
            else:
                stream._handshake_error = HandshakeError(
                    f"handshake with {self.host}:{self.stream_port} interrupted: {exc!r}"
                )
            logger.warning("Handshake failed, stopping entertainment area: area={} error={!r}", area_id, exc)
            # close() issues the stop action and reports the handshake error
            with contextlib.suppress(HandshakeError):
                await stream.close()
            raise

        stream._activate(transport)
        logger.info("Entertainment stream started: area={} host={}", area_id, self.host)
        return stream


async def start(host: str, username: str, client_key: str, area_id: str) -> Stream:
    """Shortcut for `HueStreamClient(host, username, client_key).start_stream(area_id)`."""
    return await HueStreamClient(host, username, client_key).start_stream(area_id)


__all__ = ["Dialer", "HueStreamClient", "Stream", "start"]
