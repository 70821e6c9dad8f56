"""Tests for the single-writer send pipeline."""

import asyncio

import pytest

from huestream.errors import StreamClosedError, WriteError
from huestream.schemas import ChannelUpdate, rgb
from huestream.services.codec import encode_message
from huestream.workers.send_pipeline import SendPipeline
from tests.fixtures.stream_fixtures import FakeTransport

AREA_ID = "abc123"


def frame(value: int) -> ChannelUpdate:
    return ChannelUpdate.parse({0: rgb(value, value, value)})


async def collect_errors(pipeline: SendPipeline) -> list:
    return [error async for error in pipeline.errors()]


class TestSendPipelineOrdering:
    """Tests for write ordering and draining."""

    async def test_writes_follow_submission_order_under_delay(self):
        """Test A, B, C reach the transport as A, B, C even when writes are slow."""
        # Arrange
        transport = FakeTransport(delay=0.01)
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()
        a, b, c = frame(1), frame(2), frame(3)

        # Act
        for update in (a, b, c):
            await pipeline.submit(update)
        await pipeline.close()

        # Assert
        assert transport.writes == [
            encode_message(AREA_ID, a),
            encode_message(AREA_ID, b),
            encode_message(AREA_ID, c),
        ]
        assert pipeline.sent == 3

    async def test_concurrent_producers_keep_acceptance_order(self):
        """Test producers racing each other are written in the order they were accepted."""
        # Arrange
        transport = FakeTransport(delay=0.005)
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()
        updates = [frame(i) for i in range(10)]

        # Act
        await asyncio.gather(*(pipeline.submit(update) for update in updates))
        await pipeline.close()

        # Assert
        assert transport.writes == [encode_message(AREA_ID, update) for update in updates]

    async def test_close_drains_pending_updates(self):
        """Test updates queued before close are still written."""
        # Arrange
        transport = FakeTransport()
        transport.gate = asyncio.Event()
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()
        await pipeline.submit(frame(1))
        await asyncio.sleep(0.01)
        await pipeline.submit(frame(2))

        # Act
        closing = asyncio.create_task(pipeline.close())
        await asyncio.sleep(0.01)
        assert not closing.done()
        transport.gate.set()
        await closing

        # Assert
        assert len(transport.writes) == 2

    async def test_slow_writer_backpressures_producer(self):
        """Test submit waits once one update is in flight and one is queued."""
        # Arrange
        transport = FakeTransport()
        transport.gate = asyncio.Event()
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()
        await pipeline.submit(frame(1))
        await asyncio.sleep(0.01)
        await pipeline.submit(frame(2))

        # Act / Assert
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(pipeline.submit(frame(3)), timeout=0.05)

        transport.gate.set()
        await pipeline.close()
        assert transport.writes == [
            encode_message(AREA_ID, frame(1)),
            encode_message(AREA_ID, frame(2)),
        ]


class TestSendPipelineNoop:
    """Tests for empty updates."""

    async def test_none_and_empty_updates_write_nothing(self):
        """Test heartbeats produce neither a write nor an error."""
        # Arrange
        transport = FakeTransport()
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()

        # Act
        await pipeline.submit(None)
        await pipeline.submit(ChannelUpdate())
        await pipeline.close()

        # Assert
        assert transport.write_calls == 0
        assert await collect_errors(pipeline) == []


class TestSendPipelineErrors:
    """Tests for asynchronous error reporting."""

    async def test_write_failure_is_reported_and_stream_continues(self):
        """Test a failed datagram is reported while later updates are still sent."""
        # Arrange
        transport = FakeTransport(fail_writes=1)
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()

        # Act
        await pipeline.submit(frame(1))
        await pipeline.submit(frame(2))
        await pipeline.close()

        # Assert
        errors = await collect_errors(pipeline)
        assert len(errors) == 1
        assert isinstance(errors[0], WriteError)
        assert isinstance(errors[0].__cause__, OSError)
        assert transport.writes == [encode_message(AREA_ID, frame(2))]

    async def test_full_error_buffer_drops_new_errors(self):
        """Test errors beyond the buffer capacity are dropped without blocking the writer."""
        # Arrange
        transport = FakeTransport(fail_writes=5)
        pipeline = SendPipeline(transport, AREA_ID, error_buffer=2)
        pipeline.start()

        # Act
        for i in range(5):
            await pipeline.submit(frame(i))
        await pipeline.close()

        # Assert
        assert len(await collect_errors(pipeline)) == 2
        assert pipeline.dropped_errors == 3

    async def test_next_error_waits_for_failure(self):
        """Test a reader blocked on next_error wakes up when a write fails."""
        # Arrange
        transport = FakeTransport(fail_writes=1)
        pipeline = SendPipeline(transport, AREA_ID)
        pipeline.start()
        reader = asyncio.create_task(pipeline.next_error())
        await asyncio.sleep(0)

        # Act
        await pipeline.submit(frame(1))
        error = await asyncio.wait_for(reader, timeout=1)

        # Assert
        assert isinstance(error, WriteError)
        await pipeline.close()

    async def test_next_error_returns_none_after_close(self):
        """Test the error channel ends once the pipeline is drained."""
        # Arrange
        pipeline = SendPipeline(FakeTransport(), AREA_ID)
        pipeline.start()
        reader = asyncio.create_task(pipeline.next_error())
        await asyncio.sleep(0)

        # Act
        await pipeline.close()

        # Assert
        assert await asyncio.wait_for(reader, timeout=1) is None


class TestSendPipelineClose:
    """Tests for closing the pipeline."""

    async def test_submit_after_close_rejected(self):
        """Test new updates are refused once closed."""
        pipeline = SendPipeline(FakeTransport(), AREA_ID)
        pipeline.start()
        await pipeline.close()

        with pytest.raises(StreamClosedError):
            await pipeline.submit(frame(1))

    async def test_close_is_idempotent(self):
        """Test a second close returns immediately."""
        pipeline = SendPipeline(FakeTransport(), AREA_ID)
        pipeline.start()

        await pipeline.close()
        await pipeline.close()

        assert pipeline.closed

    async def test_close_without_start(self):
        """Test closing a pipeline whose worker never started."""
        pipeline = SendPipeline(FakeTransport(), AREA_ID)

        await pipeline.close()

        assert await pipeline.next_error() is None
