"""Stream lifecycle states."""

from enum import Enum


class StreamState(str, Enum):
    """Stream lifecycle states.

    State Transition Flow:

    IDLE → STARTING → ACTIVE → STOPPING → CLOSED
              ↓                              ↑
              └──────── (handshake failed) ──┘

    - IDLE: Handle created, nothing sent to the bridge yet.
    - STARTING: Start action issued, DTLS handshake in progress.
    - ACTIVE: Handshake complete, the send pipeline accepts updates.
    - STOPPING: Close requested; pipeline draining, stop action and transport close pending.
    - CLOSED: Teardown finished (successfully or not). Terminal.
    """

    IDLE = "idle"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


__all__ = ["StreamState"]
