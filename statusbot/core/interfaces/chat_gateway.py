"""
Chat Gateway Protocols

The chat-platform framework (slash commands, gateway connection, message
delivery) lives outside this package. The health checker, the error recovery
manager and the notification dispatcher reach it through these protocols.

Architectural Decision: Protocol-based abstraction
- No dependency on a specific chat SDK
- Tests pass plain fakes or MagicMock instances
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ConnectivityProbe(Protocol):
    """
    Readiness of the gateway connection.

    Implementations typically wrap the SDK client (e.g. `client.is_ready()`
    and the websocket heartbeat latency).
    """

    def is_ready(self) -> bool:
        """True once the gateway session is established."""
        ...

    def latency_ms(self) -> float:
        """
        Heartbeat round trip in milliseconds.

        Negative values mean no heartbeat has been acknowledged yet.
        """
        ...


@runtime_checkable
class NotificationSender(Protocol):
    """Delivers a text message to a channel."""

    async def send_message(self, channel_id: str, message: str) -> None:
        """
        Send message to channel_id.

        Raises:
            Any exception on delivery failure; callers log and continue.
        """
        ...
