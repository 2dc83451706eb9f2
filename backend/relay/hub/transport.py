"""Abstract transport for one live-channel connection (JSON text frames)."""

from abc import ABC, abstractmethod


class Transport(ABC):
    """
    Abstract interface for a client connection.

    Lets the hub be exercised without real WebSockets; see
    ``relay.hub.mock.MockTransport``.
    """

    @abstractmethod
    async def accept(self) -> None:
        """
        Complete the handshake once the credential has been verified.
        """
        ...

    @abstractmethod
    async def send_text(self, data: str) -> None:
        """
        Send one text frame to the client.
        """
        ...

    @abstractmethod
    async def receive_text(self) -> str:
        """
        Receive one text frame from the client.
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection (or reject it if not yet accepted).
        """
        ...
