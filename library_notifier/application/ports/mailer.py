from typing import Protocol


class Mailer(Protocol):
    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message or raise TransportError. Implementations bound their own latency."""
        ...
