import logging
from collections import deque
from typing import Deque, Tuple

from ...application.ports.mailer import Mailer

logger = logging.getLogger(__name__)


class SimulatedMailer(Mailer):
    """Logs messages instead of delivering them, for development without SMTP."""

    def __init__(self, preview_chars: int = 200, outbox_size: int = 100) -> None:
        self.preview_chars = preview_chars
        # Most recent messages only
        self.outbox: Deque[Tuple[str, str, str]] = deque(maxlen=outbox_size)

    def send(self, to: str, subject: str, body: str) -> None:
        self.outbox.append((to, subject, body))
        preview = body if len(body) <= self.preview_chars else body[: self.preview_chars] + "..."
        logger.info("=== SIMULATED EMAIL SEND ===")
        logger.info(f"To: {to}")
        logger.info(f"Subject: {subject}")
        logger.info(f"Body: {preview}")
