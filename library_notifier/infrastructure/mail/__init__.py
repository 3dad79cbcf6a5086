import logging

from ...application.ports.mailer import Mailer
from ...core.config import Settings
from .simulated_mailer import SimulatedMailer
from .smtp_mailer import SmtpMailer

logger = logging.getLogger(__name__)


def build_mailer(settings: Settings) -> Mailer:
    if settings.MAIL_MODE == "smtp" and settings.smtp_configured:
        return SmtpMailer(settings)
    if settings.MAIL_MODE == "smtp":
        logger.warning("MAIL_MODE=smtp but SMTP_HOST is not configured; falling back to simulated delivery")
    return SimulatedMailer()


__all__ = ["build_mailer", "SimulatedMailer", "SmtpMailer"]
