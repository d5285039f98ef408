"""
Email Service
Message relay used for certificate delivery and organizer broadcasts.

The relay is built once at startup and passed to the dispatch service, so
tests can substitute their own implementation.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from pathlib import Path
from typing import List, Optional

import aiosmtplib

from certicraft.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


@dataclass
class Attachment:
    filename: str
    path: str


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)


@dataclass
class SendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchResult:
    """
    Chunk-level outcome.

    accepted is True when the relay took the chunk; results holds the
    per-message outcomes where the relay reports them.
    """
    accepted: bool
    error: Optional[str] = None
    results: List[SendResult] = field(default_factory=list)


class Throttle:
    """Fixed minimum spacing between consecutive submissions"""

    def __init__(self, interval: float):
        self.interval = interval
        self._last: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> None:
        async with self._lock:
            if self._last is not None and self.interval > 0:
                remaining = self.interval - (time.monotonic() - self._last)
                if remaining > 0:
                    await asyncio.sleep(remaining)
            self._last = time.monotonic()


class EmailRelay:
    """Relay contract: send one message, or a chunk of messages"""

    max_batch_size: int = 100

    def __init__(self, send_interval: float = 0.0):
        self.throttle = Throttle(send_interval)

    def is_configured(self) -> bool:
        return True

    async def deliver(self, message: OutgoingEmail) -> SendResult:
        raise NotImplementedError

    async def send(self, message: OutgoingEmail) -> SendResult:
        await self.throttle.wait()
        try:
            return await self.deliver(message)
        except Exception as e:
            logger.error("Email sending failed for %s: %s", message.to, e)
            return SendResult(success=False, error=str(e))

    async def send_batch(self, messages: List[OutgoingEmail]) -> BatchResult:
        """
        Send a chunk one message at a time.

        The chunk counts as accepted when at least one message went out.
        """
        results = [await self.send(message) for message in messages]
        failures = [r for r in results if not r.success]
        if failures:
            logger.warning("Batch completed with %d of %d failures", len(failures), len(results))
        if results and len(failures) == len(results):
            return BatchResult(accepted=False, error="All emails failed to send.", results=results)
        return BatchResult(accepted=True, results=results)


class SmtpRelay(EmailRelay):
    """SMTP delivery via aiosmtplib"""

    def __init__(self, config: Optional[Settings] = None):
        self.config = config or default_settings
        super().__init__(self.config.MAIL_SEND_INTERVAL_SECONDS)
        self.max_batch_size = self.config.MAIL_BATCH_SIZE

    def is_configured(self) -> bool:
        return bool(self.config.SMTP_HOST and self.config.SMTP_USER and self.config.SMTP_PASSWORD)

    @property
    def from_address(self) -> str:
        return self.config.EMAIL_FROM or f'"{self.config.APP_NAME}" <{self.config.SMTP_USER}>'

    def build_mime(self, message: OutgoingEmail) -> MIMEMultipart:
        mime = MIMEMultipart("mixed")
        mime["Subject"] = message.subject
        mime["From"] = self.from_address
        mime["To"] = message.to
        mime["Message-ID"] = make_msgid()

        body = MIMEMultipart("alternative")
        if message.text:
            body.attach(MIMEText(message.text, "plain"))
        body.attach(MIMEText(message.html, "html"))
        mime.attach(body)

        for attachment in message.attachments:
            path = Path(attachment.path)
            if not path.is_file():
                logger.warning("Attachment %s missing, sending without it", attachment.path)
                continue
            part = MIMEApplication(path.read_bytes(), Name=attachment.filename)
            part["Content-Disposition"] = f'attachment; filename="{attachment.filename}"'
            mime.attach(part)

        return mime

    async def deliver(self, message: OutgoingEmail) -> SendResult:
        mime = self.build_mime(message)
        logger.info("Sending email to %s via %s:%s", message.to, self.config.SMTP_HOST, self.config.SMTP_PORT)
        await aiosmtplib.send(
            mime,
            hostname=self.config.SMTP_HOST,
            port=self.config.SMTP_PORT,
            username=self.config.SMTP_USER,
            password=self.config.SMTP_PASSWORD,
            start_tls=self.config.SMTP_START_TLS,
            timeout=self.config.SMTP_TIMEOUT_SECONDS,
        )
        return SendResult(success=True, message_id=mime["Message-ID"])


class ConsoleRelay(EmailRelay):
    """Development relay: logs messages instead of sending them"""

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        super().__init__(0.0)
        self.max_batch_size = config.MAIL_BATCH_SIZE

    async def deliver(self, message: OutgoingEmail) -> SendResult:
        logger.info(
            "EMAIL (console) to=%s subject=%r attachments=%s",
            message.to, message.subject, [a.filename for a in message.attachments]
        )
        return SendResult(success=True, message_id=make_msgid())


def build_relay(config: Optional[Settings] = None) -> EmailRelay:
    config = config or default_settings
    if config.MAIL_BACKEND == "console":
        return ConsoleRelay(config)
    relay = SmtpRelay(config)
    if not relay.is_configured():
        logger.error("Email credentials (SMTP_USER/SMTP_PASSWORD) are missing; sending will fail")
    return relay
