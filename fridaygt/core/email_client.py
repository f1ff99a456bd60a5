# fridaygt/core/email_client.py
"""
Plain SMTP delivery for account emails (magic links, approvals, removals).

Configuration comes from the environment, not from Settings, so the API
can boot without mail credentials:

    SMTP_HOST=smtp.example.com
    SMTP_PORT=587                  # 465 with SMTP_USE_SSL=true
    SMTP_USERNAME=noreply@fridaygt.example
    SMTP_PASSWORD=...
    SMTP_FROM_EMAIL=noreply@fridaygt.example   # defaults to SMTP_USERNAME
    SMTP_FROM_NAME=FridayGT
    SMTP_USE_TLS=true
    SMTP_USE_SSL=false
"""
import logging
import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "y", "on"}
SMTP_TIMEOUT_SECONDS = 30


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @classmethod
    def from_env(cls) -> "SmtpConfig":
        username = os.getenv("SMTP_USERNAME")
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "587")),
            username=username,
            password=os.getenv("SMTP_PASSWORD"),
            from_email=os.getenv("SMTP_FROM_EMAIL") or username or "",
            from_name=os.getenv("SMTP_FROM_NAME", "FridayGT"),
            use_tls=_env_flag("SMTP_USE_TLS", True),
            use_ssl=_env_flag("SMTP_USE_SSL", False),
        )

    @property
    def complete(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def sender(self) -> str:
        if self.from_email:
            return f"{self.from_name} <{self.from_email}>"
        return self.username or ""


def _connect(config: SmtpConfig) -> smtplib.SMTP:
    # Implicit SSL takes precedence over STARTTLS.
    if config.use_ssl:
        return smtplib.SMTP_SSL(config.host, config.port, timeout=SMTP_TIMEOUT_SECONDS)
    server = smtplib.SMTP(config.host, config.port, timeout=SMTP_TIMEOUT_SECONDS)
    if config.use_tls:
        server.starttls()
    return server


def build_message(
    config: SmtpConfig,
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = config.sender
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")
    return msg


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    config: SmtpConfig | None = None,
) -> None:
    """
    Send one message to one recipient.

    Raises:
        RuntimeError: SMTP_HOST / SMTP_USERNAME / SMTP_PASSWORD missing.
        smtplib.SMTPException, OSError: connection or delivery failed.
    """
    config = config or SmtpConfig.from_env()
    if not config.complete:
        raise RuntimeError("SMTP is not configured (SMTP_HOST, SMTP_USERNAME, SMTP_PASSWORD)")

    msg = build_message(config, to_email, subject, text_body, html_body)
    server = _connect(config)
    try:
        server.login(config.username, config.password)
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException as exc:
            # Message already accepted; only the teardown failed.
            logger.debug("SMTP quit failed: %s", exc)
