# fridaygt/services/notification_service.py
import logging
import smtplib

from fridaygt.core import email_client
from fridaygt.core.config import get_settings
from fridaygt.core.log_utils import mask_email

logger = logging.getLogger(__name__)
settings = get_settings()


class NotificationService:
    """
    Outbound account emails.

    Delivery is best-effort: a failed send is logged and never turns a
    successful sign-in, approval or deletion into an error response.
    """

    def __init__(self, sender=email_client.send_email):
        self._send = sender

    def _deliver(self, to_email: str, subject: str, text_body: str) -> bool:
        try:
            self._send(to_email=to_email, subject=subject, text_body=text_body)
            return True
        except (RuntimeError, smtplib.SMTPException, OSError) as exc:
            logger.warning(
                "Email '%s' to %s not sent: %s", subject, mask_email(to_email), exc
            )
            return False

    def send_magic_link(self, to_email: str, link: str) -> bool:
        text = (
            "Sign in to FridayGT\n\n"
            f"Click the link below to sign in:\n{link}\n\n"
            f"This link expires in {settings.MAGIC_LINK_TTL_MINUTES} minutes. "
            "If you did not request it you can ignore this email."
        )
        return self._deliver(to_email, "Verify your email - FridayGT", text)

    def send_approval(self, to_email: str, approved: bool, reason: str | None = None) -> bool:
        if approved:
            subject = "Account Approved - FridayGT"
            text = (
                "Your FridayGT account has been approved.\n\n"
                f"Sign in at {settings.APP_URL} and set your gamertag to get started."
            )
        else:
            subject = "Account Request Denied - FridayGT"
            text = "Your request to join FridayGT was not approved."
            if reason:
                text += f"\n\nReason: {reason}"
        return self._deliver(to_email, subject, text)

    def send_user_removed(
        self,
        admin_emails: list[str],
        removed_email: str,
        removed_by: str,
    ) -> int:
        """Tell the other admins a user was deleted. Returns emails sent."""
        text = (
            f"The account {removed_email} was removed from FridayGT by {removed_by}."
        )
        sent = 0
        for admin_email in admin_emails:
            if self._deliver(admin_email, "User Account Removed - FridayGT", text):
                sent += 1
        return sent
