import html
import logging
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from core.config import settings

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    WORKSPACE_INVITATION = "workspace_invitation"
    INVITATION_CANCELLED = "invitation_cancelled"


class EmailService:
    """
    Notifier for ProgPath.
    Sends invitation-related emails via SendGrid; failures are logged here and
    never reach the caller.
    """

    def __init__(self, api_key: Optional[str] = None, sender_email: Optional[str] = None):
        self.sendgrid_api_key = api_key if api_key is not None else settings.SENDGRID_API_KEY
        self.sender_email = sender_email if sender_email is not None else settings.MAIL_FROM

        self.enabled = bool(self.sendgrid_api_key and self.sender_email)
        if not self.enabled:
            logger.warning("📧 Email service not configured. Missing SENDGRID_API_KEY or MAIL_FROM.")
        else:
            logger.info(f"📧 Email service configured and ready. Sender: {self.sender_email}")

    # ============================================================
    # ✅ Templates
    # ============================================================
    def _workspace_link(self) -> str:
        return f"{settings.FRONTEND_URL.rstrip('/')}/workspaces?invitation=1"

    def _render(self, kind: NotificationKind, payload: Dict) -> Tuple[str, str]:
        title = payload.get("workspace_title", "a workspace")
        # user-supplied values are escaped for the HTML body only
        workspace_title = html.escape(title)
        sender = html.escape(payload.get("sender", "Admin"))

        if kind == NotificationKind.WORKSPACE_INVITATION:
            link = self._workspace_link()
            subject = f"Invitation to Collaborate on {title}"
            html_content = f"""
            <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <p>Hi there,</p>
                <p>You have been invited by <strong>{sender}</strong> to collaborate on the
                workspace <strong>{workspace_title}</strong> on ProgPath.</p>
                <p>Please click the button below to join and start collaborating:</p>
                <p style="text-align: center; margin: 20px 0;">
                    <a href="{link}" style="
                        background-color: green;
                        color: white;
                        padding: 10px 20px;
                        text-decoration: none;
                        border-radius: 5px;
                        display: inline-block;
                    ">Join Workspace</a>
                </p>
                <p>The ProgPath Team</p>
            </div>
            """
            return subject, html_content

        subject = f"Invitation to {title} was withdrawn"
        html_content = f"""
        <div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <p>Hi there,</p>
            <p>The invitation from <strong>{sender}</strong> to collaborate on
            <strong>{workspace_title}</strong> has been cancelled.</p>
            <p>The ProgPath Team</p>
        </div>
        """
        return subject, html_content

    # ============================================================
    # ✅ Send (synchronous for BackgroundTasks)
    # ============================================================
    def send(self, kind: NotificationKind, recipients: Iterable[str], payload: Dict) -> bool:
        """Send one email per recipient. Returns False if any delivery failed."""
        kind = NotificationKind(kind)
        subject, html_content = self._render(kind, payload)
        delivered = True

        for to_email in recipients:
            if not self.enabled:
                # Development fallback (no SendGrid setup)
                logger.info(f"📨 [Mock Email] {kind.value} To: {to_email} | Subject: {subject}")
                continue

            try:
                message = Mail(
                    from_email=self.sender_email,
                    to_emails=to_email,
                    subject=subject,
                    html_content=html_content,
                )
                sg = SendGridAPIClient(self.sendgrid_api_key)
                response = sg.send(message)
                logger.info(f"✅ {kind.value} email sent to {to_email}. Status: {response.status_code}")
            except Exception as e:
                logger.exception("❌ Failed to send %s email to %s: %s", kind.value, to_email, e)
                delivered = False

        return delivered


# ============================================================
# ✅ Global instance for app-wide import
# ============================================================
email_service = EmailService()
