"""Email service for application status notifications."""
import logging
from dataclasses import dataclass
from html import escape
from typing import Optional

from portal.config import settings

logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    subject: str
    text_content: str
    html_content: str


def generate_application_status_email(
    recipient_name: str,
    status: str,
    reason: Optional[str] = None
) -> EmailMessage:
    """Build the approve/deny email for an applicant."""
    approved = status == "approved"
    verdict = "Approved" if approved else "Denied"
    header_color = "#10b981" if approved else "#ef4444"
    closing = (
        "Congratulations! You can now join the server."
        if approved
        else "If you have any questions, please contact an administrator."
    )
    reason_html = (
        f"""
                    <div style="background: white; padding: 15px; border-radius: 4px; margin: 15px 0;">
                        <strong>Reviewer Notes:</strong><br>
                        {escape(reason)}
                    </div>"""
        if reason else ""
    )

    html_content = f"""
        <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <div style="background: {header_color}; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
                        <h1>Application {verdict}</h1>
                    </div>
                    <div style="background: #f9fafb; padding: 20px; border-radius: 0 0 8px 8px;">
                        <p>Hello {escape(recipient_name)},</p>
                        <p>Your application has been <strong>{status}</strong>.</p>{reason_html}
                        <p>{closing}</p>
                        <p>Best regards,<br>{settings.server_name} Administration Team</p>
                    </div>
                </div>
            </body>
        </html>
        """

    text_parts = [
        f"Hello {recipient_name},",
        f"Your application has been {status}.",
    ]
    if reason:
        text_parts.append(f"Reviewer Notes: {reason}")
    text_parts += [closing, f"Best regards,\n{settings.server_name} Administration Team"]

    return EmailMessage(
        subject=f"Your Application Has Been {verdict}",
        text_content="\n\n".join(text_parts),
        html_content=html_content,
    )


class EmailService:
    """Handles email sending in dev, prod and disabled modes."""

    def __init__(self, mode: Optional[str] = None):
        self.mode = mode or settings.email_mode
        if self.mode == "prod":
            try:
                from sendgrid import SendGridAPIClient
                self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
            except ImportError:
                logger.error("SendGrid not installed but email_mode is 'prod'")
                raise
        else:
            self.sendgrid_client = None

    async def send_application_status_email(
        self,
        email: str,
        recipient_name: str,
        status: str,
        reason: Optional[str] = None
    ) -> bool:
        """Tell an applicant their application was approved or denied."""
        message = generate_application_status_email(recipient_name, status, reason)
        return await self._send_email(email, message.subject, message.text_content, message.html_content)

    async def _send_email(self, to_email: str, subject: str, text_content: str, html_content: str) -> bool:
        """Internal method to send email via SendGrid or dev console."""
        if self.mode == "disabled":
            logger.info(f"[EMAIL DISABLED] Would send to {to_email}: {subject}")
            return False

        if self.mode == "dev":
            logger.info(f"[DEV MODE] Email to {to_email}: {subject}")
            logger.info(f"[DEV MODE] Content:\n{text_content}")
            return True

        try:
            from sendgrid.helpers.mail import Mail, Email, To, Content

            mail = Mail(
                from_email=Email(settings.email_from, settings.server_name),
                to_emails=To(to_email),
                subject=subject,
                plain_text_content=Content("text/plain", text_content),
                html_content=Content("text/html", html_content)
            )

            response = self.sendgrid_client.send(mail)

            if 200 <= response.status_code < 300:
                logger.info(f"Email sent to {to_email}: {subject}")
                return True
            else:
                logger.error(f"Failed to send email to {to_email}: {response.status_code}")
                return False
        except Exception as e:
            logger.error(f"Error sending email to {to_email}: {str(e)}")
            return False


# Global email service instance
email_service = EmailService()


def get_email_service() -> EmailService:
    """Dependency that provides the email collaborator."""
    return email_service
