"""SMTP delivery for lead confirmations.

Two messages per lead:
- a confirmation to the visitor (HTML with a plain-text alternative)
- a plain-text internal notification to the team inbox

smtplib is blocking, so sends run in a worker thread.
"""

import asyncio
import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid

from voicelead.config import EmailSettings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 15


class EmailError(Exception):
    """Raised when a message cannot be handed to the SMTP relay."""


@dataclass(frozen=True)
class LeadDetails:
    name: str
    email: str
    phone: str
    organization: str

    @classmethod
    def from_dict(cls, data: dict) -> "LeadDetails":
        return cls(
            name=data.get("name", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            organization=data.get("organization", ""),
        )


# =============================================================================
# Templates
# =============================================================================


def confirmation_subject(lead: LeadDetails, settings: EmailSettings) -> str:
    return (
        f"Strategic Alignment: {settings.company_name} & {lead.organization} "
        f"| Exhibition Follow-up"
    )


def build_confirmation_text(lead: LeadDetails, settings: EmailSettings) -> str:
    company = settings.company_name
    return f"""Dear {lead.name},

Thank you for visiting the {company} booth at the exhibition. It was a pleasure interacting with you and learning about your organization, {lead.organization}.

As discussed, {company} specializes in providing advanced and reliable solutions designed to improve efficiency, performance, and long-term operational value. We are excited about the possibility of working together and helping your organization achieve its goals.

YOUR SHARED DETAILS:
- Name: {lead.name}
- Contact Number: {lead.phone}
- Email: {lead.email}
- Organization: {lead.organization}

Our team will review your requirements and connect with you shortly to provide relevant information, product details, or a personalized demonstration based on your needs.

If you have any immediate questions or would like to schedule a meeting, please feel free to reply to this email.

We sincerely appreciate your time and interest in {company} and look forward to building a successful partnership.

Warm Regards,
{company} Team

Website: {settings.company_website}
Phone: {settings.company_phone}
Address: {settings.company_address}"""


def build_confirmation_html(lead: LeadDetails, settings: EmailSettings) -> str:
    """HTML body. Visitor-supplied values are escaped."""
    e = html.escape
    company = e(settings.company_name)
    name, phone = e(lead.name), e(lead.phone)
    email, org = e(lead.email), e(lead.organization)
    website = e(settings.company_website)

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #f5f5f5;">
  <div style="background-color: white; border-radius: 10px; padding: 40px;">
    <div style="text-align: center; margin-bottom: 30px; padding-bottom: 20px; border-bottom: 3px solid #667eea;">
      <div style="font-size: 32px; font-weight: bold; color: #667eea;">{company.upper()}</div>
      <p style="margin: 0; color: #777;">Advanced HVAC Solutions</p>
    </div>

    <p style="font-size: 18px; color: #555;">Dear <strong>{name}</strong>,</p>

    <p>
      Thank you for visiting the <strong>{company} booth</strong> at the exhibition.
      It was a pleasure interacting with you and learning about your organization,
      <strong>{org}</strong>.
    </p>
    <p>
      As discussed, {company} specializes in providing advanced and reliable solutions
      designed to improve efficiency, performance, and long-term operational value.
    </p>

    <div style="background-color: #f8f9fa; border-left: 4px solid #667eea; padding: 20px; margin: 25px 0; border-radius: 5px;">
      <h2 style="color: #667eea; font-size: 18px; margin-top: 0;">Your Shared Details</h2>
      <p><strong>Name:</strong> {name}</p>
      <p><strong>Contact Number:</strong> {phone}</p>
      <p><strong>Email:</strong> {email}</p>
      <p><strong>Organization:</strong> {org}</p>
    </div>

    <p>
      Our team will review your requirements and connect with you shortly to provide
      relevant information, product details, or a personalized demonstration.
    </p>
    <p>If you have any immediate questions, please feel free to reply to this email.</p>

    <p style="margin-top: 30px; font-style: italic; color: #555;">
      Warm Regards,<br>
      <strong>{company} Team</strong>
    </p>

    <div style="margin-top: 40px; padding-top: 20px; border-top: 2px solid #e0e0e0; text-align: center; color: #777; font-size: 14px;">
      <p><strong>Website:</strong> <a href="{website}" style="color: #667eea;">{website}</a></p>
      <p><strong>Phone:</strong> {e(settings.company_phone)}</p>
      <p><strong>Address:</strong> {e(settings.company_address)}</p>
    </div>
  </div>
</body>
</html>"""


def build_internal_text(lead: LeadDetails) -> str:
    return f"""New Lead from Exhibition Booth!

Customer Details:
- Name: {lead.name}
- Email: {lead.email}
- Phone: {lead.phone}
- Organization: {lead.organization}

Action Required: Follow up within 24 hours."""


# =============================================================================
# Delivery
# =============================================================================


class Mailer:
    """Sends lead emails through the configured SMTP relay.

    `EMAIL_SECURE=true` means implicit TLS (usually port 465); otherwise the
    connection is upgraded with STARTTLS when the server offers it.
    """

    def __init__(self, settings: EmailSettings, smtp_factory=None):
        self.settings = settings
        self._smtp_factory = smtp_factory

    def _connect(self) -> smtplib.SMTP:
        s = self.settings
        if self._smtp_factory is not None:
            return self._smtp_factory(s.host, s.port)
        if s.secure:
            return smtplib.SMTP_SSL(s.host, s.port, timeout=SMTP_TIMEOUT)
        return smtplib.SMTP(s.host, s.port, timeout=SMTP_TIMEOUT)

    def _handshake(self, smtp: smtplib.SMTP) -> None:
        if not self.settings.secure:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
        if self.settings.user:
            smtp.login(self.settings.user, self.settings.password)

    def _send_sync(self, msg: EmailMessage) -> str:
        if not self.settings.host:
            raise EmailError("SMTP host is not configured")
        with self._connect() as smtp:
            self._handshake(smtp)
            smtp.send_message(msg)
        return msg["Message-ID"] or ""

    async def send(self, msg: EmailMessage) -> str:
        try:
            return await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise EmailError(str(e) or e.__class__.__name__) from e

    def verify_sync(self) -> bool:
        """Open and authenticate a connection without sending anything."""
        if not self.settings.host:
            logger.error("Email server verification failed: SMTP host is not configured")
            return False
        try:
            with self._connect() as smtp:
                self._handshake(smtp)
                smtp.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email server verification failed: %s", e)
            return False
        logger.info("Email server is ready to send messages")
        return True

    async def verify(self) -> bool:
        return await asyncio.to_thread(self.verify_sync)

    def _message(self, to: str, subject: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.settings.from_address
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain="voicelead")
        return msg

    async def send_confirmation(self, lead: LeadDetails) -> str:
        msg = self._message(lead.email, confirmation_subject(lead, self.settings))
        msg.set_content(build_confirmation_text(lead, self.settings))
        msg.add_alternative(build_confirmation_html(lead, self.settings), subtype="html")

        message_id = await self.send(msg)
        logger.info("Confirmation email sent: %s", message_id)
        return message_id

    async def send_internal_notification(self, lead: LeadDetails) -> str:
        recipient = self.settings.internal_recipient
        if not recipient:
            raise EmailError("No internal recipient configured")
        msg = self._message(recipient, f"New Lead: {lead.name} from {lead.organization}")
        msg.set_content(build_internal_text(lead))

        message_id = await self.send(msg)
        logger.info("Internal notification sent: %s", message_id)
        return message_id
