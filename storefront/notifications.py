"""
Order confirmation emails.

Senders render the same HTML receipt and differ only in transport: a log-only
sender for development, SMTP, and Amazon SES.
"""
import html
import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Optional

import boto3

from storefront.config import Config
from storefront.models import Order

logger = logging.getLogger(__name__)


def render_order_confirmation(order: Order) -> str:
    """Render the HTML receipt for an order"""
    items_html = "".join(
        f"<li>{html.escape(item.name)} - Size: {item.size.value} - "
        f"Qty: {item.quantity} - Price: {item.price}</li>"
        for item in order.items
    )
    return (
        "<h3>Order Confirmation</h3>"
        f"<p>Order ID: {order.id}</p>"
        f"<p>Order Date: {order.created_at.isoformat()}</p>"
        f"<ul>{items_html}</ul>"
        f"<p>Total: {order.total}</p>"
        "<p>Thank you for shopping with us!</p>"
    )


def confirmation_subject(order: Order) -> str:
    return f"Order Confirmation - {order.id}"


class EmailSender:
    """Base sender; subclasses implement ``deliver``"""

    def __init__(self, from_email: Optional[str] = None):
        self.from_email = from_email or Config.FROM_EMAIL

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        raise NotImplementedError

    def send_order_confirmation(self, email: str, order: Order) -> None:
        self.deliver(email, confirmation_subject(order), render_order_confirmation(order))
        logger.info("Order confirmation email sent. order_id=%s", order.id)


class LogEmailSender(EmailSender):
    """Development sender that only logs the message"""

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        logger.info("Email (not sent): subject=%r from=%s body_length=%d", subject, self.from_email, len(html_body))


class SmtpEmailSender(EmailSender):
    """SMTP sender: STARTTLS when configured, implicit SSL otherwise"""

    def __init__(
        self,
        host: str,
        port: int,
        user: Optional[str],
        password: Optional[str],
        use_starttls: bool = True,
        from_email: Optional[str] = None,
        timeout: int = 15,
    ):
        super().__init__(from_email)
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_starttls = use_starttls
        self.timeout = timeout

    def _message(self, to: str, subject: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["To"] = to
        msg["From"] = self.from_email
        msg["Subject"] = subject
        msg.set_content("View this email as HTML to see your order details.")
        msg.add_alternative(html_body, subtype="html")
        return msg

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        msg = self._message(to, subject, html_body)
        context = ssl.create_default_context()
        if self.use_starttls:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                server.starttls(context=context)
                server.ehlo()
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout) as server:
                if self.user:
                    server.login(self.user, self.password)
                server.send_message(msg)


class SesEmailSender(EmailSender):
    """Amazon SES sender"""

    def __init__(self, client=None, from_email: Optional[str] = None):
        super().__init__(from_email)
        self.client = client or boto3.client("ses", region_name=Config.REGION)

    def deliver(self, to: str, subject: str, html_body: str) -> None:
        self.client.send_email(
            Source=self.from_email,
            Destination={"ToAddresses": [to]},
            Message={
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": {"Html": {"Data": html_body, "Charset": "UTF-8"}},
            },
        )


def build_email_sender() -> EmailSender:
    """Pick the sender configured by EMAIL_BACKEND"""
    backend = Config.EMAIL_BACKEND.lower()
    if backend == "smtp":
        if not Config.SMTP_HOST:
            raise RuntimeError("EMAIL_BACKEND=smtp requires EMAIL_HOST")
        return SmtpEmailSender(
            host=Config.SMTP_HOST,
            port=Config.SMTP_PORT,
            user=Config.SMTP_USER,
            password=Config.SMTP_PASSWORD,
            use_starttls=Config.SMTP_USE_STARTTLS,
        )
    if backend == "ses":
        return SesEmailSender()
    return LogEmailSender()
