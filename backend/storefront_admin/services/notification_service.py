"""
Notification Service - order confirmations by email (SMTP) and SMS (Twilio)
"""
import html
import asyncio
import smtplib
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from storefront_admin.core.config import settings
from storefront_admin.core.errors import IntegrationError, IntegrationNotConfigured
from storefront_admin.connectors.twilio_connector import TwilioConnector
from storefront_admin.domain.order import Order

logger = logging.getLogger(__name__)


def _money(amount, currency: str) -> str:
    return f"{float(amount):.2f} {currency}"


def render_confirmation_html(order: Order, signature: str) -> str:
    """HTML body of the order confirmation email"""
    customer = order.customer
    esc = html.escape
    items = "".join(
        f"<li>{esc(item.title)} - Quantity: {item.quantity} - Price: {_money(item.price, order.currency)}</li>"
        for item in order.line_items
    )

    return f"""
        <h1>Order Confirmation</h1>
        <p>Dear {esc(customer.full_name if customer else 'customer')},</p>
        <p>Thank you for your order! Here are the details:</p>
        <ul>
          <li>Order Number: #{esc(order.order_number)}</li>
          <li>Date: {order.created_at.date().isoformat()}</li>
          <li>Total: {_money(order.total_price, order.currency)}</li>
          <li>Payment Status: {esc(order.payment_status)}</li>
          <li>Fulfillment Status: {esc(order.fulfillment_status)}</li>
        </ul>
        <h2>Items:</h2>
        <ul>{items}</ul>
        <p>We will notify you once your order has shipped.</p>
        <p>Best regards,<br>{esc(signature)}</p>
    """


def render_confirmation_sms(order: Order, signature: str) -> str:
    """Plain-text body of the order confirmation SMS"""
    customer = order.customer
    lines = [
        f"Order Confirmation #{order.order_number}",
        f"Dear {customer.full_name if customer else 'customer'},",
        "Thank you for your order!",
        f"- Date: {order.created_at.date().isoformat()}",
        f"- Total: {_money(order.total_price, order.currency)}",
        f"- Payment Status: {order.payment_status}",
        f"- Fulfillment Status: {order.fulfillment_status}",
        "Items:",
    ]
    lines.extend(
        f"- {item.title} (Qty: {item.quantity}, Price: {_money(item.price, order.currency)})"
        for item in order.line_items
    )
    lines.append("We will notify you once your order has shipped.")
    lines.append(signature)
    return "\n".join(lines)


class NotificationService:
    """
    Args:
        sms: Twilio connector, or None when SMS is not configured
    """

    def __init__(self, sms: Optional[TwilioConnector] = None):
        self.sms = sms
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.email_user = settings.EMAIL_USER
        self.email_pass = settings.EMAIL_PASS
        self.signature = settings.STORE_DISPLAY_NAME

    def _send_email(self, to: str, subject: str, html_body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.email_user
        msg["To"] = to
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            server.starttls()
            server.login(self.email_user, self.email_pass)
            server.sendmail(self.email_user, [to], msg.as_string())

    async def send_order_confirmation(self, order: Order) -> None:
        """Email the order confirmation to the customer (order must carry an email)"""
        if not self.email_user or not self.email_pass:
            raise IntegrationNotConfigured("Email provider not configured")

        subject = f"Order Confirmation - #{order.order_number}"
        body = render_confirmation_html(order, self.signature)

        try:
            await asyncio.to_thread(self._send_email, order.customer.email, subject, body)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Confirmation email for order {order.id} failed: {e}")
            raise IntegrationError("Failed to send confirmation email", detail=str(e))

        logger.info(f"Confirmation email sent for order {order.order_number}")

    async def send_order_sms(self, order: Order) -> None:
        """Text the order confirmation to the customer (order must carry a phone)"""
        if self.sms is None:
            raise IntegrationNotConfigured("SMS provider not configured")

        await self.sms.send_sms(order.customer.phone, render_confirmation_sms(order, self.signature))
        logger.info(f"Confirmation SMS sent for order {order.order_number}")
