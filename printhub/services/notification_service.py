"""
Outbound email.

Delivery is best effort: every send returns True/False and never raises,
so a mail outage never affects the order it is about.
"""
import smtplib
from email.message import EmailMessage
from typing import Any, Mapping, Optional

from printhub.logger import get_logger

logger = get_logger(__name__)

SUBJECT_PREFIX = "PrintHub"


class NotificationService:

    def __init__(self, config: Mapping[str, Any]):
        self.server = config.get("MAIL_SERVER")
        self.port = int(config.get("MAIL_PORT") or 587)
        self.username = config.get("MAIL_USERNAME")
        self.password = config.get("MAIL_PASSWORD")
        self.use_tls = bool(config.get("MAIL_USE_TLS", True))
        self.sender = config.get("MAIL_SENDER") or self.username
        self.enabled = bool(config.get("MAIL_ENABLED", False))

    def _send(self, recipient: Optional[str], subject: str, body: str) -> bool:
        if not self.enabled or not self.server:
            logger.info(f"Mail disabled, skipped '{subject}' to {recipient}")
            return False
        if not recipient:
            logger.warning(f"No recipient for '{subject}'")
            return False

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = recipient
        msg["Subject"] = f"{SUBJECT_PREFIX} - {subject}"
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.server, self.port, timeout=10) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send '{subject}' to {recipient}: {e}")
            return False

        logger.info(f"Email '{subject}' sent to {recipient}")
        return True

    def send_order_confirmation(self, recipient: str, name: str, order_id: str, amount: Any) -> bool:
        body = (
            f"Hello {name}!\n\n"
            f"Your order has been placed.\n\n"
            f"Order ID: {order_id}\n"
            f"Total Amount: {float(amount):.2f}\n\n"
            f"Keep your Order ID safe, you will need it at the counter.\n"
            f"We will email you again when your prints are ready.\n\n"
            f"The PrintHub Team"
        )
        return self._send(recipient, "Order Confirmation", body)

    def send_order_ready(self, recipient: str, name: str, order_id: str) -> bool:
        body = (
            f"Hello {name}!\n\n"
            f"Your order {order_id} is ready for collection.\n"
            f"Please bring your Order ID to the counter.\n\n"
            f"The PrintHub Team"
        )
        return self._send(recipient, "Order Ready for Pickup", body)
