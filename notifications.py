"""
Outbound e-mail through the Resend API.

``EmailSender.send`` never raises: every failure comes back as a failed
``DeliveryOutcome`` so callers can log it and carry on.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import resend
from jinja2 import DictLoader, Environment, TemplateError, TemplateNotFound, select_autoescape

from config import EMAIL_FROM, FRONTEND_URL, RESEND_API_KEY, STORE_NAME

logger = logging.getLogger(__name__)

TEMPLATES = {
    "orderConfirmation": """\
<h2>Thank you for your order, {{ order.shipping_address.name }}!</h2>
<p>Order <strong>{{ order.order_number }}</strong> placed on {{ order.created_at.strftime('%Y-%m-%d %H:%M') }}.</p>
<table cellpadding="6">
  <tr><th align="left">Item</th><th>Qty</th><th align="right">Price</th><th align="right">Subtotal</th></tr>
  {% for item in order["items"] %}
  <tr>
    <td>{{ item.product_snapshot.title }}</td>
    <td align="center">{{ item.quantity }}</td>
    <td align="right">{{ "%.2f"|format(item.price) }}</td>
    <td align="right">{{ "%.2f"|format(item.subtotal) }}</td>
  </tr>
  {% endfor %}
</table>
<p>Subtotal: {{ "%.2f"|format(order.subtotal) }}<br>
Tax: {{ "%.2f"|format(order.tax) }}<br>
Shipping: {{ "%.2f"|format(order.shipping_cost) }}<br>
<strong>Total: {{ "%.2f"|format(order.total) }}</strong></p>
<p>Payment is by bank transfer. We will confirm shipping once payment is received.</p>
<p>Ship to: {{ order.shipping_address.address }}, {{ order.shipping_address.state }}, {{ order.shipping_address.country }}</p>
<p>{{ store_name }}</p>
""",
    "emailVerification": """\
<h2>Welcome to {{ store_name }}, {{ name }}!</h2>
<p>Please verify your email address by clicking the link below:</p>
<a href="{{ verification_link }}">Verify Email</a>
<p>If you didn't create an account, please ignore this email.</p>
""",
    "passwordReset": """\
<h2>Password Reset Request</h2>
<p>Hello {{ name }},</p>
<p>You requested a password reset. Click the link below to reset your password:</p>
<a href="{{ reset_link }}">Reset Password</a>
<p>This link will expire in {{ expires_minutes }} minutes.</p>
<p>If you didn't request this, please ignore this email.</p>
""",
}

_env = Environment(loader=DictLoader(TEMPLATES), autoescape=select_autoescape(default=True))


@dataclass(frozen=True)
class DeliveryOutcome:
    sent: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    @classmethod
    def ok(cls, message_id: str = None) -> "DeliveryOutcome":
        return cls(sent=True, message_id=message_id)

    @classmethod
    def failed(cls, reason: str) -> "DeliveryOutcome":
        return cls(sent=False, error=reason)


def render(template_name: str, data: Dict[str, Any]) -> str:
    return _env.get_template(template_name).render(store_name=STORE_NAME, frontend_url=FRONTEND_URL, **data)


class EmailSender:
    def __init__(self, api_key: str = RESEND_API_KEY, sender: str = EMAIL_FROM):
        self.api_key = api_key
        self.sender = sender

    def send(self, to_email: str, subject: str, template_name: str, data: Dict[str, Any]) -> DeliveryOutcome:
        if not self.api_key:
            return DeliveryOutcome.failed("Resend API key is not configured.")
        try:
            html = render(template_name, data)
        except TemplateNotFound:
            return DeliveryOutcome.failed(f"Unknown email template: {template_name}")
        except TemplateError as exc:
            logger.warning("Could not render %s email: %s", template_name, exc)
            return DeliveryOutcome.failed(f"Could not render {template_name}: {exc}")

        payload = {"from": self.sender, "to": [to_email], "subject": subject, "html": html}
        resend.api_key = self.api_key
        try:
            response = resend.Emails.send(payload)
        except Exception as exc:
            return DeliveryOutcome.failed(str(exc))

        message_id = response.get("id") if isinstance(response, dict) else None
        if not message_id:
            return DeliveryOutcome.failed(str(response))
        logger.info("Sent %s email to %s (%s)", template_name, to_email, message_id)
        return DeliveryOutcome.ok(message_id)
