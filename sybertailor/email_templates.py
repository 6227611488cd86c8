"""
MJML Email Templates
All email templates using MJML for responsive, cross-client compatibility
"""

from html import escape
from typing import Optional

from .config import CLIENT_URL

# Brand colors - Indigo/Gold scheme
THEME = {
    "primary": "#4338ca",
    "primary_dark": "#3730a3",
    "primary_light": "#e0e7ff",
    "accent": "#d4a017",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "success": "#16a34a",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}

LOGO_URL = f"{CLIENT_URL}/logo.png"


def format_naira(amount) -> str:
    try:
        return f"₦{float(amount):,.2f}"
    except (TypeError, ValueError):
        return "₦0.00"


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    is_user_email: bool = False,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    footer_notice = ""
    if is_user_email:
        footer_notice = """
        <mj-text align="center" font-size="12px" color="#94a3b8" padding="12px 0 0 0">
          You're receiving this because you have an account with SyberTailor.
        </mj-text>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <!-- Header with Logo -->
        <mj-section background-color="#ffffff" padding="32px 20px">
          <mj-column>
            <mj-image
              src="{LOGO_URL}"
              alt="SyberTailor"
              width="140px"
              href="{CLIENT_URL}"
              padding="0" />
          </mj-column>
        </mj-section>

        <!-- Main Content -->
        <mj-section background-color="#ffffff" padding="0 40px 48px 40px">
          <mj-column>
            <mj-divider border-color="{THEME['border']}" border-width="1px" padding="0 0 32px 0" />
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <!-- Footer -->
        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              © SyberTailor. Bespoke tailoring, delivered.
            </mj-text>
            {footer_notice}
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _order_summary_table(order_id: int, style_title: str, fabric_name: str, total_price) -> str:
    return f"""
    <mj-table padding="0 0 24px 0" font-size="15px">
      <tr style="border-bottom:1px solid {THEME['border']};">
        <td style="padding: 8px 0; color: {THEME['text_muted']};">Order</td>
        <td style="padding: 8px 0; text-align: right;">#{order_id}</td>
      </tr>
      <tr style="border-bottom:1px solid {THEME['border']};">
        <td style="padding: 8px 0; color: {THEME['text_muted']};">Style</td>
        <td style="padding: 8px 0; text-align: right;">{escape(style_title or '-')}</td>
      </tr>
      <tr style="border-bottom:1px solid {THEME['border']};">
        <td style="padding: 8px 0; color: {THEME['text_muted']};">Fabric</td>
        <td style="padding: 8px 0; text-align: right;">{escape(fabric_name or '-')}</td>
      </tr>
      <tr>
        <td style="padding: 8px 0; font-weight: 600;">Total</td>
        <td style="padding: 8px 0; text-align: right; font-weight: 600;">{format_naira(total_price)}</td>
      </tr>
    </mj-table>
    """


# ============================================
# Account emails
# ============================================


def email_verification_template(user_name: str, code: str) -> str:
    """Six digit verification code"""
    content = f"""
    <mj-text>Hi {escape(user_name)},</mj-text>
    <mj-text>Use the code below to verify your e-mail address. It expires in 15 minutes.</mj-text>
    <mj-text align="center" font-size="32px" font-weight="700" letter-spacing="8px" color="{THEME['primary']}" padding="16px 0">
      {code}
    </mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't create a SyberTailor account, you can ignore this e-mail.
    </mj-text>
    """
    return get_base_template(
        title="Verify your e-mail",
        preview_text=f"Your verification code is {code}",
        content_sections=content,
        is_user_email=True,
    )


def password_reset_template(user_name: str, reset_link: str) -> str:
    content = f"""
    <mj-text>Hi {escape(user_name)},</mj-text>
    <mj-text>We received a request to reset your password. The link below is valid for one hour.</mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      If you didn't ask for this, no action is needed.
    </mj-text>
    """
    return get_base_template(
        title="Reset your password",
        preview_text="Reset your SyberTailor password",
        content_sections=content,
        cta_url=reset_link,
        cta_label="Reset Password",
        is_user_email=True,
    )


# ============================================
# Order emails
# ============================================


def order_confirmation_template(
    customer_name: str, order_id: int, style_title: str, fabric_name: str, total_price
) -> str:
    """Customer copy, sent with the PDF receipt attached"""
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text>Thank you for your order! We've received it and it's waiting for payment.
      Your receipt is attached to this e-mail.</mj-text>
    {_order_summary_table(order_id, style_title, fabric_name, total_price)}
    """
    return get_base_template(
        title="Order received",
        preview_text=f"We've received order #{order_id}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/orders/{order_id}",
        cta_label="View Order",
        is_user_email=True,
    )


def admin_new_order_template(
    customer_name: str,
    customer_email: str,
    order_id: int,
    style_title: str,
    fabric_name: str,
    total_price,
    order_type: str,
) -> str:
    content = f"""
    <mj-text>A new <strong>{escape(order_type)}</strong> order was placed by
      {escape(customer_name)} ({escape(customer_email or 'no e-mail')}).</mj-text>
    {_order_summary_table(order_id, style_title, fabric_name, total_price)}
    """
    return get_base_template(
        title="New order placed",
        preview_text=f"Order #{order_id} from {customer_name}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/admin/orders/{order_id}",
        cta_label="Open in Dashboard",
    )


def order_status_update_template(customer_name: str, order_id: int, status: str) -> str:
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text>The status of your order <strong>#{order_id}</strong> is now
      <strong style="color:{THEME['primary']};">{escape(status)}</strong>.</mj-text>
    """
    return get_base_template(
        title="Order status updated",
        preview_text=f"Order #{order_id} is now {status}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/orders/{order_id}",
        cta_label="View Order",
        is_user_email=True,
    )


def payment_status_update_template(customer_name: str, order_id: int, payment_status: str) -> str:
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text>The payment status of your order <strong>#{order_id}</strong> changed to
      <strong>{escape(payment_status)}</strong>.</mj-text>
    """
    return get_base_template(
        title="Payment status updated",
        preview_text=f"Payment for order #{order_id}: {payment_status}",
        content_sections=content,
        is_user_email=True,
    )


def payment_confirmed_template(
    customer_name: str, order_id: int, amount, expected_delivery: Optional[str]
) -> str:
    delivery_line = ""
    if expected_delivery:
        delivery_line = f"<mj-text>Expected delivery: <strong>{expected_delivery}</strong></mj-text>"
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text>We've received your payment of <strong>{format_naira(amount)}</strong> for order
      <strong>#{order_id}</strong>. Our tailors are getting to work.</mj-text>
    {delivery_line}
    """
    return get_base_template(
        title="Payment confirmed",
        preview_text=f"Payment received for order #{order_id}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/orders/{order_id}",
        cta_label="Track Order",
        is_user_email=True,
    )


def order_progress_template(customer_name: str, order_id: int, title: str, message: str) -> str:
    content = f"""
    <mj-text>Hi {escape(customer_name)},</mj-text>
    <mj-text>{escape(message)}</mj-text>
    """
    return get_base_template(
        title=title,
        preview_text=f"Update on order #{order_id}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/orders/{order_id}",
        cta_label="Track Order",
        is_user_email=True,
    )


def admin_delivery_reminder_template(
    order_id: int,
    customer_name: str,
    customer_email: str,
    style_title: str,
    expected_delivery: str,
    days_before: int,
) -> str:
    """Sent to the shop 3 days and 1 day before an order is due"""
    when = "tomorrow" if days_before == 1 else f"in {days_before} days"
    content = f"""
    <mj-text>Order <strong>#{order_id}</strong> is due for delivery <strong>{when}</strong>
      ({expected_delivery}).</mj-text>
    <mj-table padding="0 0 24px 0" font-size="15px">
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">Customer</td>
          <td style="padding: 6px 0; text-align: right;">{escape(customer_name or '-')}</td></tr>
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">E-mail</td>
          <td style="padding: 6px 0; text-align: right;">{escape(customer_email or '-')}</td></tr>
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">Style</td>
          <td style="padding: 6px 0; text-align: right;">{escape(style_title or '-')}</td></tr>
    </mj-table>
    """
    return get_base_template(
        title="Delivery reminder",
        preview_text=f"Order #{order_id} is due {when}",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/admin/orders/{order_id}",
        cta_label="Open Order",
    )


# ============================================
# Appointment emails
# ============================================


def _appointment_table(date: str, time: str, address: str, phone: str) -> str:
    return f"""
    <mj-table padding="0 0 24px 0" font-size="15px">
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">Date</td>
          <td style="padding: 6px 0; text-align: right;">{escape(date)}</td></tr>
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">Time</td>
          <td style="padding: 6px 0; text-align: right;">{escape(time)}</td></tr>
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">Address</td>
          <td style="padding: 6px 0; text-align: right;">{escape(address)}</td></tr>
      <tr><td style="padding: 6px 0; color: {THEME['text_muted']};">Phone</td>
          <td style="padding: 6px 0; text-align: right;">{escape(phone)}</td></tr>
    </mj-table>
    """


def appointment_confirmation_template(
    name: str, date: str, time: str, address: str, phone: str, for_admin: bool = False
) -> str:
    if for_admin:
        intro = f"<mj-text>{escape(name)} booked an in-person fitting.</mj-text>"
        title = "New in-person booking"
    else:
        intro = f"""
        <mj-text>Hi {escape(name)},</mj-text>
        <mj-text>Your in-person fitting is booked. We'll see you then!</mj-text>
        """
        title = "Appointment confirmed"
    return get_base_template(
        title=title,
        preview_text=f"In-person fitting on {date} at {time}",
        content_sections=intro + _appointment_table(date, time, address, phone),
        is_user_email=not for_admin,
    )


def appointment_reminder_template(name: str, date: str, time: str, address: str) -> str:
    content = f"""
    <mj-text>Hi {escape(name)},</mj-text>
    <mj-text>This is a reminder of your SyberTailor fitting today, <strong>{escape(date)}</strong>
      at <strong>{escape(time)}</strong>, at {escape(address)}.</mj-text>
    """
    return get_base_template(
        title="Appointment reminder",
        preview_text=f"Your fitting is today at {time}",
        content_sections=content,
    )


def appointment_cancelled_template(name: str, date: str, time: str) -> str:
    content = f"""
    <mj-text>Hi {escape(name)},</mj-text>
    <mj-text>Your in-person appointment on <strong>{escape(date)}</strong> at
      <strong>{escape(time)}</strong> has been cancelled.</mj-text>
    <mj-text color="{THEME['text_muted']}" font-size="14px">You can book a new slot at any time.</mj-text>
    """
    return get_base_template(
        title="Appointment cancelled",
        preview_text=f"Appointment on {date} cancelled",
        content_sections=content,
        cta_url=f"{CLIENT_URL}/in-person",
        cta_label="Book Again",
    )
