"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design.

Request handlers never send mail themselves: they hand a compiled message to
the job queue (send_email_task, retried by the worker) and only fall back to
sending inline when no queue is available. Either way a delivery failure is
logged and never reaches the caller.
"""

import io
import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import ADMIN_EMAIL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    admin_delivery_reminder_template,
    admin_new_order_template,
    appointment_cancelled_template,
    appointment_confirmation_template,
    appointment_reminder_template,
    email_verification_template,
    order_confirmation_template,
    order_progress_template,
    order_status_update_template,
    password_reset_template,
    payment_confirmed_template,
    payment_status_update_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(io.StringIO(mjml_content))
        # mjml_to_html returns a dict-like result with 'html' and 'errors' keys
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    html_content: str,
    attachments: Optional[list[dict]] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        html_content: Compiled HTML body
        attachments: Optional list of {"filename", "content"} dicts

    Returns:
        Send response dict
    """
    recipients = [to] if isinstance(to, str) else to

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }

        if attachments:
            email_data["attachments"] = [
                {"filename": attachment["filename"], "content": attachment["content"]}
                for attachment in attachments
            ]

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


async def send_compiled_email(
    to: str, subject: str, html_content: str, receipt_order_id: Optional[int] = None
) -> dict:
    """Send a compiled message, attaching the order receipt PDF when asked"""
    attachments = None
    if receipt_order_id:
        from .database import SessionLocal
        from .models import Order
        from .services.receipt_pdf import generate_order_receipt

        db = SessionLocal()
        try:
            order = db.query(Order).filter(Order.id == receipt_order_id).first()
            if order:
                attachments = [
                    {
                        "filename": f"sybertailor-receipt-{order.id}.pdf",
                        "content": list(generate_order_receipt(order)),
                    }
                ]
            else:
                logger.warning(f"⚠️ Order {receipt_order_id} gone, sending without receipt")
        finally:
            db.close()

    return await send_email(to=to, subject=subject, html_content=html_content, attachments=attachments)


async def deliver_email(
    queue,
    to: Optional[str],
    subject: str,
    mjml_content: str,
    receipt_order_id: Optional[int] = None,
) -> bool:
    """
    Queue an email for the worker, or send it inline when there is no queue.
    Never raises.
    """
    if not to:
        logger.debug(f"⚠️ No recipient for '{subject}', skipping")
        return False

    try:
        html_content = compile_mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"❌ Could not render '{subject}': {e}")
        return False

    if queue is not None:
        try:
            await queue.enqueue(
                "send_email_task", to, subject, html_content, receipt_order_id=receipt_order_id
            )
            return True
        except Exception as e:
            logger.warning(f"⚠️ Failed to queue email '{subject}', sending inline: {e}")

    try:
        await send_compiled_email(to, subject, html_content, receipt_order_id)
        return True
    except Exception as e:
        logger.error(f"❌ Failed to send '{subject}' to {to}: {e}")
        return False


# ============================================
# Account emails
# ============================================


async def send_verification_code_email(queue, user) -> bool:
    return await deliver_email(
        queue,
        user.email,
        "Verify Your Email - SyberTailor",
        email_verification_template(user.name, user.email_token),
    )


async def send_password_reset_email(queue, user, reset_link: str) -> bool:
    return await deliver_email(
        queue,
        user.email,
        "Reset Your Password - SyberTailor",
        password_reset_template(user.name, reset_link),
    )


# ============================================
# Order emails
# ============================================


def _style_title(order) -> str:
    return (order.style or {}).get("title") or "your custom garment"


def _fabric_name(order) -> str:
    return (order.material or {}).get("name") or "-"


async def send_order_created_emails(queue, order) -> None:
    """Customer confirmation (with receipt) plus admin heads-up"""
    await deliver_email(
        queue,
        order.customer_email,
        f"Order Confirmation #{order.id} - SyberTailor",
        order_confirmation_template(
            order.customer_name or "Customer",
            order.id,
            _style_title(order),
            _fabric_name(order),
            order.total_price,
        ),
        receipt_order_id=order.id,
    )
    await deliver_email(
        queue,
        ADMIN_EMAIL,
        f"New Order #{order.id} from {order.customer_name or 'a customer'}",
        admin_new_order_template(
            order.customer_name or "Customer",
            order.customer_email,
            order.id,
            _style_title(order),
            _fabric_name(order),
            order.total_price,
            order.order_type,
        ),
    )


async def send_order_status_email(queue, order) -> bool:
    return await deliver_email(
        queue,
        order.customer_email,
        f"Order #{order.id} is now {order.status}",
        order_status_update_template(order.customer_name or "Customer", order.id, order.status),
    )


async def send_payment_status_email(queue, order) -> bool:
    return await deliver_email(
        queue,
        order.customer_email,
        f"Payment update for order #{order.id}",
        payment_status_update_template(
            order.customer_name or "Customer", order.id, order.payment_status
        ),
    )


async def send_payment_confirmed_emails(queue, order) -> None:
    expected = (
        order.expected_delivery_date.strftime("%A, %d %B %Y")
        if order.expected_delivery_date
        else None
    )
    await deliver_email(
        queue,
        order.customer_email,
        f"Payment Confirmed - Order #{order.id}",
        payment_confirmed_template(
            order.customer_name or "Customer", order.id, order.total_price, expected
        ),
        receipt_order_id=order.id,
    )
    await deliver_email(
        queue,
        ADMIN_EMAIL,
        f"Payment received for order #{order.id}",
        payment_status_update_template("SyberTailor team", order.id, order.payment_status),
    )


# Scheduled sends: called from worker jobs, failures propagate to the job


async def send_admin_delivery_reminder(order, days_before: int) -> dict:
    if days_before == 1:
        subject = f"URGENT DELIVERY: Order {order.id} Due Tomorrow!"
    else:
        subject = f"DELIVERY REMINDER: Order {order.id} Due in {days_before} Days"
    mjml_content = admin_delivery_reminder_template(
        order.id,
        order.customer_name,
        order.customer_email,
        _style_title(order),
        order.expected_delivery_date.strftime("%A, %d %B %Y"),
        days_before,
    )
    return await send_email(ADMIN_EMAIL, subject, compile_mjml_to_html(mjml_content))


async def send_order_progress_email(order, title: str, message: str) -> dict:
    mjml_content = order_progress_template(order.customer_name or "Customer", order.id, title, message)
    return await send_email(order.customer_email, title, compile_mjml_to_html(mjml_content))


# ============================================
# Appointment emails
# ============================================


async def send_appointment_confirmation_emails(queue, appointment) -> None:
    date_str = appointment.date.isoformat()
    await deliver_email(
        queue,
        appointment.email,
        "Your SyberTailor fitting is booked",
        appointment_confirmation_template(
            appointment.name, date_str, appointment.time, appointment.address, appointment.phone
        ),
    )
    await deliver_email(
        queue,
        ADMIN_EMAIL,
        f"New in-person booking: {appointment.name} on {date_str} at {appointment.time}",
        appointment_confirmation_template(
            appointment.name,
            date_str,
            appointment.time,
            appointment.address,
            appointment.phone,
            for_admin=True,
        ),
    )


async def send_appointment_cancelled_email(queue, appointment) -> bool:
    return await deliver_email(
        queue,
        appointment.email,
        "Your SyberTailor appointment was cancelled",
        appointment_cancelled_template(
            appointment.name, appointment.date.isoformat(), appointment.time
        ),
    )


async def send_appointment_reminder(appointment) -> dict:
    mjml_content = appointment_reminder_template(
        appointment.name, appointment.date.isoformat(), appointment.time, appointment.address
    )
    return await send_email(
        appointment.email,
        f"Reminder: your fitting today at {appointment.time}",
        compile_mjml_to_html(mjml_content),
    )
