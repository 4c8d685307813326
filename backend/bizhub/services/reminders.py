"""Client for the remote invoice-reminder function (delivers the email)."""

import logging
from datetime import date

import httpx

from bizhub.core.config import settings
from bizhub.models.invoice import Invoice
from bizhub.models.tenant import Tenant

logger = logging.getLogger(__name__)


class ReminderDeliveryError(Exception):
    """The reminder function could not be reached or reported a failure."""


class ReminderNotConfigured(ReminderDeliveryError):
    pass


def build_reminder_payload(invoice: Invoice, days_overdue: int, sender: Tenant | None = None) -> dict:
    """Request body; ``sender`` signs the email with the tenant's own name and contacts."""
    payload = {
        "invoiceNumber": invoice.invoice_number,
        "clientName": invoice.client_name,
        "clientEmail": invoice.client_email,
        "amount": float(invoice.total_amount),
        "dueDate": format_due_date(invoice.due_date),
        "daysOverdue": days_overdue,
    }
    if sender is not None:
        payload["companyName"] = sender.name
        if sender.email:
            payload["companyEmail"] = sender.email
        if sender.phone:
            payload["companyPhone"] = sender.phone
    return payload


def format_due_date(due: date | None) -> str:
    return due.strftime("%d %b %Y") if due else "N/A"


async def send_invoice_reminder(
    invoice: Invoice,
    days_overdue: int,
    sender: Tenant | None = None,
    client: httpx.AsyncClient | None = None,
) -> None:
    """POST one reminder. Raises ReminderDeliveryError on any failure."""
    if not settings.REMINDER_FUNCTION_URL:
        raise ReminderNotConfigured("REMINDER_FUNCTION_URL is not set")

    headers = {"Content-Type": "application/json"}
    if settings.REMINDER_FUNCTION_TOKEN:
        headers["Authorization"] = f"Bearer {settings.REMINDER_FUNCTION_TOKEN}"
    payload = build_reminder_payload(invoice, days_overdue, sender)

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.REMINDER_TIMEOUT_SECONDS) as own_client:
                resp = await own_client.post(settings.REMINDER_FUNCTION_URL, json=payload, headers=headers)
        else:
            resp = await client.post(settings.REMINDER_FUNCTION_URL, json=payload, headers=headers)
        resp.raise_for_status()
        body = resp.json()
    except httpx.HTTPStatusError as exc:
        logger.error("Reminder function error for invoice %s: %s", invoice.invoice_number, exc)
        raise ReminderDeliveryError("Reminder function error") from exc
    except httpx.RequestError as exc:
        logger.error("Cannot reach reminder function for invoice %s: %s", invoice.invoice_number, exc)
        raise ReminderDeliveryError("Cannot reach reminder function") from exc
    except ValueError as exc:
        logger.error("Unreadable reply from reminder function for invoice %s: %s", invoice.invoice_number, exc)
        raise ReminderDeliveryError("Reminder function returned an invalid response") from exc

    if not isinstance(body, dict):
        logger.error("Unexpected reply from reminder function for invoice %s: %r", invoice.invoice_number, body)
        raise ReminderDeliveryError("Reminder function returned an invalid response")
    if not body.get("success"):
        raise ReminderDeliveryError(body.get("error") or "Reminder function reported a failure")
