"""
Email dispatch through MS Graph with a small plain-text template set.

When Graph is not configured, sends are logged and reported as mock results.
"""

import logging
import traceback
from collections import Counter
from dataclasses import dataclass

from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.email_address import EmailAddress
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.message import Message
from msgraph.generated.models.recipient import Recipient
from msgraph.generated.users.item.send_mail.send_mail_post_request_body import (
    SendMailPostRequestBody,
)

from core.config import ERROR_EMAIL, MAIL_FROM, NOTIFICATION_SENDER_NAME
from core.graph_client import get_graph_client, graph_configured

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    """Outcome of one send."""

    success: bool
    recipients: list[str]
    mock: bool = False
    skipped: bool = False


# =============================================================================
# TEMPLATES
# =============================================================================


def _alarm_created(data: dict) -> tuple[str, str]:
    subject = f"[{data['category'].upper()}] {data['title']}"
    body = "\n".join(
        [
            data["message"],
            "",
            f"Type: {data['type']}",
            f"Raised: {data.get('created_date', '')}",
            "",
            f"- {NOTIFICATION_SENDER_NAME}",
        ]
    )
    return subject, body


def _alarm_digest(data: dict) -> tuple[str, str]:
    notifications = data["notifications"]
    counts = Counter(n["type"] for n in notifications)
    lines = [f"{len(notifications)} active notification(s)", ""]
    for notification_type in sorted(counts):
        lines.append(f"  {notification_type}: {counts[notification_type]}")
    lines.append("")
    for n in notifications:
        lines.append(f"  - {n['recipient_email']}: {n['title']} ({n['status']})")
    return f"Alarm digest - {data.get('tenant_id', 'all tenants')}", "\n".join(lines)


def _script_error(data: dict) -> tuple[str, str]:
    subject = f"Timesheet Alarms - {data.get('script', 'script')} error"
    body = f"An error occurred while running {data.get('script', 'a script')}:\n\n{data['traceback']}"
    return subject, body


TEMPLATES = {
    "alarm_created": _alarm_created,
    "alarm_digest": _alarm_digest,
    "script_error": _script_error,
}


def render_template(template_type: str, data: dict) -> tuple[str, str]:
    """
    Render a template to (subject, body).

    Raises:
        ValueError: unknown template type
    """
    if template_type not in TEMPLATES:
        raise ValueError(f"Unknown email template '{template_type}'")
    return TEMPLATES[template_type](data)


# =============================================================================
# SENDING
# =============================================================================


def _unique(recipients: list[str]) -> list[str]:
    return list(dict.fromkeys(r for r in recipients if r))


async def send_email(
    recipients: list[str] | str, template_type: str, data: dict, subject: str | None = None
) -> EmailResult:
    """Render a template and send it to every recipient."""
    if isinstance(recipients, str):
        recipients = [recipients]
    recipients = _unique(recipients)
    default_subject, body_text = render_template(template_type, data)
    subject = subject or default_subject

    if not recipients:
        logger.info("[Email] no recipients for %s", template_type)
        return EmailResult(success=True, recipients=[], skipped=True)

    if not graph_configured():
        logger.info("[Email] mock send %s to %s: %s", template_type, recipients, subject)
        return EmailResult(success=True, recipients=recipients, mock=True)

    message = Message(
        subject=subject,
        body=ItemBody(content_type=BodyType.Text, content=body_text),
        to_recipients=[Recipient(email_address=EmailAddress(address=r)) for r in recipients],
    )
    request_body = SendMailPostRequestBody(message=message, save_to_sent_items=True)

    graph = get_graph_client()
    await graph.users.by_user_id(MAIL_FROM).send_mail.post(request_body)
    logger.info("[Email] sent %s to %s", template_type, recipients)
    return EmailResult(success=True, recipients=recipients)


async def send_team_email(
    team_members: list[str], admins: list[str], template_type: str, data: dict, subject: str | None = None
) -> EmailResult:
    """Send one email to team members and admins combined."""
    return await send_email([*team_members, *admins], template_type, data, subject)


async def send_alarm_emails(notifications: list[dict]) -> int:
    """Email each newly created notification to its recipient; returns the number sent."""
    sent = 0
    for notification in notifications:
        try:
            await send_email(notification["recipient_email"], "alarm_created", notification)
            sent += 1
        except Exception as e:
            logger.error("[Email] failed to send notification %s: %s", notification["id"], e)
    return sent


async def send_error_email(error: Exception, script: str = "script") -> None:
    """Send error notification email; never raises."""
    if not ERROR_EMAIL:
        logger.warning("ERROR_EMAIL not set; skipping error email for %s", error)
        return
    try:
        await send_email(
            ERROR_EMAIL, "script_error", {"script": script, "traceback": traceback.format_exc()}
        )
    except Exception as e:
        logger.error("Failed to send error email: %s", e)
