"""SOS alert dispatch: recipients, text + guardian email, audit record."""

from __future__ import annotations

import asyncio
import html
import logging
import re
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from suraksha.core.config import settings
from suraksha.core.exceptions import NoTrustedContactsError, UserNotFoundError
from suraksha.schemas.alert import AlertLocation, SenderDetails
from suraksha.services.alert_history_service import record_alert
from suraksha.services.email_service import email_service
from suraksha.services.sms_gateway import SmsResult, sms_gateway
from suraksha.services.trusted_contact_service import get_active_recipient_mobiles
from suraksha.services.user_directory import get_guardian_email, get_user

logger = logging.getLogger(__name__)

MAP_LINK_TEMPLATE = "https://www.google.com/maps/search/?api=1&query={lat},{lon}"
_COORDS_IN_LINK = re.compile(r"(?<![\d.])(-?\d{1,2}(?:\.\d+)?),\s*(-?\d{1,3}(?:\.\d+)?)")


@dataclass
class DispatchOutcome:
    success: bool
    alert_id: int
    recipient_count: int
    email_sent: bool
    request_id: str | None = None


@dataclass
class _AlertDraft:
    """Whatever is known about an attempt so far; enough to write a failed record."""

    user_id: int
    sender: SenderDetails
    recipients: list[str]
    location: AlertLocation = field(default_factory=lambda: AlertLocation(map_link=""))
    message: str = ""
    guardian_email: str | None = None
    email_sent: bool = False


def build_map_link(latitude: float, longitude: float) -> str:
    return MAP_LINK_TEMPLATE.format(lat=latitude, lon=longitude)


def resolve_location(
    map_link: str | None,
    latitude: float | None,
    longitude: float | None,
) -> AlertLocation:
    """Use the supplied link or build one; fill coordinates from the link when missing."""
    if map_link:
        if latitude is None or longitude is None:
            match = _COORDS_IN_LINK.search(map_link)
            if match:
                lat, lon = float(match.group(1)), float(match.group(2))
                if -90 <= lat <= 90 and -180 <= lon <= 180:
                    latitude, longitude = lat, lon
        return AlertLocation(latitude=latitude, longitude=longitude, map_link=map_link)
    return AlertLocation(latitude=latitude, longitude=longitude, map_link=build_map_link(latitude, longitude))


def compose_message(sender: SenderDetails, map_link: str) -> str:
    lines = [
        f"EMERGENCY SOS! {sender.name} needs help.",
        f"Mobile: {sender.mobile}",
    ]
    if sender.email:
        lines.append(f"Email: {sender.email}")
    lines.append(f"Location: {map_link}")
    return "\n".join(lines)


def compose_guardian_email(sender: SenderDetails, location: AlertLocation) -> tuple[str, str]:
    """Return (subject, html body) for the guardian notification."""
    subject = f"Emergency SOS alert from {sender.name}"
    name = html.escape(sender.name)
    link = html.escape(location.map_link, quote=True)
    rows = [
        f"<tr><td><b>Name</b></td><td>{name}</td></tr>",
        f"<tr><td><b>Mobile</b></td><td>{html.escape(sender.mobile)}</td></tr>",
    ]
    if sender.email:
        rows.append(f"<tr><td><b>Email</b></td><td>{html.escape(sender.email)}</td></tr>")
    if location.latitude is not None and location.longitude is not None:
        rows.append(
            f"<tr><td><b>Coordinates</b></td><td>{location.latitude:.6f}, {location.longitude:.6f}</td></tr>"
        )
    body = (
        "<div style=\"font-family: Arial, sans-serif;\">"
        f"<h2 style=\"color: #c62828;\">{name} has triggered an emergency SOS</h2>"
        "<p>You are receiving this because you are registered as their guardian.</p>"
        f"<table cellpadding=\"6\">{''.join(rows)}</table>"
        f"<p><a href=\"{link}\">Open live location in Google Maps</a></p>"
        "<p>Please try to reach them immediately and contact local emergency services if needed.</p>"
        "</div>"
    )
    return subject, body


async def _send_text(message: str, recipients: list[str]) -> SmsResult:
    """Text-channel task. Failures come back as a result, never raised."""
    timeout = settings.channel_timeout_seconds
    try:
        return await asyncio.wait_for(sms_gateway.send(message, recipients), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("SMS gateway timed out after %ss", timeout)
        return SmsResult(sent=False, error=f"SMS gateway timed out after {timeout}s")
    except Exception as exc:  # noqa: BLE001 - recorded on the alert
        logger.exception("SMS dispatch failed")
        return SmsResult(sent=False, error=str(exc) or exc.__class__.__name__)


async def _send_guardian_email(to: str | None, subject: str, body: str) -> bool:
    """Best-effort email task. Returns whether the email went out."""
    if not to:
        return False
    timeout = settings.channel_timeout_seconds
    try:
        result = await asyncio.wait_for(email_service.send(to, subject, body), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Guardian email to %s timed out after %ss", to, timeout)
        return False
    except Exception:  # noqa: BLE001 - email is best effort
        logger.exception("Guardian email to %s failed", to)
        return False
    return bool(result.sent)


def _record_degraded(db: Session, draft: _AlertDraft, exc: Exception) -> None:
    """Keep the fact that an SOS was attempted even when the pipeline crashed."""
    db.rollback()
    try:
        record_alert(
            db,
            user_id=draft.user_id,
            recipients=draft.recipients,
            message=draft.message,
            location=draft.location,
            status="failed",
            sender=draft.sender,
            email_sent=draft.email_sent,
            guardian_email=draft.guardian_email,
            error=f"Dispatch aborted: {exc.__class__.__name__}: {exc}",
        )
    except Exception:  # noqa: BLE001 - original error is re-raised by the caller
        db.rollback()
        logger.exception("Could not write degraded alert record for user %s", draft.user_id)


def _resolve_draft(db: Session, user_id: int, recipients: list[str] | None) -> _AlertDraft:
    """Load the sender and pick recipients. Raises before anything is written."""
    user = get_user(db, user_id)
    if not user:
        raise UserNotFoundError()

    resolved = list(recipients) if recipients else get_active_recipient_mobiles(db, user_id)
    if not resolved:
        raise NoTrustedContactsError()

    return _AlertDraft(
        user_id=user_id,
        sender=SenderDetails(name=user.name, mobile=user.mobile or "", email=user.email),
        recipients=resolved,
    )


async def dispatch_sos(
    db: Session,
    user_id: int,
    map_link: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    recipients: list[str] | None = None,
) -> DispatchOutcome:
    """
    Broadcast an SOS for the user.

    Explicit recipients are used verbatim; otherwise the owner's active
    trusted contacts. Text and guardian email run as two concurrent tasks
    and one alert record is written after both finish, whatever their
    outcome. Success means the text channel accepted the message.

    Database work runs in worker threads so the event loop only ever
    waits on the channels.
    """
    draft = await asyncio.to_thread(_resolve_draft, db, user_id, recipients)

    try:
        draft.location = resolve_location(map_link, latitude, longitude)
        draft.message = compose_message(draft.sender, draft.location.map_link)
        draft.guardian_email = await asyncio.to_thread(get_guardian_email, db, user_id)
        subject, body = compose_guardian_email(draft.sender, draft.location)

        text_task = asyncio.create_task(_send_text(draft.message, draft.recipients))
        email_task = asyncio.create_task(_send_guardian_email(draft.guardian_email, subject, body))
        text_result, draft.email_sent = await asyncio.gather(text_task, email_task)

        record = await asyncio.to_thread(
            record_alert,
            db,
            user_id=user_id,
            recipients=draft.recipients,
            message=draft.message,
            location=draft.location,
            status="sent" if text_result.sent else "failed",
            sender=draft.sender,
            email_sent=draft.email_sent,
            channel_request_id=text_result.request_id,
            guardian_email=draft.guardian_email,
            error=None if text_result.sent else (text_result.error or "SMS provider rejected the message"),
        )
    except Exception as exc:
        logger.exception("SOS dispatch for user %s crashed", user_id)
        await asyncio.to_thread(_record_degraded, db, draft, exc)
        raise

    if not text_result.sent:
        logger.warning("SOS for user %s recorded as failed (alert %s)", user_id, record.id)

    return DispatchOutcome(
        success=text_result.sent,
        alert_id=record.id,
        recipient_count=len(draft.recipients),
        email_sent=draft.email_sent,
        request_id=text_result.request_id,
    )
