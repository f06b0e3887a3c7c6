"""iCalendar (RFC 5545) invites attached to viewing notifications."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from backend.core import config

LINE_LIMIT_OCTETS = 75
INVITE_FILENAME = 'viewing.ics'
INVITE_MIME_TYPE = 'text/calendar'


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    mime_type: str = 'application/octet-stream'


def escape_text(value: str) -> str:
    return (
        value.replace('\\', '\\\\')
        .replace(';', '\\;')
        .replace(',', '\\,')
        .replace('\r\n', '\\n')
        .replace('\n', '\\n')
    )


def format_datetime(moment: datetime) -> str:
    """Aware datetimes are written in UTC; naive ones as floating local time."""
    if moment.tzinfo is None:
        return moment.strftime('%Y%m%dT%H%M%S')
    return moment.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')


def fold_line(line: str) -> str:
    encoded = line.encode('utf-8')
    if len(encoded) <= LINE_LIMIT_OCTETS:
        return line

    parts: list[str] = []
    current = ''
    current_octets = 0
    # Continuation lines start with a space, which counts toward the limit.
    limit = LINE_LIMIT_OCTETS
    for char in line:
        char_octets = len(char.encode('utf-8'))
        if current_octets + char_octets > limit:
            parts.append(current)
            current = ''
            current_octets = 0
            limit = LINE_LIMIT_OCTETS - 1
        current += char
        current_octets += char_octets
    parts.append(current)
    return '\r\n '.join(parts)


def appointment_uid(appointment_id: int) -> str:
    return f'appointment-{appointment_id}@{config.CALENDAR_UID_DOMAIN}'


def build_invite(
    title: str,
    description: str,
    location: str,
    start: datetime,
    end: datetime,
    uid: str,
    stamp: datetime | None = None,
) -> bytes:
    stamp = stamp or datetime.now(timezone.utc)
    lines = [
        'BEGIN:VCALENDAR',
        'VERSION:2.0',
        f'PRODID:{config.CALENDAR_PRODID}',
        'CALSCALE:GREGORIAN',
        'METHOD:REQUEST',
        'BEGIN:VEVENT',
        f'UID:{uid}',
        f'DTSTAMP:{format_datetime(stamp)}',
        f'DTSTART:{format_datetime(start)}',
        f'DTEND:{format_datetime(end)}',
        f'SUMMARY:{escape_text(title)}',
        f'DESCRIPTION:{escape_text(description)}',
        f'LOCATION:{escape_text(location)}',
        'STATUS:CONFIRMED',
        'SEQUENCE:0',
        'END:VEVENT',
        'END:VCALENDAR',
    ]
    return ('\r\n'.join(fold_line(line) for line in lines) + '\r\n').encode('utf-8')


def build_viewing_invite(
    appointment_id: int,
    listing_title: str,
    listing_address: str | None,
    start: datetime,
    description: str | None = None,
) -> Attachment:
    """Invite for a confirmed viewing lasting ``VIEWING_DURATION_MINUTES``."""
    end = start + timedelta(minutes=config.VIEWING_DURATION_MINUTES)
    content = build_invite(
        title=f'Viewing - {listing_title}',
        description=description or f'Property viewing: {listing_title}',
        location=listing_address or 'Address not provided',
        start=start,
        end=end,
        uid=appointment_uid(appointment_id),
    )
    return Attachment(filename=INVITE_FILENAME, content=content, mime_type=INVITE_MIME_TYPE)
