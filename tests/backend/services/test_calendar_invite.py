from datetime import datetime, timedelta, timezone

from backend.core import config
from backend.services.calendar_invite import (
    appointment_uid,
    build_invite,
    build_viewing_invite,
    escape_text,
    fold_line,
    format_datetime,
)


def _unfold(payload: bytes) -> list[str]:
    return payload.decode('utf-8').replace('\r\n ', '').split('\r\n')


def test_build_invite_produces_single_request_event() -> None:
    payload = build_invite(
        title='Viewing - Garden flat',
        description='Property viewing',
        location='5 Main St',
        start=datetime(2026, 1, 4, 11, 0),
        end=datetime(2026, 1, 4, 12, 0),
        uid='appointment-7@viewings.local',
        stamp=datetime(2026, 1, 1, 8, 30, tzinfo=timezone.utc),
    )
    lines = _unfold(payload)

    assert payload.endswith(b'END:VCALENDAR\r\n')
    assert lines[0] == 'BEGIN:VCALENDAR'
    assert 'METHOD:REQUEST' in lines
    assert lines.count('BEGIN:VEVENT') == 1
    assert 'UID:appointment-7@viewings.local' in lines
    assert 'DTSTAMP:20260101T083000Z' in lines
    assert 'DTSTART:20260104T110000' in lines
    assert 'DTEND:20260104T120000' in lines
    assert 'SUMMARY:Viewing - Garden flat' in lines


def test_format_datetime_converts_aware_values_to_utc() -> None:
    jerusalem_winter = timezone(timedelta(hours=2))

    assert format_datetime(datetime(2026, 1, 4, 11, 0, tzinfo=jerusalem_winter)) == '20260104T090000Z'
    assert format_datetime(datetime(2026, 1, 4, 11, 0)) == '20260104T110000'


def test_escape_text_escapes_reserved_characters() -> None:
    assert escape_text('Flat 2, Floor 3; ring\\bell\nthen wait') == 'Flat 2\\, Floor 3\\; ring\\\\bell\\nthen wait'


def test_fold_line_keeps_lines_within_75_octets() -> None:
    line = 'DESCRIPTION:' + 'דירה מרווחת ' * 20
    folded = fold_line(line)

    assert all(len(part.encode('utf-8')) <= 75 for part in folded.split('\r\n'))
    assert folded.replace('\r\n ', '') == line
    assert fold_line('SHORT:line') == 'SHORT:line'


def test_viewing_invite_lasts_configured_duration_with_stable_uid(monkeypatch) -> None:
    monkeypatch.setattr(config, 'VIEWING_DURATION_MINUTES', 60)
    start = datetime(2026, 1, 5, 9, 0)

    first = build_viewing_invite(42, 'Garden flat', None, start)
    second = build_viewing_invite(42, 'Garden flat', None, start)
    lines = _unfold(first.content)

    assert first.filename == 'viewing.ics'
    assert first.mime_type == 'text/calendar'
    assert 'DTEND:20260105T100000' in lines
    assert 'LOCATION:Address not provided' in lines
    assert f'UID:{appointment_uid(42)}' in lines
    assert f'UID:{appointment_uid(42)}' in _unfold(second.content)
    assert appointment_uid(42) == f'appointment-42@{config.CALENDAR_UID_DOMAIN}'
