"""
Viewing Email Templates
Subject and HTML body for every notification the scheduling engine sends
"""

from datetime import datetime
from html import escape
from typing import Callable, Optional

from backend.core import config

REQUEST_RECEIVED = "request-received"
APPROVED = "approved"
REJECTED = "rejected"
RESCHEDULE_PROPOSED = "reschedule-proposed"
RESCHEDULE_CONFIRMED = "reschedule-confirmed"
CANCELLED = "cancelled"

THEME = {
    "primary": "#2563eb",
    "success": "#10b981",
    "danger": "#ef4444",
    "warning": "#f59e0b",
    "muted": "#666666",
    "panel": "#f3f4f6",
}


def format_when(moment: datetime) -> str:
    return moment.strftime("%A, %d %B %Y at %H:%M")


def _detail(label: str, value: Optional[str]) -> str:
    if not value:
        return ""
    return f'<p style="margin: 5px 0;"><strong>{label}:</strong> {escape(value)}</p>'


def get_base_template(heading: str, color: str, intro: str, details: str, cta_url: Optional[str] = None,
                      cta_label: Optional[str] = None) -> str:
    """Shared HTML wrapper for all viewing emails"""
    cta = ""
    if cta_url and cta_label:
        cta = (
            f'<p style="text-align: center; margin: 30px 0;">'
            f'<a href="{escape(cta_url)}" style="background-color: {THEME["primary"]}; color: #ffffff; '
            f'padding: 12px 30px; text-decoration: none; border-radius: 5px;">{cta_label}</a></p>'
        )

    return f"""
      <!DOCTYPE html>
      <html>
        <head><meta charset="UTF-8"></head>
        <body style="font-family: Arial, sans-serif; padding: 20px; background-color: #f5f5f5;">
          <div style="max-width: 600px; margin: 0 auto; background-color: white; padding: 30px; border-radius: 10px;">
            <h2 style="color: {color}; text-align: center;">{heading}</h2>
            <p style="font-size: 16px; line-height: 1.6;">Hello,</p>
            <p style="font-size: 16px; line-height: 1.6;">{intro}</p>
            <div style="background-color: {THEME['panel']}; padding: 20px; border-radius: 8px; margin: 20px 0;">
              {details}
            </div>
            {cta}
          </div>
        </body>
      </html>
    """


def request_received_template(data: dict) -> tuple[str, str]:
    manage_url = f"{config.FRONTEND_URL}/appointments/owner"
    details = (
        _detail("Property", data["listing_title"])
        + _detail("Requested by", data.get("requester_name") or "A user")
        + _detail("Date", format_when(data["scheduled_at"]))
        + _detail("Note", data.get("note"))
    )
    html = get_base_template(
        "New viewing request",
        THEME["primary"],
        "Someone would like to view your property.",
        details,
        cta_url=manage_url,
        cta_label="Review request",
    )
    return f"New viewing request - {data['listing_title']}", html


def approved_template(data: dict) -> tuple[str, str]:
    details = (
        _detail("Property", data["listing_title"])
        + _detail("Address", data.get("listing_address"))
        + _detail("Date", format_when(data["scheduled_at"]))
        + _detail("Owner", data.get("owner_name"))
        + _detail("Phone", data.get("owner_phone"))
        + _detail("Email", data.get("owner_email"))
    )
    html = get_base_template(
        "Your viewing is confirmed",
        THEME["success"],
        "The owner approved your viewing. A calendar invite is attached.",
        details,
    )
    return f"Viewing approved - {data['listing_title']}", html


def rejected_template(data: dict) -> tuple[str, str]:
    details = _detail("Property", data["listing_title"]) + _detail("Reason", data.get("reason"))
    html = get_base_template(
        "Viewing request declined",
        THEME["danger"],
        "Unfortunately the owner could not accept your viewing request.",
        details,
    )
    return f"Viewing declined - {data['listing_title']}", html


def reschedule_proposed_template(data: dict) -> tuple[str, str]:
    confirm_url = f"{config.FRONTEND_URL}/appointments/me?action=confirm&id={data['appointment_id']}"
    details = (
        _detail("Property", data["listing_title"])
        + _detail("Requested date", format_when(data["original_at"]))
        + _detail("Proposed date", format_when(data["proposed_at"]))
        + _detail("Reason", data.get("reason"))
    )
    html = get_base_template(
        "A different time was proposed",
        THEME["warning"],
        "The owner proposed another time for your viewing. Please confirm it.",
        details,
        cta_url=confirm_url,
        cta_label="Confirm new time",
    )
    return f"New time proposed - {data['listing_title']}", html


def reschedule_confirmed_template(data: dict) -> tuple[str, str]:
    details = (
        _detail("Property", data["listing_title"])
        + _detail("Address", data.get("listing_address"))
        + _detail("Date", format_when(data["scheduled_at"]))
        + _detail("Viewer", data.get("requester_name"))
    )
    html = get_base_template(
        "The viewing time is fixed",
        THEME["success"],
        "The viewer accepted your proposed time. A calendar invite is attached.",
        details,
    )
    return f"Viewing confirmed - {data['listing_title']}", html


def cancelled_template(data: dict) -> tuple[str, str]:
    details = (
        _detail("Property", data["listing_title"])
        + _detail("Original date", format_when(data["scheduled_at"]))
        + _detail("Cancelled by", data.get("requester_name"))
    )
    html = get_base_template(
        "Viewing cancelled",
        THEME["danger"],
        "The viewer cancelled the viewing of your property.",
        details,
    )
    return f"Viewing cancelled - {data['listing_title']}", html


TEMPLATES: dict[str, Callable[[dict], tuple[str, str]]] = {
    REQUEST_RECEIVED: request_received_template,
    APPROVED: approved_template,
    REJECTED: rejected_template,
    RESCHEDULE_PROPOSED: reschedule_proposed_template,
    RESCHEDULE_CONFIRMED: reschedule_confirmed_template,
    CANCELLED: cancelled_template,
}


def render(template: str, data: dict) -> tuple[str, str]:
    try:
        renderer = TEMPLATES[template]
    except KeyError as exc:
        raise ValueError(f"Unknown email template: {template}") from exc
    return renderer(data)
