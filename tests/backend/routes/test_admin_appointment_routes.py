from datetime import datetime

import pytest

from backend.auth import jwt_handler
from backend.core.errors import NotFound
from backend.models.appointment import AppointmentStatus
from backend.routes.admin_appointment_routes import appointment_stats, get_appointment, list_appointments
from backend.services.appointments import OwnerAction

SUNDAY_11 = datetime(2026, 1, 4, 11, 0)


def _auth(user) -> dict:
    return {'Authorization': f'Bearer {jwt_handler.create_access_token(user.id, role=user.role)}'}


@pytest.fixture
def booked(service, listing, owner, requester, other_user):
    first = service.request_appointment(requester.id, listing.id, SUNDAY_11)
    second = service.request_appointment(other_user.id, listing.id, datetime(2026, 1, 11, 10, 0))
    service.owner_act(owner.id, first.id, OwnerAction.APPROVE)
    return first, second


def test_list_appointments_returns_page_with_contacts(service, admin, booked, owner) -> None:
    first, second = booked

    result = list_appointments(
        status_filter=None,
        start_date=None,
        end_date=None,
        user_id=None,
        listing_id=None,
        page=1,
        limit=1,
        admin=admin,
        service=service,
    )

    assert [item.id for item in result.appointments] == [second.id]
    assert result.appointments[0].owner.email == owner.email
    assert result.pagination.model_dump() == {'page': 1, 'limit': 1, 'total': 2, 'total_pages': 2}


def test_get_appointment_route_raises_not_found(service, admin) -> None:
    with pytest.raises(NotFound):
        get_appointment(appointment_id=999, admin=admin, service=service)


def test_appointment_stats_route_lists_status_counts(service, admin, booked) -> None:
    stats = appointment_stats(admin=admin, service=service)

    assert stats.total == 2
    assert [(entry.status, entry.count) for entry in stats.by_status] == [('APPROVED', 1), ('PENDING', 1)]
    assert stats.last_week == 2


def test_admin_appointment_endpoints_over_http(client, admin, requester, booked) -> None:
    first, _ = booked

    assert client.get('/admin/appointments', headers=_auth(requester)).status_code == 403
    assert client.get('/admin/appointments/stats/summary', headers=_auth(requester)).status_code == 403

    approved = client.get(
        '/admin/appointments',
        params={'status': AppointmentStatus.APPROVED.value, 'user_id': requester.id},
        headers=_auth(admin),
    )
    assert approved.status_code == 200
    assert [item['id'] for item in approved.json()['appointments']] == [first.id]
    assert approved.json()['pagination']['total'] == 1

    detail = client.get(f'/admin/appointments/{first.id}', headers=_auth(admin))
    assert detail.json()['requester']['email'] == 'viewer@example.com'

    missing = client.get('/admin/appointments/999', headers=_auth(admin))
    assert missing.status_code == 404
    assert missing.json()['error'] == 'not_found'

    summary = client.get('/admin/appointments/stats/summary', headers=_auth(admin))
    assert summary.json()['total'] == 2

    too_large = client.get('/admin/appointments', params={'limit': 500}, headers=_auth(admin))
    assert too_large.status_code == 422
