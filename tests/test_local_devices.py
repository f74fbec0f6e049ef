# mypy: ignore-errors
# tests/test_local_devices.py
"""Tests for local device resolution, confirmation and lifecycle."""

from __future__ import annotations

import pytest
from fastapi import status
from sqlalchemy import select

from shiftlink.core.errors import AmbiguousLocalDevice, AttendanceError
from shiftlink.models import AttendanceEvent, LocalDevice, LocalDeviceConfirmation
from shiftlink.schemas.attendance import AttendancePayload, LocalDeviceConfirmationPayload
from shiftlink.services.local_devices import LocalDeviceResolver
from tests.helpers import REGISTER_LAT, REGISTER_LON, signed_body


def _check_in(client, identity, employee, register, headers, **fields):
    payload = AttendancePayload(register_id=register.id, latitude=REGISTER_LAT, longitude=REGISTER_LON, **fields)
    body = signed_body(identity["signing_key"], employee.id, payload)
    return client.post("/api/attendance", json=body, headers=headers)


def _confirm(client, identity, employee, headers, event_id, local_device_id, *, path_event_id=None):
    payload = LocalDeviceConfirmationPayload(event_id=event_id, local_device_id=local_device_id)
    body = signed_body(identity["signing_key"], employee.id, payload)
    return client.post(
        f"/api/attendance/{path_event_id or event_id}/local-device",
        json=body,
        headers=headers,
    )


def test_single_device_is_resolved_automatically(
    client, db_session, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    device = add_local_device(register, "front")

    response = _check_in(client, identity, paired_employee, register, device_headers)

    assert response.status_code == status.HTTP_200_OK
    assert "localDevices" not in response.json()
    event = db_session.get(AttendanceEvent, response.json()["eventId"])
    assert event.local_device_id == device.id
    assert device.last_seen_at is not None


def test_two_devices_record_without_guessing(
    client, db_session, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    front = add_local_device(register, "front")
    back = add_local_device(register, "back")

    response = _check_in(client, identity, paired_employee, register, device_headers)

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["msg"] == "srv_checked_in"
    assert {item["id"] for item in body["localDevices"]} == {front.id, back.id}
    event = db_session.get(AttendanceEvent, body["eventId"])
    assert event.local_device_id is None


def test_named_device_of_the_register_wins(
    client, db_session, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    add_local_device(register, "front")
    back = add_local_device(register, "back")

    response = _check_in(client, identity, paired_employee, register, device_headers, local_device_id=back.id)

    assert "localDevices" not in response.json()
    assert db_session.get(AttendanceEvent, response.json()["eventId"]).local_device_id == back.id


def test_device_of_another_register_is_ignored(db_session, register, add_local_device) -> None:
    device = add_local_device(register, "front")

    resolution = LocalDeviceResolver().resolve(db_session, register.id, "foreign-device")

    assert resolution.local_device_id == device.id


def test_register_without_devices_is_recorded_without_candidates(
    client, db_session, paired_employee, identity, register, device_headers
) -> None:
    response = _check_in(client, identity, paired_employee, register, device_headers)

    assert response.status_code == status.HTTP_200_OK
    assert "localDevices" not in response.json()
    assert db_session.get(AttendanceEvent, response.json()["eventId"]).local_device_id is None


def test_confirmation_selects_the_terminal_once(
    client, db_session, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    add_local_device(register, "front")
    back = add_local_device(register, "back")
    event_id = _check_in(client, identity, paired_employee, register, device_headers).json()["eventId"]

    confirmed = _confirm(client, identity, paired_employee, device_headers, event_id, back.id)
    again = _confirm(client, identity, paired_employee, device_headers, event_id, back.id)

    assert confirmed.status_code == status.HTTP_200_OK
    assert confirmed.json()["msg"] == {"code": "srv_local_device_confirmed", "localDeviceId": back.id}
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["msg"] == "srv_local_device_already_set"
    # The event row itself is never rewritten.
    assert db_session.get(AttendanceEvent, event_id).local_device_id is None
    confirmation = db_session.scalar(
        select(LocalDeviceConfirmation).where(LocalDeviceConfirmation.event_id == event_id)
    )
    assert confirmation.local_device_id == back.id


def test_confirmation_with_unknown_device_lists_candidates(
    client, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    add_local_device(register, "front")
    add_local_device(register, "back")
    event_id = _check_in(client, identity, paired_employee, register, device_headers).json()["eventId"]

    response = _confirm(client, identity, paired_employee, device_headers, event_id, "nope")

    assert response.status_code == status.HTTP_409_CONFLICT
    body = response.json()
    assert body["msg"] == "srv_local_device_required"
    assert len(body["localDevices"]) == 2


def test_confirmation_path_must_match_payload(
    client, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    device = add_local_device(register, "front")

    response = _confirm(
        client, identity, paired_employee, device_headers, "event-a", device.id, path_event_id="event-b",
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["fields"] == [{"field": "eventId", "code": "srv_invalid_request"}]


def test_resolver_require_raises_when_ambiguous(db_session, register, add_local_device) -> None:
    add_local_device(register, "front")
    add_local_device(register, "back")

    with pytest.raises(AmbiguousLocalDevice) as exc:
        LocalDeviceResolver().require(db_session, register.id)

    assert [item["label"] for item in exc.value.candidates] == ["front", "back"]


def test_terminal_registers_itself(client, db_session, register) -> None:
    response = client.post(
        "/api/local-device",
        json={
            "deviceId": "hw-001",
            "registerId": register.id,
            "label": "Till 1",
            "latitude": REGISTER_LAT,
            "longitude": REGISTER_LON,
        },
    )

    assert response.status_code == status.HTTP_201_CREATED
    msg = response.json()["msg"]
    assert msg["deviceId"] == "hw-001"
    assert db_session.get(LocalDevice, msg["id"]).register_id == register.id


def test_terminal_registration_limits(client, register, add_local_device) -> None:
    add_local_device(register, "front", device_id="hw-001")

    duplicate = client.post(
        "/api/local-device",
        json={"deviceId": "hw-001", "registerId": register.id, "latitude": 0, "longitude": 0},
    )
    add_local_device(register, "back")
    full = client.post(
        "/api/local-device",
        json={"deviceId": "hw-003", "registerId": register.id, "latitude": 0, "longitude": 0},
    )

    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json()["msg"] == "srv_device_already_registered"
    assert full.status_code == status.HTTP_400_BAD_REQUEST
    assert full.json()["msg"] == "srv_max_local_devices_reached"


def test_deleting_a_terminal_keeps_history(
    client, db_session, paired_employee, identity, register, device_headers, add_local_device
) -> None:
    device = add_local_device(register, "front")
    event_id = _check_in(client, identity, paired_employee, register, device_headers).json()["eventId"]

    response = client.request(
        "DELETE",
        "/api/local-device",
        json={"deviceId": device.device_id, "registerId": register.id, "id": device.id},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["msg"] == "srv_local_device_deleted"
    assert db_session.get(LocalDevice, device.id) is None
    event = db_session.get(AttendanceEvent, event_id)
    assert event.local_device_id == device.id


def test_unregister_requires_matching_identifiers(client, register, add_local_device) -> None:
    device = add_local_device(register, "front")

    response = client.request(
        "DELETE",
        "/api/local-device",
        json={"deviceId": "someone-else", "registerId": register.id, "id": device.id},
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["msg"] == "srv_local_device_not_found"


def test_attendance_events_are_immutable(
    client, db_session, paired_employee, identity, register, device_headers
) -> None:
    event_id = _check_in(client, identity, paired_employee, register, device_headers).json()["eventId"]
    event = db_session.get(AttendanceEvent, event_id)

    event.local_device_id = "rewritten"
    with pytest.raises(AttendanceError):
        db_session.flush()
