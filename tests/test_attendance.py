# mypy: ignore-errors
# tests/test_attendance.py
"""Tests for signed attendance endpoints."""

from __future__ import annotations

from fastapi import status
from sqlalchemy import select

from shiftlink.models import AttendanceEvent
from shiftlink.schemas.attendance import (
    AttendancePayload,
    BreakPayload,
    PausePayload,
    SpecificBreakPayload,
)
from tests.helpers import REGISTER_LAT, REGISTER_LON, now_ms, signed_body


def _post(client, path, identity, employee, payload, headers, **token):
    body = signed_body(identity["signing_key"], employee.id, payload, **token)
    return client.post(path, json=body, headers=headers)


def _check(register, **overrides) -> AttendancePayload:
    fields = {"register_id": register.id, "latitude": REGISTER_LAT, "longitude": REGISTER_LON}
    fields.update(overrides)
    return AttendancePayload(**fields)


def _interruption(payload_type, register, action, **extra):
    return payload_type(
        register_id=register.id,
        latitude=REGISTER_LAT,
        longitude=REGISTER_LON,
        action=action,
        **extra,
    )


def test_check_in_then_check_out(client, paired_employee, identity, register, device_headers) -> None:
    first = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)
    second = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    assert first.status_code == status.HTTP_200_OK
    assert first.json()["msg"] == "srv_checked_in"
    assert first.json()["eventId"]
    assert second.json()["msg"] == "srv_checked_out"


def test_no_second_shift_after_check_out(client, paired_employee, identity, register, device_headers) -> None:
    for _ in range(2):
        _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    third = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    assert third.status_code == status.HTTP_400_BAD_REQUEST
    assert third.json() == {"success": False, "msg": "srv_already_checked_out"}


def test_exact_replay_is_unauthorized(client, db_session, paired_employee, identity, register, device_headers) -> None:
    body = signed_body(identity["signing_key"], paired_employee.id, _check(register))

    first = client.post("/api/attendance", json=body, headers=device_headers)
    replay = client.post("/api/attendance", json=body, headers=device_headers)

    assert first.status_code == status.HTTP_200_OK
    assert replay.status_code == status.HTTP_401_UNAUTHORIZED
    assert replay.json() == {"success": False, "msg": "srv_unauthorized"}
    events = db_session.scalars(select(AttendanceEvent)).all()
    assert len(events) == 1


def test_stale_timestamp_is_unauthorized(client, paired_employee, identity, register, device_headers) -> None:
    response = _post(
        client,
        "/api/attendance",
        identity,
        paired_employee,
        _check(register),
        device_headers,
        timestamp=now_ms() - 10 * 60 * 1000,
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["msg"] == "srv_unauthorized"


def test_body_altered_after_signing_is_unauthorized(client, paired_employee, identity, register, device_headers) -> None:
    body = signed_body(identity["signing_key"], paired_employee.id, _check(register))
    body["latitude"] = REGISTER_LAT + 0.0001

    response = client.post("/api/attendance", json=body, headers=device_headers)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_extra_body_fields_are_rejected(client, paired_employee, identity, register, device_headers) -> None:
    body = signed_body(identity["signing_key"], paired_employee.id, _check(register))
    body["timestamp"] = 1

    response = client.post("/api/attendance", json=body, headers=device_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["msg"] == "srv_invalid_request"


def test_outside_radius_is_rejected(client, paired_employee, identity, register, device_headers) -> None:
    payload = _check(register, latitude=REGISTER_LAT + 0.01)

    response = _post(client, "/api/attendance", identity, paired_employee, payload, device_headers)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["msg"] == "srv_outside_allowed_radius"


def test_unknown_register(client, paired_employee, identity, register, device_headers) -> None:
    payload = AttendancePayload(register_id="nope", latitude=REGISTER_LAT, longitude=REGISTER_LON)

    response = _post(client, "/api/attendance", identity, paired_employee, payload, device_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["msg"] == "srv_register_not_found"


def test_unassigned_register(client, db_session, paired_employee, identity, register, device_headers) -> None:
    paired_employee.registers = []
    db_session.commit()

    response = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    assert response.json()["msg"] == "srv_employee_not_employed"


def test_unavailable_register(client, db_session, paired_employee, identity, register, device_headers) -> None:
    register.is_available = False
    db_session.commit()

    response = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    assert response.json()["msg"] == "srv_register_unavailable"


def test_break_lifecycle(client, paired_employee, identity, register, device_headers) -> None:
    not_in = _post(
        client, "/api/break", identity, paired_employee,
        _interruption(BreakPayload, register, "start"), device_headers,
    )
    assert not_in.json()["msg"] == "srv_not_checked_in"

    _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)
    started = _post(
        client, "/api/break", identity, paired_employee,
        _interruption(BreakPayload, register, "start", name="Lunch"), device_headers,
    )
    twice = _post(
        client, "/api/break", identity, paired_employee,
        _interruption(BreakPayload, register, "start"), device_headers,
    )
    blocked = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)
    ended = _post(
        client, "/api/break", identity, paired_employee,
        _interruption(BreakPayload, register, "end"), device_headers,
    )
    none_left = _post(
        client, "/api/break", identity, paired_employee,
        _interruption(BreakPayload, register, "end"), device_headers,
    )
    checked_out = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    assert started.json()["msg"] == "srv_break_started"
    assert twice.json()["msg"] == "srv_some_break_is_pending"
    assert blocked.json()["msg"] == "srv_some_break_is_pending"
    assert ended.json()["msg"] == "srv_break_ended"
    assert none_left.json()["msg"] == "srv_no_break_is_pending"
    assert checked_out.json()["msg"] == "srv_checked_out"


def test_interruptions_of_any_kind_block_each_other(
    client, db_session, paired_employee, identity, register, device_headers
) -> None:
    _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)

    def interrupt(path, payload_type, action, **extra):
        payload = _interruption(payload_type, register, action, **extra)
        return _post(client, path, identity, paired_employee, payload, device_headers).json()

    assert interrupt("/api/break", BreakPayload, "start", name="Lunch")["msg"] == "srv_break_started"
    assert interrupt("/api/pause", PausePayload, "start") == {"success": False, "msg": "srv_some_break_is_pending"}
    assert interrupt(
        "/api/specific-break", SpecificBreakPayload, "start", break_key="doctor",
    )["msg"] == "srv_some_break_is_pending"
    assert interrupt("/api/break", BreakPayload, "end")["msg"] == "srv_break_ended"

    assert interrupt("/api/pause", PausePayload, "start")["msg"] == "srv_pause_started"
    assert interrupt(
        "/api/specific-break", SpecificBreakPayload, "start", break_key="doctor",
    )["msg"] == "srv_some_pause_is_pending"
    assert interrupt("/api/break", BreakPayload, "start")["msg"] == "srv_some_pause_is_pending"
    assert interrupt("/api/pause", PausePayload, "end")["msg"] == "srv_pause_ended"

    specific = interrupt(
        "/api/specific-break", SpecificBreakPayload, "start", break_key="doctor", reason="Appointment",
    )
    assert specific["msg"] == "srv_specific_break_started"
    assert interrupt("/api/pause", PausePayload, "start")["msg"] == "srv_some_break_is_pending"
    assert interrupt("/api/break", BreakPayload, "start")["msg"] == "srv_some_break_is_pending"
    blocked = _post(client, "/api/attendance", identity, paired_employee, _check(register), device_headers)
    assert blocked.json()["msg"] == "srv_some_break_is_pending"

    event = db_session.get(AttendanceEvent, specific["eventId"])
    assert event.type == "specificBreak"
    assert event.details == {"action": "start", "breakKey": "doctor", "reason": "Appointment"}


def test_events_record_distance_and_coordinates(client, db_session, paired_employee, identity, register, device_headers) -> None:
    payload = _check(register, latitude=REGISTER_LAT + 0.0002)

    response = _post(client, "/api/attendance", identity, paired_employee, payload, device_headers)

    event = db_session.get(AttendanceEvent, response.json()["eventId"])
    assert event.latitude == REGISTER_LAT + 0.0002
    assert 20 < event.distance_m < 25
    assert event.retail_id == register.retail_id


def test_unpaired_device_header_is_rejected(client, paired_employee, identity, register) -> None:
    response = _post(
        client, "/api/attendance", identity, paired_employee, _check(register), {"App-Id": "device-d2"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
