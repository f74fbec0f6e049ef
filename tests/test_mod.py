# mypy: ignore-errors
# tests/test_mod.py
"""Tests for administrator endpoints."""

from __future__ import annotations

from fastapi import status

from shiftlink.core.security import create_access_token
from shiftlink.models import Employee, LocalDevice, RegistrationToken, Retail


def test_missing_or_forged_token_is_unauthorized(client, employee) -> None:
    missing = client.post("/api/mod/registration", json={"employeeId": employee.id})
    forged = client.post(
        "/api/mod/registration",
        json={"employeeId": employee.id},
        headers={"Authorization": "Bearer not.a.jwt"},
    )

    assert missing.status_code == status.HTTP_401_UNAUTHORIZED
    assert forged.status_code == status.HTTP_401_UNAUTHORIZED
    assert forged.json() == {"success": False, "msg": "srv_unauthorized"}


def test_token_for_unknown_retail_is_unauthorized(client, employee) -> None:
    headers = {"Authorization": f"Bearer {create_access_token('ghost')}"}

    response = client.post("/api/mod/registration", json={"employeeId": employee.id}, headers=headers)

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_issue_registration_link(client, db_session, employee, admin_headers) -> None:
    response = client.post("/api/mod/registration", json={"employeeId": employee.id}, headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    msg = response.json()["msg"]
    assert msg["link"].startswith("attendance://registration?domain=http%3A%2F%2Ftest&tokenId=")
    assert msg["intentUrl"].startswith("http://test/intent/registration?")
    assert db_session.get(RegistrationToken, msg["tokenId"]).employee_id == employee.id


def test_issued_token_pairs_a_device(client, employee, admin_headers, identity) -> None:
    issued = client.post(
        "/api/mod/registration",
        json={"employeeId": employee.id},
        headers=admin_headers,
    ).json()["msg"]

    response = client.post(
        "/api/registration",
        json={"tokenId": issued["tokenId"], "form": {"publicKey": identity["public_key_b64"], "name": "Erika"}},
        headers={"App-Id": "device-x"},
    )

    assert response.json()["msg"]["employeeId"] == employee.id


def test_employee_of_other_retail_is_not_found(client, db_session, admin_headers) -> None:
    other_retail = Retail(name="Other")
    db_session.add(other_retail)
    db_session.flush()
    stranger = Employee(retail_id=other_retail.id, name="Max")
    db_session.add(stranger)
    db_session.commit()

    response = client.post("/api/mod/registration", json={"employeeId": stranger.id}, headers=admin_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["msg"] == "srv_employee_not_found"


def test_inactive_employee_cannot_be_paired(client, db_session, employee, admin_headers) -> None:
    employee.is_active = False
    db_session.commit()

    response = client.post("/api/mod/registration", json={"employeeId": employee.id}, headers=admin_headers)

    assert response.json()["msg"] == "srv_employee_not_employed"


def test_list_local_devices_with_distance(client, register, admin_headers, add_local_device) -> None:
    add_local_device(register, "front")
    add_local_device(register, "back", latitude=register.latitude + 0.0009)

    response = client.get(f"/api/mod/registers/{register.id}/local-devices", headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    devices = response.json()["msg"]
    assert [item["label"] for item in devices] == ["front", "back"]
    assert devices[0]["distance"] == 0.0
    assert 95 < devices[1]["distance"] < 105


def test_admin_deletes_a_local_device(client, db_session, register, admin_headers, add_local_device) -> None:
    device = add_local_device(register, "front")

    response = client.delete(f"/api/mod/local-devices/{device.id}", headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    assert db_session.get(LocalDevice, device.id) is None


def test_admin_cannot_touch_other_retails(client, db_session, register, add_local_device) -> None:
    device = add_local_device(register, "front")
    other_retail = Retail(name="Other")
    db_session.add(other_retail)
    db_session.commit()
    headers = {"Authorization": f"Bearer {create_access_token(other_retail.id)}"}

    listing = client.get(f"/api/mod/registers/{register.id}/local-devices", headers=headers)
    deletion = client.delete(f"/api/mod/local-devices/{device.id}", headers=headers)

    assert listing.status_code == status.HTTP_404_NOT_FOUND
    assert deletion.status_code == status.HTTP_404_NOT_FOUND
    assert db_session.get(LocalDevice, device.id) is not None
