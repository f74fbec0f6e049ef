# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import timedelta
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from shiftlink.core.security import create_access_token
from shiftlink.db.session import Base
from shiftlink.db.session import get_db as app_get_session
from shiftlink.db.time import utcnow
from shiftlink.main import app as fastapi_app
from shiftlink.models import Employee, LocalDevice, Register, RegistrationToken, Retail
from shiftlink.services.replay import get_replay_service
from tests.helpers import DEVICE_ID, REGISTER_LAT, REGISTER_LON, generate_identity

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    try:
        yield session
    finally:
        session.close()
        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if savepoints were released.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def reset_replay_cache() -> Iterator[None]:
    """Give every test a fresh in-process nonce store."""
    get_replay_service.cache_clear()
    yield
    get_replay_service.cache_clear()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def retail(db_session: Session) -> Retail:
    retail = Retail(name="Acme Retail", tin="12345678")
    db_session.add(retail)
    db_session.commit()
    return retail


@pytest.fixture()
def register(db_session: Session, retail: Retail) -> Register:
    register = Register(
        retail_id=retail.id,
        name="Main Street",
        address="Main Street 1",
        latitude=REGISTER_LAT,
        longitude=REGISTER_LON,
        allowed_radius_m=100.0,
        max_local_devices=2,
    )
    db_session.add(register)
    db_session.commit()
    return register


@pytest.fixture()
def employee(db_session: Session, retail: Retail, register: Register) -> Employee:
    employee = Employee(
        retail_id=retail.id,
        name="Erika Muster",
        email="erika@acme.example",
        phone="+49 30 1234",
        registers=[register],
    )
    db_session.add(employee)
    db_session.commit()
    return employee


@pytest.fixture()
def identity() -> dict[str, Any]:
    return generate_identity()


@pytest.fixture()
def paired_employee(db_session: Session, employee: Employee, identity: dict[str, Any]) -> Employee:
    """The employee bound to ``identity`` on device ``DEVICE_ID``."""
    employee.public_key = identity["public_key"]
    employee.device_id = DEVICE_ID
    employee.paired_at = utcnow()
    db_session.commit()
    return employee


@pytest.fixture()
def device_headers() -> dict[str, str]:
    return {"App-Id": DEVICE_ID}


@pytest.fixture()
def registration_token(db_session: Session, employee: Employee) -> RegistrationToken:
    token = RegistrationToken(
        token_id="tok123",
        employee_id=employee.id,
        retail_id=employee.retail_id,
        expires_at=utcnow() + timedelta(minutes=15),
    )
    db_session.add(token)
    db_session.commit()
    return token


@pytest.fixture()
def add_local_device(db_session: Session) -> Callable[..., LocalDevice]:
    def _add(register: Register, label: str, **fields: Any) -> LocalDevice:
        device = LocalDevice(
            register_id=register.id,
            device_id=fields.pop("device_id", f"hw-{label}"),
            label=label,
            latitude=fields.pop("latitude", register.latitude),
            longitude=fields.pop("longitude", register.longitude),
            **fields,
        )
        db_session.add(device)
        db_session.commit()
        return device

    return _add


@pytest.fixture()
def admin_headers(retail: Retail) -> dict[str, str]:
    """Return authorization headers for an admin of ``retail``."""
    token = create_access_token(retail.id, {"scope": "mod"})
    return {"Authorization": f"Bearer {token}"}
