from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import orderflow.persistence.pg as pg
from orderflow.core.config import get_settings
from orderflow.domain.pricing.money import to_cents
from orderflow.persistence.models import Base, ClientModel, ItemModel

ADMIN_EMAIL = "admin@orderflow.local"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite"


@pytest.fixture(scope="session", autouse=True)
def configure_test_engine(test_db_path: Path):
    settings = get_settings()
    settings.auth_enabled = True
    settings.notifications_enabled = False
    settings.admin_emails = [ADMIN_EMAIL]

    engine = create_engine(
        f"sqlite+pysqlite:///{test_db_path}",
        future=True,
        connect_args={"check_same_thread": False},
    )
    TestSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

    pg.engine = engine
    pg.SessionLocal = TestSessionLocal

    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_tables(configure_test_engine):
    with pg.engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())
    yield


@pytest.fixture()
def client(configure_test_engine):
    from orderflow.main import app

    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def session(configure_test_engine):
    with pg.session_scope() as s:
        yield s


@pytest.fixture()
def headers_for():
    settings = get_settings()

    def build(email: str | None = None) -> dict[str, str]:
        headers = {"X-API-Key": settings.gateway_api_key}
        if email:
            headers["X-Authenticated-Email"] = email
        return headers

    return build


@pytest.fixture()
def admin_headers(headers_for):
    return headers_for(ADMIN_EMAIL)


@pytest.fixture()
def make_client(session):
    counter = {"n": 0}

    def build(name: str | None = None, email: str | None = None) -> ClientModel:
        counter["n"] += 1
        row = ClientModel(
            name=name or f"Client {counter['n']}",
            address="Main street 1",
            vat_id=f"CZ{counter['n']:08d}",
            phone="+420 600 000 000",
            email=email or f"client{counter['n']}@example.com",
        )
        session.add(row)
        session.flush()
        return row

    return build


@pytest.fixture()
def make_item(session):
    def build(name: str, price: str, category: str = "general") -> ItemModel:
        row = ItemModel(name=name, category=category, unit_price_cents=to_cents(Decimal(price)))
        session.add(row)
        session.flush()
        return row

    return build
