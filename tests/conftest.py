import pytest
from datetime import date
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_dashboard.core.security import get_current_user
from portfolio_dashboard.db.base import Base
from portfolio_dashboard.dependencies import get_repository
from portfolio_dashboard.main import app
from portfolio_dashboard.models import MonthlyFinancial, Property
from portfolio_dashboard.schemas.auth import AuthenticatedUser
from portfolio_dashboard.services.repository import SqlAlchemyFinancialRepository

TEST_DATABASE_URL = "sqlite://"

TEST_USER = AuthenticatedUser(id="test-user", email="tester@example.com", role="authenticated")


@pytest.fixture()
def engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def repo(db_session):
    return SqlAlchemyFinancialRepository(db_session)


@pytest.fixture()
def properties(db_session):
    """Two properties; names chosen so that alphabetical order differs from id order."""
    sunset = Property(property_id=1, property_name="Sunset Apartments", purchase_price=1_000_000, unit_count=12)
    maple = Property(property_id=2, property_name="Maple Court", purchase_price=500_000, unit_count=6)
    db_session.add_all([sunset, maple])
    db_session.commit()
    return [sunset, maple]


@pytest.fixture()
def add_financial(db_session):
    """Insert a ledger row directly, bypassing the input gate."""
    def _add(property_id, month, **values):
        row = MonthlyFinancial(property_id=property_id, reporting_month=month, **values)
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture()
def client(repo):
    def _override_repository():
        yield repo

    app.dependency_overrides[get_repository] = _override_repository
    app.dependency_overrides[get_current_user] = lambda: TEST_USER
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def anonymous_client(repo):
    """Client with the real authentication dependency in place."""
    def _override_repository():
        yield repo

    app.dependency_overrides[get_repository] = _override_repository
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def this_year():
    return date.today().year
