import os

# Keep the application engine off the on-disk development database
os.environ.setdefault("WALLETS_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from uuid import uuid4

from backend.app.models.models import Base, Budget, User, Wallet, WalletPlan
from backend.app.database import get_db_session
from backend.app.events import event_bus
from backend.app.main import app

# Use an in-memory test database shared by every connection of the test
TEST_DATABASE_URL = "sqlite://"

@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(db_engine):
    """Returns a fresh SQLAlchemy session for each test"""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.close()

@pytest.fixture(autouse=True)
def clean_event_bus():
    event_bus.reset()
    yield
    event_bus.reset()

@pytest.fixture
def client(db_session):
    """Test client fixture that uses the db_session fixture"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db_session] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

def _make_user(db_session, email, display_name):
    user = User(id=str(uuid4()), email=email, display_name=display_name)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user

def _make_wallet(db_session, owner, name, balance="0.00", plan=WalletPlan.PERSONAL, collaborators=None):
    wallet = Wallet(
        id=str(uuid4()),
        user_id=owner.id,
        name=name,
        plan=plan.value,
        balance=balance,
        opening_balance=balance,
        collaborators=collaborators or []
    )
    db_session.add(wallet)
    db_session.commit()
    db_session.refresh(wallet)
    return wallet

def _make_budget(db_session, owner, category, amount, wallet=None, spent="0.00", left=None):
    budget = Budget(
        id=str(uuid4()),
        user_id=owner.id,
        wallet_id=wallet.id if wallet else None,
        plan=WalletPlan.SHARED.value if wallet else WalletPlan.PERSONAL.value,
        category=category,
        amount=amount,
        spent=spent,
        left=left if left is not None else amount,
        collaborators=list(wallet.collaborators) if wallet else []
    )
    db_session.add(budget)
    db_session.commit()
    db_session.refresh(budget)
    return budget

def collaborator_entry(user, role="Editor"):
    return {"id": user.id, "name": user.display_name, "email": user.email, "role": role}

@pytest.fixture
def test_user(db_session):
    """Creates a test user and returns it"""
    return _make_user(db_session, "test@example.com", "Test User")

@pytest.fixture
def partner(db_session):
    """A second user who collaborates on shared wallets"""
    return _make_user(db_session, "partner@example.com", "Partner User")

@pytest.fixture
def outsider(db_session):
    return _make_user(db_session, "outsider@example.com", "Outsider")

@pytest.fixture
def cash_wallet(db_session, test_user):
    return _make_wallet(db_session, test_user, "Cash", "1000.00")

@pytest.fixture
def savings_wallet(db_session, test_user):
    return _make_wallet(db_session, test_user, "Savings", "300.00")

@pytest.fixture
def shared_wallet(db_session, test_user, partner):
    """A shared wallet owned by test_user with partner as Editor"""
    return _make_wallet(
        db_session, test_user, "Household", "2000.00", WalletPlan.SHARED,
        [collaborator_entry(test_user, "Owner"), collaborator_entry(partner, "Editor")]
    )

@pytest.fixture
def food_budget(db_session, test_user):
    """Personal Food budget of 500.00"""
    return _make_budget(db_session, test_user, "Food", "500.00")

@pytest.fixture
def make_user(db_session):
    return lambda email, display_name: _make_user(db_session, email, display_name)

@pytest.fixture
def make_wallet(db_session):
    return lambda owner, name, *args, **kwargs: _make_wallet(db_session, owner, name, *args, **kwargs)

@pytest.fixture
def make_budget(db_session):
    return lambda owner, category, amount, **kwargs: _make_budget(db_session, owner, category, amount, **kwargs)

@pytest.fixture
def collaborator():
    return collaborator_entry
