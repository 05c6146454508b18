import os

os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")
os.environ.setdefault("DB_NAME", "scrapx_test")
os.environ.setdefault("DB_USER", "scrapx")
os.environ.setdefault("DB_PASSWORD", "scrapx")
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "30")
os.environ.setdefault("REFRESH_TOKEN_EXPIRE_DAYS", "7")
os.environ.setdefault("APP_NAME", "ScrapX Test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("ALLOWED_ORIGINS", "http://localhost:5173")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from scrapx.database import get_db
from scrapx.enums.listing import ListingStatus
from scrapx.enums.user import UserRole
from scrapx.main import app
from scrapx.models.base import Base
from scrapx.models.listing import Listing
from scrapx.models.material_type import MaterialType
from scrapx.models.ngo import NGO
from scrapx.utils import storage
from scrapx.utils.verification import clear_verification_codes

from .utils import make_user

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    clear_verification_codes()
    storage._storage_instance = None

@pytest.fixture
def db_session():
    session = TestingSessionLocal()
    yield session
    session.close()

@pytest.fixture
def client():
    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

@pytest.fixture
def seller(db_session):
    return make_user(db_session, "seller")

@pytest.fixture
def buyer(db_session):
    return make_user(db_session, "buyer")

@pytest.fixture
def other_user(db_session):
    return make_user(db_session, "outsider")

@pytest.fixture
def admin(db_session):
    return make_user(db_session, "admin", role=UserRole.ADMIN)

@pytest.fixture
def materials(db_session):
    rows = {
        "Paper": MaterialType(name="Paper", category="paper", base_price=12.0),
        "Plastic": MaterialType(name="Plastic", category="plastic", base_price=15.0),
        "Metal": MaterialType(name="Metal", category="metal", base_price=35.0),
    }
    db_session.add_all(rows.values())
    db_session.commit()
    for row in rows.values():
        db_session.refresh(row)
    return rows

@pytest.fixture
def ngo(db_session):
    row = NGO(name="Books for All", address="45 Library Road, Mumbai, Maharashtra")
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row

@pytest.fixture
def make_listing(db_session, materials):
    def _make(seller, material="Paper", status=ListingStatus.ACTIVE, **kwargs):
        values = {
            "title": f"{material} scrap",
            "quantity": 10.0,
            "unit": "kg",
            "listed_price": materials[material].base_price,
            "latitude": 13.0827,
            "longitude": 80.2707,
        }
        values.update(kwargs)
        listing = Listing(
            seller_id=seller.id,
            material_type_id=materials[material].id,
            status=status,
            **values
        )
        db_session.add(listing)
        db_session.commit()
        db_session.refresh(listing)
        return listing
    return _make
