"""
Shared test fixtures — SQLite test database, test client, sample wizard data.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Configure before importing app modules: local-only quotations, test database
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["DOCUMENT_API_URL"] = ""

from liftcpq.catalog import Catalog
from liftcpq.customer_directory import clear_lookup_cache
from liftcpq.database import Base, get_db
from liftcpq.main import app
from liftcpq.schemas import (
    Addon, CustomerInfo, FormData, InteriorOption, Package, Product, ProductConfig, Requirements,
)


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    clear_lookup_cache()
    yield
    Base.metadata.drop_all(bind=engine)
    clear_lookup_cache()


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


# --- Sample data ---

def make_product(price=1_000_000, additional_floor_cost=65_000, **kwargs):
    return Product(
        id=kwargs.pop("id", "ITEM-TEST"),
        name=kwargs.pop("name", "Test Lift"),
        price=price,
        capacity=kwargs.pop("capacity", 6),
        additional_floor_cost=additional_floor_cost,
        **kwargs,
    )


def make_config(lifts="2", stops="3", product=None, package=None, interior=None, addons=None):
    extras = {}
    if package is not None:
        extras["package"] = package
    if interior is not None:
        extras["interior_options"] = interior
    return ProductConfig(
        product=product if product is not None else make_product(),
        requirements=Requirements(lifts=lifts, stops=stops, passengers="6", building_type="Residential"),
        addons=addons or [],
        **extras,
    )


def catalog_config(product_id="ITEM-MODEL-8P", lifts="2", stops="3", **kwargs):
    """A config built from a real catalog product; submissions are re-priced from the catalog."""
    return make_config(lifts=lifts, stops=stops, product=Catalog().get_product(product_id), **kwargs)


def make_package(price=50_000, is_included=False, **kwargs):
    return Package(id=kwargs.pop("id", "PKG-TEST"), name=kwargs.pop("name", "Test Package"),
                   price=price, is_included=is_included, **kwargs)


def make_addon(addon_id="ADD-1", price=10_000):
    return Addon(id=addon_id, name=addon_id, price=price, category="Design")


def make_finish(option_id="FIN-1", price=0):
    return InteriorOption(id=option_id, name=option_id, price=price)


def make_customer_info(**overrides):
    data = {
        "customer_id": "CUST-001",
        "customer_type": "Commercial",
        "first_name": "Arun",
        "last_name": "K",
        "customer_name": "Evanam Pvt Ltd",
        "address": "200, Tech Park",
        "city": "Chennai",
        "state": "Tamil Nadu",
        "zip_code": "600042",
    }
    data.update(overrides)
    return CustomerInfo(**data)


@pytest.fixture
def sample_form_data():
    """One configured line: 2 lifts × 3 stops of ITEM-MODEL-8P, 2,630,000."""
    return FormData(customer_info=make_customer_info(), product_configs=[catalog_config()])
