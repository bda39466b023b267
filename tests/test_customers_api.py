"""
Customer directory tests — CRUD, suggestions, typed search and the lookup cache.
"""

from unittest.mock import patch

from liftcpq import customer_directory, models, schemas
from liftcpq.config import settings


def _seed(db):
    return customer_directory.seed_customers(db)


def test_seed_customers_idempotent(db):
    assert _seed(db) == 2
    assert _seed(db) == 0
    assert db.query(models.Customer).count() == 2


def test_create_customer_generates_id(client, db):
    _seed(db)
    resp = client.post("/api/customers/", json={
        "first_name": "Meena",
        "last_name": "R",
        "email": "meena@example.com",
        "phone_number": "9000000099",
        "city": "Coimbatore",
    })
    assert resp.status_code == 200
    data = resp.json()
    assert data["customer_id"] == "CUST-003"
    assert data["customer_type"] == "Individual"
    assert data["country"] == "India"


def test_create_customer_duplicate_id(client, db):
    _seed(db)
    resp = client.post("/api/customers/", json={"customer_id": "CUST-001", "first_name": "Dup"})
    assert resp.status_code == 409


def test_list_and_get_customer(client, db):
    _seed(db)
    resp = client.get("/api/customers/")
    assert [c["customer_id"] for c in resp.json()] == ["CUST-001", "CUST-002"]

    resp = client.get("/api/customers/CUST-002")
    assert resp.status_code == 200
    assert resp.json()["first_name"] == "Vicky"
    assert client.get("/api/customers/CUST-999").status_code == 404


def test_update_customer_invalidates_cache(client, db):
    _seed(db)
    assert client.get("/api/customers/CUST-001").json()["city"] == "Chennai"
    resp = client.patch("/api/customers/CUST-001", json={"city": "Madurai"})
    assert resp.status_code == 200
    assert resp.json()["city"] == "Madurai"
    assert client.get("/api/customers/CUST-001").json()["city"] == "Madurai"


def test_update_missing_customer(client):
    assert client.patch("/api/customers/CUST-404", json={"city": "X"}).status_code == 404


def test_lookup_cache_serves_repeat_reads(db):
    _seed(db)
    first = customer_directory.get_customer(db, "CUST-001")
    assert customer_directory.get_customer(db, "CUST-001") is first
    customer_directory.clear_lookup_cache()
    assert customer_directory.get_customer(db, "CUST-001") is not first


def test_lookup_cache_entries_expire(db):
    _seed(db)
    with patch("liftcpq.customer_directory.monotonic", return_value=1_000.0):
        first = customer_directory.get_customer(db, "CUST-001")
        assert customer_directory.get_customer(db, "CUST-001") is first
    # Changed behind the cache's back
    db.query(models.Customer).filter(models.Customer.customer_id == "CUST-001").update({"city": "Madurai"})
    db.commit()
    later = 1_000.0 + settings.CUSTOMER_CACHE_TTL + 1
    with patch("liftcpq.customer_directory.monotonic", return_value=later):
        fresh = customer_directory.get_customer(db, "CUST-001")
    assert fresh is not first
    assert fresh.city == "Madurai"


def test_lookup_cache_is_bounded(db, monkeypatch):
    _seed(db)
    monkeypatch.setattr(settings, "CUSTOMER_CACHE_SIZE", 1)
    first = customer_directory.get_customer(db, "CUST-001")
    customer_directory.get_customer(db, "CUST-002")
    assert len(customer_directory._lookup_cache) == 1
    assert customer_directory.get_customer(db, "CUST-001") is not first


def test_suggestions_match_reasons(client, db):
    _seed(db)
    by_name = client.get("/api/customers/suggestions", params={"q": "evanam"}).json()
    assert by_name[0]["id"] == "CUST-001"
    assert by_name[0]["match_reason"] == "Name match"

    by_phone = client.get("/api/customers/suggestions", params={"q": "9000000001"}).json()
    assert [s["id"] for s in by_phone] == ["CUST-002"]
    assert by_phone[0]["match_reason"] == "Phone match"

    by_gstin = client.get("/api/customers/suggestions", params={"q": "33EVANM"}).json()
    assert by_gstin[0]["match_reason"] == "GSTIN match"


def test_suggestions_empty_term(client, db):
    _seed(db)
    assert client.get("/api/customers/suggestions", params={"q": "  "}).json() == []


def test_search_by_type(client, db):
    _seed(db)
    resp = client.get("/api/customers/search", params={"q": "VICKY@example.com", "search_type": "email"})
    assert resp.status_code == 200
    assert resp.json()["customer_id"] == "CUST-002"

    resp = client.get("/api/customers/search", params={"q": "33evanm1234a1z5", "search_type": "gstin"})
    assert resp.json()["customer_id"] == "CUST-001"

    resp = client.get("/api/customers/search", params={"q": "nobody@example.com", "search_type": "email"})
    assert resp.status_code == 404


def test_search_invalid_type(client, db):
    resp = client.get("/api/customers/search", params={"q": "x", "search_type": "fax"})
    assert resp.status_code == 400


def test_to_customer_info(db):
    _seed(db)
    info = customer_directory.to_customer_info(customer_directory.get_customer(db, "CUST-001"))
    assert isinstance(info, schemas.CustomerInfo)
    assert info.customer_id == "CUST-001"
    assert info.customer_name == "Evanam Pvt Ltd"
    assert info.city == "Chennai"
    assert info.zip_code == "600042"
