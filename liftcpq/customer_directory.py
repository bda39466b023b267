"""
Customer directory — search, lookup cache and demo seed data.

Lookups by customer id are cached in-process (the wizard re-reads the same
customer on every step); any write through this module invalidates the
cached entry.
"""

import logging
from collections import OrderedDict
from time import monotonic
from typing import List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from . import models, schemas
from .config import settings

logger = logging.getLogger(__name__)

SEARCH_TYPES = ("email", "mobile", "name", "gstin")

DEFAULT_CUSTOMERS = [
    {
        "customer_id": "CUST-001",
        "customer_type": "Commercial",
        "customer_name": "Evanam Pvt Ltd",
        "first_name": "Arun",
        "last_name": "K",
        "email": "contact@evanam.com",
        "phone_number": "9876543210",
        "gstin": "33EVANM1234A1Z5",
        "address": "200, Tech Park",
        "address2": "Unit 5B",
        "country": "India",
        "state": "Tamil Nadu",
        "city": "Chennai",
        "zip_code": "600042",
        "salutation": "Mr",
        "title": "Contractor",
    },
    {
        "customer_id": "CUST-002",
        "customer_type": "Individual",
        "customer_name": "Vicky",
        "first_name": "Vicky",
        "last_name": "S",
        "email": "vicky@example.com",
        "phone_number": "9000000001",
        "gstin": "",
        "address": "45, Gandhi Street",
        "address2": "",
        "country": "India",
        "state": "Tamil Nadu",
        "city": "Chennai",
        "zip_code": "600001",
        "salutation": "Mr",
        "title": "Building Owner",
    },
]

# customer_id -> (cached_at, customer); oldest entries evicted first
_lookup_cache: "OrderedDict[str, Tuple[float, schemas.Customer]]" = OrderedDict()


def clear_lookup_cache() -> None:
    _lookup_cache.clear()


def _cached(customer_id: str) -> Optional[schemas.Customer]:
    entry = _lookup_cache.get(customer_id)
    if entry is None:
        return None
    cached_at, customer = entry
    if monotonic() - cached_at > settings.CUSTOMER_CACHE_TTL:
        # Entries expire so writes made outside this module are picked up
        del _lookup_cache[customer_id]
        return None
    _lookup_cache.move_to_end(customer_id)
    return customer


def _remember(customer: schemas.Customer) -> None:
    _lookup_cache[customer.customer_id] = (monotonic(), customer)
    _lookup_cache.move_to_end(customer.customer_id)
    while len(_lookup_cache) > settings.CUSTOMER_CACHE_SIZE:
        _lookup_cache.popitem(last=False)


def generate_customer_id(db: Session) -> str:
    count = db.query(models.Customer).count()
    candidate = count + 1
    while db.query(models.Customer).filter(
        models.Customer.customer_id == f"CUST-{str(candidate).zfill(3)}"
    ).first():
        candidate += 1
    return f"CUST-{str(candidate).zfill(3)}"


def create_customer(db: Session, data: schemas.CustomerCreate) -> models.Customer:
    values = data.model_dump()
    if not values.get("customer_id"):
        values["customer_id"] = generate_customer_id(db)
    elif db.query(models.Customer).filter(models.Customer.customer_id == values["customer_id"]).first():
        raise ValueError(f"Customer {values['customer_id']} already exists")
    customer = models.Customer(**values)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    _lookup_cache.pop(customer.customer_id, None)
    logger.info("Created customer %s (%s)", customer.customer_id, customer.display_name)
    return customer


def update_customer(db: Session, customer: models.Customer, update: schemas.CustomerUpdate) -> models.Customer:
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)
    db.commit()
    db.refresh(customer)
    _lookup_cache.pop(customer.customer_id, None)
    return customer


def get_customer(db: Session, customer_id: str) -> Optional[schemas.Customer]:
    """Customer by business id (CUST-001), served from the lookup cache when possible."""
    cached = _cached(customer_id)
    if cached is not None:
        return cached
    row = db.query(models.Customer).filter(models.Customer.customer_id == customer_id).first()
    if row is None:
        return None
    customer = schemas.Customer.model_validate(row)
    _remember(customer)
    return customer


def _match_reason(customer: models.Customer, term: str) -> str:
    lc = term.lower()
    if lc in (customer.customer_name or "").lower() or lc in customer.display_name.lower():
        return "Name match"
    if lc in (customer.email or "").lower():
        return "Email match"
    if term in (customer.phone_number or ""):
        return "Phone match"
    if lc in (customer.gstin or "").lower():
        return "GSTIN match"
    return "Match"


def search_suggestions(db: Session, term: str, limit: int = 10) -> List[schemas.CustomerSuggestion]:
    """Case-insensitive match on name, email and GSTIN; phone matches by substring."""
    term = (term or "").strip()
    if not term:
        return []
    pattern = f"%{term.lower()}%"
    rows = db.query(models.Customer).filter(or_(
        func.lower(models.Customer.customer_name).like(pattern),
        func.lower(models.Customer.first_name + " " + models.Customer.last_name).like(pattern),
        func.lower(models.Customer.email).like(pattern),
        models.Customer.phone_number.like(f"%{term}%"),
        func.lower(models.Customer.gstin).like(pattern),
    )).order_by(models.Customer.customer_id).limit(limit).all()

    return [
        schemas.CustomerSuggestion(
            id=c.customer_id,
            name=c.display_name,
            email=c.email,
            phone=c.phone_number,
            gstin=c.gstin,
            customer_type=c.customer_type or "Individual",
            city=c.city,
            match_reason=_match_reason(c, term),
        )
        for c in rows
    ]


def search_customer(db: Session, term: str, search_type: str) -> Optional[schemas.Customer]:
    """First customer matching the term for the given search type."""
    if search_type not in SEARCH_TYPES:
        raise ValueError(f"search_type must be one of {SEARCH_TYPES}, got {search_type!r}")
    term = (term or "").strip()
    if not term:
        return None
    lc = term.lower()
    query = db.query(models.Customer)
    if search_type == "email":
        query = query.filter(func.lower(models.Customer.email) == lc)
    elif search_type == "mobile":
        query = query.filter(models.Customer.phone_number.like(f"%{term}%"))
    elif search_type == "gstin":
        query = query.filter(func.lower(models.Customer.gstin) == lc)
    else:
        query = query.filter(or_(
            func.lower(models.Customer.customer_name).like(f"%{lc}%"),
            func.lower(models.Customer.first_name + " " + models.Customer.last_name).like(f"%{lc}%"),
        ))
    row = query.order_by(models.Customer.customer_id).first()
    return get_customer(db, row.customer_id) if row else None


def to_customer_info(customer: schemas.Customer) -> schemas.CustomerInfo:
    """Wizard step-1 data from a stored customer."""
    data = customer.model_dump()
    data["customer_id"] = customer.customer_id
    for key in list(data):
        if key not in schemas.CustomerInfo.model_fields:
            data.pop(key)
    return schemas.CustomerInfo(**{k: v for k, v in data.items() if v is not None})


def seed_customers(db: Session) -> int:
    """Insert the demo customers that are missing. Returns the number added."""
    added = 0
    for data in DEFAULT_CUSTOMERS:
        exists = db.query(models.Customer).filter(
            models.Customer.customer_id == data["customer_id"]
        ).first()
        if not exists:
            db.add(models.Customer(site_address_same_as_customer=True, **data))
            added += 1
    db.commit()
    return added
