from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey, Enum, Boolean, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


class QuotationStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    SENT = "sent"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class SyncStatus(str, enum.Enum):
    LOCAL = "local"      # no document store configured
    SYNCED = "synced"
    FAILED = "failed"


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String, unique=True, nullable=False, index=True)  # e.g. CUST-001
    customer_type = Column(String, default="Individual")  # 'Commercial' | 'Individual'
    salutation = Column(String, nullable=True)
    title = Column(String, nullable=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, default="")
    customer_name = Column(String, nullable=True)  # company name for Commercial
    email = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    gstin = Column(String, nullable=True)

    address = Column(Text, nullable=True)
    address2 = Column(Text, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    country = Column(String, default="India")
    zip_code = Column(String, nullable=True)

    site_address_same_as_customer = Column(Boolean, default=True)
    site_address = Column(Text, nullable=True)
    site_address2 = Column(Text, nullable=True)
    site_city = Column(String, nullable=True)
    site_state = Column(String, nullable=True)
    site_country = Column(String, nullable=True)
    site_zip_code = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return self.customer_name or f"{self.first_name} {self.last_name or ''}".strip()


class WizardSession(Base):
    """Saved progress of one run through the 7-step wizard."""
    __tablename__ = "wizard_sessions"

    id = Column(String, primary_key=True)  # UUID
    current_step = Column(Integer, default=1)
    form_data_json = Column(JSON, nullable=True)  # FormData snapshot
    saved_at = Column(DateTime, nullable=True)
    status = Column(String, default="active")  # 'active' | 'submitted'
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    backups = relationship("FormBackup", back_populates="session", cascade="all, delete-orphan")


class FormBackup(Base):
    __tablename__ = "form_backups"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String, ForeignKey("wizard_sessions.id"), nullable=False)
    label = Column(String, default="Auto backup")
    data_json = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    session = relationship("WizardSession", back_populates="backups")


class Quotation(Base):
    __tablename__ = "quotations"

    id = Column(Integer, primary_key=True, index=True)
    quotation_number = Column(String, unique=True, nullable=False)
    session_id = Column(String, nullable=True)
    customer_id = Column(String, nullable=True)
    customer_name = Column(String, nullable=True)
    status = Column(Enum(QuotationStatus), default=QuotationStatus.SUBMITTED)

    # Totals exclude tax (computed by the document store)
    discount_percentage = Column(Float, default=0.0)
    subtotal = Column(Float, default=0.0)
    discount_amount = Column(Float, default=0.0)
    total = Column(Float, default=0.0)
    taxes_and_charges = Column(String, nullable=True)
    tax_category = Column(String, nullable=True)
    valid_till = Column(DateTime, nullable=True)

    inputs_json = Column(JSON, nullable=True)  # FormData snapshot
    outputs_json = Column(JSON, nullable=True)  # priced quote snapshot

    # Remote document store
    sync_status = Column(Enum(SyncStatus), default=SyncStatus.LOCAL)
    remote_name = Column(String, nullable=True)
    sync_error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("QuotationItem", back_populates="quotation",
                         cascade="all, delete-orphan", order_by="QuotationItem.line_no")

    @property
    def quotation_id(self) -> str:
        """Document store name once synced, the local number until then."""
        return self.remote_name or self.quotation_number


class QuotationItem(Base):
    """One configured lift line (a ProductConfig) on a quotation."""
    __tablename__ = "quotation_items"

    id = Column(Integer, primary_key=True, index=True)
    quotation_id = Column(Integer, ForeignKey("quotations.id"))
    line_no = Column(Integer, default=1)
    product_id = Column(String, nullable=False)
    product_name = Column(String, nullable=True)
    package_name = Column(String, nullable=True)

    lifts = Column(Integer, default=1)
    stops = Column(Integer, default=2)

    base_price = Column(Float, default=0.0)
    additional_floor_costs = Column(Float, default=0.0)
    package_amount = Column(Float, default=0.0)
    interior_amount = Column(Float, default=0.0)
    addons_amount = Column(Float, default=0.0)
    line_total = Column(Float, default=0.0)

    quotation = relationship("Quotation", back_populates="items")
