"""
Quotation submission.

Prices a FormData snapshot, stores the quotation with its lines, pushes it
to the document store when one is configured, and clears the wizard's
saved progress. A document-store failure never loses the local quotation:
it is recorded on the row (sync_status=failed) and can be retried.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .catalog import Catalog, CatalogError
from .config import settings
from .document_store import DocumentStoreClient, DocumentStoreError, build_quotation_payload
from .form_state import FormStateManager
from .pricing_engine import PricingEngine
from .schemas import FormData

logger = logging.getLogger(__name__)


class QuotationError(ValueError):
    """Submission rejected before anything was stored."""


# Attempts at a free quotation number before giving up
NUMBER_ATTEMPTS = 5


def generate_quotation_number(db: Session, offset: int = 0) -> str:
    count = db.query(models.Quotation).count()
    year = datetime.utcnow().year
    return f"{settings.QUOTATION_PREFIX}-{year}-{str(count + 1 + offset).zfill(4)}"


class QuotationService:

    def __init__(self, db: Session, client: Optional[DocumentStoreClient] = None,
                 pricing_engine: Optional[PricingEngine] = None, catalog: Optional[Catalog] = None):
        self.db = db
        self.client = client if client is not None else DocumentStoreClient()
        self.pricing_engine = pricing_engine or PricingEngine()
        self.catalog = catalog or Catalog()

    def price(self, form_data: FormData) -> tuple:
        """(form data with catalog records, priced quote). Unknown ids raise QuotationError."""
        try:
            form_data = self.catalog.resolve_form_data(form_data)
        except CatalogError as e:
            raise QuotationError(str(e)) from e
        return form_data, self.pricing_engine.build_priced_quote(form_data)

    def submit_quotation(self, form_data: FormData, session_id: Optional[str] = None) -> models.Quotation:
        form_data, priced = self.price(form_data)
        if not priced["lines"]:
            raise QuotationError("At least one configured product is required")

        for attempt in range(NUMBER_ATTEMPTS):
            quotation = self._build_quotation(
                form_data, priced, generate_quotation_number(self.db, offset=attempt), session_id,
            )
            self.db.add(quotation)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                logger.warning("Quotation number %s already taken, retrying", quotation.quotation_number)
                continue
            break
        else:
            raise QuotationError("Could not allocate a quotation number, please retry")

        self.db.refresh(quotation)
        logger.info("Submitted quotation %s: %d line(s), total %.2f",
                    quotation.quotation_number, len(priced["lines"]), quotation.total)

        if self.client.configured:
            self.sync_quotation(quotation, form_data)

        if session_id:
            FormStateManager(self.db).mark_submitted(session_id)

        return quotation

    def _build_quotation(self, form_data: FormData, priced: dict, number: str,
                         session_id: Optional[str]) -> models.Quotation:
        customer = form_data.customer_info
        return models.Quotation(
            quotation_number=number,
            session_id=session_id,
            customer_id=customer.customer_id or None,
            customer_name=(customer.customer_name or f"{customer.first_name} {customer.last_name}").strip() or None,
            status=models.QuotationStatus.SUBMITTED,
            discount_percentage=priced["discount_percentage"],
            subtotal=priced["subtotal"],
            discount_amount=priced["discount_amount"],
            total=priced["total"],
            taxes_and_charges=priced["taxes_and_charges"],
            tax_category=priced["tax_category"],
            valid_till=datetime.fromisoformat(priced["valid_till"]),
            inputs_json=form_data.model_dump(mode="json"),
            outputs_json=priced,
            sync_status=models.SyncStatus.LOCAL,
            items=[
                models.QuotationItem(
                    line_no=line["line_no"],
                    product_id=line["product_id"],
                    product_name=line["product_name"],
                    package_name=line["package_name"],
                    lifts=line["lifts"],
                    stops=line["stops"],
                    base_price=line["base_price"],
                    additional_floor_costs=line["additional_floor_costs"],
                    package_amount=line["package_amount"],
                    interior_amount=line["interior_amount"],
                    addons_amount=line["addons_amount"],
                    line_total=line["line_total"],
                )
                for line in priced["lines"]
            ],
        )

    def sync_quotation(self, quotation: models.Quotation, form_data: Optional[FormData] = None) -> models.Quotation:
        """Push the quotation to the document store, recording the outcome on the row."""
        if form_data is None:
            form_data = FormData.model_validate(quotation.inputs_json or {})
        payload = build_quotation_payload(form_data, quotation.outputs_json)
        try:
            doc = self.client.create_doc("Quotation", payload)
        except DocumentStoreError as e:
            logger.error("Quotation %s not synced: %s", quotation.quotation_number, e.message)
            quotation.sync_status = models.SyncStatus.FAILED
            quotation.sync_error = e.message
        else:
            quotation.sync_status = models.SyncStatus.SYNCED
            quotation.remote_name = doc.get("name")
            quotation.sync_error = None
        self.db.commit()
        self.db.refresh(quotation)
        return quotation

    def get(self, quotation_id: int) -> Optional[models.Quotation]:
        return self.db.query(models.Quotation).filter(models.Quotation.id == quotation_id).first()

    def get_by_number(self, quotation_number: str) -> Optional[models.Quotation]:
        return self.db.query(models.Quotation).filter(
            models.Quotation.quotation_number == quotation_number,
        ).first()

    def list_quotations(self, skip: int = 0, limit: int = 50, customer_id: Optional[str] = None) -> list:
        query = self.db.query(models.Quotation)
        if customer_id:
            query = query.filter(models.Quotation.customer_id == customer_id)
        return query.order_by(models.Quotation.created_at.desc(), models.Quotation.id.desc()).offset(skip).limit(limit).all()
