from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List, Optional
from .. import models, schemas
from ..database import get_db
from ..catalog import Catalog, CatalogError
from ..pricing_engine import PricingEngine
from ..quotation_service import QuotationError, QuotationService

router = APIRouter(prefix="/quotations", tags=["quotations"])

pricing = PricingEngine()
catalog = Catalog()


@router.post("/preview")
def preview_quotation(form_data: schemas.FormData):
    """Priced lines and totals for a configuration, at catalog prices, without storing anything."""
    try:
        form_data = catalog.resolve_form_data(form_data)
    except CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return pricing.build_priced_quote(form_data)


@router.post("/", response_model=schemas.Quotation)
def submit_quotation(form_data: schemas.FormData, db: Session = Depends(get_db)):
    try:
        return QuotationService(db).submit_quotation(form_data)
    except QuotationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/", response_model=List[schemas.Quotation])
def list_quotations(
    skip: int = 0,
    limit: int = 50,
    customer_id: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return QuotationService(db).list_quotations(skip=skip, limit=limit, customer_id=customer_id)


@router.get("/number/{quotation_number}", response_model=schemas.Quotation)
def get_quotation_by_number(quotation_number: str, db: Session = Depends(get_db)):
    quotation = QuotationService(db).get_by_number(quotation_number)
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return quotation


@router.get("/{quotation_id}", response_model=schemas.Quotation)
def get_quotation(quotation_id: int, db: Session = Depends(get_db)):
    quotation = QuotationService(db).get(quotation_id)
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return quotation


@router.get("/{quotation_id}/detail")
def get_quotation_detail(quotation_id: int, db: Session = Depends(get_db)):
    """Stored inputs and priced outputs, as submitted."""
    quotation = QuotationService(db).get(quotation_id)
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    return {
        "quotation_number": quotation.quotation_number,
        "inputs": quotation.inputs_json,
        "outputs": quotation.outputs_json,
        "sync_status": quotation.sync_status,
        "sync_error": quotation.sync_error,
    }


@router.post("/{quotation_id}/sync", response_model=schemas.Quotation)
def sync_quotation(quotation_id: int, db: Session = Depends(get_db)):
    """Retry pushing a quotation to the document store."""
    service = QuotationService(db)
    quotation = service.get(quotation_id)
    if not quotation:
        raise HTTPException(status_code=404, detail="Quotation not found")
    if not service.client.configured:
        raise HTTPException(status_code=400, detail="Document store is not configured")
    quotation = service.sync_quotation(quotation)
    if quotation.sync_status == models.SyncStatus.FAILED:
        raise HTTPException(status_code=502, detail=quotation.sync_error or "Document store sync failed")
    return quotation
