"""
Wizard API — step-by-step lift configuration backed by a saved session.

POST   /api/wizard/start                      — New session (optionally seeded with FormData)
GET    /api/wizard/{id}                       — Form data, step, completion and running totals
PUT    /api/wizard/{id}/form-data             — Replace the whole snapshot
POST   /api/wizard/{id}/customer              — Step 1: customer details or an existing customer
POST   /api/wizard/{id}/requirements          — Step 2
POST   /api/wizard/{id}/product               — Step 3
POST   /api/wizard/{id}/package               — Step 4
POST   /api/wizard/{id}/interior              — Step 5
POST   /api/wizard/{id}/addons                — Step 6 (replace selection)
POST   /api/wizard/{id}/addons/{addon}/toggle — Step 6 (toggle one)
POST   /api/wizard/{id}/discount              — Step 7 discount / tax template
POST   /api/wizard/{id}/products              — Add another lift configuration
POST   /api/wizard/{id}/products/{i}/edit     — Make config i active
DELETE /api/wizard/{id}/products/{i}          — Remove config i
POST   /api/wizard/{id}/next | /prev | /goto  — Navigation
DELETE /api/wizard/{id}/form-data             — Clear saved progress
POST   /api/wizard/{id}/backups               — Back up the snapshot
GET    /api/wizard/{id}/backups
POST   /api/wizard/{id}/backups/{b}/restore
POST   /api/wizard/{id}/submit                — Create the quotation
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .. import customer_directory, schemas
from ..database import get_db
from ..form_state import FormStateManager
from ..pricing_engine import PricingEngine
from ..quotation_service import QuotationError, QuotationService
from ..wizard import STEPS, WizardEngine, WizardError, step_name

router = APIRouter(prefix="/wizard", tags=["wizard"])

engine = WizardEngine()
pricing = PricingEngine()

REQUIREMENTS_STEP = STEPS.index("requirements") + 1


# --- Request schemas ---

class CustomerStepRequest(BaseModel):
    customer_id: Optional[str] = None  # pick an existing customer
    customer_info: Optional[schemas.CustomerInfo] = None


class SelectRequest(BaseModel):
    id: str


class InteriorRequest(BaseModel):
    cab_finish_id: Optional[str] = None
    door_finish_id: Optional[str] = None
    false_ceiling: Optional[str] = None


class AddonsRequest(BaseModel):
    addon_ids: List[str] = []


class DiscountRequest(BaseModel):
    percentage: float = Field(0.0, allow_inf_nan=False)
    taxes_and_charges: Optional[str] = None
    tax_category: Optional[str] = None


class GotoRequest(BaseModel):
    step: int


class BackupRequest(BaseModel):
    label: Optional[str] = None


# --- Helpers ---

def _load(db: Session, session_id: str):
    manager = FormStateManager(db)
    session = manager.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Wizard session not found")
    form_data = manager.load_form_data(session_id) or schemas.FormData()
    return manager, form_data


def _state(manager: FormStateManager, session_id: str, form_data: schemas.FormData) -> dict:
    step = manager.load_current_step(session_id)
    priced = pricing.build_priced_quote(form_data)
    return {
        "session_id": session_id,
        "current_step": step,
        "step_name": step_name(step),
        "step_status": engine.step_status(form_data),
        "has_saved_data": manager.has_saved_data(session_id),
        "form_data": form_data.model_dump(mode="json"),
        "totals": {
            "subtotal": priced["subtotal"],
            "discount_percentage": priced["discount_percentage"],
            "discount_amount": priced["discount_amount"],
            "total": priced["total"],
        },
    }


def _apply(db: Session, session_id: str, operation) -> dict:
    """Load the snapshot, run one wizard operation on it, save and return the new state."""
    manager, form_data = _load(db, session_id)
    try:
        form_data = operation(form_data)
    except WizardError as e:
        raise HTTPException(status_code=400, detail=str(e))
    manager.save_form_data(session_id, form_data)
    return _state(manager, session_id, form_data)


# --- Session ---

@router.post("/start")
def start_wizard(form_data: Optional[schemas.FormData] = None, db: Session = Depends(get_db)):
    if form_data is not None:
        try:
            form_data = engine.refresh_from_catalog(form_data)
        except WizardError as e:
            raise HTTPException(status_code=400, detail=str(e))
    manager = FormStateManager(db)
    session = manager.start_session(form_data)
    return _state(manager, session.id, manager.load_form_data(session.id) or schemas.FormData())


@router.get("/{session_id}")
def get_wizard_state(session_id: str, db: Session = Depends(get_db)):
    manager, form_data = _load(db, session_id)
    return _state(manager, session_id, form_data)


@router.put("/{session_id}/form-data")
def save_form_data(session_id: str, form_data: schemas.FormData, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda _: engine.refresh_from_catalog(form_data))


@router.delete("/{session_id}/form-data")
def clear_form_data(session_id: str, db: Session = Depends(get_db)):
    manager, _ = _load(db, session_id)
    manager.clear_form_data(session_id)
    return _state(manager, session_id, schemas.FormData())


# --- Steps ---

@router.post("/{session_id}/customer")
def set_customer(session_id: str, request: CustomerStepRequest, db: Session = Depends(get_db)):
    if request.customer_id:
        customer = customer_directory.get_customer(db, request.customer_id)
        if customer is None:
            raise HTTPException(status_code=404, detail="Customer not found")
        info = customer_directory.to_customer_info(customer)
    elif request.customer_info is not None:
        info = request.customer_info
    else:
        raise HTTPException(status_code=400, detail="Provide customer_id or customer_info")
    return _apply(db, session_id, lambda fd: fd.model_copy(update={"customer_info": info}))


@router.post("/{session_id}/requirements")
def set_requirements(session_id: str, requirements: schemas.Requirements, db: Session = Depends(get_db)):
    updates = requirements.model_dump(exclude_unset=True)
    return _apply(db, session_id, lambda fd: engine.update_requirements(fd, updates))


@router.post("/{session_id}/product")
def select_product(session_id: str, request: SelectRequest, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.select_product(fd, request.id))


@router.post("/{session_id}/package")
def select_package(session_id: str, request: SelectRequest, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.select_package(fd, request.id))


@router.post("/{session_id}/interior")
def select_interior(session_id: str, request: InteriorRequest, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.select_interior(
        fd, request.cab_finish_id, request.door_finish_id, request.false_ceiling,
    ))


@router.post("/{session_id}/addons")
def set_addons(session_id: str, request: AddonsRequest, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.set_addons(fd, request.addon_ids))


@router.post("/{session_id}/addons/{addon_id}/toggle")
def toggle_addon(session_id: str, addon_id: str, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.toggle_addon(fd, addon_id))


@router.post("/{session_id}/discount")
def set_discount(session_id: str, request: DiscountRequest, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.set_discount(
        fd, request.percentage, request.taxes_and_charges, request.tax_category,
    ))


# --- Multiple lifts ---

@router.post("/{session_id}/products")
def add_product(session_id: str, db: Session = Depends(get_db)):
    """Start configuring another lift; the wizard returns to the requirements step."""
    state = _apply(db, session_id, engine.add_new_product)
    manager = FormStateManager(db)
    manager.save_current_step(session_id, REQUIREMENTS_STEP)
    state["current_step"] = REQUIREMENTS_STEP
    state["step_name"] = step_name(REQUIREMENTS_STEP)
    return state


@router.post("/{session_id}/products/{index}/edit")
def edit_product(session_id: str, index: int, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.edit_product(fd, index))


@router.delete("/{session_id}/products/{index}")
def remove_product(session_id: str, index: int, db: Session = Depends(get_db)):
    return _apply(db, session_id, lambda fd: engine.remove_product(fd, index))


# --- Navigation ---

def _navigate(db: Session, session_id: str, move) -> dict:
    manager, form_data = _load(db, session_id)
    current = manager.load_current_step(session_id)
    try:
        step = move(form_data, current)
    except WizardError as e:
        raise HTTPException(status_code=400, detail=str(e))
    manager.save_current_step(session_id, step)
    return _state(manager, session_id, form_data)


@router.post("/{session_id}/next")
def next_step(session_id: str, db: Session = Depends(get_db)):
    return _navigate(db, session_id, engine.next_step)


@router.post("/{session_id}/prev")
def prev_step(session_id: str, db: Session = Depends(get_db)):
    return _navigate(db, session_id, lambda fd, current: engine.prev_step(current))


@router.post("/{session_id}/goto")
def go_to_step(session_id: str, request: GotoRequest, db: Session = Depends(get_db)):
    return _navigate(db, session_id, lambda fd, current: engine.go_to_step(fd, request.step))


# --- Backups ---

def _backup_out(backup) -> dict:
    return {
        "id": backup.id,
        "label": backup.label,
        "created_at": backup.created_at.isoformat() if backup.created_at else None,
    }


@router.post("/{session_id}/backups")
def create_backup(session_id: str, request: Optional[BackupRequest] = None, db: Session = Depends(get_db)):
    manager, _ = _load(db, session_id)
    backup = manager.create_backup(session_id, request.label if request else None)
    if backup is None:
        raise HTTPException(status_code=400, detail="Nothing to back up")
    return _backup_out(backup)


@router.get("/{session_id}/backups")
def list_backups(session_id: str, db: Session = Depends(get_db)):
    manager, _ = _load(db, session_id)
    return [_backup_out(b) for b in manager.list_backups(session_id)]


@router.post("/{session_id}/backups/{backup_id}/restore")
def restore_backup(session_id: str, backup_id: int, db: Session = Depends(get_db)):
    manager, _ = _load(db, session_id)
    form_data = manager.restore_from_backup(session_id, backup_id)
    if form_data is None:
        raise HTTPException(status_code=404, detail="Backup not found")
    return _state(manager, session_id, form_data)


# --- Submit ---

@router.post("/{session_id}/submit", response_model=schemas.Quotation)
def submit_wizard(session_id: str, db: Session = Depends(get_db)):
    """Price the saved configuration, store the quotation and clear the session's progress."""
    _, form_data = _load(db, session_id)
    try:
        return QuotationService(db).submit_quotation(form_data, session_id=session_id)
    except QuotationError as e:
        raise HTTPException(status_code=400, detail=str(e))
