from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from .. import customer_directory, models, schemas
from ..database import get_db

router = APIRouter(prefix="/customers", tags=["customers"])


@router.post("/", response_model=schemas.Customer)
def create_customer(customer: schemas.CustomerCreate, db: Session = Depends(get_db)):
    try:
        return customer_directory.create_customer(db, customer)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("/", response_model=List[schemas.Customer])
def list_customers(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return db.query(models.Customer).order_by(models.Customer.customer_id).offset(skip).limit(limit).all()


@router.get("/suggestions", response_model=List[schemas.CustomerSuggestion])
def customer_suggestions(q: str = "", limit: int = 10, db: Session = Depends(get_db)):
    return customer_directory.search_suggestions(db, q, limit=limit)


@router.get("/search", response_model=schemas.Customer)
def search_customer(q: str, search_type: str = "name", db: Session = Depends(get_db)):
    try:
        customer = customer_directory.search_customer(db, q, search_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.get("/{customer_id}", response_model=schemas.Customer)
def get_customer(customer_id: str, db: Session = Depends(get_db)):
    customer = customer_directory.get_customer(db, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


@router.patch("/{customer_id}", response_model=schemas.Customer)
def update_customer(customer_id: str, update: schemas.CustomerUpdate, db: Session = Depends(get_db)):
    customer = db.query(models.Customer).filter(models.Customer.customer_id == customer_id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer_directory.update_customer(db, customer, update)
