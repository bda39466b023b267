from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .database import engine, Base
from .routers import catalog, customers, wizard, quotations

logger = logging.getLogger("liftcpq")

Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Lift CPQ",
    description=f"Lift configuration and quotation wizard for {settings.COMPANY_NAME}",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(catalog.router, prefix="/api")
app.include_router(customers.router, prefix="/api")
app.include_router(wizard.router, prefix="/api")
app.include_router(quotations.router, prefix="/api")


@app.get("/health")
def health():
    return {
        "status": "ok",
        "app": "liftcpq",
        "document_store": "configured" if settings.DOCUMENT_API_URL else "local",
    }


@app.on_event("startup")
def auto_seed():
    """Seed the demo customers on first run."""
    from .database import SessionLocal
    from .customer_directory import seed_customers
    db = SessionLocal()
    try:
        added = seed_customers(db)
        if added:
            logger.info("Seeded %d demo customers", added)
    finally:
        db.close()
