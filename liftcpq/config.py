from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./liftcpq.db"
    COMPANY_NAME: str = "Evanam Elevators"
    SALES_PERSON: str = "Evanam Sales"

    # Pricing
    DEFAULT_ADDITIONAL_FLOOR_COST: float = 65000.0  # per extra stop, per lift
    MAX_DISCOUNT_PCT: float = 10.0
    QUOTE_VALID_DAYS: int = 30
    QUOTATION_PREFIX: str = "QTN"

    # Tax is computed by the document store; we only pass the template through
    DEFAULT_TAX_TEMPLATE: str = "Output GST In-state - SE"
    DEFAULT_TAX_CATEGORY: str = "In-State"

    # Remote document store (Frappe-style REST). Empty URL = local only.
    DOCUMENT_API_URL: str = ""
    DOCUMENT_API_KEY: str = ""
    DOCUMENT_API_SECRET: str = ""
    DOCUMENT_API_TIMEOUT: int = 30

    # Customer lookup cache
    CUSTOMER_CACHE_SIZE: int = 256
    CUSTOMER_CACHE_TTL: int = 300  # seconds

    class Config:
        env_file = ".env"


settings = Settings()
