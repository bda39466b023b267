from pydantic import BaseModel, Field
from typing import Optional, List, Union
from datetime import datetime
from .config import settings
from .models import QuotationStatus, SyncStatus


# --- Catalog ---

class Product(BaseModel):
    id: str
    name: str = ""
    description: Optional[str] = None
    image: Optional[str] = None
    price: float = 0.0
    capacity: int = 0
    additional_floor_cost: Optional[float] = None  # per stop beyond the base 2
    features: List[str] = []
    max_stops: Optional[int] = None
    max_speed: Optional[str] = None
    recommended_building_types: List[str] = []


class InteriorOption(BaseModel):
    id: str = ""
    name: str = ""
    primary_image: Optional[str] = None
    cab_view_image: Optional[str] = None
    lobby_view_image: Optional[str] = None
    price: float = 0.0


class PackageFeatures(BaseModel):
    wall_material: str = ""
    handrail_position: str = ""
    handrail_bar_finish: str = ""


class PackageInteriorOptions(BaseModel):
    cab_finishes: List[InteriorOption] = []
    elevator_door_finishes: List[InteriorOption] = []


class Package(BaseModel):
    id: str = ""
    name: str = ""
    description: Optional[str] = None
    image: Optional[str] = None
    price: float = 0.0
    is_included: bool = False
    features: PackageFeatures = Field(default_factory=PackageFeatures)
    interior_options: Optional[PackageInteriorOptions] = None


class Addon(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    image: str = ""
    price: float = 0.0
    category: str = ""


# --- Wizard state ---

class Requirements(BaseModel):
    location: Optional[str] = None
    # Form inputs arrive as strings; the price calculator parses them
    stops: Optional[Union[int, str]] = None
    lifts: Optional[Union[int, str]] = None
    passengers: Optional[Union[int, str]] = None
    building_type: Optional[str] = None

    # Engineering & design details (millimetres unless noted)
    custom_shaft_depth: Optional[float] = None
    custom_shaft_width: Optional[float] = None
    custom_headroom_allowance: Optional[float] = None
    custom_overhead: Optional[float] = None
    custom_pit_depth: Optional[float] = None
    custom_cabin_width: Optional[float] = None
    custom_cabin_depth: Optional[float] = None
    custom_floor_height_in_ft: Optional[float] = None
    custom_travel_distances_in_ft: Optional[float] = None
    custom_requested_delivery_date: Optional[str] = None  # YYYY-MM-DD
    custom_door_opening_size: Optional[str] = None
    custom_door_opening_style: Optional[str] = None
    custom_ceiling_finish: Optional[str] = None
    custom_ceiling_type: Optional[str] = None
    custom_handrail_type: Optional[str] = None


class InteriorSelection(BaseModel):
    cab_interior_finish: Optional[InteriorOption] = None
    elevator_door_finish: Optional[InteriorOption] = None
    custom_cabin_false_ceiling: Optional[str] = None


class ProductConfig(BaseModel):
    product: Optional[Product] = None
    package: Optional[Package] = None
    interior_options: InteriorSelection = Field(default_factory=InteriorSelection)
    addons: List[Addon] = []
    requirements: Requirements = Field(default_factory=Requirements)


class CustomerInfo(BaseModel):
    customer_id: str = ""
    customer_type: str = ""
    salutation: Optional[str] = None
    title: Optional[str] = None
    first_name: str = ""
    last_name: str = ""
    customer_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    gstin: Optional[str] = None
    address: str = ""
    address2: Optional[str] = None
    city: str = ""
    state: str = ""
    country: str = "India"
    zip_code: str = ""
    site_address_same_as_customer: bool = True
    site_address: Optional[str] = None
    site_address2: Optional[str] = None
    site_city: Optional[str] = None
    site_state: Optional[str] = None
    site_zip_code: Optional[str] = None
    site_country: Optional[str] = "India"


class FormData(BaseModel):
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    product_configs: List[ProductConfig] = []
    active_product_index: int = 0
    additional_discount_percentage: float = Field(0.0, allow_inf_nan=False)  # clamped to 0-10 when priced
    taxes_and_charges: Optional[str] = settings.DEFAULT_TAX_TEMPLATE
    tax_category: Optional[str] = settings.DEFAULT_TAX_CATEGORY


# --- Customers ---

class CustomerBase(BaseModel):
    customer_type: str = "Individual"
    salutation: Optional[str] = None
    title: Optional[str] = None
    first_name: str
    last_name: str = ""
    customer_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    gstin: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = "India"
    zip_code: Optional[str] = None
    site_address_same_as_customer: bool = True
    site_address: Optional[str] = None
    site_address2: Optional[str] = None
    site_city: Optional[str] = None
    site_state: Optional[str] = None
    site_country: Optional[str] = None
    site_zip_code: Optional[str] = None


class CustomerCreate(CustomerBase):
    customer_id: Optional[str] = None  # generated when omitted


class CustomerUpdate(BaseModel):
    customer_type: Optional[str] = None
    salutation: Optional[str] = None
    title: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    customer_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    gstin: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    zip_code: Optional[str] = None
    site_address_same_as_customer: Optional[bool] = None
    site_address: Optional[str] = None
    site_address2: Optional[str] = None
    site_city: Optional[str] = None
    site_state: Optional[str] = None
    site_country: Optional[str] = None
    site_zip_code: Optional[str] = None


class Customer(CustomerBase):
    id: int
    customer_id: str
    created_at: datetime
    class Config:
        from_attributes = True


class CustomerSuggestion(BaseModel):
    id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    gstin: Optional[str] = None
    customer_type: str
    city: Optional[str] = None
    match_reason: str


# --- Quotations ---

class QuotationItem(BaseModel):
    line_no: int
    product_id: str
    product_name: Optional[str] = None
    package_name: Optional[str] = None
    lifts: int
    stops: int
    base_price: float
    additional_floor_costs: float
    package_amount: float
    interior_amount: float
    addons_amount: float
    line_total: float
    class Config:
        from_attributes = True


class Quotation(BaseModel):
    id: int
    quotation_number: str
    quotation_id: str
    session_id: Optional[str] = None
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    status: QuotationStatus
    discount_percentage: float
    subtotal: float
    discount_amount: float
    total: float
    taxes_and_charges: Optional[str] = None
    tax_category: Optional[str] = None
    valid_till: Optional[datetime] = None
    sync_status: SyncStatus
    remote_name: Optional[str] = None
    created_at: datetime
    items: List[QuotationItem] = []
    class Config:
        from_attributes = True
