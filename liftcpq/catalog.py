"""
Product, package and add-on catalog.

In-memory catalog standing in for the ERP item master. Packages carry
their own cab and door finish options; finish ids are derived as
"{package_id}-cab-{n}" / "{package_id}-door-{n}".

Also holds the package filter and comparison helpers used by the
package selection step.
"""

import logging
from typing import List, Optional

from .schemas import (
    Addon, FormData, InteriorOption, Package, PackageFeatures, PackageInteriorOptions, Product, ProductConfig,
)

logger = logging.getLogger(__name__)

PRODUCTS = [
    {
        "id": "ITEM-MODEL-6P",
        "name": "Evanam Series 6 Passenger",
        "description": "Reliable residential lift, 6 passenger capacity.",
        "image": "/placeholder-product.jpg",
        "price": 950000,
        "capacity": 6,
        "additional_floor_cost": 55000,
        "features": ["IoT Connected", "Energy Efficient", "Reliable"],
        "max_stops": 21,
        "max_speed": "1.0 m/s",
        "recommended_building_types": ["Residential", "Commercial"],
    },
    {
        "id": "ITEM-MODEL-8P",
        "name": "Evanam Series 8 Passenger",
        "description": "Premium finish, 8 passenger capacity.",
        "image": "/placeholder-product.jpg",
        "price": 1250000,
        "capacity": 8,
        "additional_floor_cost": 65000,
        "features": ["IoT Connected", "Energy Efficient", "Premium Finish"],
        "max_stops": 24,
        "max_speed": "1.5 m/s",
        "recommended_building_types": ["Residential", "Commercial", "Office"],
    },
]

# (name, price) per finish; images follow /files/finishes/{group}/{slug}[-cab|-lobby].jpg
PACKAGES = [
    {
        "id": "PKG-AMBIANCE",
        "name": "Ambiance",
        "description": "Elegant wooden panel finish",
        "price": 45000,
        "is_included": False,
        "features": ("Wooden Panel", "3 sided", "Golden Steel"),
        "finish_group": "wood",
        "cab_finishes": [
            ("Majestic Mahogany", 0), ("River of the Night", 0),
            ("Oak Elegance", 22000), ("Walnut Premium", 35000),
        ],
        "door_finishes": [("Golden Steel", 0), ("Rose Gold", 18500), ("Bronze Luxury", 28000)],
    },
    {
        "id": "PKG-PAINTED-MODULAR",
        "name": "Painted + Modular",
        "description": "Classic painted finish with modular handrail design",
        "price": 0,
        "is_included": True,
        "features": ("Painted", "3 sided", "Satin Steel"),
        "finish_group": "painted",
        "cab_finishes": [("Radiant Russet", 0), ("Moonlight Magic", 0), ("Cream Delight", 0)],
        "door_finishes": [("Pearl", 0)],
    },
    {
        "id": "PKG-STAINLESS-STEEL",
        "name": "Stainless Steel",
        "description": "Premium stainless steel finish",
        "price": 25000,
        "is_included": False,
        "features": ("Stainless Steel", "3 sided", "Mirror Steel"),
        "finish_group": "steel",
        "cab_finishes": [("Mirror Steel", 0), ("Hairline Steel", 0), ("Brushed Steel", 15000)],
        "door_finishes": [("Mirror Door", 0), ("Gold Mirror", 25000), ("Titanium Finish", 18500)],
    },
]

ADDONS = [
    ("CASC-AC-01", "Air Conditioning System", "Comfort", ""),
    ("CASC-HANDRAIL-01", "Straight Handrail", "Comfort", ""),
    ("CASC-HANDRAIL-02", "Curved Handrail", "Comfort", "Curved Flat Handrail for Comfort and Support.\nElegant and Sleek"),
    ("DASC-MIRROR-01", "Full Mirror (Rear)", "Design", "Full-length mirror for the elevator cabin."),
    ("DASC-MIRROR-02", "Half Mirror (Rear)", "Design", ""),
    ("DASC-TFTTOUCH-01", "TFT Touch Screen", "Design", ""),
    ("DASC-TOUCH-01", "Touch LOP/COP", "Design", ""),
    ("SASC-ACCESSCARD-01", "RFID Access Card System", "Security", ""),
    ("SASC-BIOMETRIC-01", "Biometric Access System", "Security", ""),
    ("SASC-INTERCOM-01", "2 Way Intercom", "Security", ""),
]

ADDON_CATEGORIES = ["DESIGN", "SECURITY", "COMFORT"]


class CatalogError(ValueError):
    """An id that is not in the catalog."""


def _slug(name: str) -> str:
    return "-".join(name.lower().replace("+", " ").split())


def _to_interior_options(items: list, prefix: str, group: str) -> List[InteriorOption]:
    options = []
    for idx, (name, price) in enumerate(items):
        base = f"/files/finishes/{group}/{_slug(name)}"
        options.append(InteriorOption(
            id=f"{prefix}-{idx + 1}",
            name=name,
            primary_image=f"{base}.jpg",
            cab_view_image=f"{base}-cab.jpg",
            lobby_view_image=f"{base}-lobby.jpg",
            price=float(price or 0),
        ))
    return options


def _build_package(raw: dict) -> Package:
    wall, handrail_position, handrail_finish = raw["features"]
    return Package(
        id=raw["id"],
        name=raw["name"],
        description=raw["description"],
        image=f"/files/packages/{_slug(raw['name'])}.jpg",
        price=float(raw["price"]),
        is_included=raw["is_included"],
        features=PackageFeatures(
            wall_material=wall,
            handrail_position=handrail_position,
            handrail_bar_finish=handrail_finish,
        ),
        interior_options=PackageInteriorOptions(
            cab_finishes=_to_interior_options(raw["cab_finishes"], f"{raw['id']}-cab", raw["finish_group"]),
            elevator_door_finishes=_to_interior_options(raw["door_finishes"], f"{raw['id']}-door", "doors"),
        ),
    )


class Catalog:
    """
    Read-only catalog lookups.

    Returns fresh model copies so callers can attach them to a
    ProductConfig without sharing state.
    """

    def __init__(self):
        self._products = [Product(**p) for p in PRODUCTS]
        self._packages = [_build_package(p) for p in PACKAGES]
        self._addons = [
            Addon(id=aid, name=name, category=category, description=desc)
            for aid, name, category, desc in ADDONS
        ]

    def list_products(self, passenger_capacity: Optional[int] = None) -> List[Product]:
        """All products, or only those matching an exact passenger capacity."""
        if not passenger_capacity:
            return [p.model_copy(deep=True) for p in self._products]
        return [p.model_copy(deep=True) for p in self._products if p.capacity == passenger_capacity]

    def get_product(self, product_id: str) -> Optional[Product]:
        for p in self._products:
            if p.id == product_id:
                return p.model_copy(deep=True)
        return None

    def list_packages(self, product_id: Optional[str] = None) -> List[Package]:
        # Every package is offered for every product
        return [p.model_copy(deep=True) for p in self._packages]

    def get_package(self, package_id: str) -> Optional[Package]:
        for p in self._packages:
            if p.id == package_id:
                return p.model_copy(deep=True)
        return None

    def get_interior_option(self, package: Package, option_id: str, kind: str) -> Optional[InteriorOption]:
        """kind: 'cab' or 'door'."""
        if package.interior_options is None:
            return None
        options = (
            package.interior_options.cab_finishes if kind == "cab"
            else package.interior_options.elevator_door_finishes
        )
        for option in options:
            if option.id == option_id:
                return option.model_copy(deep=True)
        return None

    def list_addons(self) -> List[Addon]:
        return [a.model_copy(deep=True) for a in self._addons]

    def get_addon(self, addon_id: str) -> Optional[Addon]:
        for a in self._addons:
            if a.id == addon_id:
                return a.model_copy(deep=True)
        return None

    def resolve_config(self, config: ProductConfig) -> ProductConfig:
        """
        Replace the product, package, finishes and add-ons on a config with
        the catalog's records, matched by id. Prices sent by a client are
        never trusted. Raises CatalogError for an id the catalog doesn't have.
        """
        updates = {}
        if config.product is not None:
            product = self.get_product(config.product.id)
            if product is None:
                raise CatalogError(f"Unknown product: {config.product.id}")
            updates["product"] = product

        package = None
        if config.package is not None and config.package.id:
            package = self.get_package(config.package.id)
            if package is None:
                raise CatalogError(f"Unknown package: {config.package.id}")
        updates["package"] = package

        interior = config.interior_options.model_copy()
        for attr, kind in (("cab_interior_finish", "cab"), ("elevator_door_finish", "door")):
            selected = getattr(interior, attr)
            if selected is None:
                continue
            option = self.get_interior_option(package, selected.id, kind) if package else None
            if option is None:
                raise CatalogError(f"Finish {selected.id} is not offered with the selected package")
            setattr(interior, attr, option)
        updates["interior_options"] = interior

        addons = []
        for selected in config.addons:
            addon = self.get_addon(selected.id)
            if addon is None:
                raise CatalogError(f"Unknown add-on: {selected.id}")
            addons.append(addon)
        updates["addons"] = addons

        return config.model_copy(update=updates)

    def resolve_form_data(self, form_data: FormData) -> FormData:
        configs = [self.resolve_config(config) for config in form_data.product_configs]
        return form_data.model_copy(update={"product_configs": configs})

    def addons_by_category(self) -> dict:
        """{"DESIGN": [...], "SECURITY": [...], "COMFORT": [...]} — category match is case-insensitive."""
        grouped = {category: [] for category in ADDON_CATEGORIES}
        for addon in self.list_addons():
            key = (addon.category or "").upper()
            if key in grouped:
                grouped[key].append(addon)
            else:
                logger.debug("Add-on %s has unknown category %r", addon.id, addon.category)
        return grouped


# --- Package filtering ---

SORT_FIELDS = ("price", "name", "popularity")


def filter_packages(
    packages: List[Package],
    search_term: str = "",
    price_range: Optional[tuple] = None,
    include_only_free: bool = False,
    sort_by: str = "price",
    sort_order: str = "asc",
) -> List[Package]:
    """
    Search, range-filter and sort packages.

    search_term matches name, description or any feature value.
    popularity ranks included packages first.
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"sort_by must be one of {SORT_FIELDS}, got {sort_by!r}")

    filtered = list(packages)

    if search_term:
        term = search_term.lower()
        filtered = [
            pkg for pkg in filtered
            if term in pkg.name.lower()
            or term in (pkg.description or "").lower()
            or any(term in (value or "").lower() for value in pkg.features.model_dump().values())
        ]

    if price_range is not None:
        low, high = price_range
        filtered = [pkg for pkg in filtered if low <= (pkg.price or 0) <= high]

    if include_only_free:
        filtered = [pkg for pkg in filtered if pkg.is_included or (pkg.price or 0) == 0]

    if sort_by == "price":
        key = lambda pkg: pkg.price or 0
    elif sort_by == "name":
        key = lambda pkg: pkg.name.lower()
    else:
        key = lambda pkg: 0 if pkg.is_included else 1

    return sorted(filtered, key=key, reverse=(sort_order == "desc"))


# --- Package comparison ---

def cheapest(packages: List[Package]) -> Optional[Package]:
    if not packages:
        return None
    return min(packages, key=lambda p: p.price or 0)


def most_expensive(packages: List[Package]) -> Optional[Package]:
    if not packages:
        return None
    return max(packages, key=lambda p: p.price or 0)


def best_value(packages: List[Package]) -> Optional[Package]:
    """First included package, otherwise the cheapest."""
    for pkg in packages:
        if pkg.is_included:
            return pkg
    return cheapest(packages)


def calculate_savings(selected: Package, packages: List[Package]) -> float:
    top = most_expensive(packages)
    if top is None:
        return 0
    return (top.price or 0) - (selected.price or 0)


def price_category(package_price: float, packages: List[Package]) -> str:
    """'free' at 0, 'premium' up to the average non-zero price, 'luxury' above it."""
    if not package_price:
        return "free"
    prices = [p.price for p in packages if p.price and p.price > 0]
    if not prices:
        return "free"
    average = sum(prices) / len(prices)
    return "premium" if package_price <= average else "luxury"


def compare_packages(packages: List[Package]) -> List[dict]:
    if not packages:
        return []
    top_price = max(p.price or 0 for p in packages)
    return [
        {
            "package": pkg,
            "savings": top_price - (pkg.price or 0),
            "is_recommended": pkg.is_included or (pkg.price or 0) == 0,
            "price_category": price_category(pkg.price or 0, packages),
        }
        for pkg in packages
    ]
