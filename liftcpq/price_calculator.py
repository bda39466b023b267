"""
Price calculator for configured lift line items.

Pure functions, no I/O. A ProductConfig is priced as:

    base_price             = lifts × product.price           (covers 2 stops)
    additional_floor_costs = lifts × max(0, stops − 2) × product.additional_floor_cost
    complete_total         = base_price + additional_floor_costs
                             + lifts × (package + cab finish + door finish + Σ add-ons)

Order totals sum complete_total over all configs and apply a discount
clamped to 0-10%. Tax is not computed here — the document store applies
the tax template on the final quotation.
"""

import math
import re
from typing import Iterable, Optional

from .config import settings
from .schemas import Product, ProductConfig

DEFAULT_LIFTS = 1
DEFAULT_STOPS = 2
BASE_STOPS = 2  # product base price covers this many stops

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def parse_count(value, default: int) -> int:
    """
    Parse a form count the way the wizard inputs arrive ("2", 2, "3 lifts").
    Reads the leading integer; anything unparseable returns the default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value == value and abs(value) != float("inf") else default
    match = _LEADING_INT.match(str(value))
    if not match:
        return default
    return int(match.group(1))


def lift_count(config: ProductConfig) -> int:
    """Number of identical lifts on the line. Never below 1."""
    lifts = parse_count(config.requirements.lifts if config.requirements else None, DEFAULT_LIFTS)
    return lifts if lifts >= 1 else DEFAULT_LIFTS


def stop_count(config: ProductConfig) -> int:
    return parse_count(config.requirements.stops if config.requirements else None, DEFAULT_STOPS)


def floor_cost_for(product: Product) -> float:
    """Per-stop surcharge; falls back when the catalog entry has none."""
    return product.additional_floor_cost or settings.DEFAULT_ADDITIONAL_FLOOR_COST


def product_price_breakdown(product: Product, lifts: int, stops: int) -> dict:
    """Base price and floor surcharge for a bare product at a given lift/stop count."""
    base_price = lifts * product.price
    extra_stops = max(0, stops - BASE_STOPS)
    additional_floor_costs = lifts * extra_stops * floor_cost_for(product)
    return {
        "base_price": base_price,
        "additional_floor_costs": additional_floor_costs,
        "total_price": base_price + additional_floor_costs,
    }


def price_breakdown(config: ProductConfig) -> dict:
    """Product cost for a config (base + extra floors). No product → zeros."""
    if config is None or config.product is None:
        return {"base_price": 0, "additional_floor_costs": 0, "total_price": 0}
    return product_price_breakdown(config.product, lift_count(config), stop_count(config))


def package_amount(config: ProductConfig) -> float:
    # Included packages are part of the base product price
    pkg = config.package
    if pkg is None or pkg.is_included or not pkg.price or pkg.price <= 0:
        return 0
    return pkg.price * lift_count(config)


def interior_amount(config: ProductConfig) -> float:
    interior = config.interior_options
    if interior is None:
        return 0
    lifts = lift_count(config)
    total = 0
    for option in (interior.cab_interior_finish, interior.elevator_door_finish):
        if option is not None and option.price and option.price > 0:
            total += option.price * lifts
    return total


def addons_amount(config: ProductConfig) -> float:
    lifts = lift_count(config)
    return sum(
        addon.price * lifts
        for addon in (config.addons or [])
        if addon is not None and addon.price and addon.price > 0
    )


def complete_total(config: ProductConfig) -> float:
    """Full line price: product + floors + package + finishes + add-ons, all × lifts."""
    if config is None or config.product is None:
        return 0
    return (
        price_breakdown(config)["total_price"]
        + package_amount(config)
        + interior_amount(config)
        + addons_amount(config)
    )


def clamp_discount(percentage: Optional[float]) -> float:
    """Discount within 0..MAX_DISCOUNT_PCT. Missing or non-finite → 0."""
    if not percentage or not math.isfinite(percentage):
        return 0.0
    return float(min(max(percentage, 0.0), settings.MAX_DISCOUNT_PCT))


def order_totals(configs: Iterable[ProductConfig], discount_percentage: Optional[float] = 0.0) -> dict:
    """Subtotal over all configured lines, discount clamped to the allowed maximum."""
    subtotal = sum(complete_total(c) for c in configs)
    pct = clamp_discount(discount_percentage)
    discount_amount = subtotal * pct / 100.0
    return {
        "subtotal": subtotal,
        "discount_percentage": pct,
        "discount_amount": round(discount_amount, 2),
        "total": round(subtotal - discount_amount, 2),
    }


def floor_designation(stops: int) -> str:
    """Ground plus floors served above it: 4 stops → 'G+3'."""
    return f"G+{max(0, stops - 1)}"


def format_indian_number(num: float, decimals: int = 0) -> str:
    """Indian digit grouping: 500000 → '5,00,000', 12345678.5 → '1,23,45,678.50' (decimals=2)."""
    sign = "-" if num < 0 else ""
    text = f"{abs(num):.{decimals}f}"
    whole, _, fraction = text.partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}{whole}.{fraction}" if fraction else f"{sign}{whole}"
