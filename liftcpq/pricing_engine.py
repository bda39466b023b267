"""
Quotation pricing engine.

Combines the per-line price calculator into a priced quote for a whole
wizard submission. Pure math — line amounts come from price_calculator,
order totals apply the clamped discount, tax is left to the document store.

Input: FormData (customer + ProductConfig list + discount/tax selection)
Output: priced quote dict (lines, totals, notes)
"""

from datetime import datetime, timedelta

from .config import settings
from .schemas import FormData, ProductConfig
from . import price_calculator as calc


class PricingEngine:
    """Assembles the priced quote from a FormData snapshot."""

    def build_priced_quote(self, form_data: FormData) -> dict:
        """
        Price every configured line and the order.

        Lines without a product are skipped (an unfinished config left by
        "add another lift" is not part of the order).

        Returns:
            {
                "lines": [line dict, ...],
                "subtotal", "discount_percentage", "discount_amount", "total",
                "taxes_and_charges", "tax_category",
                "valid_till": ISO date, "created_at": ISO timestamp,
                "notes": [str, ...],
            }
        """
        configs = self.priced_configs(form_data)
        lines = [self.build_line(idx + 1, config) for idx, config in enumerate(configs)]
        totals = calc.order_totals(configs, form_data.additional_discount_percentage)

        now = datetime.utcnow()
        return {
            "customer_id": form_data.customer_info.customer_id or None,
            "lines": lines,
            **totals,
            "taxes_and_charges": form_data.taxes_and_charges or settings.DEFAULT_TAX_TEMPLATE,
            "tax_category": form_data.tax_category or settings.DEFAULT_TAX_CATEGORY,
            "valid_till": (now + timedelta(days=settings.QUOTE_VALID_DAYS)).date().isoformat(),
            "created_at": now.isoformat(),
            "notes": self._build_notes(form_data, totals),
        }

    def priced_configs(self, form_data: FormData) -> list:
        return [c for c in form_data.product_configs if c is not None and c.product is not None]

    def build_line(self, line_no: int, config: ProductConfig) -> dict:
        """One quotation line for a configured lift."""
        breakdown = calc.price_breakdown(config)
        lifts = calc.lift_count(config)
        stops = calc.stop_count(config)
        interior = config.interior_options
        return {
            "line_no": line_no,
            "product_id": config.product.id,
            "product_name": config.product.name,
            "package_name": config.package.name if config.package else None,
            "package_included": bool(config.package and config.package.is_included),
            "cab_finish": interior.cab_interior_finish.name if interior and interior.cab_interior_finish else None,
            "door_finish": interior.elevator_door_finish.name if interior and interior.elevator_door_finish else None,
            "addons": [a.name for a in config.addons],
            "lifts": lifts,
            "stops": stops,
            "floor_designation": calc.floor_designation(stops),
            "base_price": breakdown["base_price"],
            "additional_floor_costs": breakdown["additional_floor_costs"],
            "package_amount": calc.package_amount(config),
            "interior_amount": calc.interior_amount(config),
            "addons_amount": calc.addons_amount(config),
            "line_total": calc.complete_total(config),
        }

    def _build_notes(self, form_data: FormData, totals: dict) -> list:
        notes = [
            f"Base price covers {calc.BASE_STOPS} stops per lift; each additional stop is charged per lift.",
            f"Taxes applied per template '{form_data.taxes_and_charges or settings.DEFAULT_TAX_TEMPLATE}' "
            f"on the final quotation.",
        ]
        requested = form_data.additional_discount_percentage or 0
        if requested != totals["discount_percentage"]:
            notes.append(
                f"Requested discount of {requested}% adjusted to {totals['discount_percentage']}% "
                f"(allowed range 0-{settings.MAX_DISCOUNT_PCT:g}%)."
            )
        for config in self.priced_configs(form_data):
            if config.package and config.package.is_included:
                notes.append(f"{config.package.name} package included with {config.product.name}.")
        return notes
