"""
Wizard engine — the shared FormData state threaded through the 7 steps.

Steps:
    1 customer      2 requirements   3 product     4 package
    5 interior      6 addons         7 confirmation

Every operation takes a FormData and returns an updated copy; the caller
persists it (see form_state). The "active" ProductConfig is the one at
active_product_index; it is created with default requirements the first
time a step writes to it.
"""

import logging
from typing import List, Optional

from .catalog import Catalog, CatalogError
from .price_calculator import clamp_discount, parse_count
from .schemas import (
    Addon, FormData, InteriorSelection, Package, ProductConfig, Requirements,
)

logger = logging.getLogger(__name__)

STEPS = ["customer", "requirements", "product", "package", "interior", "addons", "confirmation"]
FIRST_STEP = 1
LAST_STEP = len(STEPS)

DEFAULT_REQUIREMENTS = {
    "location": "Chennai",
    "stops": "2",
    "lifts": "1",
    "passengers": "6",
    "building_type": "Residential",
}


class WizardError(ValueError):
    """Raised when a wizard operation is not valid for the current state."""


def step_name(step: int) -> str:
    return STEPS[clamp_step(step) - 1]


def clamp_step(step: int) -> int:
    return min(max(step, FIRST_STEP), LAST_STEP)


def new_product_config(**updates) -> ProductConfig:
    config = ProductConfig(requirements=Requirements(**DEFAULT_REQUIREMENTS))
    return config.model_copy(update=updates)


class WizardEngine:
    """State transitions for the lift planning wizard. Stateless apart from the catalog."""

    def __init__(self, catalog: Optional[Catalog] = None):
        self.catalog = catalog or Catalog()

    # --- Active config ---

    def active_config(self, form_data: FormData) -> Optional[ProductConfig]:
        idx = form_data.active_product_index
        if 0 <= idx < len(form_data.product_configs):
            return form_data.product_configs[idx]
        return None

    def update_active_config(self, form_data: FormData, updates: dict) -> FormData:
        """
        Merge updates into the active config, creating it with default
        requirements when the active index points past the end.
        """
        configs = list(form_data.product_configs)
        idx = form_data.active_product_index
        if idx < 0 or idx > len(configs):
            raise WizardError(f"Active product index {idx} out of range (have {len(configs)} configs)")

        if idx == len(configs):
            configs.append(new_product_config(**updates))
        else:
            configs[idx] = configs[idx].model_copy(update=updates)

        return form_data.model_copy(update={"product_configs": configs})

    def update_requirements(self, form_data: FormData, requirements: dict) -> FormData:
        current = self.active_config(form_data)
        base = current.requirements.model_dump() if current else dict(DEFAULT_REQUIREMENTS)
        base.update(requirements)
        return self.update_active_config(form_data, {"requirements": Requirements(**base)})

    def add_new_product(self, form_data: FormData) -> FormData:
        """Point the wizard at a fresh config slot. Caller moves to the requirements step."""
        return form_data.model_copy(update={"active_product_index": len(form_data.product_configs)})

    def edit_product(self, form_data: FormData, index: int) -> FormData:
        if not 0 <= index < len(form_data.product_configs):
            raise WizardError(f"No product configuration at index {index}")
        return form_data.model_copy(update={"active_product_index": index})

    def remove_product(self, form_data: FormData, index: int) -> FormData:
        configs = list(form_data.product_configs)
        if not 0 <= index < len(configs):
            raise WizardError(f"No product configuration at index {index}")
        removed = configs.pop(index)
        logger.info("Removed product config %d (%s)", index, removed.product.id if removed.product else "unconfigured")
        active = form_data.active_product_index
        if active > index or active >= len(configs):
            active = max(0, active - 1) if configs else 0
        return form_data.model_copy(update={"product_configs": configs, "active_product_index": active})

    def refresh_from_catalog(self, form_data: FormData) -> FormData:
        """Re-read every selection from the catalog so stored prices are the catalog's."""
        try:
            return self.catalog.resolve_form_data(form_data)
        except CatalogError as e:
            raise WizardError(str(e)) from e

    # --- Step selections ---

    def select_product(self, form_data: FormData, product_id: str) -> FormData:
        product = self.catalog.get_product(product_id)
        if product is None:
            raise WizardError(f"Unknown product: {product_id}")
        config = self.active_config(form_data)
        if config is not None:
            stops_int = parse_count(config.requirements.stops, 0)
            if product.max_stops and stops_int and stops_int > product.max_stops:
                raise WizardError(
                    f"{product.name} serves at most {product.max_stops} stops, {stops_int} requested"
                )
        return self.update_active_config(form_data, {"product": product})

    def select_package(self, form_data: FormData, package_id: str) -> FormData:
        """Choose a package and default the finishes to its first options."""
        package = self.catalog.get_package(package_id)
        if package is None:
            raise WizardError(f"Unknown package: {package_id}")
        return self.update_active_config(form_data, {
            "package": package,
            "interior_options": _default_interior(package),
        })

    def select_interior(self, form_data: FormData, cab_finish_id: Optional[str] = None,
                        door_finish_id: Optional[str] = None,
                        false_ceiling: Optional[str] = None) -> FormData:
        config = self.active_config(form_data)
        if config is None or config.package is None:
            raise WizardError("Select a package before choosing interior finishes")

        interior = config.interior_options.model_copy()
        if cab_finish_id is not None:
            option = self.catalog.get_interior_option(config.package, cab_finish_id, "cab")
            if option is None:
                raise WizardError(f"Cab finish {cab_finish_id} not offered with {config.package.name}")
            interior.cab_interior_finish = option
        if door_finish_id is not None:
            option = self.catalog.get_interior_option(config.package, door_finish_id, "door")
            if option is None:
                raise WizardError(f"Door finish {door_finish_id} not offered with {config.package.name}")
            interior.elevator_door_finish = option
        if false_ceiling is not None:
            interior.custom_cabin_false_ceiling = false_ceiling
        return self.update_active_config(form_data, {"interior_options": interior})

    def toggle_addon(self, form_data: FormData, addon_id: str) -> FormData:
        """Add the add-on if absent, remove it if already selected."""
        addon = self.catalog.get_addon(addon_id)
        if addon is None:
            raise WizardError(f"Unknown add-on: {addon_id}")
        config = self.active_config(form_data)
        selected: List[Addon] = list(config.addons) if config else []
        if any(a.id == addon_id for a in selected):
            selected = [a for a in selected if a.id != addon_id]
        else:
            selected.append(addon)
        return self.update_active_config(form_data, {"addons": selected})

    def set_addons(self, form_data: FormData, addon_ids: List[str]) -> FormData:
        addons = []
        for addon_id in dict.fromkeys(addon_ids):
            addon = self.catalog.get_addon(addon_id)
            if addon is None:
                raise WizardError(f"Unknown add-on: {addon_id}")
            addons.append(addon)
        return self.update_active_config(form_data, {"addons": addons})

    def set_discount(self, form_data: FormData, percentage: float,
                     taxes_and_charges: Optional[str] = None,
                     tax_category: Optional[str] = None) -> FormData:
        updates = {"additional_discount_percentage": clamp_discount(percentage)}
        if taxes_and_charges is not None:
            updates["taxes_and_charges"] = taxes_and_charges
        if tax_category is not None:
            updates["tax_category"] = tax_category
        return form_data.model_copy(update=updates)

    # --- Completion ---

    def step_status(self, form_data: FormData) -> dict:
        """Which of the steps 1-6 have their required inputs for the active config."""
        config = self.active_config(form_data)
        customer = form_data.customer_info
        req = config.requirements if config else None
        interior = config.interior_options if config else InteriorSelection()
        return {
            "customer": bool(customer.first_name and customer.address and customer.city),
            "requirements": bool(req and req.lifts and req.stops and req.passengers and req.building_type),
            "product": bool(config and config.product),
            "package": bool(config and config.package and config.package.id),
            "interior": bool(interior.cab_interior_finish and interior.elevator_door_finish),
            "addons": True,  # optional step
        }

    def first_incomplete_step(self, form_data: FormData) -> int:
        status = self.step_status(form_data)
        for idx, name in enumerate(STEPS[:-1], start=1):
            if not status[name]:
                return idx
        return LAST_STEP

    def can_enter(self, form_data: FormData, step: int) -> bool:
        """A step is reachable when every step before it is complete."""
        return clamp_step(step) <= self.first_incomplete_step(form_data)

    def next_step(self, form_data: FormData, current: int) -> int:
        current = clamp_step(current)
        if current < LAST_STEP and not self.step_status(form_data).get(STEPS[current - 1], True):
            raise WizardError(f"Step {current} ({STEPS[current - 1]}) is incomplete")
        return clamp_step(current + 1)

    def prev_step(self, current: int) -> int:
        return clamp_step(current - 1)

    def go_to_step(self, form_data: FormData, step: int) -> int:
        if step < FIRST_STEP or step > LAST_STEP:
            raise WizardError(f"Step must be between {FIRST_STEP} and {LAST_STEP}, got {step}")
        if not self.can_enter(form_data, step):
            raise WizardError(
                f"Cannot jump to step {step} ({STEPS[step - 1]}); "
                f"step {self.first_incomplete_step(form_data)} is incomplete"
            )
        return step


def _default_interior(package: Package) -> InteriorSelection:
    options = package.interior_options
    if options is None:
        return InteriorSelection()
    return InteriorSelection(
        cab_interior_finish=options.cab_finishes[0] if options.cab_finishes else None,
        elevator_door_finish=options.elevator_door_finishes[0] if options.elevator_door_finishes else None,
    )
