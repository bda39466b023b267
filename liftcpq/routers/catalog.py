from fastapi import APIRouter, HTTPException, Query
from typing import List, Optional

from .. import schemas
from ..catalog import Catalog, best_value, compare_packages, filter_packages
from ..price_calculator import product_price_breakdown

router = APIRouter(prefix="/catalog", tags=["catalog"])

# Read-only, shared across requests
catalog = Catalog()


@router.get("/products", response_model=List[schemas.Product])
def list_products(passenger_capacity: Optional[int] = None):
    return catalog.list_products(passenger_capacity)


@router.get("/products/{product_id}", response_model=schemas.Product)
def get_product(product_id: str):
    product = catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.get("/products/{product_id}/price")
def preview_product_price(product_id: str, lifts: int = Query(1, ge=1), stops: int = Query(2, ge=1)):
    """Base + floor surcharge for a product at a given lift and stop count."""
    product = catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {
        "product_id": product.id,
        "lifts": lifts,
        "stops": stops,
        **product_price_breakdown(product, lifts, stops),
    }


@router.get("/products/{product_id}/packages", response_model=List[schemas.Package])
def list_packages(
    product_id: str,
    search: str = "",
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    only_free: bool = False,
    sort_by: str = "price",
    sort_order: str = "asc",
):
    if not catalog.get_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    price_range = None
    if min_price is not None or max_price is not None:
        price_range = (min_price or 0.0, max_price if max_price is not None else float("inf"))
    try:
        return filter_packages(
            catalog.list_packages(product_id),
            search_term=search,
            price_range=price_range,
            include_only_free=only_free,
            sort_by=sort_by,
            sort_order=sort_order,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/products/{product_id}/packages/compare")
def compare_product_packages(product_id: str):
    if not catalog.get_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    packages = catalog.list_packages(product_id)
    best = best_value(packages)
    return {
        "best_value_id": best.id if best else None,
        "packages": [
            {
                "package_id": entry["package"].id,
                "name": entry["package"].name,
                "price": entry["package"].price,
                "is_included": entry["package"].is_included,
                "savings": entry["savings"],
                "is_recommended": entry["is_recommended"],
                "price_category": entry["price_category"],
            }
            for entry in compare_packages(packages)
        ],
    }


@router.get("/packages/{package_id}", response_model=schemas.Package)
def get_package(package_id: str):
    package = catalog.get_package(package_id)
    if not package:
        raise HTTPException(status_code=404, detail="Package not found")
    return package


@router.get("/addons", response_model=List[schemas.Addon])
def list_addons():
    return catalog.list_addons()


@router.get("/addons/by-category")
def list_addons_by_category():
    return {
        category: [addon.model_dump() for addon in addons]
        for category, addons in catalog.addons_by_category().items()
    }
