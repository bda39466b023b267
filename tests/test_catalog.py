"""
Catalog tests — product/package/add-on lookups, package filtering and
comparison, and the catalog API.
"""

import pytest

from liftcpq.catalog import (
    Catalog, CatalogError, best_value, calculate_savings, cheapest, compare_packages, filter_packages,
    most_expensive, price_category,
)
from liftcpq.schemas import Addon, InteriorSelection, Package, Product, ProductConfig


@pytest.fixture
def catalog():
    return Catalog()


@pytest.fixture
def packages(catalog):
    return catalog.list_packages("ITEM-MODEL-6P")


# --- Lookups ---

def test_list_products_filters_by_capacity(catalog):
    assert len(catalog.list_products()) == 2
    eight = catalog.list_products(passenger_capacity=8)
    assert [p.id for p in eight] == ["ITEM-MODEL-8P"]
    assert catalog.list_products(passenger_capacity=13) == []


def test_lookups_return_copies(catalog):
    product = catalog.get_product("ITEM-MODEL-6P")
    product.price = 1
    assert catalog.get_product("ITEM-MODEL-6P").price == 950_000


def test_unknown_ids(catalog):
    assert catalog.get_product("NOPE") is None
    assert catalog.get_package("NOPE") is None
    assert catalog.get_addon("NOPE") is None


def test_package_finish_ids(catalog):
    package = catalog.get_package("PKG-AMBIANCE")
    cab = package.interior_options.cab_finishes
    assert cab[0].id == "PKG-AMBIANCE-cab-1"
    assert catalog.get_interior_option(package, "PKG-AMBIANCE-cab-3", "cab").price == 22_000
    assert catalog.get_interior_option(package, "PKG-AMBIANCE-door-2", "door").name == "Rose Gold"
    # Cab ids are not valid door ids
    assert catalog.get_interior_option(package, "PKG-AMBIANCE-cab-1", "door") is None


def test_addons_by_category(catalog):
    grouped = catalog.addons_by_category()
    assert list(grouped) == ["DESIGN", "SECURITY", "COMFORT"]
    assert sum(len(v) for v in grouped.values()) == len(catalog.list_addons())
    assert {a.id for a in grouped["SECURITY"]} == {
        "SASC-ACCESSCARD-01", "SASC-BIOMETRIC-01", "SASC-INTERCOM-01",
    }


# --- Resolving client selections ---

def _selection(catalog, **updates):
    package = catalog.get_package("PKG-AMBIANCE")
    config = ProductConfig(
        product=catalog.get_product("ITEM-MODEL-6P"),
        package=package,
        interior_options=InteriorSelection(
            cab_interior_finish=catalog.get_interior_option(package, "PKG-AMBIANCE-cab-3", "cab"),
        ),
        addons=[catalog.get_addon("CASC-AC-01")],
    )
    return config.model_copy(update=updates)


def test_resolve_config_replaces_client_prices(catalog):
    config = _selection(catalog)
    config.product.price = -950_000
    config.package.price = 0
    config.interior_options.cab_interior_finish.price = -22_000
    config.addons[0].price = -1

    resolved = catalog.resolve_config(config)
    assert resolved.product.price == 950_000
    assert resolved.package.price == 45_000
    assert resolved.interior_options.cab_interior_finish.price == 22_000
    assert resolved.addons[0].price == 0
    assert config.product.price == -950_000


def test_resolve_config_rejects_finish_from_other_package(catalog):
    config = _selection(catalog, package=catalog.get_package("PKG-STAINLESS-STEEL"))
    with pytest.raises(CatalogError, match="PKG-AMBIANCE-cab-3"):
        catalog.resolve_config(config)


@pytest.mark.parametrize("field,value,message", [
    ("product", Product(id="ITEM-MODEL-99P", price=1), "Unknown product"),
    ("package", Package(id="PKG-GOLD", price=-45_000), "Unknown package"),
    ("addons", [Addon(id="ADD-FREE-LIFT", price=-1_000_000)], "Unknown add-on"),
])
def test_resolve_config_rejects_unknown_ids(catalog, field, value, message):
    with pytest.raises(CatalogError, match=message):
        catalog.resolve_config(_selection(catalog, **{field: value}))


def test_resolve_config_empty_selection(catalog):
    resolved = catalog.resolve_config(ProductConfig())
    assert resolved.product is None
    assert resolved.package is None
    assert resolved.addons == []


# --- Filtering ---

def test_filter_by_search_term_matches_features(packages):
    result = filter_packages(packages, search_term="wooden")
    assert [p.id for p in result] == ["PKG-AMBIANCE"]


def test_filter_by_price_range(packages):
    result = filter_packages(packages, price_range=(1, 30_000))
    assert [p.id for p in result] == ["PKG-STAINLESS-STEEL"]


def test_filter_only_free(packages):
    result = filter_packages(packages, include_only_free=True)
    assert [p.id for p in result] == ["PKG-PAINTED-MODULAR"]


def test_sort_by_price_descending(packages):
    result = filter_packages(packages, sort_by="price", sort_order="desc")
    assert [p.price for p in result] == [45_000, 25_000, 0]


def test_sort_by_popularity_puts_included_first(packages):
    result = filter_packages(packages, sort_by="popularity")
    assert result[0].is_included


def test_invalid_sort_field(packages):
    with pytest.raises(ValueError):
        filter_packages(packages, sort_by="weight")


# --- Comparison ---

def test_comparison_helpers(packages):
    assert cheapest(packages).id == "PKG-PAINTED-MODULAR"
    assert most_expensive(packages).id == "PKG-AMBIANCE"
    assert best_value(packages).id == "PKG-PAINTED-MODULAR"
    steel = next(p for p in packages if p.id == "PKG-STAINLESS-STEEL")
    assert calculate_savings(steel, packages) == 20_000


def test_comparison_helpers_empty():
    assert cheapest([]) is None
    assert best_value([]) is None
    assert compare_packages([]) == []


def test_price_category(packages):
    # Average of non-zero prices is 35,000
    assert price_category(0, packages) == "free"
    assert price_category(25_000, packages) == "premium"
    assert price_category(45_000, packages) == "luxury"


def test_compare_packages_marks_recommended(packages):
    rows = {row["package"].id: row for row in compare_packages(packages)}
    assert rows["PKG-PAINTED-MODULAR"]["is_recommended"] is True
    assert rows["PKG-AMBIANCE"]["is_recommended"] is False
    assert rows["PKG-AMBIANCE"]["savings"] == 0
    assert rows["PKG-PAINTED-MODULAR"]["savings"] == 45_000


# --- API ---

def test_api_list_products(client):
    resp = client.get("/api/catalog/products", params={"passenger_capacity": 6})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["ITEM-MODEL-6P"]


def test_api_product_price_preview(client):
    resp = client.get("/api/catalog/products/ITEM-MODEL-6P/price", params={"lifts": 2, "stops": 4})
    assert resp.status_code == 200
    data = resp.json()
    assert data["base_price"] == 1_900_000
    assert data["additional_floor_costs"] == 220_000
    assert data["total_price"] == 2_120_000


def test_api_unknown_product_404(client):
    assert client.get("/api/catalog/products/NOPE").status_code == 404
    assert client.get("/api/catalog/products/NOPE/packages").status_code == 404


def test_api_filter_packages(client):
    resp = client.get("/api/catalog/products/ITEM-MODEL-8P/packages",
                      params={"sort_by": "name", "min_price": 1})
    assert resp.status_code == 200
    assert [p["id"] for p in resp.json()] == ["PKG-AMBIANCE", "PKG-STAINLESS-STEEL"]


def test_api_filter_packages_bad_sort(client):
    resp = client.get("/api/catalog/products/ITEM-MODEL-8P/packages", params={"sort_by": "weight"})
    assert resp.status_code == 400


def test_api_compare_packages(client):
    resp = client.get("/api/catalog/products/ITEM-MODEL-6P/packages/compare")
    assert resp.status_code == 200
    data = resp.json()
    assert data["best_value_id"] == "PKG-PAINTED-MODULAR"
    assert len(data["packages"]) == 3


def test_api_addons_by_category(client):
    resp = client.get("/api/catalog/addons/by-category")
    assert resp.status_code == 200
    assert len(resp.json()["COMFORT"]) == 3
