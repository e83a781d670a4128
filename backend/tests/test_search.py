"""Public price comparison and pharmacy pages."""
from decimal import Decimal

import pytest

from pharmahub.core.exceptions import NotFound
from pharmahub.models.tenant import TenantStatus
from pharmahub.models.user import UserRole
from pharmahub.services import search_service
from pharmahub.services.tenant_scope import TenantScope

from conftest import make_tenant, make_user


@pytest.fixture
def market(db, scope_a, scope_b, owner_a, owner_b, stock):
    """Alpha and Beta are ACTIVE, Gamma is still PENDING. Returns the session."""
    gamma = make_tenant(db, "Gamma Pharmacy", status=TenantStatus.PENDING)
    owner_g = make_user(db, "owner@gamma.com", UserRole.OWNER, gamma.id)
    scope_g = TenantScope(db, gamma.id)

    stock(scope_a, owner_a, "Panadol", quantity=50, price="12.00", generic_name="Paracetamol", category="Pain Relief")
    stock(scope_b, owner_b, "Panadol", quantity=5, price="10.00")
    stock(scope_g, owner_g, "Panadol", quantity=50, price="5.00")
    stock(scope_a, owner_a, "Panadol Extra", quantity=20, price="8.00", category="Pain Relief")
    stock(scope_b, owner_b, "Brufen", quantity=0, price="7.00", category="Pain Relief")
    stock(scope_a, owner_a, "Augmentin", quantity=30, price="150.00", category="Antibiotics")
    return db


def test_price_comparison_across_active_pharmacies(market):
    results = search_service.search_medicines(market, "panadol")
    panadol = results[0]

    assert panadol["name"] == "Panadol"
    # Gamma is cheapest but not approved yet
    assert [p["name"] for p in panadol["pharmacies"]] == ["Beta Pharmacy", "Alpha Pharmacy"]
    assert panadol["price_range"] == {"min": Decimal("10.00"), "max": Decimal("12.00"), "count": 2}


def test_exact_name_ranks_before_cheaper_partial_match(market):
    names = [m["name"] for m in search_service.search_medicines(market, "Panadol")]
    assert names == ["Panadol", "Panadol Extra"]


def test_generic_name_matches(market):
    names = [m["name"] for m in search_service.search_medicines(market, "paracetamol")]
    assert names == ["Panadol"]


def test_availability_hides_exact_quantity(market):
    offers = search_service.search_medicines(market, "panadol")[0]["pharmacies"]
    by_name = {o["name"]: o for o in offers}

    assert by_name["Alpha Pharmacy"]["availability"] == "In Stock"
    assert by_name["Beta Pharmacy"]["availability"] == "Limited Stock"
    assert all("quantity" not in o for o in offers)


def test_out_of_stock_rows_are_hidden(market):
    assert search_service.search_medicines(market, "brufen") == []


def test_category_filter(market):
    names = [m["name"] for m in search_service.search_medicines(market, category="pain relief")]
    assert names == ["Panadol Extra", "Panadol"]


@pytest.mark.parametrize("query", [None, "", " ", "p"])
def test_short_queries_return_nothing(market, query):
    assert search_service.search_medicines(market, query) == []


def test_pharmacy_page(market, tenant_a):
    page = search_service.get_pharmacy_by_slug(market, "alpha-pharmacy")

    assert page["id"] == tenant_a.id
    assert [p["name"] for p in page["products"]] == ["Augmentin", "Panadol", "Panadol Extra"]
    assert page["location"] == {"lat": None, "lng": None}


def test_pending_or_unknown_pharmacy_page(market):
    with pytest.raises(NotFound):
        search_service.get_pharmacy_by_slug(market, "gamma-pharmacy")
    with pytest.raises(NotFound):
        search_service.get_pharmacy_by_slug(market, "nowhere")
