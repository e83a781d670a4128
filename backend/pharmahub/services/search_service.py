"""
Public medicine search across pharmacies.

Only ACTIVE pharmacies and rows with stock are visible. Exact quantities
stay private: the public sees "In Stock" or "Limited Stock".
"""
import logging
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from pharmahub.core.exceptions import NotFound
from pharmahub.models.inventory import Inventory
from pharmahub.models.medicine import Medicine
from pharmahub.models.tenant import Tenant, TenantStatus

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


def availability(item: Inventory) -> str:
    return "In Stock" if item.quantity > item.low_stock_threshold else "Limited Stock"


def _offer(item: Inventory, tenant: Tenant) -> Dict[str, Any]:
    return {
        "id": tenant.id,
        "name": tenant.name,
        "slug": tenant.slug,
        "address": tenant.address,
        "inventory_id": item.id,
        "price": item.price,
        "availability": availability(item),
        "opening_hours": tenant.opening_hours,
        "location": {"lat": tenant.lat, "lng": tenant.lng},
    }


def search_medicines(db: Session, query: Optional[str] = None, category: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    Price comparison for medicines matching `query` (brand or generic name)
    and/or `category`.

    Ranking: exact name match first, then cheapest offer, then name.
    Pharmacies within a medicine are sorted by price ascending.
    """
    query = (query or "").strip()
    category = (category or "").strip()
    if len(query) < MIN_QUERY_LENGTH and not category:
        return []

    q = (
        db.query(Medicine, Inventory, Tenant)
        .join(Inventory, Inventory.medicine_id == Medicine.id)
        .join(Tenant, Inventory.tenant_id == Tenant.id)
        .filter(Tenant.status == TenantStatus.ACTIVE, Inventory.quantity > 0)
    )
    if len(query) >= MIN_QUERY_LENGTH:
        term = f"%{query}%"
        q = q.filter(or_(Medicine.name.ilike(term), Medicine.generic_name.ilike(term)))
    if category:
        q = q.filter(func.lower(Medicine.category) == category.lower())

    grouped: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
    for medicine, item, tenant in q.all():
        entry = grouped.get(medicine.id)
        if entry is None:
            entry = grouped[medicine.id] = {
                "id": medicine.id,
                "name": medicine.name,
                "generic_name": medicine.generic_name,
                "category": medicine.category,
                "image_url": medicine.image_url,
                "description": medicine.description,
                "pharmacies": [],
            }
        entry["pharmacies"].append(_offer(item, tenant))

    results = []
    for entry in grouped.values():
        entry["pharmacies"].sort(key=lambda p: (p["price"], p["name"]))
        prices = [p["price"] for p in entry["pharmacies"]]
        entry["price_range"] = {"min": min(prices), "max": max(prices), "count": len(prices)}
        results.append(entry)

    lowered = query.lower()
    results.sort(key=lambda m: (m["name"].lower() != lowered, m["price_range"]["min"], m["name"].lower()))
    logger.info(f"[Search] query='{query}' category='{category}' -> {len(results)} medicines")
    return results


def get_pharmacy_by_slug(db: Session, slug: str) -> Dict[str, Any]:
    """Public pharmacy page: ACTIVE tenants only, in-stock products only."""
    tenant = db.query(Tenant).filter(Tenant.slug == (slug or "").strip().lower()).first()
    if not tenant or tenant.status != TenantStatus.ACTIVE:
        raise NotFound("Pharmacy")

    items = (
        db.query(Inventory)
        .join(Medicine, Inventory.medicine_id == Medicine.id)
        .filter(Inventory.tenant_id == tenant.id, Inventory.quantity > 0)
        .order_by(Medicine.name)
        .all()
    )
    return {
        "id": tenant.id,
        "name": tenant.name,
        "slug": tenant.slug,
        "address": tenant.address,
        "opening_hours": tenant.opening_hours,
        "location": {"lat": tenant.lat, "lng": tenant.lng},
        "products": [
            {
                "inventory_id": i.id,
                "medicine_id": i.medicine_id,
                "name": i.medicine.name,
                "generic_name": i.medicine.generic_name,
                "category": i.medicine.category,
                "price": i.price,
                "availability": availability(i),
            }
            for i in items
        ],
    }
