"""Public search and pharmacy pages. No authentication."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pharmahub.api.deps import get_db
from pharmahub.schemas.search import MedicineSearchResult, PharmacyDetail
from pharmahub.services import catalog_service, search_service

router = APIRouter()


@router.get("/search", response_model=List[MedicineSearchResult])
def search(
    q: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = Query(None, max_length=128),
    db: Session = Depends(get_db),
):
    """Compare prices across ACTIVE pharmacies that have the medicine in stock."""
    return search_service.search_medicines(db, q, category)


@router.get("/search/categories", response_model=List[str])
def categories(db: Session = Depends(get_db)):
    return catalog_service.list_categories(db)


@router.get("/pharmacies/{slug}", response_model=PharmacyDetail)
def pharmacy_detail(slug: str, db: Session = Depends(get_db)):
    return search_service.get_pharmacy_by_slug(db, slug)
