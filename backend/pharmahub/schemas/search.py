from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class PriceRange(BaseModel):
    min: Decimal
    max: Decimal
    count: int


class Location(BaseModel):
    lat: Optional[float] = None
    lng: Optional[float] = None


class PharmacyOffer(BaseModel):
    id: int
    name: str
    slug: str
    address: str
    inventory_id: int
    price: Decimal
    availability: str  # exact quantities stay private
    opening_hours: Optional[dict] = None
    location: Location


class MedicineSearchResult(BaseModel):
    id: int
    name: str
    generic_name: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    description: Optional[str] = None
    price_range: Optional[PriceRange] = None
    pharmacies: List[PharmacyOffer]


class PharmacyProduct(BaseModel):
    inventory_id: int
    medicine_id: int
    name: str
    generic_name: Optional[str] = None
    category: Optional[str] = None
    price: Decimal
    availability: str


class PharmacyDetail(BaseModel):
    id: int
    name: str
    slug: str
    address: str
    opening_hours: Optional[dict] = None
    location: Location
    products: List[PharmacyProduct]
