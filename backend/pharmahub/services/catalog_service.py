"""Global medicine catalog. Lookup-or-create by case-insensitive name."""
import logging
from typing import List, Optional

from sqlalchemy import func, literal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pharmahub.core.exceptions import ValidationError
from pharmahub.db.session import transaction
from pharmahub.models.medicine import Medicine

logger = logging.getLogger(__name__)


def normalize_name(name: str) -> str:
    """Trim and collapse internal whitespace: "  Panadol   Extra " -> "Panadol Extra"."""
    return " ".join((name or "").split())


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def find_medicine(db: Session, name: str) -> Optional[Medicine]:
    # Same folding as the lower(name) unique index
    return db.query(Medicine).filter(func.lower(Medicine.name) == func.lower(literal(normalize_name(name)))).first()


def resolve_or_create_medicine(
    db: Session,
    name: str,
    generic_name: Optional[str] = None,
    category: Optional[str] = None,
    description: Optional[str] = None,
    auto_commit: bool = True,
) -> Medicine:
    """
    Return the catalog entry for `name`, creating it if absent.

    An existing entry is returned unchanged: blank or different
    generic_name/category values from a later caller never overwrite it.

    Two tenants creating the same name at once both end up with the same
    row: the insert runs in a SAVEPOINT and the loser of the unique-index
    race re-reads the winner.
    """
    clean = normalize_name(name)
    if not clean:
        raise ValidationError("Medicine name is required")

    with transaction(db, auto_commit):
        medicine = find_medicine(db, clean)
        if medicine:
            return medicine

        candidate = Medicine(
            name=clean,
            generic_name=_blank_to_none(generic_name),
            category=_blank_to_none(category),
            description=_blank_to_none(description),
        )
        try:
            with db.begin_nested():
                db.add(candidate)
        except IntegrityError:
            logger.info(f"[Catalog] Concurrent create for '{clean}', using existing row")
            medicine = find_medicine(db, clean)
            if medicine is None:
                raise
            return medicine

        logger.info(f"[Catalog] Created medicine {candidate.id} '{clean}'")
        return candidate


def get_medicine(db: Session, medicine_id: int) -> Optional[Medicine]:
    return db.query(Medicine).filter(Medicine.id == medicine_id).first()


def list_categories(db: Session) -> List[str]:
    rows = (
        db.query(Medicine.category)
        .filter(Medicine.category.isnot(None))
        .distinct()
        .order_by(Medicine.category)
        .all()
    )
    return [r[0] for r in rows]
