"""
Inventory ledger: per-tenant stock rows.

Stock only ever changes through conditional UPDATE statements whose
affected-row count decides success:

    decrement:  SET quantity = quantity - n  WHERE id = ? AND tenant_id = ? AND quantity >= n
    restock:    SET quantity = quantity + n  WHERE id = ? AND tenant_id = ? AND quantity + n >= 0
    overwrite:  SET quantity = new           WHERE id = ? AND tenant_id = ? AND quantity = observed

There is no read-modify-write path. Each change appends a StockMovement in
the same transaction.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from pharmahub.core.audit import AuditLog
from pharmahub.core.config import settings
from pharmahub.core.exceptions import InsufficientStock, NotFound, StorageError, ValidationError
from pharmahub.db.session import atomic, transaction
from pharmahub.models.booking import Booking, BookingStatus
from pharmahub.models.inventory import Inventory
from pharmahub.models.medicine import Medicine
from pharmahub.models.stock_movement import MovementType
from pharmahub.services.catalog_service import get_medicine, resolve_or_create_medicine
from pharmahub.services.movement_service import record_movement
from pharmahub.services.tenant_scope import TenantScope

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


# ==============================================================================
# INPUT VALIDATION (before any storage call)
# ==============================================================================

def to_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError("Price must be a number")
    if not price.is_finite() or price < 0:
        raise ValidationError("Price cannot be negative")
    return price.quantize(CENT)


def _check_count(value: Any, field: str, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be a whole number")
    if value < minimum:
        if minimum == 0:
            raise ValidationError(f"{field} cannot be negative")
        raise ValidationError(f"{field} must be at least {minimum}")
    return value


def _check_threshold(value: Optional[int]) -> int:
    if value is None:
        return settings.DEFAULT_LOW_STOCK_THRESHOLD
    return _check_count(value, "Low stock threshold", 0)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ==============================================================================
# MUTATIONS
# ==============================================================================

def upsert_stock(
    scope: TenantScope,
    caller_id: Optional[int],
    medicine_id: int,
    price: Any,
    quantity: int,
    low_stock_threshold: Optional[int] = None,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
    auto_commit: bool = True,
) -> Inventory:
    """
    Add `quantity` units of a medicine to this tenant's stock.

    Existing row: quantity is incremented (never replaced) and
    price/threshold/batch/expiry are overwritten; RESTOCK movement.
    No row: created with quantity; INITIAL movement.
    """
    quantity = _check_count(quantity, "Quantity", 0)
    price = to_price(price)
    threshold = _check_threshold(low_stock_threshold)
    batch_number = _clean(batch_number)

    db = scope.db
    with transaction(db, auto_commit):
        existing = scope.find_inventory_by_medicine(medicine_id)
        if existing is None:
            if not get_medicine(db, medicine_id):
                raise NotFound("Medicine")
            item = Inventory(
                tenant_id=scope.tenant_id,
                medicine_id=medicine_id,
                price=price,
                quantity=quantity,
                low_stock_threshold=threshold,
                batch_number=batch_number,
                expiry_date=expiry_date,
            )
            try:
                with db.begin_nested():
                    db.add(item)
            except IntegrityError:
                # Another request created the (tenant, medicine) row first
                logger.info(f"[Inventory] Concurrent create tenant={scope.tenant_id} medicine={medicine_id}, restocking")
                existing = scope.get_inventory_by_medicine(medicine_id)
            else:
                record_movement(scope, item.id, quantity, MovementType.INITIAL, caller_id, "Initial stock")
                logger.info(f"[Inventory] Created item {item.id} tenant={scope.tenant_id} qty={quantity}")
                return item

        return _restock(scope, caller_id, existing, quantity, price, threshold, batch_number, expiry_date)


def _restock(
    scope: TenantScope,
    caller_id: Optional[int],
    item: Inventory,
    delta: int,
    price: Decimal,
    threshold: int,
    batch_number: Optional[str],
    expiry_date: Optional[date],
) -> Inventory:
    rows = scope.update_inventory(
        item.id,
        {
            Inventory.quantity: Inventory.quantity + delta,
            Inventory.price: price,
            Inventory.low_stock_threshold: threshold,
            Inventory.batch_number: batch_number,
            Inventory.expiry_date: expiry_date,
        },
        Inventory.quantity + delta >= 0,
    )
    if rows == 0:
        if not scope.inventory(Inventory.id == item.id).count():
            raise NotFound("Inventory")
        raise ValidationError("Resulting quantity cannot be negative")

    if delta:
        record_movement(scope, item.id, delta, MovementType.RESTOCK, caller_id, "Restock")
    scope.db.refresh(item)
    logger.info(f"[Inventory] Restocked item {item.id} by {delta}, now {item.quantity}")
    return item


def add_stock_by_name(
    scope: TenantScope,
    caller_id: Optional[int],
    medicine_name: str,
    price: Any,
    quantity: int,
    low_stock_threshold: Optional[int] = None,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
    generic_name: Optional[str] = None,
    category: Optional[str] = None,
    description: Optional[str] = None,
) -> Inventory:
    """Owner form: resolve the catalog entry, then upsert. One transaction."""
    # Validate everything before touching storage
    _check_count(quantity, "Quantity", 0)
    to_price(price)
    _check_threshold(low_stock_threshold)

    with atomic(scope.db):
        medicine = resolve_or_create_medicine(
            scope.db, medicine_name, generic_name, category, description, auto_commit=False
        )
        item = upsert_stock(
            scope, caller_id, medicine.id, price, quantity,
            low_stock_threshold, batch_number, expiry_date, auto_commit=False,
        )
    AuditLog.log_action("upsert", "inventory", item.id, caller_id, scope.tenant_id,
                        changes={"medicine": medicine.name, "added": quantity})
    return item


def _compare_and_set_quantity(
    scope: TenantScope,
    inventory_id: int,
    new_quantity: int,
    extra_values: Optional[Dict[Any, Any]] = None,
) -> Tuple[Inventory, int]:
    """
    Overwrite quantity only if nobody moved it since we looked.

    Retries a bounded number of times when a concurrent sale or restock
    wins. Returns (row, observed quantity before the write).
    """
    values = {Inventory.quantity: new_quantity}
    values.update(extra_values or {})

    for attempt in range(settings.STOCK_CAS_RETRIES):
        item = scope.get_inventory(inventory_id)
        observed = item.quantity
        rows = scope.update_inventory(inventory_id, values, Inventory.quantity == observed)
        if rows:
            scope.db.refresh(item)
            return item, observed
        logger.info(f"[Inventory] Item {inventory_id} changed during overwrite (attempt {attempt + 1})")
        scope.db.expire(item)

    raise StorageError("Stock changed while saving, please retry")


def set_stock(
    scope: TenantScope,
    caller_id: Optional[int],
    inventory_id: int,
    price: Any,
    quantity: int,
    low_stock_threshold: Optional[int] = None,
    batch_number: Optional[str] = None,
    expiry_date: Optional[date] = None,
    reason: Optional[str] = None,
) -> Inventory:
    """Manual edit with absolute values. ADJUSTMENT movement for the quantity difference."""
    quantity = _check_count(quantity, "Quantity", 0)
    price = to_price(price)
    threshold = _check_threshold(low_stock_threshold)

    with atomic(scope.db):
        item, observed = _compare_and_set_quantity(
            scope,
            inventory_id,
            quantity,
            {
                Inventory.price: price,
                Inventory.low_stock_threshold: threshold,
                Inventory.batch_number: _clean(batch_number),
                Inventory.expiry_date: expiry_date,
            },
        )
        delta = quantity - observed
        if delta:
            record_movement(scope, item.id, delta, MovementType.ADJUSTMENT, caller_id, _clean(reason) or "Manual edit")

    AuditLog.log_action("update", "inventory", item.id, caller_id, scope.tenant_id,
                        changes={"quantity": [observed, quantity], "price": str(price)})
    return item


def decrement_atomic(
    scope: TenantScope,
    amount: int,
    inventory_id: Optional[int] = None,
    medicine_id: Optional[int] = None,
    caller_id: Optional[int] = None,
    movement_type: MovementType = MovementType.SALE,
    reason: Optional[str] = None,
    auto_commit: bool = False,
) -> Inventory:
    """
    Take `amount` units out of stock with a single conditional UPDATE.

    The affected-row count is the only source of truth: 0 rows means the
    stock check failed (InsufficientStock) or the row is not this tenant's
    (NotFound). No lock is taken and no prior read is trusted.

    Args:
        auto_commit: If True, commits immediately. If False, caller controls transaction.
    """
    amount = _check_count(amount, "Quantity", 1)
    if (inventory_id is None) == (medicine_id is None):
        raise ValidationError("Provide exactly one of inventory_id or medicine_id")

    with transaction(scope.db, auto_commit):
        if inventory_id is None:
            inventory_id = scope.get_inventory_by_medicine(medicine_id).id

        rows = scope.update_inventory(
            inventory_id,
            {Inventory.quantity: Inventory.quantity - amount},
            Inventory.quantity >= amount,
        )
        if rows == 0:
            if not scope.inventory(Inventory.id == inventory_id).count():
                raise NotFound("Inventory")
            logger.info(f"[Inventory] Insufficient stock on item {inventory_id} for -{amount}")
            raise InsufficientStock()

        record_movement(scope, inventory_id, -amount, movement_type, caller_id, reason)
        item = scope.get_inventory(inventory_id)
        scope.db.refresh(item)
        return item


def delete_item(scope: TenantScope, caller_id: Optional[int], inventory_id: int) -> None:
    """
    Hard delete. Remaining stock is written off first so the history still balances.

    Open bookings on the item are cancelled in the same transaction; every
    booking row survives with inventory_id set to NULL.
    """
    with atomic(scope.db):
        item, observed = _compare_and_set_quantity(scope, inventory_id, 0)
        if observed:
            record_movement(scope, inventory_id, -observed, MovementType.ADJUSTMENT, caller_id, "Item removed")
        cancelled = scope.bookings(
            Booking.inventory_id == inventory_id,
            Booking.status.in_([BookingStatus.PENDING, BookingStatus.READY]),
        ).update({Booking.status: BookingStatus.CANCELLED}, synchronize_session=False)
        medicine_name = item.medicine.name if item.medicine else None
        scope.db.expunge(item)
        scope.delete_inventory(inventory_id)

    if cancelled:
        logger.info(f"[Inventory] Cancelled {cancelled} open booking(s) on deleted item {inventory_id}")
    AuditLog.log_action("delete", "inventory", inventory_id, caller_id, scope.tenant_id,
                        changes={"medicine": medicine_name, "written_off": observed, "bookings_cancelled": cancelled})


# ==============================================================================
# READS
# ==============================================================================

def list_inventory(scope: TenantScope, search: Optional[str] = None) -> List[Inventory]:
    q = scope.inventory()
    if search and search.strip():
        term = f"%{search.strip()}%"
        q = q.join(Medicine, Inventory.medicine_id == Medicine.id).filter(
            Medicine.name.ilike(term) | Medicine.generic_name.ilike(term)
        )
    return q.order_by(Inventory.updated_at.desc(), Inventory.id.desc()).all()


def get_low_stock(scope: TenantScope, limit: int = 10) -> List[Inventory]:
    """In stock but under the row's own threshold."""
    return (
        scope.inventory(Inventory.quantity > 0, Inventory.quantity < Inventory.low_stock_threshold)
        .order_by(Inventory.quantity.asc())
        .limit(limit)
        .all()
    )


def get_out_of_stock(scope: TenantScope) -> List[Inventory]:
    return scope.inventory(Inventory.quantity == 0).all()


def get_expiring(scope: TenantScope, days: int = settings.EXPIRY_ALERT_DAYS, today: Optional[date] = None) -> List[Dict[str, Any]]:
    """Items whose expiry falls within the next `days` days."""
    today = today or date.today()
    alert_date = today + timedelta(days=days)
    items = (
        scope.inventory(
            Inventory.expiry_date.isnot(None),
            Inventory.expiry_date <= alert_date,
            Inventory.expiry_date >= today,
        )
        .order_by(Inventory.expiry_date.asc())
        .all()
    )
    return [
        {
            "id": i.id,
            "medicine_name": i.medicine.name,
            "expiry_date": i.expiry_date,
            "days_until_expiry": (i.expiry_date - today).days,
            "quantity": i.quantity,
        }
        for i in items
    ]
