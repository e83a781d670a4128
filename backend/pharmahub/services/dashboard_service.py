"""Owner dashboard counters."""
from datetime import datetime, time, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import func

from pharmahub.models.booking import Booking, BookingStatus
from pharmahub.models.inventory import Inventory
from pharmahub.models.sale import Sale
from pharmahub.services.tenant_scope import TenantScope


def get_dashboard_stats(scope: TenantScope, now: Optional[datetime] = None) -> Dict[str, Any]:
    now = now or datetime.now(timezone.utc)
    start_of_day = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)

    total = scope.inventory().count()
    low_stock = scope.inventory(
        Inventory.quantity > 0, Inventory.quantity < Inventory.low_stock_threshold
    ).count()
    out_of_stock = scope.inventory(Inventory.quantity == 0).count()

    sales_today = scope.sales(Sale.created_at >= start_of_day).with_entities(
        func.coalesce(func.sum(Sale.total_amount), 0)
    ).scalar()

    recent_sales = scope.sales().order_by(Sale.created_at.desc(), Sale.id.desc()).limit(5).all()
    pending_bookings = scope.bookings(Booking.status == BookingStatus.PENDING).count()

    return {
        "total_products": total,
        "low_stock": low_stock,
        "out_of_stock": out_of_stock,
        "in_stock": total - low_stock - out_of_stock,
        "sales_today": Decimal(str(sales_today or 0)),
        "pending_bookings": pending_bookings,
        "recent_sales": recent_sales,
    }
