from datetime import datetime, time, timedelta

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from shopsathi import config, models
from shopsathi.orders import owner_filter


def _today_bounds():
    # calendar day in server-local time
    start = datetime.combine(datetime.now().date(), time.min)
    return start, start + timedelta(days=1)


def get_sales_today(db: Session, owner_id=None):
    start, end = _today_bounds()
    total = (
        db.query(func.coalesce(func.sum(models.Order.final_amount), 0))
        .filter(owner_filter(models.Order.user_id, owner_id))
        .filter(models.Order.created_at >= start, models.Order.created_at < end)
        .scalar()
    )
    return float(total or 0)


def get_pending_dues(db: Session, owner_id=None):
    total = (
        db.query(func.coalesce(func.sum(models.Customer.dues), 0))
        .filter(owner_filter(models.Customer.user_id, owner_id))
        .scalar()
    )
    return float(total or 0)


def get_low_stock_count(db: Session, owner_id=None, threshold=None):
    if threshold is None:
        threshold = config.LOW_STOCK_THRESHOLD
    return (
        db.query(func.count(models.Product.id))
        .filter(owner_filter(models.Product.user_id, owner_id))
        .filter(models.Product.quantity <= threshold)
        .scalar()
    ) or 0


def get_no_of_customers(db: Session, owner_id=None):
    return (
        db.query(func.count(models.Customer.id))
        .filter(owner_filter(models.Customer.user_id, owner_id))
        .scalar()
    ) or 0


def get_dashboard_stats(db: Session, owner_id=None):
    # independent reads, no shared snapshot
    return {
        "totalSalesToday": get_sales_today(db, owner_id),
        "totalPendingDues": get_pending_dues(db, owner_id),
        "lowStockItems": get_low_stock_count(db, owner_id),
        "totalCustomers": get_no_of_customers(db, owner_id),
    }


def get_sales_summary(db: Session, owner_id=None, limit=None):
    """Best sellers by units sold, with revenue, cost and profit per product name.

    Cost uses the current purchase price of the same-owner product; lines
    whose product no longer exists cost nothing.
    """
    if limit is None:
        limit = config.SALES_SUMMARY_LIMIT
    item = models.OrderItem
    total_qty = func.sum(item.quantity).label("totalQty")
    rows = (
        db.query(
            item.product_name,
            total_qty,
            func.sum(item.quantity * item.price).label("totalRevenue"),
            func.sum(item.quantity * func.coalesce(models.Product.purchase_price, 0)).label("totalCost"),
        )
        .join(models.Order, models.Order.id == item.order_id)
        .outerjoin(
            models.Product,
            and_(models.Product.id == item.product_id, owner_filter(models.Product.user_id, owner_id)),
        )
        .filter(owner_filter(models.Order.user_id, owner_id))
        .group_by(item.product_name)
        .order_by(total_qty.desc())
        .limit(limit)
        .all()
    )

    summary = []
    for row in rows:
        revenue = float(row.totalRevenue or 0)
        cost = float(row.totalCost or 0)
        summary.append({
            "product_name": row.product_name,
            "totalQty": int(row.totalQty or 0),
            "totalRevenue": revenue,
            "totalCost": cost,
            "profit": round(revenue - cost, 2),
        })
    return summary
