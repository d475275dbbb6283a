"""Point-of-sale order creation.

An order, its line items and the stock decrement of every line are written in
one session transaction: either all of it is committed or none of it is.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopsathi import config, models, schemas
from shopsathi.errors import InsufficientStockError, NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)


def owner_filter(column, owner_id):
    """Restrict ``column`` to one ownership partition; None is the guest partition."""
    if owner_id is None:
        return column.is_(None)
    return column == owner_id


def order_totals(items, discount):
    total = sum((Decimal(item.price) * item.quantity for item in items), Decimal("0"))
    # no floor: a discount larger than the total gives a negative final amount
    return total, total - discount


def decrement_stock(db: Session, line: schemas.OrderLine, owner_id, strict=False):
    """Take ``line.quantity`` units off the matching product in the owner's catalog.

    Returns the number of product rows changed. Lines whose product does not
    exist in the partition change nothing.
    """
    query = db.query(models.Product).filter(
        models.Product.id == line.product_id,
        owner_filter(models.Product.user_id, owner_id),
    )
    if strict:
        query = query.filter(models.Product.quantity >= line.quantity)
    return query.update(
        {models.Product.quantity: models.Product.quantity - line.quantity},
        synchronize_session=False,
    )


def create_order(db: Session, request: schemas.OrderCreate, owner_id=None, strict=None):
    if not request.items:
        raise ValidationError("Items required")
    if strict is None:
        strict = config.STRICT_STOCK

    discount = request.discount if request.discount is not None else Decimal("0")
    total, final_amount = order_totals(request.items, discount)

    try:
        order = models.Order(
            user_id=owner_id,
            customer_name=request.customer_name,
            total_amount=total,
            discount=discount,
            final_amount=final_amount,
            created_at=datetime.now(),
        )
        db.add(order)
        db.flush()
        order_id = order.id

        db.add_all([
            models.OrderItem(
                order_id=order_id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price=line.price,
            )
            for line in request.items
        ])
        db.flush()

        for line in request.items:
            changed = decrement_stock(db, line, owner_id, strict=strict)
            if strict and changed == 0 and line.product_id is not None:
                raise InsufficientStockError(f"Not enough stock available for {line.product_name or line.product_id}")

        db.commit()
    except InsufficientStockError:
        db.rollback()
        logger.warning("Order rolled back for owner %s: insufficient stock", owner_id)
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Order rolled back for owner %s: %s", owner_id, e)
        raise StoreError.from_exception(e)

    logger.info("Order %s created for owner %s: %d lines, final amount %s",
                order_id, owner_id, len(request.items), final_amount)
    return {"success": True, "orderId": order_id}


def list_orders(db: Session, owner_id=None):
    return (
        db.query(models.Order)
        .filter(owner_filter(models.Order.user_id, owner_id))
        .order_by(models.Order.created_at.desc(), models.Order.id.desc())
        .all()
    )


def get_order(db: Session, order_id: int, owner_id=None):
    order = (
        db.query(models.Order)
        .filter(models.Order.id == order_id, owner_filter(models.Order.user_id, owner_id))
        .first()
    )
    if order is None:
        raise NotFoundError("Order not found")
    return order
