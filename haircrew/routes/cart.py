import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..config import CURRENCY
from ..database import get_db
from ..domain.orders.schemas import OrderItemInput
from ..models import Product
from ..services.shipping import estimated_delivery, shipping_fee

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cart", tags=["Cart"])


class CartQuoteRequest(BaseModel):
    items: list[OrderItemInput]

    @field_validator("items")
    @classmethod
    def validate_items(cls, v):
        if not v:
            raise ValueError("At least one item is required")
        return v


@router.post("/quote")
async def quote_cart(data: CartQuoteRequest, db: Session = Depends(get_db)):
    """
    Price a cart against the live catalog.

    Quantities are clamped to [1, stock]; products that are unknown, inactive
    or out of stock are reported under `unavailable` instead of priced.
    """
    quantities: dict[str, int] = {}
    for item in data.items:
        quantities[item.id] = quantities.get(item.id, 0) + item.quantity

    products = {
        p.id: p for p in db.query(Product).filter(Product.id.in_(list(quantities))).all()
    }

    lines = []
    unavailable = []
    for product_id, requested in quantities.items():
        product = products.get(product_id)
        if product is None or not product.is_active or product.stock <= 0:
            unavailable.append(product_id)
            continue
        quantity = min(max(requested, 1), product.stock)
        lines.append(
            {
                "id": product.id,
                "name": product.name,
                "slug": product.slug,
                "image": product.images[0] if product.images else None,
                "price": product.price,
                "quantity": quantity,
                "requestedQuantity": requested,
                "stock": product.stock,
                "lineTotal": round(product.price * quantity, 2),
            }
        )

    subtotal = round(sum(line["lineTotal"] for line in lines), 2)
    fee = shipping_fee(subtotal)
    delivery = estimated_delivery()

    if unavailable:
        logger.info(f"Cart quote skipped unavailable products: {unavailable}")

    return {
        "items": lines,
        "unavailable": unavailable,
        "subtotal": subtotal,
        "shipping": fee,
        "total": round(subtotal + fee, 2),
        "currency": CURRENCY,
        "estimatedDelivery": delivery.isoformat(),
        "estimatedDeliveryLabel": delivery.strftime("%A, %d %B %Y"),
    }
