"""Builders for the rows most tests need"""

from datetime import timedelta

from haircrew.models import Category, Order, OrderItem, Product, User, utcnow
from haircrew.security_utils import create_session_token, hash_password

PASSWORD = "Password123"

SHIPPING = {
    "name": "Priya Sharma",
    "phone": "9876543210",
    "address": "221 Baker Street, Koregaon Park",
    "city": "Pune",
    "state": "Maharashtra",
    "pincode": "411001",
}


def make_user(db, email, role="USER", name="Test User"):
    user = User(name=name, email=email, password_hash=hash_password(PASSWORD), role=role)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_session_token(user)}"}


def make_category(db, name, slug=None, is_active=True):
    category = Category(name=name, slug=slug or name.lower().replace(" ", "-"), is_active=is_active)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


def make_product(db, category, name, price, stock=50, is_active=True, created_offset=0, sku=None):
    slug = name.lower().replace(" ", "-")
    product = Product(
        name=name,
        slug=slug,
        description=f"{name} for everyday hair care",
        price=price,
        images=[f"https://cdn.haircrew.in/{slug}.jpg"],
        sku=sku,
        stock=stock,
        is_active=is_active,
        category_id=category.id,
        created_at=utcnow() - timedelta(days=created_offset),
    )
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def make_order(db, user, items, status="PENDING", payment_status="PENDING", created_at=None, method="COD"):
    """items: [(product, quantity)], priced at the product's current price"""
    subtotal = sum(product.price * qty for product, qty in items)
    order = Order(
        order_number=f"ORD-TEST-{db.query(Order).count() + 1}",
        user_id=user.id if user else None,
        status=status,
        payment_status=payment_status,
        payment_method=method,
        subtotal=subtotal,
        shipping=0,
        total=subtotal,
        currency="INR",
        shipping_address=dict(SHIPPING),
        created_at=created_at or utcnow(),
    )
    for product, qty in items:
        order.items.append(OrderItem(product_id=product.id, quantity=qty, price=product.price))
    db.add(order)
    db.commit()
    db.refresh(order)
    return order
