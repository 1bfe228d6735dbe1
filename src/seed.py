"""Seed a small order-management dataset for purge demos."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from src.entities.category import Category
from src.entities.customer import Customer
from src.entities.order import Order
from src.entities.order_line import OrderLine
from src.entities.product import Product
from src.entities.shipment import Shipment

CUSTOMERS = [
    {"name": "Acme Corp", "email": "ops@acme.example", "region": "us"},
    {"name": "Globex", "email": "billing@globex.example", "region": "eu"},
    {"name": "Initech", "email": "it@initech.example", "region": "us"},
    {"name": "Umbrella", "email": "procurement@umbrella.example", "region": "apac"},
]

CATEGORIES = {
    "Hardware": ["Laptops", "Monitors"],
    "Software": ["Licenses"],
}

PRODUCTS = [
    {"sku": "LAP-13", "name": "13in Laptop", "unit_price": 1099.0, "category": "Laptops"},
    {"sku": "LAP-15", "name": "15in Laptop", "unit_price": 1499.0, "category": "Laptops"},
    {"sku": "MON-27", "name": "27in Monitor", "unit_price": 329.0, "category": "Monitors"},
    {"sku": "LIC-IDE", "name": "IDE License", "unit_price": 199.0, "category": "Licenses"},
]

CARRIERS = ["dhl", "ups", "fedex"]
STATUSES = ["open", "paid", "shipped", "closed"]


async def seed_data(db: AsyncSession, orders_per_customer: int = 5, seed: int | None = None):
    """Seed customers, a category tree, products, orders, lines and shipments."""
    rng = random.Random(seed)

    categories: dict[str, Category] = {}
    for parent_name, children in CATEGORIES.items():
        parent = Category(name=parent_name)
        db.add(parent)
        await db.flush()
        categories[parent_name] = parent
        for child_name in children:
            child = Category(name=child_name, parent_id=parent.id)
            db.add(child)
            categories[child_name] = child
    await db.flush()

    products = []
    for product_data in PRODUCTS:
        data = dict(product_data)
        category = categories[data.pop("category")]
        product = Product(**data, category_id=category.id)
        db.add(product)
        products.append(product)

    customers = [Customer(**customer_data) for customer_data in CUSTOMERS]
    db.add_all(customers)
    await db.flush()

    now = datetime.now(timezone.utc)
    for customer in customers:
        for _ in range(orders_per_customer):
            status = rng.choice(STATUSES)
            order = Order(
                customer_id=customer.id,
                status=status,
                placed_at=now - timedelta(days=rng.randint(0, 90)),
            )
            db.add(order)
            await db.flush()

            for product in rng.sample(products, k=rng.randint(1, len(products))):
                db.add(OrderLine(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=rng.randint(1, 5),
                    unit_price=product.unit_price,
                ))

            if status in ("shipped", "closed"):
                db.add(Shipment(
                    order_id=order.id,
                    carrier=rng.choice(CARRIERS),
                    tracking_code=f"TRK{rng.randint(100000, 999999)}",
                    shipped_at=order.placed_at + timedelta(days=rng.randint(1, 5)),
                ))

    await db.commit()
