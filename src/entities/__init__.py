from src.entities.customer import Customer
from src.entities.category import Category
from src.entities.product import Product
from src.entities.order import Order
from src.entities.order_line import OrderLine
from src.entities.shipment import Shipment

__all__ = [
    "Customer", "Category", "Product",
    "Order", "OrderLine", "Shipment",
]
