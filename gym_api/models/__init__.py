from .gym import Gym
from .admin import Admin
from .collaborator import Collaborator
from .membership import Membership
from .client import Client
from .supplier import Supplier
from .product import Product
from .product_sale import ProductSale
from .note import Note
from .calendar_event import CalendarEvent

__all__ = [
    "Gym",
    "Admin",
    "Collaborator",
    "Membership",
    "Client",
    "Supplier",
    "Product",
    "ProductSale",
    "Note",
    "CalendarEvent",
]
