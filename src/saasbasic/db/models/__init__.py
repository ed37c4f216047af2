# src/saasbasic/db/models/__init__.py
from .organizations import Organization
from .plans import Plan
from .users import User
from .customers import Customer
from .contacts import Contact
from .emails import Email

__all__ = ["Organization", "Plan", "User", "Customer", "Contact", "Email"]
