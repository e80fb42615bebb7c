# ------ compras/model/__init__.py ------

from .user import User
from .purchase import Purchase

__all__ = [
    "User",
    "Purchase",
]
