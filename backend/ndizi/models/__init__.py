from .accounts import User, Store
from .inventory import Product
from .sales import Transaction

__all__ = [
    'User', 'Store',
    'Product',
    'Transaction',
]
