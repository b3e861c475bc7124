from .catalog import Category, Product
from .billing import Bill, Customer
from .auth import User
from .settings import ShopSetting

__all__ = [
    'Category', 'Product',
    'Bill', 'Customer',
    'User',
    'ShopSetting',
]
