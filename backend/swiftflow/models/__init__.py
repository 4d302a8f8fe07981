from .owners import Owner, SessionToken
from .catalog import Product
from .orders import Order, OrderLine, FinanceEntry
from .public import PublicOwner, PublicProduct

__all__ = [
    'Owner', 'SessionToken',
    'Product',
    'Order', 'OrderLine', 'FinanceEntry',
    'PublicOwner', 'PublicProduct',
]
