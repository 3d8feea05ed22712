from .catalog import Product, InventoryLog, UNLIMITED_STOCK
from .orders import Order, OrderItem
from .debts import CustomerDebt, DebtTransaction
from .schedule import CakeOrder
from .staff import Shift
from .auth import UserAccount, Profile, SessionToken

__all__ = [
    'Product', 'InventoryLog', 'UNLIMITED_STOCK',
    'Order', 'OrderItem',
    'CustomerDebt', 'DebtTransaction',
    'CakeOrder',
    'Shift',
    'UserAccount', 'Profile', 'SessionToken',
]
