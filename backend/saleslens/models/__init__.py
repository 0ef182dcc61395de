from .sales import SaleRecord, SaleReversal, CreditPayment
from .inventory import InventoryMovement, InventoryReceipt
from .customers import Customer
from .goals import SalesGoal
from .expenses import Expense

__all__ = [
    'SaleRecord', 'SaleReversal', 'CreditPayment',
    'InventoryMovement', 'InventoryReceipt',
    'Customer',
    'SalesGoal',
    'Expense',
]
