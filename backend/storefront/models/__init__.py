from .auth import Admin, SessionToken
from .catalog import Product, Category
from .sales import Sale, SaleLine, BillSequence
from .audit import AuditLog
from .content import StoreSettings, Feedback, StockRequest, StoredFile

__all__ = [
    'Admin', 'SessionToken',
    'Product', 'Category',
    'Sale', 'SaleLine', 'BillSequence',
    'AuditLog',
    'StoreSettings', 'Feedback', 'StockRequest', 'StoredFile',
]
