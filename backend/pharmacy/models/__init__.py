from .inventory import Medicine
from .customers import Customer
from .sales import Sale
from .audit import (
    SaleAuditEntry,
    StockAlert,
    AUDIT_ACTION_INSERT,
    AUDIT_ACTION_UPDATE,
    AUDIT_ACTION_DELETE,
    AUDIT_ACTIONS,
)

__all__ = [
    'Medicine',
    'Customer',
    'Sale',
    'SaleAuditEntry', 'StockAlert',
    'AUDIT_ACTION_INSERT', 'AUDIT_ACTION_UPDATE', 'AUDIT_ACTION_DELETE', 'AUDIT_ACTIONS',
]
