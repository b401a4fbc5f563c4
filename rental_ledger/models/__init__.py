"""
Data Models Package

This package contains all Pydantic models used in the Rental Ledger.
All data flowing through the system must conform to these schemas.
"""

from rental_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from rental_ledger.models.cash import CashMovement, DeliveryType, MovementType
from rental_ledger.models.payment import DeliveryRequest, PaymentRequest, PaymentResult
from rental_ledger.models.property import Property, PropertyStatus, PropertyType
from rental_ledger.models.receipt import (
    EDITABLE_STATUSES,
    MONTH_NAMES,
    PAYABLE_STATUSES,
    SETTLED_STATUSES,
    Currency,
    OtherCharge,
    PaymentMethod,
    Receipt,
    ReceiptChanges,
    ReceiptStatus,
    compute_remaining,
    compute_total,
)
from rental_ledger.models.reports import (
    BuildingGroup,
    DashboardSummary,
    ImportStats,
    MonthlyReport,
    MonthlyReportRow,
    PendingPayment,
    RecentPayment,
    RentReviewReminder,
    StatementMovement,
    StatementRow,
    TenantStatement,
)
from rental_ledger.models.tenant import Guarantor, Tenant, TenantStatus
from rental_ledger.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Records
    "CashMovement",
    "Currency",
    "DeliveryType",
    "Guarantor",
    "MovementType",
    "OtherCharge",
    "PaymentMethod",
    "Property",
    "PropertyStatus",
    "PropertyType",
    "Receipt",
    "ReceiptChanges",
    "ReceiptStatus",
    "Tenant",
    "TenantStatus",
    "EDITABLE_STATUSES",
    "MONTH_NAMES",
    "PAYABLE_STATUSES",
    "SETTLED_STATUSES",
    "compute_remaining",
    "compute_total",
    # Requests and results
    "DeliveryRequest",
    "PaymentRequest",
    "PaymentResult",
    "ValidationIssue",
    "ValidationResult",
    # Reports
    "BuildingGroup",
    "DashboardSummary",
    "ImportStats",
    "MonthlyReport",
    "MonthlyReportRow",
    "PendingPayment",
    "RecentPayment",
    "RentReviewReminder",
    "StatementMovement",
    "StatementRow",
    "TenantStatement",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
