"""
Payment and Delivery Validation

DESIGN DECISION: Validation happens before any mutation and reports
every problem at once:

PAYMENTS:
- Instrument amounts must not be negative
- The payment total must be greater than zero
- The payment total must not exceed the receipt's remaining balance
- The receipt must be in a payable state

DELIVERIES:
- The amount must be greater than zero
- The amount must not exceed the register balance of its currency

IMPORTANT: Validation NEVER silently fixes issues.
Overpayments are not trimmed and deliveries are not capped; the caller
corrects the input and tries again.
"""

from decimal import Decimal

from rental_ledger.errors import LedgerError
from rental_ledger.models.payment import DeliveryRequest, PaymentRequest
from rental_ledger.models.receipt import (
    PAYABLE_STATUSES,
    Currency,
    Receipt,
)
from rental_ledger.models.validation import ValidationIssue, ValidationResult
from rental_ledger.money import format_money


class PaymentValidator:
    """Checks a payment request against the receipt it targets."""

    def validate(
        self,
        receipt: Receipt,
        request: PaymentRequest,
    ) -> ValidationResult:
        """
        Validate a payment request.

        Args:
            receipt: The receipt being paid, as currently stored
            request: The per-instrument amounts

        Returns:
            ValidationResult with all issues found
        """
        issues = []

        for method, amount in request.parts():
            if amount < 0:
                issues.append(ValidationIssue(
                    field=method.value,
                    issue_type="negative_amount",
                    message=f"{method.label} amount cannot be negative ({amount})",
                    severity="error",
                    suggested_fix="Enter zero for instruments that were not used",
                    details={"method": method.value, "amount": str(amount)},
                ))

        total = request.total
        remaining = receipt.remaining_balance

        if total <= 0:
            issues.append(ValidationIssue(
                field="total",
                issue_type="not_positive",
                message=f"Payment total must be greater than zero (got {total})",
                severity="error",
                suggested_fix="Enter the amount received for at least one instrument",
                details={"total": str(total)},
            ))
        elif total > remaining:
            issues.append(ValidationIssue(
                field="total",
                issue_type="exceeds_balance",
                message=(
                    f"Payment total {format_money(total)} exceeds the remaining "
                    f"balance {format_money(remaining, receipt.currency)} of "
                    f"receipt {receipt.receipt_number or receipt.id}"
                ),
                severity="error",
                suggested_fix=f"Reduce the payment to at most {remaining}",
                details={"total": str(total), "remaining_balance": str(remaining)},
            ))

        if receipt.status not in PAYABLE_STATUSES:
            issues.append(ValidationIssue(
                field="status",
                issue_type="invalid_state",
                message=f"Receipt in status '{receipt.status.value}' cannot receive payments",
                severity="error",
                suggested_fix=(
                    "Confirm the receipt first"
                    if receipt.status.value != "pagado"
                    else "The receipt is already paid"
                ),
                details={
                    "status": receipt.status.value,
                    "payable": sorted(s.value for s in PAYABLE_STATUSES),
                },
            ))

        # Amounts are summed across currencies as entered
        foreign = [
            method for method, amount in request.parts()
            if amount > 0 and method.currency != receipt.currency
        ]
        if foreign:
            issues.append(ValidationIssue(
                field="currency",
                issue_type="mixed_currency",
                message=(
                    f"{', '.join(m.label for m in foreign)} settles in a currency "
                    f"other than the receipt's ({receipt.currency.value}); "
                    "amounts are added without conversion"
                ),
                severity="warning",
                suggested_fix="Enter the amount already converted to the receipt currency",
                details={"receipt_currency": receipt.currency.value},
            ))

        return ValidationResult(subject="payment", issues=issues)


class DeliveryValidator:
    """Checks a draw-down against the available register balance."""

    def validate(
        self,
        request: DeliveryRequest,
        available: Decimal,
    ) -> ValidationResult:
        issues = []
        currency: Currency = request.currency

        if request.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_positive",
                message=f"Delivery amount must be greater than zero (got {request.amount})",
                severity="error",
                details={"amount": str(request.amount), "currency": currency.value},
            ))
        elif request.amount > available:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="insufficient_funds",
                message=(
                    f"Cannot deliver {format_money(request.amount, currency)}: "
                    f"only {format_money(available, currency)} available"
                ),
                severity="error",
                suggested_fix=f"Deliver at most {available}",
                details={
                    "amount": str(request.amount),
                    "available": str(available),
                    "currency": currency.value,
                },
            ))

        return ValidationResult(subject="delivery", issues=issues)


class ValidationFailedError(LedgerError):
    """A request was rejected; nothing was mutated."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.summary())

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


class PaymentRejectedError(ValidationFailedError):
    """Payment failed validation."""
    pass


class DeliveryRejectedError(ValidationFailedError):
    """Delivery failed validation."""
    pass
