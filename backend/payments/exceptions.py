from core.exceptions import DomainError


class LedgerError(DomainError):
    """Base exception for payment ledger operations."""

    code = "LEDGER_ERROR"


class LedgerDenied(LedgerError):
    """Authorization guard rejection; the message is the guard's reason."""

    code = "LEDGER_DENIED"
    default_message = "Ledger operation not allowed."


class AlreadyVoided(LedgerError):
    code = "ALREADY_VOIDED"
    default_message = "Payment entry is already voided."


class NothingToSettle(LedgerError):
    code = "NOTHING_TO_SETTLE"
    default_message = "Balance is already zero."


class PaymentEntryNotFound(LedgerError):
    code = "PAYMENT_ENTRY_NOT_FOUND"
    default_message = "Payment entry not found on this shipment."


class InvalidPaymentInput(LedgerError):
    code = "INVALID_PAYMENT_INPUT"
    default_message = "Payment input failed validation."
