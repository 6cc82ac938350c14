from __future__ import annotations


class OrderFlowError(Exception):
    """Base class for domain errors raised by the order management core."""

    error_code = "orderflow_error"


class ValidationError(OrderFlowError, ValueError):
    """Malformed or missing input; the operation is never attempted."""

    error_code = "validation_error"


class NegativeAmountError(ValidationError):
    error_code = "negative_amount"


class PreconditionError(OrderFlowError):
    """The request is well formed but the current state does not allow it."""

    error_code = "precondition_failed"


class ConfirmationRequiredError(PreconditionError):
    error_code = "confirmation_required"


class NotFoundError(OrderFlowError, LookupError):
    error_code = "not_found"


class MergeInconsistencyError(OrderFlowError):
    """Merged order was written but the source orders could not all be retired."""

    error_code = "merge_inconsistency"

    def __init__(self, message: str, merged_order_id: str, remaining_source_ids: list[str]):
        super().__init__(message)
        self.merged_order_id = merged_order_id
        self.remaining_source_ids = remaining_source_ids
