"""Error codes and messages used across the simulator."""


def _exact(number: float) -> str:
    """Render a quantity without losing digits: 1e6 stays 1000000."""
    if float(number).is_integer():
        return str(int(number))
    return repr(float(number))


class ErrorCodes:
    """Error codes for API responses and relay error frames."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    INVALID_ALLOCATION = "INVALID_ALLOCATION"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ALLOCATION_NOT_FOUND = "ALLOCATION_NOT_FOUND"
    UNKNOWN_EVENT = "UNKNOWN_EVENT"


class ErrorMessages:
    """Human-readable validation and error messages."""

    ORDER_NOT_FOUND = "Order not found"
    ALLOCATION_NOT_FOUND = "Allocation not found"
    EMPTY_ACCOUNT_LIST = "At least one account is required"
    EMPTY_ACCOUNT_ID = "Account ID cannot be empty"
    INVALID_SIDE = "Invalid Side value (tag 54)"
    INVALID_ORD_TYPE = "Invalid OrdType value (tag 40)"

    @staticmethod
    def missing_tag(tag: str) -> str:
        """Format a missing required tag message."""
        return f"Missing required tag {tag}"

    @staticmethod
    def invalid_quantity(tag: str) -> str:
        """Format a negative or non-numeric quantity message."""
        return f"Invalid quantity in tag {tag}"

    @staticmethod
    def invalid_price(tag: str) -> str:
        """Format a non-positive or non-numeric price message."""
        return f"Invalid price in tag {tag}"

    @staticmethod
    def percent_total(total: float) -> str:
        """Format a percentage sum mismatch message."""
        return f"Total percentage must equal 100% (got {total:.2f}%)"

    @staticmethod
    def over_allocated(allocated: float, total_qty: float) -> str:
        """Format an over-allocation message with both exact quantities."""
        return (
            f"Total allocated quantity ({_exact(allocated)}) exceeds "
            f"order quantity ({_exact(total_qty)})"
        )

    @staticmethod
    def unknown_event(event_type: str) -> str:
        return f"Unknown event type: {event_type}"
