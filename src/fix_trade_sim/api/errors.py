"""Mapping of domain exceptions onto HTTP errors."""

from fastapi import HTTPException, status

from ..constants.errors import ErrorCodes


def error_message(error: Exception) -> str:
    """Readable text of an exception; KeyError otherwise repr-quotes it."""
    if error.args:
        return str(error.args[0])
    return str(error)


def to_http_exception(
    error: Exception,
    not_found_code: str = ErrorCodes.ORDER_NOT_FOUND,
    invalid_code: str = ErrorCodes.INVALID_REQUEST,
) -> HTTPException:
    """Convert a service error into an ``HTTPException``.

    ``KeyError`` becomes 404, ``ValueError`` becomes 400 and anything else
    500. The detail carries an error code from ``ErrorCodes``.
    """
    if isinstance(error, KeyError):
        status_code, code = status.HTTP_404_NOT_FOUND, not_found_code
    elif isinstance(error, ValueError):
        status_code, code = status.HTTP_400_BAD_REQUEST, invalid_code
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        code = ErrorCodes.INTERNAL_ERROR
    return HTTPException(
        status_code=status_code,
        detail={"code": code, "message": error_message(error)},
    )
