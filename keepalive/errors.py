"""
keepalive.errors
AUTHOR: carter-vin

Classify Appwrite API errors

Only AppwriteException is ever classified; transport errors (timeouts,
resets) are never "not found" and never "already exists".
"""

from __future__ import annotations

from appwrite.exception import AppwriteException


def is_not_found(error: BaseException) -> bool:
    """
    True when the API reported a missing resource
    """
    if not isinstance(error, AppwriteException):
        return False
    if error.code == 404:
        return True
    if error.type and str(error.type).endswith("_not_found"):
        return True
    # The SDK wraps transport failures with code=None; only trust the
    # message when the server actually answered
    if error.code is None and error.response is not None:
        return "not be found" in str(error.message)
    return False


def is_conflict(error: BaseException) -> bool:
    """
    True when the API reported that the resource already exists
    """
    if not isinstance(error, AppwriteException):
        return False
    if error.code == 409:
        return True
    if error.type and str(error.type).endswith("_already_exists"):
        return True
    return error.response is not None and "already exists" in str(error.message)
