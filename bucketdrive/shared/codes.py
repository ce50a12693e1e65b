"""
Shared business codes used across layers (Domain/Application/Infrastructure).

This module provides a single source of truth to avoid drift between
multiple enum definitions scattered across the codebase.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Business status codes (single source)"""

    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_VALIDATION_ERROR = 10003
    INVALID_FILE_NAME = 10010
    DUPLICATE_NAME = 10011
    BLANK_TAG_KEY = 10012

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006
    INVALID_STATE = 20010
    UNSUPPORTED_OPERATION = 20011

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    STORAGE_ERROR = 40004
    PARTIAL_FAILURE = 40005


__all__ = ["BusinessCode"]
