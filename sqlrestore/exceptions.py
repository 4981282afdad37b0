# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Restore Exceptions - Custom exceptions for the sqlrestore package.

Transport and HTTP failures are not wrapped: httpx errors reach the caller
unchanged. Everything raised by this package itself derives from
SQLRestoreError.
"""

from typing import Any


class SQLRestoreError(Exception):
    """Base exception for all sqlrestore errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(SQLRestoreError):
    """Raised when configuration or credentials are invalid."""

    pass


class NotAuthorizedError(ConfigurationError):
    """Raised when an operation is invoked before authorize()."""

    pass


class ResponseParseError(SQLRestoreError):
    """Raised when an API payload does not have the expected shape."""

    pass


class RestoreError(SQLRestoreError):
    """Raised when restore operations fail."""

    pass


class NoEligibleBackupError(RestoreError):
    """Raised when no successful backup run exists to restore from."""

    pass


class OperationFailedError(RestoreError):
    """
    Raised when a polled operation reports errors.

    The message is taken from the first error entry; the full error list is
    kept in details["errors"] and the refreshed operation in .operation.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        operation: Any = None,
    ):
        super().__init__(message, details)
        self.operation = operation

    def __str__(self) -> str:
        return self.message
