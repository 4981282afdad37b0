# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Restore - Cross-project Cloud SQL backup restore helper.

Authorizes with a service account key, lists backup runs of a source
instance, restores a chosen or the latest successful backup onto a target
instance, and checks the resulting operation. Package name: sqlrestore.
"""

__version__ = "0.1.0"

from sqlrestore.config import RestoreConfig
from sqlrestore.core import RestoreCoordinator, select_latest_backup
from sqlrestore.env import create_config_from_env
from sqlrestore.exceptions import (
    ConfigurationError,
    NoEligibleBackupError,
    NotAuthorizedError,
    OperationFailedError,
    ResponseParseError,
    RestoreError,
    SQLRestoreError,
)
from sqlrestore.models import BackupRun, Operation, RestoreRequest

__all__ = [
    # Version
    "__version__",
    # Configuration
    "RestoreConfig",
    "create_config_from_env",
    # Coordinator
    "RestoreCoordinator",
    "select_latest_backup",
    # Resources
    "BackupRun",
    "Operation",
    "RestoreRequest",
    # Errors
    "SQLRestoreError",
    "ConfigurationError",
    "NotAuthorizedError",
    "ResponseParseError",
    "RestoreError",
    "NoEligibleBackupError",
    "OperationFailedError",
]
