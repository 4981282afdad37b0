# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

Build a RestoreConfig from a small set of well-known environment variables,
optionally overriding individual fields with keyword arguments.
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlrestore.config import DEFAULT_API_BASE_URL, RestoreConfig
from sqlrestore.errors import (
    explain_invalid_max_results_env,
    explain_invalid_timeout_env,
)
from sqlrestore.exceptions import ConfigurationError


def _parse_credentials_path(value: str | None, fallback: str | None) -> Path | None:
    raw = value or fallback
    if not raw:
        return None
    return Path(raw).expanduser()


def _parse_timeout(value: str | None) -> float:
    if not value:
        return 30.0
    try:
        seconds = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_timeout_env(value)) from exc
    if seconds <= 0:
        raise ConfigurationError(explain_invalid_timeout_env(value))
    return seconds


def _parse_max_results(value: str | None) -> int:
    if not value:
        return 10
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_max_results_env(value)) from exc
    if count < 1:
        raise ConfigurationError(explain_invalid_max_results_env(value))
    return count


def create_config_from_env(**overrides) -> RestoreConfig:
    """
    Create a RestoreConfig from environment variables.

    Optional environment variables:
        - SQLRESTORE_CREDENTIALS: Path to the service account JSON key
        - GOOGLE_APPLICATION_CREDENTIALS: Used when SQLRESTORE_CREDENTIALS is unset
        - SQLRESTORE_API_BASE_URL: Cloud SQL Admin API root
          (default: https://www.googleapis.com/sql/v1beta4)
        - SQLRESTORE_TIMEOUT_SECONDS: Positive number (default: 30)
        - SQLRESTORE_MAX_RESULTS: Positive integer page size for
          list_operations (default: 10)

    Keyword arguments override the corresponding environment values.
    """

    config = RestoreConfig(
        credentials_path=_parse_credentials_path(
            os.getenv("SQLRESTORE_CREDENTIALS"),
            os.getenv("GOOGLE_APPLICATION_CREDENTIALS"),
        ),
        api_base_url=os.getenv("SQLRESTORE_API_BASE_URL", DEFAULT_API_BASE_URL),
        timeout_seconds=_parse_timeout(os.getenv("SQLRESTORE_TIMEOUT_SECONDS")),
        default_max_results=_parse_max_results(os.getenv("SQLRESTORE_MAX_RESULTS")),
    )

    if overrides:
        config = config.with_updates(**overrides)
    return config
