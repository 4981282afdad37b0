# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for sqlrestore.

These helpers centralize wording for common configuration errors so that
all modules present consistent, actionable messages.
"""

from pathlib import Path


def explain_missing_credentials_path() -> str:
    """
    Explain that no service account key file was configured.
    """

    return (
        "No service account key file is configured. "
        "Set SQLRESTORE_CREDENTIALS (or GOOGLE_APPLICATION_CREDENTIALS) "
        "or pass a path to authorize()."
    )


def explain_credentials_not_found(path: Path) -> str:
    """
    Explain that the service account key file does not exist.
    """

    return (
        f"Service account key file not found: {str(path)!r}. "
        "Download a JSON key for the service account and point to it."
    )


def explain_credentials_not_json(path: Path) -> str:
    """
    Explain that the service account key file is not a JSON object.
    """

    return (
        f"Service account key file {str(path)!r} is not a valid JSON object. "
        "Expected the JSON key downloaded from the cloud console."
    )


def explain_missing_credential_fields(path: Path, fields: list[str]) -> str:
    """
    Explain which required fields are absent from the key file.
    """

    return (
        f"Service account key file {str(path)!r} is missing required fields: "
        f"{', '.join(fields)}."
    )


def explain_not_authorized() -> str:
    """
    Explain that authorize() must run before API calls.
    """

    return (
        "Client is not authorized. "
        "Call authorize() with a service account key before any API call."
    )


def explain_already_authorized() -> str:
    """
    Explain that authorize() can only run once per coordinator.
    """

    return (
        "Client is already authorized. "
        "Create a new RestoreCoordinator to use a different service account."
    )


def explain_invalid_timeout_env(value: str | None) -> str:
    """
    Explain that SQLRESTORE_TIMEOUT_SECONDS is invalid.
    """

    return (
        f"Invalid SQLRESTORE_TIMEOUT_SECONDS value: {value!r}. "
        "It must be a positive number of seconds."
    )


def explain_invalid_max_results_env(value: str | None) -> str:
    """
    Explain that SQLRESTORE_MAX_RESULTS is invalid.
    """

    return (
        f"Invalid SQLRESTORE_MAX_RESULTS value: {value!r}. "
        "It must be a positive integer."
    )
