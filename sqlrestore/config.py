# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Restore Configuration - Immutable configuration data structures.

Configuration is frozen after creation so a single config can be shared
between coordinators without accidental modification.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

DEFAULT_API_BASE_URL = "https://www.googleapis.com/sql/v1beta4"
CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"


def _validate_base_url(url: str) -> bool:
    """Base URL must be absolute http(s) without a trailing slash."""
    if not url:
        return False
    if not url.startswith(("https://", "http://")):
        return False
    return not url.endswith("/")


@dataclass(frozen=True)
class RestoreConfig:
    """
    Immutable configuration for a RestoreCoordinator.

    Holds no credentials itself, only where to find them.
    """

    # Path to the service account JSON key
    credentials_path: Path | None = None

    # Cloud SQL Admin API root
    api_base_url: str = DEFAULT_API_BASE_URL

    # OAuth2 scopes requested for the bearer token
    scopes: Tuple[str, ...] = field(default_factory=lambda: (CLOUD_PLATFORM_SCOPE,))

    # Per-request timeout handed to httpx
    timeout_seconds: float = 30.0

    # Page size for list_operations when the caller passes none
    default_max_results: int = 10

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        if not _validate_base_url(self.api_base_url):
            errors.append(f"Invalid api_base_url: {self.api_base_url!r}")

        if not self.scopes:
            errors.append("At least one OAuth2 scope is required")

        if self.timeout_seconds <= 0:
            errors.append(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

        if self.default_max_results < 1:
            errors.append(
                f"default_max_results must be >= 1, got {self.default_max_results}"
            )

        if errors:
            from sqlrestore.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    def with_updates(self, **kwargs) -> "RestoreConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return RestoreConfig(**current)
