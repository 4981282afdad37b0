# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Restore FastAPI Integration - Admin endpoints over a RestoreCoordinator.

This module provides:
- Protected admin endpoints for listing backups, restoring and polling
- A lifespan context manager that authorizes and closes the coordinator
"""

import os
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from sqlrestore.config import RestoreConfig
from sqlrestore.core import RestoreCoordinator
from sqlrestore.exceptions import (
    ConfigurationError,
    NoEligibleBackupError,
    OperationFailedError,
    ResponseParseError,
)

logger = structlog.get_logger()

# Security
security = HTTPBearer(auto_error=False)


class RestoreLatestBody(BaseModel):
    """Source and target of a latest-backup restore."""

    source_project_id: str
    source_instance_id: str
    target_project_id: str
    target_instance_id: str


class RestoreBody(RestoreLatestBody):
    """Source, target and backup run of a restore."""

    backup_run_id: str


class OperationRef(BaseModel):
    self_link: str = Field(alias="selfLink")


async def verify_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> bool:
    """
    Verify API key from Authorization header.

    The API key is read from the SQLRESTORE_ADMIN_API_KEY environment variable.
    Requests must include: Authorization: Bearer <api_key>

    Raises:
        HTTPException: If API key is missing or invalid
    """
    api_key = os.getenv("SQLRESTORE_ADMIN_API_KEY")

    if not api_key:
        raise HTTPException(
            status_code=500,
            detail="SQLRESTORE_ADMIN_API_KEY environment variable not set",
        )

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Authorization header required",
        )

    if credentials.credentials != api_key:
        raise HTTPException(
            status_code=403,
            detail="Invalid API key",
        )

    return True


def _to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, NoEligibleBackupError):
        return HTTPException(
            status_code=404,
            detail={"message": error.message, **error.details},
        )
    if isinstance(error, OperationFailedError):
        return HTTPException(
            status_code=409,
            detail={
                "message": error.message,
                "errors": error.details.get("errors", []),
                "error": error.details.get("error"),
            },
        )
    if isinstance(error, ConfigurationError):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, ResponseParseError):
        return HTTPException(status_code=502, detail=error.message)
    upstream_status = None
    if isinstance(error, httpx.HTTPStatusError):
        upstream_status = error.response.status_code
    return HTTPException(
        status_code=502,
        detail={
            "message": "Cloud SQL Admin API request failed",
            "upstream_status": upstream_status,
        },
    )


def register_restore_routes(
    app: FastAPI,
    coordinator: RestoreCoordinator,
    prefix: str = "/admin/sqlrestore",
) -> None:
    """
    Register restore admin endpoints on a FastAPI app.

    All endpoints require Bearer token authentication.

    Args:
        app: FastAPI application
        coordinator: Authorized RestoreCoordinator
        prefix: URL prefix for endpoints (default: /admin/sqlrestore)
    """

    @app.get(
        f"{prefix}/backups/{{project_id}}/{{instance_id}}",
        dependencies=[Depends(verify_api_key)],
    )
    async def list_backups(
        project_id: str,
        instance_id: str,
        all_pages: bool = False,
    ) -> list:
        """
        List backup runs of an instance.
        """
        try:
            backups = await coordinator.list_backups(
                project_id, instance_id, all_pages=all_pages
            )
        except (httpx.HTTPError, ResponseParseError) as e:
            raise _to_http_exception(e)
        return [backup.model_dump(by_alias=True, exclude_none=True) for backup in backups]

    @app.post(f"{prefix}/restore", dependencies=[Depends(verify_api_key)])
    async def restore_backup(body: RestoreBody) -> dict:
        """
        Restore a specific backup run onto the target instance.
        """
        try:
            operation = await coordinator.restore_backup(
                body.source_project_id,
                body.source_instance_id,
                body.target_project_id,
                body.target_instance_id,
                body.backup_run_id,
            )
        except (httpx.HTTPError, ResponseParseError) as e:
            raise _to_http_exception(e)
        return operation.to_api_dict()

    @app.post(f"{prefix}/restore-latest", dependencies=[Depends(verify_api_key)])
    async def restore_latest_backup(body: RestoreLatestBody) -> dict:
        """
        Restore the latest successful backup of the source instance.
        """
        try:
            operation = await coordinator.restore_latest_backup(
                body.source_project_id,
                body.source_instance_id,
                body.target_project_id,
                body.target_instance_id,
            )
        except (NoEligibleBackupError, httpx.HTTPError, ResponseParseError) as e:
            raise _to_http_exception(e)
        return operation.to_api_dict()

    @app.get(f"{prefix}/operations/{{project_id}}", dependencies=[Depends(verify_api_key)])
    async def list_operations(
        project_id: str,
        instance_id: str | None = None,
        max_results: int | None = None,
    ) -> list:
        """
        List recent operations, optionally for one instance.
        """
        try:
            operations = await coordinator.list_operations(
                project_id, instance_id, max_results
            )
        except (ConfigurationError, httpx.HTTPError, ResponseParseError) as e:
            raise _to_http_exception(e)
        return [operation.to_api_dict() for operation in operations]

    @app.post(f"{prefix}/operations/check", dependencies=[Depends(verify_api_key)])
    async def check_operation(ref: OperationRef) -> dict:
        """
        Check an operation once through its selfLink.

        Only links under the configured API root are followed, so the
        service account token is never sent to another host.
        """
        if not ref.self_link.startswith(coordinator.config.api_base_url + "/"):
            raise HTTPException(
                status_code=400,
                detail="selfLink must point at the configured Cloud SQL Admin API",
            )
        try:
            operation = await coordinator.check_operation_status(
                {"selfLink": ref.self_link}
            )
        except (OperationFailedError, httpx.HTTPError, ResponseParseError) as e:
            raise _to_http_exception(e)
        return operation.to_api_dict()


@asynccontextmanager
async def sqlrestore_lifespan(
    app: FastAPI,
    config: RestoreConfig,
    prefix: str = "/admin/sqlrestore",
):
    """
    Lifespan context manager for FastAPI.

        app = FastAPI(lifespan=lambda app: sqlrestore_lifespan(app, config))

    Args:
        app: FastAPI application
        config: Restore configuration; credentials_path must be set
        prefix: URL prefix for admin endpoints
    """
    logger.info("sqlrestore_lifespan_starting")

    coordinator = RestoreCoordinator(config)
    coordinator.authorize()
    app.state.sqlrestore = coordinator

    register_restore_routes(app, coordinator, prefix)

    logger.info("sqlrestore_lifespan_started")

    try:
        yield
    finally:
        logger.info("sqlrestore_lifespan_stopping")
        await coordinator.aclose()
        logger.info("sqlrestore_lifespan_stopped")


def get_coordinator(app: FastAPI) -> RestoreCoordinator:
    """
    Get the RestoreCoordinator from a FastAPI app.

    Useful for accessing the coordinator in custom endpoints.

    Raises:
        RuntimeError: If the lifespan has not run
    """
    coordinator = getattr(app.state, "sqlrestore", None)
    if coordinator is None:
        raise RuntimeError("sqlrestore not initialized. Use sqlrestore_lifespan first.")
    return coordinator
