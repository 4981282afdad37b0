# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQL Restore Core - Cross-project backup restore coordinator.

RestoreCoordinator lists Cloud SQL backup runs, restores a chosen (or the
latest successful) backup onto a target instance, and checks the resulting
operation. Restores can cross projects as long as the service account is
authorized on both sides.

Polling loops, retries and timeouts around check_operation_status() are left
to the caller.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, List, Sequence

import httpx
import structlog

from sqlrestore.auth import AuthorizedClient
from sqlrestore.config import RestoreConfig
from sqlrestore.errors import (
    explain_already_authorized,
    explain_missing_credentials_path,
    explain_not_authorized,
)
from sqlrestore.exceptions import (
    ConfigurationError,
    NoEligibleBackupError,
    NotAuthorizedError,
    OperationFailedError,
    ResponseParseError,
)
from sqlrestore.models import (
    BackupRun,
    Operation,
    RestoreRequest,
    parse_items,
    parse_resource,
)

logger = structlog.get_logger()


def select_latest_backup(backups: Sequence[BackupRun]) -> BackupRun:
    """
    Pick the most recent successful backup run.

    startTime is fixed-width ISO-8601 in UTC, so string order is time order.
    On identical start times the first run in API order wins.

    Raises:
        NoEligibleBackupError: If no run has status SUCCESSFUL
    """
    successful = [backup for backup in backups if backup.successful]

    if not successful:
        if not backups:
            message = "No backups were found on the source, cannot restore"
        else:
            message = "No successful backups were found on the source, cannot restore"
        raise NoEligibleBackupError(
            message,
            details={
                "total_backups": len(backups),
                "statuses": sorted({str(backup.status) for backup in backups}),
            },
        )

    return max(successful, key=lambda backup: backup.start_time or "")


def _self_link_of(operation: Any) -> str | None:
    if isinstance(operation, Operation):
        return operation.self_link
    if isinstance(operation, Mapping):
        return operation.get("selfLink") or operation.get("self_link")
    return getattr(operation, "self_link", None) or getattr(operation, "selfLink", None)


class RestoreCoordinator:
    """
    Restores Cloud SQL backups across projects.

    Usage:
        async with RestoreCoordinator(config) as coordinator:
            coordinator.authorize("service-account.json")
            operation = await coordinator.restore_latest_backup(
                "source-project", "source-instance",
                "target-project", "target-instance",
            )
            operation = await coordinator.check_operation_status(operation)
    """

    def __init__(
        self,
        config: RestoreConfig | None = None,
        client: AuthorizedClient | None = None,
    ):
        self.config = config or RestoreConfig()
        self._client = client

    async def __aenter__(self) -> "RestoreCoordinator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def authorized(self) -> bool:
        return self._client is not None

    def authorize(
        self,
        credentials_path: str | Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> AuthorizedClient:
        """
        Load the service account key and prepare the authorized client.

        No request is made here; the token is fetched on the first API call.

        Args:
            credentials_path: JSON key path, defaults to config.credentials_path
            transport: Optional httpx transport (proxies, tests)

        Raises:
            ConfigurationError: If already authorized or the key is unusable
        """
        if self._client is not None:
            raise ConfigurationError(explain_already_authorized())

        path = credentials_path or self.config.credentials_path
        if not path:
            raise ConfigurationError(explain_missing_credentials_path())

        self._client = AuthorizedClient.from_service_account_file(
            Path(path), self.config, transport
        )
        return self._client

    def _require_client(self) -> AuthorizedClient:
        if self._client is None:
            raise NotAuthorizedError(explain_not_authorized())
        return self._client

    async def list_backups(
        self,
        project_id: str,
        instance_id: str,
        *,
        all_pages: bool = False,
    ) -> List[BackupRun]:
        """
        List backup runs of an instance in API order.

        Only the first page is read unless all_pages is set, in which case
        nextPageToken is followed until exhausted.

        Raises:
            httpx.HTTPError: Logged and re-raised unchanged
            ResponseParseError: If a backup run is malformed
        """
        client = self._require_client()
        url = client.url(f"projects/{project_id}/instances/{instance_id}/backupRuns")

        backups: List[BackupRun] = []
        params: Dict[str, Any] = {}
        while True:
            try:
                payload = await client.request("GET", url, params=params or None)
            except httpx.HTTPError as e:
                logger.error(
                    "backup_list_failed",
                    project_id=project_id,
                    instance_id=instance_id,
                    error=str(e),
                )
                raise

            backups.extend(parse_items(BackupRun, payload))

            page_token = payload.get("nextPageToken")
            if not all_pages or not page_token:
                break
            params = {"pageToken": page_token}

        logger.info(
            "backups_listed",
            project_id=project_id,
            instance_id=instance_id,
            count=len(backups),
        )
        return backups

    async def restore_backup(
        self,
        source_project_id: str,
        source_instance_id: str,
        target_project_id: str,
        target_instance_id: str,
        backup_run_id: str,
    ) -> Operation:
        """
        Restore a backup run of the source instance onto the target instance.

        The backup id is not checked here; the API rejects bad ids through
        the returned operation's error field.
        """
        return await self._submit_restore(
            RestoreRequest(
                source_project_id=source_project_id,
                source_instance_id=source_instance_id,
                target_project_id=target_project_id,
                target_instance_id=target_instance_id,
                backup_run_id=str(backup_run_id),
            )
        )

    async def _submit_restore(self, request: RestoreRequest) -> Operation:
        client = self._require_client()
        url = client.url(
            f"projects/{request.target_project_id}"
            f"/instances/{request.target_instance_id}/restoreBackup"
        )

        logger.info(
            "restore_requested",
            source_project_id=request.source_project_id,
            source_instance_id=request.source_instance_id,
            target_project_id=request.target_project_id,
            target_instance_id=request.target_instance_id,
            backup_run_id=request.backup_run_id,
        )

        payload = await client.request("POST", url, json_body=request.to_body())
        return parse_resource(Operation, payload)

    async def restore_latest_backup(
        self,
        source_project_id: str,
        source_instance_id: str,
        target_project_id: str,
        target_instance_id: str,
    ) -> Operation:
        """
        Find the latest successful backup of the source and restore it.

        Nothing is submitted if listing fails or no backup qualifies.

        Raises:
            NoEligibleBackupError: If the source has no successful backup
        """
        backups = await self.list_backups(source_project_id, source_instance_id)
        latest = select_latest_backup(backups)

        logger.info(
            "latest_backup_selected",
            source_project_id=source_project_id,
            source_instance_id=source_instance_id,
            backup_run_id=latest.id,
            start_time=latest.start_time,
        )

        return await self.restore_backup(
            source_project_id,
            source_instance_id,
            target_project_id,
            target_instance_id,
            latest.id,
        )

    async def list_operations(
        self,
        project_id: str,
        instance_id: str | None = None,
        max_results: int | None = None,
    ) -> List[Operation]:
        """
        List recent operations of a project, optionally for one instance.

        Args:
            project_id: Project to list operations for
            instance_id: Only operations on this instance, if given
            max_results: Page size, defaults to config.default_max_results

        Raises:
            ConfigurationError: If max_results is below 1
        """
        client = self._require_client()
        url = client.url(f"projects/{project_id}/operations")

        if max_results is None:
            max_results = self.config.default_max_results
        if max_results < 1:
            raise ConfigurationError(
                f"max_results must be >= 1, got {max_results}",
                details={"project_id": project_id},
            )

        params: Dict[str, Any] = {"maxResults": max_results}
        if instance_id:
            params["instance"] = instance_id

        payload = await client.request("GET", url, params=params)
        return parse_items(Operation, payload)

    async def check_operation_status(self, operation: Any) -> Operation:
        """
        Re-fetch an operation through its selfLink.

        Args:
            operation: An Operation, an API dict, or anything with a self_link

        Returns:
            The refreshed operation when it carries no errors

        Raises:
            OperationFailedError: If the operation reports errors; the message
                is the first error's message, details["error"] is the error
                field exactly as returned
            ResponseParseError: If no selfLink is available
        """
        client = self._require_client()

        self_link = _self_link_of(operation)
        if not self_link:
            raise ResponseParseError(
                "Operation has no selfLink to poll",
                details={"type": type(operation).__name__},
            )

        payload = await client.request("GET", self_link)
        refreshed = parse_resource(Operation, payload)

        logger.debug(
            "operation_checked",
            name=refreshed.name,
            status=refreshed.status,
            operation_type=refreshed.operation_type,
        )

        entries = refreshed.error_entries
        if entries:
            errors = [entry.model_dump(exclude_none=True) for entry in entries]
            logger.error(
                "operation_failed",
                name=refreshed.name,
                operation_type=refreshed.operation_type,
                errors=errors,
            )
            raise OperationFailedError(
                entries[0].message or "Operation failed",
                details={"errors": errors, "error": payload.get("error")},
                operation=refreshed,
            )

        return refreshed

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
