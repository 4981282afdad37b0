# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Cloud SQL Admin API resources used by sqlrestore.

Only the fields this package reads are declared; anything else the API
returns is kept as an extra field so nothing is lost on round trips.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from sqlrestore.exceptions import ResponseParseError

SUCCESSFUL = "SUCCESSFUL"
DONE = "DONE"


class _Resource(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class BackupRun(_Resource):
    """A point-in-time backup of an instance."""

    id: str
    status: str | None = None
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")
    enqueued_time: str | None = Field(default=None, alias="enqueuedTime")
    kind: str | None = None
    instance: str | None = None
    type: str | None = None
    self_link: str | None = Field(default=None, alias="selfLink")

    @property
    def successful(self) -> bool:
        return self.status == SUCCESSFUL


class OperationErrorEntry(_Resource):
    kind: str | None = None
    code: str | None = None
    message: str | None = None


class OperationErrors(_Resource):
    """Errors attached to an operation."""

    kind: str | None = None
    errors: List[OperationErrorEntry] = Field(default_factory=list)


class Operation(_Resource):
    """
    A long-running operation, such as a restore.

    ``error`` is normally an object holding an ``errors`` list. Some payloads
    carry a list of such objects instead; those are merged into one.
    """

    kind: str | None = None
    name: str | None = None
    status: str | None = None
    error: OperationErrors | None = None
    self_link: str | None = Field(default=None, alias="selfLink")
    operation_type: str | None = Field(default=None, alias="operationType")
    target_project: str | None = Field(default=None, alias="targetProject")
    target_id: str | None = Field(default=None, alias="targetId")
    target_link: str | None = Field(default=None, alias="targetLink")
    insert_time: str | None = Field(default=None, alias="insertTime")
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")

    @field_validator("error", mode="before")
    @classmethod
    def _merge_error_list(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        merged: List[Any] = []
        kind = None
        for item in value:
            if not isinstance(item, dict):
                raise ValueError("error list entries must be objects")
            kind = kind or item.get("kind")
            merged.extend(item.get("errors") or [])
        return {"kind": kind, "errors": merged}

    @property
    def done(self) -> bool:
        return self.status == DONE

    @property
    def error_entries(self) -> List[OperationErrorEntry]:
        if self.error is None:
            return []
        return self.error.errors

    def to_api_dict(self) -> Dict[str, Any]:
        """Dump using the API's camelCase field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class RestoreRequest:
    """Identifies which backup to restore and where to."""

    source_project_id: str
    source_instance_id: str
    target_project_id: str
    target_instance_id: str
    backup_run_id: str

    def to_body(self) -> Dict[str, Any]:
        return {
            "restoreBackupContext": {
                "backupRunId": self.backup_run_id,
                "project": self.source_project_id,
                "instanceId": self.source_instance_id,
            }
        }


ResourceT = TypeVar("ResourceT", bound=BaseModel)


def parse_resource(model: Type[ResourceT], payload: Any) -> ResourceT:
    """
    Validate a single API payload.

    Raises:
        ResponseParseError: If the payload does not match the model
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ResponseParseError(
            f"Malformed {model.__name__} payload",
            details={"errors": e.errors(include_url=False)},
        ) from e


def parse_items(model: Type[ResourceT], payload: Any) -> List[ResourceT]:
    """
    Validate the ``items`` list of a collection response.

    A response without ``items`` is an empty collection.
    """
    if not isinstance(payload, dict):
        raise ResponseParseError(
            f"Expected a JSON object for {model.__name__} list",
            details={"type": type(payload).__name__},
        )
    items = payload.get("items") or []
    if not isinstance(items, list):
        raise ResponseParseError(
            f"Expected 'items' to be a list of {model.__name__}",
            details={"type": type(items).__name__},
        )
    return [parse_resource(model, item) for item in items]
