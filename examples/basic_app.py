# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example FastAPI Application with sqlrestore Integration.

This example exposes the restore admin endpoints on a small FastAPI app,
configured from the environment.

Run with:
    uvicorn examples.basic_app:app --reload

Environment variables:
    SQLRESTORE_CREDENTIALS: Path to the service account JSON key
    SQLRESTORE_ADMIN_API_KEY: API key for admin endpoints
    SOURCE_PROJECT / SOURCE_INSTANCE: Defaults for the nightly refresh route
    TARGET_PROJECT / TARGET_INSTANCE: Instance that receives the restore
"""

import os

from fastapi import FastAPI, HTTPException

from sqlrestore import NoEligibleBackupError, create_config_from_env
from sqlrestore.integrations.fastapi import get_coordinator, sqlrestore_lifespan

config = create_config_from_env()

# Create FastAPI app
app = FastAPI(
    title="Staging Refresh",
    description="Restores the latest production backup into staging",
    version="1.0.0",
    lifespan=lambda app: sqlrestore_lifespan(app, config),
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Staging refresh service",
        "docs": "/docs",
        "sqlrestore_admin": "/admin/sqlrestore/operations/{project_id}",
    }


@app.post("/refresh-staging")
async def refresh_staging() -> dict:
    """Restore the latest successful production backup into staging."""
    coordinator = get_coordinator(app)
    try:
        operation = await coordinator.restore_latest_backup(
            os.environ["SOURCE_PROJECT"],
            os.environ["SOURCE_INSTANCE"],
            os.environ["TARGET_PROJECT"],
            os.environ["TARGET_INSTANCE"],
        )
    except NoEligibleBackupError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return operation.to_api_dict()


# ============================================================================
# sqlrestore Admin Endpoints (auto-registered by the lifespan)
# ============================================================================
#
# GET  /admin/sqlrestore/backups/{project_id}/{instance_id} - List backup runs
# POST /admin/sqlrestore/restore                           - Restore a backup run
# POST /admin/sqlrestore/restore-latest                    - Restore latest successful
# GET  /admin/sqlrestore/operations/{project_id}           - List operations
# POST /admin/sqlrestore/operations/check                  - Check one operation
#
# All admin endpoints require: Authorization: Bearer <SQLRESTORE_ADMIN_API_KEY>


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
