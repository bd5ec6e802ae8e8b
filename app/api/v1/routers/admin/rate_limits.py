"""
Admin • Rate-limit configuration
================================

Route Index
-----------
- GET  /rate-limits                          → List settings (ordered by name)
- POST /rate-limits                          → Create a setting
- PUT  /rate-limits/{setting_name}           → Update value / description / active flag
- POST /rate-limits/{setting_name}/test      → Check the caller's usage against a setting (audited)

All routes require an administrator (`profiles.is_admin`). `setting_value = -1`
means unlimited.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from loguru import logger

from app.api.http_utils import json_no_store
from app.core.exceptions import AppException, MissingInput
from app.core.limiter import rate_limit
from app.dependencies.admin import admin_user_id
from app.dependencies.services import (
    get_admin_audit_repository,
    get_download_limiter,
    get_rate_limit_repository,
)
from app.repositories.rate_limits import DuplicateSetting
from app.schemas.rate_limits import (
    RateLimitConfigCreate,
    RateLimitConfigOut,
    RateLimitConfigUpdate,
)
from app.services.download_limiter import DownloadLimiter
from app.services.rate_limit_admin import evaluate_setting

router = APIRouter(prefix="/rate-limits", tags=["Admin • Rate limits"])
__all__ = ["router"]


class SettingNotFound(AppException):
    default_status = status.HTTP_404_NOT_FOUND
    default_code = "SETTING_NOT_FOUND"


class SettingExists(AppException):
    default_status = status.HTTP_409_CONFLICT
    default_code = "SETTING_EXISTS"


def _out(row) -> dict:
    return RateLimitConfigOut.model_validate(row).model_dump(mode="json")


@router.get("", summary="List rate-limit settings")
@rate_limit("60/minute")
async def list_rate_limits(
    request: Request,
    _admin: str = Depends(admin_user_id),
    configs=Depends(get_rate_limit_repository),
):
    rows = await configs.list()
    return json_no_store({"data": [_out(r) for r in rows]})


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a rate-limit setting")
@rate_limit("30/minute")
async def create_rate_limit(
    request: Request,
    payload: Optional[RateLimitConfigCreate] = None,
    admin_id: str = Depends(admin_user_id),
    configs=Depends(get_rate_limit_repository),
):
    if payload is None or not payload.setting_name or payload.setting_value is None:
        raise MissingInput("Setting name and value are required")
    try:
        row = await configs.create(
            setting_name=payload.setting_name,
            setting_value=payload.setting_value,
            description=payload.description,
            is_active=payload.is_active,
        )
    except DuplicateSetting:
        raise SettingExists(f"Rate limit setting '{payload.setting_name}' already exists")
    logger.info("Rate limit setting created | setting={} | admin={}", payload.setting_name, admin_id)
    return json_no_store(
        {"data": _out(row), "message": "Rate limit configuration created successfully"},
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{setting_name}", summary="Update a rate-limit setting")
@rate_limit("30/minute")
async def update_rate_limit(
    request: Request,
    setting_name: str,
    payload: RateLimitConfigUpdate,
    admin_id: str = Depends(admin_user_id),
    configs=Depends(get_rate_limit_repository),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise MissingInput("Nothing to update")
    row = await configs.update(setting_name, changes)
    if row is None:
        raise SettingNotFound(f"Rate limit configuration '{setting_name}' not found")
    logger.info("Rate limit setting updated | setting={} | admin={} | fields={}", setting_name, admin_id, sorted(changes))
    return json_no_store({"data": _out(row), "message": "Rate limit configuration updated successfully"})


@router.post("/{setting_name}/test", summary="Test a rate-limit setting against current usage")
@rate_limit("30/minute")
async def run_rate_limit_test(
    request: Request,
    setting_name: str,
    admin_id: str = Depends(admin_user_id),
    configs=Depends(get_rate_limit_repository),
    audit=Depends(get_admin_audit_repository),
    limiter: DownloadLimiter = Depends(get_download_limiter),
):
    row = await configs.get(setting_name)
    if row is None:
        raise SettingNotFound(f"Rate limit configuration '{setting_name}' not found")
    result = await evaluate_setting(
        row,
        admin_user_id=admin_id,
        limiter=limiter,
        audit=audit,
        now=datetime.now(timezone.utc),
    )
    return json_no_store(
        {
            "success": True,
            "message": f"Rate limit '{setting_name}' test completed successfully",
            "test_results": result.model_dump(mode="json"),
        }
    )
