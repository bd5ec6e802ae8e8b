from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr


class RateLimitConfigOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    setting_name: str
    setting_value: int
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RateLimitConfigCreate(BaseModel):
    # Optional here; the router reports a missing name/value as MISSING_INPUT.
    setting_name: Optional[constr(strip_whitespace=True, min_length=1, max_length=100)] = None
    setting_value: Optional[int] = Field(None, ge=-1, description="-1 = unlimited")
    description: Optional[str] = None
    is_active: bool = True


class RateLimitConfigUpdate(BaseModel):
    setting_value: Optional[int] = Field(None, ge=-1)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class RateLimitTestResult(BaseModel):
    setting_name: str
    setting_value: int
    current_limit: str = Field(..., description="'Unlimited' or '<n> per <window>', e.g. '10 per hour'")
    is_active: bool
    is_enforced: bool
    current_usage: int
    remaining: Optional[int] = Field(None, description="None when unlimited or not enforced")
    is_within_limit: bool
    enforcement_status: str
    window_seconds: int
    tested_at: datetime
