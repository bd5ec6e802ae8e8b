from __future__ import annotations

from typing import Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.schemas.enums import Resolution


class DownloadUrlRequest(BaseModel):
    """Body of `POST /downloads/url`.

    Fields are optional at the schema level so that an absent resource id is
    reported as MISSING_INPUT (400) rather than a generic validation error.
    """

    model_config = ConfigDict(populate_by_name=True)

    resource_id: Optional[Union[int, str]] = Field(
        None,
        validation_alias=AliasChoices("resource_id", "wallpaper_id", "wallpaperId"),
    )
    resolution: Optional[str] = Field(None, description="standard|high|ultra (1080p|4k|8k accepted)")


class DownloadGrant(BaseModel):
    signed_url: str
    download_url: str
    expires_at: int = Field(..., description="Epoch seconds")
    resource_title: str
    resolution: Resolution


class DownloadUrlResponse(BaseModel):
    data: DownloadGrant
