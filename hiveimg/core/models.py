from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UploadResult(BaseModel):
    """Successful ImageHoster response. Extra fields are kept as returned."""

    model_config = ConfigDict(extra="allow")

    url: str


class HiveConfig(BaseModel):
    """Contents of the hiveimg config file.

    Security notes:
    - `posting_key` is a private key; keep the file mode 0600.
    """

    model_config = ConfigDict(populate_by_name=True)

    account: Optional[str] = None
    posting_key: Optional[str] = Field(default=None, alias="postingKey")
