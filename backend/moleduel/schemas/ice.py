from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class IceServer(BaseModel):
    model_config = ConfigDict(extra="allow")

    urls: str | list[str]
    username: str | None = None
    credential: str | None = None
