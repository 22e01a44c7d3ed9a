"""Echo endpoint schemas."""

from __future__ import annotations

from pydantic import BaseModel, StrictStr


class EchoRequest(BaseModel):
    message: StrictStr | None = None


class EchoResponse(BaseModel):
    echo: str
    timestamp: str
    length: int
