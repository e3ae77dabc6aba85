"""
Ingestion payload handed from the count endpoint to the background pipeline.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

MAX_PATH_LENGTH = 2048


class HitPayload(BaseModel):
    """
    Everything the pipeline needs from one beacon request.

    Serialisable as JSON so it can be queued. ``ip`` and ``user_agent`` are
    only used to derive the session hash and the UA classification; they
    are never written to the database.
    """

    path: str = Field(..., min_length=1, max_length=MAX_PATH_LENGTH)
    title: str = ""
    referrer: str = ""
    event: bool = False
    width: Optional[int] = None
    ip: str = "0.0.0.0"
    user_agent: str = ""
    location: str = Field(default="", max_length=2)
    accept_language: Optional[str] = None
    created_at: datetime
