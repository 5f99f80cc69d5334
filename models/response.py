# FILE: models/response.py
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class DispatchResponse(BaseModel):
    """
    What the Action Registry hands back for every intent.
    `payload` is display data for the UI; the core never interprets it.
    """

    response_text: str
    payload: Optional[Dict[str, Any]] = Field(default=None)
    failed: bool = False
