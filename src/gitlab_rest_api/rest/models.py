"""Value types shared by the transport and the dispatcher."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx


class ResponseMode(str, Enum):
    """What a call returns on success."""

    DECODED = "decoded"
    RAW = "raw"
    NONE = "none"


@dataclass(frozen=True)
class CallResult:
    """Outcome of one logical API call.

    Attributes:
        value: Interpreted result (decoded JSON, raw bytes, or None)
        request: The request as sent (identical on every attempt)
        response: The final response received
        attempts: Number of times the request was sent
    """

    value: Any
    request: httpx.Request
    response: httpx.Response
    attempts: int = 1

    @property
    def status_code(self) -> int:
        """Status code of the final response."""
        return self.response.status_code
