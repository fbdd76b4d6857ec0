"""JSON-lines protocol messages for the game-client bridge.

Responses are strict JSON: non-finite floats are refused at encoding time
rather than written as the non-standard ``NaN``/``Infinity`` tokens.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Request:
    """Incoming request from the game client."""
    id: Any
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> Request:
        if not isinstance(data, dict):
            raise ValueError("Request must be a JSON object")
        method = data.get("method")
        if not isinstance(method, str):
            raise ValueError("Request needs a string 'method'")
        params = data.get("params")
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            raise ValueError("'params' must be a JSON object")
        return cls(id=data.get("id", 0), method=method, params=params)


@dataclass
class Response:
    """Outgoing response to the game client."""
    id: Any
    result: Optional[dict] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, req_id: Any, exc: BaseException) -> Response:
        return cls(id=req_id, error=str(exc) or type(exc).__name__)

    def to_json_line(self) -> str:
        d = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return json.dumps(d, ensure_ascii=False, allow_nan=False) + "\n"
