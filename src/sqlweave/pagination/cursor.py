"""
Opaque keyset position used by cursor pagination.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Dict, List, Optional, Sequence

from ..errors import SqlweaveError

_DIRECTION_KEY = "_points_to_next_items"


class Cursor:
    """
    Column values of the boundary row plus the direction to page in.

    Encoded as URL-safe base64 JSON without padding.
    """

    def __init__(self, parameters: Dict[str, Any], points_to_next_items: bool = True) -> None:
        self._parameters = dict(parameters)
        self._points_to_next_items = points_to_next_items

    def parameter(self, name: str) -> Any:
        if name not in self._parameters:
            raise SqlweaveError(f"Unable to find parameter [{name}] in pagination item.")
        return self._parameters[name]

    def parameters(self, names: Sequence[str]) -> List[Any]:
        return [self.parameter(name) for name in names]

    def points_to_next_items(self) -> bool:
        return self._points_to_next_items

    def points_to_previous_items(self) -> bool:
        return not self._points_to_next_items

    def to_dict(self) -> Dict[str, Any]:
        return {**self._parameters, _DIRECTION_KEY: self._points_to_next_items}

    def encode(self) -> str:
        payload = json.dumps(self.to_dict()).encode("utf-8")
        return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")

    @classmethod
    def from_encoded(cls, encoded: Optional[str]) -> Optional["Cursor"]:
        """Decode a cursor string; malformed input yields ``None``."""
        if not encoded:
            return None
        padded = encoded + "=" * (-len(encoded) % 4)
        try:
            parameters = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
        except (binascii.Error, ValueError, UnicodeError):
            return None
        if not isinstance(parameters, dict) or _DIRECTION_KEY not in parameters:
            return None
        points_to_next_items = bool(parameters.pop(_DIRECTION_KEY))
        return cls(parameters, points_to_next_items)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Cursor) and other.to_dict() == self.to_dict()

    def __repr__(self) -> str:
        return f"Cursor({self._parameters!r}, points_to_next_items={self._points_to_next_items})"
