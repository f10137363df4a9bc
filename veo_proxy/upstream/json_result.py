"""
Tagged result for upstream bodies that are expected to be JSON.

``parse_upstream_body`` never raises: text that is not valid JSON becomes a
``MalformedBody`` carrying the raw text, which renders as a diagnostic payload
so callers can see what the upstream API actually sent.
"""

import json
from dataclasses import dataclass
from typing import Any, Union

MALFORMED_ERROR = "Bad Gateway"
MALFORMED_MESSAGE = "The API returned an invalid (non-JSON) response."


@dataclass(frozen=True)
class ParsedBody:
    data: Any

    @property
    def is_json(self) -> bool:
        return True

    def payload(self) -> Any:
        return self.data


@dataclass(frozen=True)
class MalformedBody:
    raw_text: str

    @property
    def is_json(self) -> bool:
        return False

    def payload(self) -> dict:
        return {
            "error": MALFORMED_ERROR,
            "message": MALFORMED_MESSAGE,
            "details": self.raw_text,
        }


UpstreamBody = Union[ParsedBody, MalformedBody]


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def loads_strict(text: Union[str, bytes]) -> Any:
    """``json.loads`` that rejects ``NaN``, ``Infinity`` and ``-Infinity``."""
    return json.loads(text, parse_constant=_reject_constant)


def parse_upstream_body(text: str) -> UpstreamBody:
    try:
        return ParsedBody(loads_strict(text))
    except ValueError:
        return MalformedBody(text)
