"""Base reviewer implementing the Template Method pattern.

Both providers share the same contract:
    review(instructions, diff) → _call_api() → one result string
                                 ↑ only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the client
  - _call_api: make one raw API call and return the text response

Error reporting lives here so it is defined once. There is no retry: a
failed call is logged with whatever HTTP context the exception carries and
re-raised to the caller.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

_MAX_TOKENS = 500


def describe_http_error(error: Exception) -> tuple[int | None, str | None]:
    """Return (status, body) from an SDK or requests exception, when it has them."""
    response = getattr(error, "response", None)
    status = getattr(error, "status_code", None)
    if status is None and response is not None:
        status = getattr(response, "status_code", None)
    body = getattr(response, "text", None) if response is not None else None
    return status, body


class BaseReviewer(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    def review(self, instructions: str, diff: str) -> str:
        """Send ``diff`` for review under ``instructions`` and return the model's text."""
        try:
            return self._call_api(instructions, diff) or ""
        except Exception as e:
            status, body = describe_http_error(e)
            if status is not None:
                logger.error("%s API returned %s", self.__class__.__name__, status)
                if body:
                    logger.error(body)
            else:
                logger.error("%s API call failed: %s", self.__class__.__name__, e)
            raise

    @abstractmethod
    def _call_api(self, instructions: str, diff: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure.
        """
