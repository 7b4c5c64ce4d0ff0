"""
JSON envelope shared by every API endpoint.

Success:  {"ok": true, "value": ..., "warnings": [...]}
Failure:  {"ok": false, "kind": "...", "message": "...", "details": {...}}
"""

import json
import logging
from dataclasses import dataclass, field
from functools import wraps
from typing import Any, Optional

from django.db import DatabaseError
from django.http import JsonResponse

from utils.errors import ContentError, ErrorKind, InternalError, InvalidInput

logger = logging.getLogger(__name__)


@dataclass
class Result:
    ok: bool
    value: Any = None
    kind: Optional[ErrorKind] = None
    message: str = ""
    details: Optional[dict] = None
    warnings: list = field(default_factory=list)
    status: int = 200

    @classmethod
    def success(cls, value=None, status=200, warnings=None):
        return cls(ok=True, value=value, status=status, warnings=list(warnings or []))

    @classmethod
    def failure(cls, error):
        return cls(
            ok=False,
            kind=error.kind,
            message=error.message,
            details=error.details,
            status=error.status,
        )

    def as_dict(self):
        if self.ok:
            payload = {"ok": True, "value": self.value}
            if self.warnings:
                payload["warnings"] = self.warnings
            return payload
        payload = {"ok": False, "kind": self.kind.value, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload

    def to_response(self):
        return JsonResponse(self.as_dict(), status=self.status)


def read_json(request):
    """Parse a JSON object body; an empty body reads as {}."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise InvalidInput("Malformed JSON body") from None
    if not isinstance(data, dict):
        raise InvalidInput("JSON body must be an object")
    return data


def form_error(form):
    details = {name: [str(message) for message in messages] for name, messages in form.errors.items()}
    return InvalidInput("Invalid payload", details=details)


def api_endpoint(view_func):
    """Render a view's Result (or raised ContentError) as the JSON envelope."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            result = view_func(request, *args, **kwargs)
        except ContentError as e:
            if e.status >= 500:
                logger.error(f"{view_func.__name__} failed: {e.message}")
            result = Result.failure(e)
        except DatabaseError:
            logger.error(f"Database error in {view_func.__name__}", exc_info=True)
            result = Result.failure(InternalError())
        except Exception:
            # Log full error details server-side only, don't expose to client
            logger.error(f"Unexpected error in {view_func.__name__}", exc_info=True)
            result = Result.failure(InternalError())

        if isinstance(result, Result):
            return result.to_response()
        return result

    return wrapper
