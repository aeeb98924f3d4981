from __future__ import annotations

import logging
from functools import wraps
from typing import Any, Optional

from flask import jsonify, request

from ..core.constants import GENERIC_ERROR_MESSAGE
from ..core.exceptions import GatewayError, NotFoundError, ValidationError
from .pagination import Page, PageParams

logger = logging.getLogger(__name__)


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None):
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def ok_page(page: Page, params: PageParams, mapper):
    total = page.total if page.total is not None else len(page.data)
    pages = (total + params.limit - 1) // params.limit if params.limit else 0
    return jsonify(
        {
            "success": True,
            "data": [mapper(x) for x in page.data],
            "pagination": {"page": params.page, "limit": params.limit, "total": total, "pages": pages},
        }
    )


def fail(message: str, status: int):
    return jsonify({"success": False, "message": message, "error": message}), status


def json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def api_errors(view):
    """Turn domain errors into the JSON error envelope."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except GatewayError as e:
            return fail(str(e), 502)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return fail(GENERIC_ERROR_MESSAGE, 500)

    return wrapper


def query_int(name: str) -> Optional[int]:
    value = request.args.get(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer") from exc
