from __future__ import annotations

from typing import Any, Optional

from flask import Response, jsonify


def success(data: Any = None, message: Optional[str] = None, status: int = 200) -> tuple[Response, int]:
    body: dict = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    return jsonify(body), status


def error(err: Any, status: int, message: Optional[str] = None) -> tuple[Response, int]:
    body: dict = {"success": False, "error": err}
    if message:
        body["message"] = message
    return jsonify(body), status


def paginated(data: list, *, page: int, limit: int, total: int) -> tuple[Response, int]:
    total_pages = (total + limit - 1) // limit if limit > 0 else 0
    return (
        jsonify(
            {
                "success": True,
                "data": data,
                "pagination": {
                    "page": page,
                    "limit": limit,
                    "total": total,
                    "total_pages": total_pages,
                },
            }
        ),
        200,
    )
