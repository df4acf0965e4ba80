from math import ceil
from typing import Optional

from fastapi.responses import JSONResponse


def send_success(data: Optional[dict] = None, message: str = "", status_code: int = 200) -> JSONResponse:
    body = {"success": True, **(data or {})}
    if message:
        body["message"] = message
    return JSONResponse(status_code=status_code, content=body)


def send_error(status_code: int = 500, message: str = "An error occurred", **extra) -> JSONResponse:
    body = {"success": False, "message": message}
    body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=status_code, content=body)


def pagination_meta(page: int, limit: int, total: int) -> dict:
    total_pages = ceil(total / limit)
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page < total_pages,
        "hasPrevPage": page > 1,
    }


def send_paginated(data: list, page: int, limit: int, total: int) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content={"success": True, "data": data, "pagination": pagination_meta(page, limit, total)},
    )
