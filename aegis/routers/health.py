from datetime import datetime, UTC

from fastapi import APIRouter, Depends

from aegis.config import Settings
from aegis.database import get_settings

router = APIRouter(prefix="/api", tags=["health"])

API_VERSION = "1.0.0"


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        "environment": settings.environment,
    }


@router.get("")
def index():
    return {
        "success": True,
        "message": "Aegis API Server",
        "version": API_VERSION,
        "endpoints": {
            "health": "GET /api/health",
            "auth": {
                "signup": "POST /api/signup",
                "login": "POST /api/login",
                "profile": {"get": "GET /api/profile", "update": "PUT /api/profile"},
            },
            "tasks": {
                "getAll": "GET /api/tasks",
                "getById": "GET /api/tasks/:id",
                "create": "POST /api/tasks",
                "update": "PUT /api/tasks/:id",
                "delete": "DELETE /api/tasks/:id",
            },
        },
    }
