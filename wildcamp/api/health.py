"""Health check endpoint."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.orm import Session

from wildcamp.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict:
    """Return application, database and catalog health status."""
    catalog = getattr(request.app.state, "catalog", None)
    catalog_size = len(catalog) if catalog is not None else 0
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected", "catalog_items": catalog_size}
    except Exception:
        return {
            "status": "error",
            "database": "disconnected",
            "catalog_items": catalog_size,
        }
