"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from compintel.api import app

    uvicorn compintel.api:app --reload
"""

from compintel.api.app import app, create_app

__all__ = ["app", "create_app"]
