"""
FastAPI routers for the merge service.
"""

from merge_service.routers import health, merge

__all__ = ["health", "merge"]
