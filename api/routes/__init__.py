"""
API routers: accounts under /api/users, listings under /api/books.
"""

from api.routes.books import router as books_router
from api.routes.users import router as users_router

__all__ = ["books_router", "users_router"]
