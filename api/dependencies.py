"""
Service accessors for FastAPI routes.

Services are built once in the application lifespan and kept on
``app.state``; tests replace these accessors through
``app.dependency_overrides``.
"""

from fastapi import Request

from accounts.service import AccountService
from listings.service import ListingService


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_listing_service(request: Request) -> ListingService:
    return request.app.state.listing_service
