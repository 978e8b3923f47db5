"""
Listing endpoints.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Depends, status

from api.auth import get_current_user
from api.dependencies import get_listing_service
from api.models import success_response
from listings.models import ListingCreate, ListingUpdate
from listings.service import ListingService
from utilities.errors import BookSwapError, ServerError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/books", tags=["Books"])


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_book(
    payload: ListingCreate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    """Create a listing owned by the caller; the image is uploaded to the image host."""
    try:
        listing = await listings.create(payload, current_user["_id"])
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to create book", user_id=str(current_user["_id"]), error=str(e))
        raise ServerError() from e

    return success_response(
        data=listing,
        message="Book created successfully",
        status_code=status.HTTP_201_CREATED
    )


@router.get("/")
async def list_books(listings: ListingService = Depends(get_listing_service)):
    """All listings, newest first. No authentication required."""
    try:
        books = await listings.list_all()
    except Exception as e:
        logger.error("Failed to list books", error=str(e))
        raise ServerError() from e

    return success_response(data=books, message="Books retrieved successfully")


@router.get("/my-books")
async def list_my_books(
    current_user: Dict[str, Any] = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    """The caller's listings, newest first."""
    try:
        books = await listings.list_own(current_user["_id"])
    except Exception as e:
        logger.error("Failed to list user books", user_id=str(current_user["_id"]), error=str(e))
        raise ServerError() from e

    return success_response(data=books, message="Books retrieved successfully")


@router.put("/my-books/{book_id}")
async def update_book(
    book_id: str,
    payload: ListingUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    """
    Edit one of the caller's listings.

    Only title, author, genre, condition, description and contact can change.
    Listings owned by other users answer 404.
    """
    try:
        listing = await listings.update(book_id, current_user["_id"], payload)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to update book", book_id=book_id, error=str(e))
        raise ServerError() from e

    return success_response(data=listing, message="Book updated successfully")


@router.delete("/my-books/{book_id}")
async def delete_book(
    book_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user),
    listings: ListingService = Depends(get_listing_service),
):
    """Delete one of the caller's listings and its hosted image."""
    try:
        await listings.delete(book_id, current_user["_id"])
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to delete book", book_id=book_id, error=str(e))
        raise ServerError() from e

    return success_response(message="Book and associated image deleted successfully")


@router.put("/like/{book_id}")
async def like_book(
    book_id: str,
    listings: ListingService = Depends(get_listing_service),
):
    """Add one like to a listing. No authentication required."""
    try:
        listing = await listings.like(book_id)
    except BookSwapError:
        raise
    except Exception as e:
        logger.error("Failed to update likes", book_id=book_id, error=str(e))
        raise ServerError() from e

    return success_response(data=listing, message="Likes updated successfully")
