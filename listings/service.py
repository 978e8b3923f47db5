"""
Listing operations over the ``books`` collection.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from listings.models import Listing, ListingCreate, ListingUpdate
from storage.images import ImageUploader
from utilities.errors import NotFound, ValidationFailed
from utilities.sanitize import sanitize

logger = structlog.get_logger(__name__)

NOT_OWNED_MESSAGE = "Book not found or access denied"


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class ListingService:
    """
    CRUD and likes for book listings.

    Writes by the owner filter on both the listing id and the owner id, so a
    listing that belongs to someone else looks exactly like one that does not
    exist.
    """

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        image_uploader: ImageUploader,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.database = database
        self.books_collection = database.books
        self.image_uploader = image_uploader
        self.clock = clock

    async def create(self, request: ListingCreate, owner_id: ObjectId) -> Listing:
        """
        Upload the cover image and store a new listing.

        Raises:
            ImageUploadError: If the image host rejects the upload
        """
        document: Dict[str, Any] = {
            "title": sanitize(request.title),
            "author": sanitize(request.author),
            "genre": sanitize(request.genre),
            "condition": sanitize(request.condition),
            "description": sanitize(request.description),
            "contact": sanitize(request.contact.dict()),
            "user_id": owner_id,
            "created_at": self.clock(),
            "likes": 0,
        }

        uploaded = await self.image_uploader.upload(request.image)
        document["image"] = {"url": uploaded.url, "public_id": uploaded.public_id}

        result = await self.books_collection.insert_one(document)
        document["_id"] = result.inserted_id
        logger.info("Book created", book_id=str(result.inserted_id), user_id=str(owner_id))
        return Listing.from_document(document)

    async def list_all(self) -> List[Listing]:
        """All listings, newest first."""
        return await self._find({})

    async def list_own(self, owner_id: ObjectId) -> List[Listing]:
        """The owner's listings, newest first."""
        return await self._find({"user_id": owner_id})

    async def _find(self, filter_query: Dict[str, Any]) -> List[Listing]:
        cursor = self.books_collection.find(filter_query).sort("created_at", DESCENDING)
        documents = await cursor.to_list(length=None)
        return [Listing.from_document(doc) for doc in documents]

    async def update(self, listing_id: str, owner_id: ObjectId, patch: ListingUpdate) -> Listing:
        """
        Apply an allow-listed patch to an owned listing.

        Raises:
            ValidationFailed: Empty patch (code NO_UPDATES)
            NotFound: Listing absent or owned by someone else
        """
        changes = sanitize(patch.changes())
        if not changes:
            raise ValidationFailed("No updates provided", code="NO_UPDATES")

        object_id = _object_id(listing_id)
        if object_id is None:
            raise NotFound(NOT_OWNED_MESSAGE)

        updated = await self.books_collection.find_one_and_update(
            {"_id": object_id, "user_id": owner_id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise NotFound(NOT_OWNED_MESSAGE)

        logger.info("Book updated", book_id=listing_id, fields=sorted(changes))
        return Listing.from_document(updated)

    async def delete(self, listing_id: str, owner_id: ObjectId) -> None:
        """
        Delete an owned listing and, best effort, its hosted image.

        Raises:
            NotFound: Listing absent or owned by someone else
        """
        object_id = _object_id(listing_id)
        if object_id is None:
            raise NotFound(NOT_OWNED_MESSAGE)

        book = await self.books_collection.find_one({"_id": object_id, "user_id": owner_id})
        if not book:
            raise NotFound(NOT_OWNED_MESSAGE)

        public_id = (book.get("image") or {}).get("public_id")
        if public_id:
            try:
                await self.image_uploader.destroy(public_id)
            except Exception as e:
                # The listing is removed anyway; the remote asset is left behind
                logger.error("Failed to delete image", book_id=listing_id, public_id=public_id, error=str(e))

        result = await self.books_collection.delete_one({"_id": object_id, "user_id": owner_id})
        if result.deleted_count == 0:
            raise NotFound("Book not found or already deleted")

        logger.info("Book deleted", book_id=listing_id, user_id=str(owner_id))

    async def like(self, listing_id: str) -> Listing:
        """
        Add one like. Anyone may like any listing.

        Raises:
            NotFound: No such listing
        """
        object_id = _object_id(listing_id)
        if object_id is None:
            raise NotFound("Book not found")

        updated = await self.books_collection.find_one_and_update(
            {"_id": object_id},
            {"$inc": {"likes": 1}},
            return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise NotFound("Book not found")
        return Listing.from_document(updated)
