"""
Pydantic models for book listings.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, validator


def _strip(v):
    return v.strip() if isinstance(v, str) else v


class ContactInfo(BaseModel):
    """How to reach the owner, e.g. app="telegram", id="@alice"."""
    app: str = Field(..., min_length=1, description="Messaging platform")
    id: str = Field(..., min_length=1, description="Handle on that platform")

    @validator('app', 'id', pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)


class ListingImage(BaseModel):
    """Hosted cover image."""
    url: str = Field(..., description="Public image URL")
    public_id: str = Field(..., description="Deletion handle on the image host")


class ListingCreate(BaseModel):
    """Body of POST /api/books/create."""
    title: str = Field(..., min_length=1)
    author: str = Field(..., min_length=1)
    genre: str = Field(..., min_length=1)
    condition: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    image: str = Field(..., min_length=1, description="Data URI, base64 payload or image URL")
    contact: ContactInfo

    @validator('title', 'author', 'genre', 'condition', 'description', 'image', pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "The Hobbit",
                "author": "J.R.R. Tolkien",
                "genre": "Fantasy",
                "condition": "Good",
                "description": "Paperback, a few dog-eared pages.",
                "image": "https://example.com/hobbit.jpg",
                "contact": {"app": "telegram", "id": "@alice"}
            }
        }


class ListingUpdate(BaseModel):
    """
    Body of PUT /api/books/my-books/{id}.

    Only these fields can be changed by the owner; any other key in the
    request (likes, user_id, image, ...) is ignored.
    """
    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = Field(None, min_length=1)
    genre: Optional[str] = Field(None, min_length=1)
    condition: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    contact: Optional[ContactInfo] = None

    @validator('title', 'author', 'genre', 'condition', 'description', pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    def changes(self) -> Dict[str, Any]:
        """Fields the client actually sent, ready for ``$set``."""
        return self.dict(exclude_unset=True, exclude_none=True)


class Listing(BaseModel):
    """Listing as returned by the API."""
    id: str = Field(..., description="Listing identifier")
    title: str
    author: str
    genre: str
    condition: str
    description: str
    image: Optional[ListingImage] = None
    contact: ContactInfo
    user_id: str = Field(..., description="Owner's user id")
    created_at: datetime
    likes: int = Field(0, ge=0)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Listing":
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            author=doc["author"],
            genre=doc["genre"],
            condition=doc["condition"],
            description=doc["description"],
            image=doc.get("image"),
            contact=doc["contact"],
            user_id=str(doc["user_id"]),
            created_at=doc["created_at"],
            likes=doc.get("likes", 0),
        )
