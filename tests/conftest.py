"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import bcrypt
import pytest
from bson import ObjectId

from utilities.config import BookSwapConfig

TEST_PASSWORD = "Abcdef12"


@pytest.fixture
def test_config():
    """Configuration with a cheap bcrypt cost and a known secret."""
    return BookSwapConfig(
        mongodb_url="mongodb://localhost:27017",
        mongodb_database="bookswap_test",
        jwt_secret="test-secret",
        salt_rounds=4,
        rate_limit_requests=100,
        rate_limit_window_seconds=900,
        cloudinary_name="demo",
        cloudinary_api_key="key",
        cloudinary_api_secret="secret",
        log_level="DEBUG",
        log_format="console",
    )


@pytest.fixture
def mock_database():
    """Motor database stand-in whose collections return awaitables."""
    database = MagicMock()
    database.users = AsyncMock()
    database.books = AsyncMock()
    return database


@pytest.fixture
def password_hash():
    """bcrypt hash of TEST_PASSWORD."""
    return bcrypt.hashpw(TEST_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture
def user_document(password_hash):
    """Stored user as the accounts service sees it."""
    return {
        "_id": ObjectId(),
        "username": "alice123",
        "email": "alice@example.com",
        "password_hash": password_hash,
        "join_date": datetime(2024, 1, 15, 10, 30),
        "last_login": None,
        "login_attempts": 0,
        "last_failed_login": None,
        "is_active": True,
        "role": "user",
        "profile": {"city": "Lisbon"},
    }


@pytest.fixture
def book_document(user_document):
    """Stored listing owned by user_document."""
    return {
        "_id": ObjectId(),
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "genre": "Fantasy",
        "condition": "Good",
        "description": "Paperback, a few dog-eared pages.",
        "image": {"url": "https://res.cloudinary.com/demo/image/upload/hobbit.jpg", "public_id": "hobbit"},
        "contact": {"app": "telegram", "id": "@alice"},
        "user_id": user_document["_id"],
        "created_at": datetime(2024, 2, 1, 12, 0),
        "likes": 3,
    }


@pytest.fixture
def listing_payload():
    """Valid body for POST /api/books/create."""
    return {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "genre": "Fantasy",
        "condition": "Good",
        "description": "Paperback, a few dog-eared pages.",
        "image": "https://example.com/hobbit.jpg",
        "contact": {"app": "telegram", "id": "@alice"},
    }


@pytest.fixture
def make_cursor():
    """Factory for motor cursor stand-ins supporting find().sort().to_list()."""
    def factory(documents):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.to_list = AsyncMock(return_value=documents)
        return cursor
    return factory
