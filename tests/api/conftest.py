"""
Fixtures for API tests: an app per test with mocked services.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from accounts.service import AccountService
from api.dependencies import get_account_service, get_listing_service
from api.main import create_app
from listings.service import ListingService
from utilities.errors import NotAuthorized

VALID_TOKEN = "valid-token"
AUTH_HEADERS = {"Authorization": f"Bearer {VALID_TOKEN}"}


@pytest.fixture
def mock_accounts(user_document):
    """Account service whose token gate accepts only VALID_TOKEN."""
    accounts = AsyncMock(spec=AccountService)

    async def verify_token(token):
        if token != VALID_TOKEN:
            raise NotAuthorized()
        return user_document

    accounts.verify_token.side_effect = verify_token
    return accounts


@pytest.fixture
def mock_listings():
    return AsyncMock(spec=ListingService)


@pytest.fixture
def app(test_config, mock_accounts, mock_listings):
    app = create_app(test_config)
    app.dependency_overrides[get_account_service] = lambda: mock_accounts
    app.dependency_overrides[get_listing_service] = lambda: mock_listings
    return app


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return dict(AUTH_HEADERS)
