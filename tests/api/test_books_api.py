"""
Tests for the listing endpoints.
"""

from listings.models import Listing
from utilities.errors import ImageUploadError, NotFound


def test_list_books_is_public(client, mock_listings, mock_accounts, book_document):
    mock_listings.list_all.return_value = [Listing.from_document(book_document)]

    response = client.get("/api/books/")

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Books retrieved successfully"
    assert body["data"][0]["id"] == str(book_document["_id"])
    assert body["data"][0]["created_at"] == "2024-02-01T12:00:00"
    mock_accounts.verify_token.assert_not_called()


def test_create_book(client, auth_headers, mock_listings, listing_payload, book_document, user_document):
    mock_listings.create.return_value = Listing.from_document(book_document)

    response = client.post("/api/books/create", headers=auth_headers, json=listing_payload)

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Book created successfully"
    assert body["data"]["likes"] == 3
    assert body["data"]["image"]["public_id"] == "hobbit"
    request, owner_id = mock_listings.create.call_args[0]
    assert request.title == "The Hobbit"
    assert request.contact.app == "telegram"
    assert owner_id == user_document["_id"]


def test_create_book_requires_token(client, mock_listings, listing_payload):
    response = client.post("/api/books/create", json=listing_payload)

    assert response.status_code == 401
    mock_listings.create.assert_not_called()


def test_create_book_blank_field(client, auth_headers, mock_listings, listing_payload):
    listing_payload["title"] = "   "
    del listing_payload["contact"]

    response = client.post("/api/books/create", headers=auth_headers, json=listing_payload)

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert {"title", "contact"} <= {error["field"] for error in body["errors"]}
    mock_listings.create.assert_not_called()


def test_create_book_upload_failure(client, auth_headers, mock_listings, listing_payload):
    mock_listings.create.side_effect = ImageUploadError()

    response = client.post("/api/books/create", headers=auth_headers, json=listing_payload)

    assert response.status_code == 500
    assert response.json()["code"] == "UPLOAD_FAILED"


def test_my_books(client, auth_headers, mock_listings, user_document):
    mock_listings.list_own.return_value = []

    response = client.get("/api/books/my-books", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] == []
    mock_listings.list_own.assert_awaited_once_with(user_document["_id"])


def test_update_book(client, auth_headers, mock_listings, book_document):
    mock_listings.update.return_value = Listing.from_document(dict(book_document, condition="Worn"))

    response = client.put(
        f"/api/books/my-books/{book_document['_id']}",
        headers=auth_headers,
        json={"condition": "Worn", "likes": 9999},
    )

    assert response.status_code == 200
    assert response.json()["data"]["condition"] == "Worn"
    book_id, _, patch = mock_listings.update.call_args[0]
    assert book_id == str(book_document["_id"])
    assert patch.changes() == {"condition": "Worn"}


def test_update_book_not_owner(client, auth_headers, mock_listings, book_document):
    mock_listings.update.side_effect = NotFound("Book not found or access denied")

    response = client.put(
        f"/api/books/my-books/{book_document['_id']}",
        headers=auth_headers,
        json={"title": "Stolen"},
    )

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Book not found or access denied",
        "code": "NOT_FOUND",
    }


def test_delete_book(client, auth_headers, mock_listings, book_document, user_document):
    response = client.delete(f"/api/books/my-books/{book_document['_id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Book and associated image deleted successfully"
    mock_listings.delete.assert_awaited_once_with(str(book_document["_id"]), user_document["_id"])


def test_delete_book_not_owner(client, auth_headers, mock_listings, book_document):
    mock_listings.delete.side_effect = NotFound("Book not found or access denied")

    response = client.delete(f"/api/books/my-books/{book_document['_id']}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"


def test_delete_book_requires_token(client, mock_listings, book_document):
    response = client.delete(f"/api/books/my-books/{book_document['_id']}")

    assert response.status_code == 401
    mock_listings.delete.assert_not_called()


def test_like_is_public(client, mock_listings, mock_accounts, book_document):
    mock_listings.like.return_value = Listing.from_document(dict(book_document, likes=4))

    response = client.put(f"/api/books/like/{book_document['_id']}")

    assert response.status_code == 200
    assert response.json()["data"]["likes"] == 4
    assert response.json()["message"] == "Likes updated successfully"
    mock_accounts.verify_token.assert_not_called()


def test_like_missing_book(client, mock_listings):
    mock_listings.like.side_effect = NotFound("Book not found")

    response = client.put("/api/books/like/65a0c0ffee0000000000abcd")

    assert response.status_code == 404
