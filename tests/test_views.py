"""Tests for the HTML pages, which call the API in-process."""

from datetime import date, timedelta

from fastapi.testclient import TestClient

from main import create_app


def form_data(**overrides):
    data = {
        "title": "the hobbit",
        "author": "j tolkien",
        "price": "15",
        "published_date": "1937-09-21",
        "genre": "Fiction",
        "isbn": "",
        "description": "",
        "cover_image": "",
        "stock": "",
    }
    data.update(overrides)
    return data


def create_via_form(client, **overrides) -> str:
    r = client.post("/books/new", data=form_data(**overrides), follow_redirects=False)
    assert r.status_code == 303
    return r.headers["location"].rsplit("/", 1)[-1]


class TestListPage:
    def test_empty_list(self, client) -> None:
        r = client.get("/books")
        assert r.status_code == 200
        assert "No books found." in r.text

    def test_pagination_links(self, client) -> None:
        for i in range(12):
            create_via_form(client, title=f"book {i:02d}")
        r = client.get("/books?limit=5&sort=title&order=asc")
        assert "Page 1 of 3" in r.text
        assert "page=2" in r.text
        assert "Book 00" in r.text
        assert "Book 05" not in r.text

    def test_bad_filter_shows_notification(self, client) -> None:
        r = client.get("/books?limit=500")
        assert r.status_code == 400
        assert "Limit must be between 1 and 100" in r.text


class TestCreateAndEdit:
    def test_new_form(self, client) -> None:
        r = client.get("/books/new")
        assert r.status_code == 200
        assert 'name="published_date"' in r.text
        assert "Science Fiction" in r.text

    def test_create_then_view(self, client) -> None:
        book_id = create_via_form(client, stock="4", isbn="1234567890")
        r = client.get(f"/books/{book_id}")
        assert r.status_code == 200
        assert "The hobbit" in r.text
        assert "$15.00" in r.text
        assert "1234567890" in r.text

    def test_rejected_create_keeps_input(self, client) -> None:
        tomorrow = (date.today() + timedelta(days=1)).isoformat()
        r = client.post("/books/new", data=form_data(title="my draft", published_date=tomorrow))
        assert r.status_code == 400
        assert "Published date cannot be in the future" in r.text
        assert 'value="my draft"' in r.text

    def test_duplicate_isbn_notification(self, client) -> None:
        create_via_form(client, isbn="1234567890")
        r = client.post("/books/new", data=form_data(isbn="1234567890"))
        assert r.status_code == 400
        assert "A book with this ISBN already exists" in r.text

    def test_edit_flow(self, client) -> None:
        book_id = create_via_form(client, isbn="1234567890")
        r = client.get(f"/books/{book_id}/edit")
        assert r.status_code == 200
        assert 'value="The hobbit"' in r.text

        r = client.post(
            f"/books/{book_id}/edit",
            data=form_data(title="the return of the king", price="22.5"),
            follow_redirects=False,
        )
        assert r.status_code == 303
        book = client.get(f"/api/books/{book_id}").json()["data"]
        assert book["title"] == "The return of the king"
        assert book["price"] == 22.5
        # isbn input was submitted blank, which clears it
        assert book["isbn"] is None

    def test_invalid_edit(self, client) -> None:
        book_id = create_via_form(client)
        r = client.post(f"/books/{book_id}/edit", data=form_data(price="-1"))
        assert r.status_code == 400
        assert "Price must be a number between 0 and 10,000" in r.text


class TestDetailAndDelete:
    def test_missing_book(self, client) -> None:
        r = client.get(f"/books/{'a' * 32}")
        assert r.status_code == 404
        assert "No book found with the provided ID" in r.text

    def test_delete(self, client) -> None:
        book_id = create_via_form(client)
        r = client.post(f"/books/{book_id}/delete", follow_redirects=False)
        assert r.status_code == 303
        assert r.headers["location"] == "/books"
        assert client.get(f"/api/books/{book_id}").status_code == 404


class TestStatsPage:
    def test_dashboard(self, client) -> None:
        create_via_form(client, genre="Mystery", price="10")
        create_via_form(client, genre="Mystery", price="20", published_date="2001-02-03")
        create_via_form(client, genre="History", price="30")
        r = client.get("/stats")
        assert r.status_code == 200
        assert "Books by genre" in r.text
        assert "Books by publication year" in r.text
        assert "Mystery" in r.text
        assert "2001" in r.text
        assert "$60.00" in r.text

    def test_empty_dashboard(self, client) -> None:
        r = client.get("/stats")
        assert r.status_code == 200
        assert "No books yet." in r.text


class TestRateLimitPerClient:
    def test_form_failures_only_count_against_the_submitter(self, settings) -> None:
        app = create_app(settings.model_copy(update={"rate_limit_max_requests": 2}))
        with TestClient(app) as first:
            for _ in range(2):
                assert first.post("/books/new", data=form_data(title="")).status_code == 400
            assert first.get("/books").status_code == 429

        with TestClient(app, client=("10.0.0.2", 5000)) as second:
            r = second.get("/books")
        assert r.status_code == 200
        assert "Too many requests" not in r.text
