"""Tests for the route table and request/response types."""

from __future__ import annotations

import pytest

from tether.core.errors import IntegrityError, RouteNotFound, StorageError
from tether.engine.routes import HTML, JSON, Request, Response, RouteTable


class TestRequest:
    def test_no_form_means_no_submission(self) -> None:
        assert Request(params={"a": "1"}).has_submission is False
        assert Request(form={}).has_submission is True

    def test_form_overrides_params(self) -> None:
        request = Request(params={"id": "1", "x": "q"}, form={"id": "2"})
        assert request.data == {"id": "2", "x": "q"}
        assert request.get("id") == "2"
        assert request.get("missing", "d") == "d"


class TestResponse:
    def test_ok_envelope(self) -> None:
        response = Response.ok({"entries": []})
        assert response.status == 200
        assert response.content_type == JSON
        assert response.json() == {"ok": True, "data": {"entries": []}}

    def test_error_envelope(self) -> None:
        response = Response.error(IntegrityError())
        assert response.status == 403
        assert response.json() == {
            "ok": False,
            "error": {"code": "INTEGRITY_ERROR", "message": "Security error"},
        }

    def test_storage_error_carries_messages(self) -> None:
        response = Response.error(StorageError(["Title is required.", "Slug taken."]))
        assert response.status == 400
        error = response.json()["error"]
        assert error["message"] == "Title is required."
        assert error["messages"] == ["Title is required.", "Slug taken."]

    def test_html(self) -> None:
        response = Response.html("<p>x</p>")
        assert (response.status, response.content_type, response.body) == (200, HTML, "<p>x</p>")


class TestRouteTable:
    def test_dispatch(self) -> None:
        table = RouteTable()
        table.add("shop_list_product", lambda request: Response.ok(request.get("q")))
        assert table.dispatch("shop_list_product", Request(params={"q": "w"})).json()["data"] == "w"
        assert "shop_list_product" in table
        assert table.names() == ["shop_list_product"]
        assert len(table) == 1

    def test_unknown_route(self) -> None:
        with pytest.raises(RouteNotFound, match="nope"):
            RouteTable().dispatch("nope", Request())

    def test_missing_action(self) -> None:
        with pytest.raises(RouteNotFound):
            RouteTable().dispatch(None, Request())

    def test_duplicate_rejected(self) -> None:
        table = RouteTable()
        table.add("a", lambda r: Response.ok(None))
        with pytest.raises(ValueError, match="already registered"):
            table.add("a", lambda r: Response.ok(None))
