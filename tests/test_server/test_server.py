"""Tests for the tether HTTP server."""

from __future__ import annotations

import json
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from tether.server.http import MAX_REQUEST_BODY_BYTES, unflatten_form


def _read(req: Request) -> tuple[int, dict | str]:
    """Perform *req* and return (status_code, parsed_body)."""
    try:
        with urlopen(req) as resp:
            status, body, content_type = resp.status, resp.read().decode("utf-8"), resp.headers.get("Content-Type", "")
    except HTTPError as exc:
        status, body, content_type = exc.code, exc.read().decode("utf-8"), exc.headers.get("Content-Type", "")
    if "application/json" in content_type:
        return status, json.loads(body)
    return status, body


def _get(base_url: str, path: str) -> tuple[int, dict | str]:
    return _read(Request(f"{base_url}{path}"))


def _post(base_url: str, path: str, data: dict) -> tuple[int, dict | str]:
    """POST *data* as a JSON body."""
    req = Request(
        f"{base_url}{path}",
        data=json.dumps(data).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    return _read(req)


def _post_form(base_url: str, path: str, pairs: dict) -> tuple[int, dict | str]:
    """POST *pairs* form-encoded, the way a browser submits the edit form."""
    req = Request(
        f"{base_url}{path}",
        data=urlencode(pairs).encode("utf-8"),
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        method="POST",
    )
    return _read(req)


# ---------------------------------------------------------------------------
# Routing
# ---------------------------------------------------------------------------


class TestRouting:
    def test_unknown_path_is_404(self, tether_server) -> None:
        base_url, _, _ = tether_server
        status, body = _get(base_url, "/elsewhere")
        assert status == 404
        assert body["error"]["code"] == "NOT_FOUND"

    def test_unknown_action_is_404(self, tether_server) -> None:
        base_url, _, _ = tether_server
        status, body = _get(base_url, "/ajax?action=nope")
        assert status == 404
        assert body == {"ok": False, "error": {"code": "NOT_FOUND", "message": "Unknown action: 'nope'"}}

    def test_missing_action_is_404(self, tether_server) -> None:
        base_url, _, _ = tether_server
        status, _ = _get(base_url, "/ajax")
        assert status == 404

    def test_trailing_slash_on_endpoint(self, tether_server) -> None:
        base_url, _, _ = tether_server
        status, _ = _get(base_url, "/ajax/?action=shop_list_product")
        assert status == 200


# ---------------------------------------------------------------------------
# Dialogs (GET)
# ---------------------------------------------------------------------------


class TestDialogs:
    def test_browse_lists_candidates(self, tether_server) -> None:
        base_url, _, _ = tether_server
        status, body = _get(base_url, "/ajax?action=shop_list_product")
        assert status == 200
        assert isinstance(body, str)
        assert "Widget" in body and "Gadget" in body
        assert 'data-related-instance="tether_instance_product"' in body

    def test_edit_form_for_existing_record(self, tether_server) -> None:
        base_url, _, ids = tether_server
        status, body = _get(base_url, f"/ajax?action=shop_edit_product&related_id={ids['widget']}")
        assert status == 200
        assert 'value="Widget"' in body
        assert 'name="action" value="shop_edit_product"' in body


# ---------------------------------------------------------------------------
# Submissions (POST)
# ---------------------------------------------------------------------------


class TestSubmissions:
    def test_attach_list_detach(self, tether_server) -> None:
        base_url, app, ids = tether_server
        token = app.tokens.issue("shop_order_nonce")
        order, widget = ids["order"], ids["widget"]

        status, body = _post(
            base_url,
            "/ajax?action=shop_add_order_product",
            {"token": token, "primary_id": order, "related": {"id": widget, "title": "Widget"}},
        )
        assert status == 200
        assert body["data"]["entries"] == [{"id": widget, "title": "Widget", "type": "product"}]

        status, body = _post(
            base_url, "/ajax", {"action": "shop_list_order_product", "token": token, "primary_id": order}
        )
        assert status == 200
        assert f'data-related-id="{widget}"' in body["data"]["html"]

        status, body = _post(
            base_url,
            "/ajax?action=shop_remove_order_product",
            {"token": token, "primary_id": order, "related_id": widget},
        )
        assert status == 200
        status, body = _post(
            base_url, "/ajax?action=shop_list_order_product", {"token": token, "primary_id": order}
        )
        assert body["data"] == {"entries": [], "html": ""}

    def test_forged_token_is_403(self, tether_server) -> None:
        base_url, app, ids = tether_server
        status, body = _post(
            base_url,
            "/ajax?action=shop_add_order_product",
            {"token": "forged", "primary_id": ids["order"], "related": {"id": ids["widget"]}},
        )
        assert status == 403
        assert body["error"]["code"] == "INTEGRITY_ERROR"
        assert app.metadata.get(ids["order"], "shop_product") is None

    def test_form_encoded_edit_submission(self, tether_server) -> None:
        base_url, app, _ = tether_server
        pairs = {
            "action": "shop_edit_product",
            "token": app.tokens.issue("shop_product_nonce"),
            "title": "Gizmo",
            "meta[colour]": "red",
        }
        status, body = _post_form(base_url, "/ajax", pairs)
        assert status == 200
        record = body["data"]["record"]
        assert body["data"]["created"] is True
        assert record["title"] == "Gizmo"
        assert app.metadata.get(record["id"], "colour") == "red"

    def test_storage_refusal_carries_messages(self, tether_server) -> None:
        base_url, app, _ = tether_server
        status, body = _post(
            base_url,
            "/ajax?action=shop_edit_product",
            {"token": app.tokens.issue("shop_product_nonce"), "title": ""},
        )
        assert status == 400
        assert body["error"]["code"] == "STORAGE_ERROR"
        assert body["error"]["messages"] == ["Title, content and excerpt are empty."]


# ---------------------------------------------------------------------------
# Body handling
# ---------------------------------------------------------------------------


class TestBodies:
    def test_invalid_json_is_400(self, tether_server) -> None:
        base_url, _, _ = tether_server
        req = Request(
            f"{base_url}/ajax?action=shop_add_order_product",
            data=b"{not json",
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        status, body = _read(req)
        assert status == 400
        assert body["error"]["message"] == "Invalid JSON in request body"

    def test_non_object_json_is_400(self, tether_server) -> None:
        base_url, _, _ = tether_server
        req = Request(
            f"{base_url}/ajax?action=shop_add_order_product",
            data=b"[1, 2]",
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        status, _ = _read(req)
        assert status == 400

    def test_oversized_body_is_413(self, tether_server) -> None:
        base_url, _, _ = tether_server
        req = Request(
            f"{base_url}/ajax?action=shop_add_order_product",
            data=b"{}",
            headers={"Content-Type": "application/json", "Content-Length": str(MAX_REQUEST_BODY_BYTES + 1)},
            method="POST",
        )
        status, body = _read(req)
        assert status == 413
        assert body["error"]["code"] == "PAYLOAD_TOO_LARGE"

    def test_empty_post_still_needs_token(self, tether_server) -> None:
        base_url, _, _ = tether_server
        req = Request(f"{base_url}/ajax?action=shop_list_order_product", data=b"", method="POST")
        status, body = _read(req)
        assert status == 403


class TestUnflattenForm:
    def test_bracket_keys_nest_one_level(self) -> None:
        assert unflatten_form({"meta[colour]": "red", "meta[size]": "L", "title": "T"}) == {
            "meta": {"colour": "red", "size": "L"},
            "title": "T",
        }

    def test_deeper_brackets_stay_flat(self) -> None:
        assert unflatten_form({"a[b][c]": "x"}) == {"a[b][c]": "x"}

    def test_plain_key_wins_over_later_nested(self) -> None:
        assert unflatten_form({"meta": "x", "meta[colour]": "red"}) == {"meta": "x"}
