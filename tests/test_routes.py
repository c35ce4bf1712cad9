"""
HTTP route tests with repositories patched out. The lifespan is not run,
so no database is needed.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from core import db
from main import app


@pytest.fixture
def client():
    return TestClient(app)


class TestContentRoutes:
    def test_list_with_type_filter(self, client, content_row_factory):
        with patch("contents.repository.list_contents", AsyncMock(return_value=[content_row_factory()])) as m:
            resp = client.get("/contents", params={"type": "character_card"})

        assert resp.status_code == 200
        assert resp.json()["count"] == 1
        assert m.await_args.args[0].value == "character_card"

    def test_list_rejects_unknown_type(self, client):
        resp = client.get("/contents", params={"type": "poster"})

        assert resp.status_code == 422

    def test_get_missing_is_404(self, client):
        with patch("contents.repository.get_content", AsyncMock(return_value=None)):
            resp = client.get("/contents/5")

        assert resp.status_code == 404

    def test_create(self, client, content_row_factory):
        with patch("contents.repository.create_content", AsyncMock(return_value=content_row_factory(id=9))) as m:
            resp = client.post(
                "/contents",
                json={"name": "Card A", "content_type": "character_card", "blob_url": "https://x/a.png"},
            )

        assert resp.status_code == 201
        assert resp.json()["id"] == 9
        assert m.await_args.args[0]["name"] == "Card A"

    def test_patch_passes_only_set_fields(self, client, content_row_factory):
        with patch("contents.repository.update_content", AsyncMock(return_value=content_row_factory())) as m:
            resp = client.patch("/contents/1", json={"description": None, "tags": ["a"]})

        assert resp.status_code == 200
        assert m.await_args.args == (1, {"description": None, "tags": ["a"]})

    @pytest.mark.parametrize("field", ["name", "blob_url"])
    def test_patch_rejects_null_required_field(self, client, field):
        with patch("contents.repository.update_content", AsyncMock()) as m:
            resp = client.patch("/contents/1", json={field: None})

        assert resp.status_code == 422
        m.assert_not_awaited()

    def test_delete(self, client, content_row_factory):
        with patch("contents.repository.delete_content", AsyncMock(return_value=content_row_factory(id=2))):
            resp = client.delete("/contents/2")

        assert resp.status_code == 200
        assert resp.json()["content"]["id"] == 2

    def test_batch(self, client):
        with patch("contents.repository.get_contents_by_ids", AsyncMock(return_value=[])) as m:
            resp = client.post("/contents/batch", json={"ids": ["abc", "7"]})

        assert resp.status_code == 200
        assert m.await_args.args[0] == ["abc", "7"]

    def test_tags_and_sort_order(self, client, content_row_factory):
        with patch("contents.mutations.set_tags", AsyncMock(return_value=content_row_factory(tags=[]))) as tags:
            assert client.put("/contents/1/tags", json={"tags": []}).status_code == 200
        with patch("contents.mutations.set_sort_order", AsyncMock(return_value=None)):
            assert client.put("/contents/1/sort-order", json={"sort_order": 2}).status_code == 404
        assert tags.await_args.args == (1, [])

    def test_access_log_reports_result(self, client):
        with patch("access_logs.repository.log_access", AsyncMock(return_value=None)) as m:
            resp = client.post(
                "/contents/1/access",
                json={"access_type": "download"},
                headers={"User-Agent": "pytest-agent"},
            )

        assert resp.json() == {"logged": False, "id": None}
        assert m.await_args.kwargs["user_agent"] == "pytest-agent"

    def test_persistence_error_is_500(self, client):
        with patch("contents.repository.get_content", AsyncMock(side_effect=db.PersistenceError("x"))):
            resp = client.get("/contents/1")

        assert resp.status_code == 500

    def test_missing_pool_is_503(self, client):
        with patch("contents.repository.list_contents", AsyncMock(side_effect=db.ConnectionNotInitializedError())):
            resp = client.get("/contents")

        assert resp.status_code == 503


class TestSettingsRoutes:
    def test_get_settings(self, client):
        row = {
            "id": 1,
            "site_name": "OMateShare",
            "show_download_link": True,
            "page_title": "OMateShare",
            "meta_description": "d",
        }
        with patch("site_settings.repository.get_site_settings", AsyncMock(return_value=row)):
            resp = client.get("/settings")

        assert resp.status_code == 200
        assert resp.json()["show_download_link"] is True

    def test_patch_settings_sends_partial(self, client):
        row = {"id": 1, "site_name": "S", "show_download_link": False, "page_title": None, "meta_description": None}
        with patch("site_settings.repository.update_site_settings", AsyncMock(return_value=row)) as m:
            resp = client.patch("/settings", json={"show_download_link": False})

        assert resp.status_code == 200
        assert m.await_args.args[0] == {"show_download_link": False}

    def test_patch_settings_rejects_null_flag(self, client):
        with patch("site_settings.repository.update_site_settings", AsyncMock()) as m:
            resp = client.patch("/settings", json={"show_download_link": None})

        assert resp.status_code == 422
        m.assert_not_awaited()


class TestInitDbRoute:
    def test_success(self, client):
        with patch("core.bootstrap.apply_schema", AsyncMock()):
            resp = client.get("/api/init-db")

        assert resp.status_code == 200
        assert resp.json()["ok"] is True

    def test_failure_reports_message(self, client):
        with patch("core.bootstrap.apply_schema", AsyncMock(side_effect=OSError("denied"))):
            resp = client.get("/api/init-db")

        assert resp.status_code == 500
        assert resp.json() == {"ok": False, "message": "denied"}
