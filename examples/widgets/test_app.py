"""Tests for the widgets example — CRUD, mount, and error handlers."""

import pytest

from tern.testing import TestClient


@pytest.mark.anyio
class TestWidgets:
    async def test_index(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/")
            assert response.text == "widgets example"

    async def test_create_then_show(self, example_app) -> None:
        async with TestClient(example_app) as client:
            created = await client.post("/api/widgets", json={"name": "sprocket"})
            assert created.status == 201
            widget_id = created.json()["id"]

            shown = await client.get(f"/api/widgets/{widget_id}")
            assert shown.status == 200
            assert shown.json() == {"id": widget_id, "name": "sprocket"}

    async def test_list(self, example_app) -> None:
        async with TestClient(example_app) as client:
            await client.post("/api/widgets", json={"name": "a"})
            await client.post("/api/widgets", json={"name": "b"})

            response = await client.get("/api/widgets")
            assert [w["name"] for w in response.json()["data"]] == ["a", "b"]

    async def test_create_requires_name(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.post("/api/widgets", json={"title": "x"})
            assert response.status == 422
            assert response.json() == {"error": "name is required"}

    async def test_missing_widget_uses_mounted_handler(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/api/widgets/999")
            assert response.status == 404
            assert response.json() == {"error": "no such widget"}

    async def test_unknown_path_uses_root_handler(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.get("/nowhere")
            assert response.status == 404
            assert response.text == "Not Found"

    async def test_wrong_verb_is_405(self, example_app) -> None:
        async with TestClient(example_app) as client:
            response = await client.put("/api/widgets/1")
            assert response.status == 405
            assert response.header("allow") == "GET, HEAD, DELETE"

    async def test_delete(self, example_app) -> None:
        async with TestClient(example_app) as client:
            created = await client.post("/api/widgets", json={"name": "gone"})
            widget_id = created.json()["id"]

            deleted = await client.delete(f"/api/widgets/{widget_id}")
            assert deleted.status == 204
            again = await client.get(f"/api/widgets/{widget_id}")
            assert again.status == 404
