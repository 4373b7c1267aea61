"""Unit tests for portal_admin.services.blob_storage — Cloudinary over httpx."""

import hashlib

import httpx
import pytest

from portal_admin.services.blob_storage import BlobStorage, BlobStorageError, sign_params


def _storage(handler) -> BlobStorage:
    return BlobStorage("demo", "key", "secret", transport=httpx.MockTransport(handler))


class TestSignature:
    def test_sorted_params_with_secret(self):
        expected = hashlib.sha1(b"public_id=a/b&timestamp=100secret").hexdigest()
        assert sign_params({"timestamp": 100, "public_id": "a/b"}, "secret") == expected


class TestDestroy:
    @pytest.mark.asyncio
    async def test_unconfigured_raises(self):
        with pytest.raises(BlobStorageError):
            await BlobStorage("", "", "").destroy("x")

    @pytest.mark.asyncio
    async def test_falls_back_to_raw(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            if "/image/" in request.url.path:
                return httpx.Response(404, json={"error": {"message": "not found"}})
            return httpx.Response(200, json={"result": "ok"})

        assert await _storage(handler).destroy("projects/p1/08_General/a.pdf") is True
        assert calls == ["/v1_1/demo/image/destroy", "/v1_1/demo/raw/destroy"]

    @pytest.mark.asyncio
    async def test_not_found_anywhere(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "not found"})

        assert await _storage(handler).destroy("missing") is False

    @pytest.mark.asyncio
    async def test_api_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(BlobStorageError):
            await _storage(handler).destroy("x")


class TestFolders:
    @pytest.mark.asyncio
    async def test_list_by_prefix_follows_cursor(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if "/raw/" in request.url.path:
                return httpx.Response(200, json={"resources": []})
            if request.url.params.get("next_cursor") == "c2":
                return httpx.Response(200, json={"resources": [{"public_id": "p/b"}]})
            return httpx.Response(200, json={"resources": [{"public_id": "p/a"}], "next_cursor": "c2"})

        assert await _storage(handler).list_by_prefix("p/") == ["p/a", "p/b"]

    @pytest.mark.asyncio
    async def test_delete_folder_assets_counts(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(200, json={"deleted": {"p/a": "deleted", "p/b": "not_found"}})

        assert await _storage(handler).delete_folder_assets("p/") == 2

    @pytest.mark.asyncio
    async def test_create_folder(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((request.method, request.url.path))
            return httpx.Response(200, json={"success": True})

        await _storage(handler).create_folder("projects/p1/08_General")
        assert seen == [("POST", "/v1_1/demo/folders/projects/p1/08_General")]
