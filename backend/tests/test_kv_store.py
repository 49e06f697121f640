"""
KV store tests
"""

import pytest

from image_relay.kv_store import FileKVStore, MemoryKVStore


@pytest.fixture(params=["memory", "file"])
def kv(request, tmp_path):
    if request.param == "memory":
        return MemoryKVStore()
    return FileKVStore(str(tmp_path / "cache"))


class TestKVStore:

    @pytest.mark.asyncio
    async def test_missing_key(self, kv):
        assert await kv.get("KV_IMAGES") is None

    @pytest.mark.asyncio
    async def test_put_get_overwrite(self, kv):
        await kv.put("KV_LAST_CACHED", "2024-06-01T12:00:00+00:00")
        await kv.put("KV_LAST_CACHED", "2024-06-02T12:00:00+00:00")
        assert await kv.get("KV_LAST_CACHED") == "2024-06-02T12:00:00+00:00"

    @pytest.mark.asyncio
    async def test_delete(self, kv):
        await kv.put("KV_IMAGES", "[]")
        await kv.delete("KV_IMAGES")
        await kv.delete("KV_IMAGES")
        assert await kv.get("KV_IMAGES") is None

    @pytest.mark.asyncio
    async def test_unicode_value(self, kv):
        await kv.put("KV_IMAGES", '[{"filename": "café.png"}]')
        assert "café" in await kv.get("KV_IMAGES")


class TestFileKVStore:

    @pytest.mark.asyncio
    async def test_survives_new_instance(self, tmp_path):
        await FileKVStore(str(tmp_path)).put("API_KEY", "secret")
        assert await FileKVStore(str(tmp_path)).get("API_KEY") == "secret"

    @pytest.mark.asyncio
    async def test_no_temp_files_left(self, tmp_path):
        kv = FileKVStore(str(tmp_path))
        await kv.put("KV_IMAGES", "[]")
        assert list((tmp_path / "kv").glob("*.tmp")) == []
        assert len(list((tmp_path / "kv").glob("*.val"))) == 1
