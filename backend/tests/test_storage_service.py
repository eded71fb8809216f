import pytest

from rfq_intel.services.storage_service import StorageService


@pytest.mark.asyncio
async def test_filesystem_roundtrip_uses_anonymised_key(tmp_path):
    storage = StorageService(base_dir=str(tmp_path), backend="filesystem")
    key = await storage.save_document(b"hello", "ACME Anfrage 2024.PDF", "application/pdf")

    assert key.startswith("uploads/")
    assert key.endswith(".pdf")
    assert "ACME" not in key
    assert storage.load_document(key) == b"hello"
    assert (tmp_path / key).exists()


@pytest.mark.asyncio
async def test_empty_upload_is_refused(tmp_path):
    storage = StorageService(base_dir=str(tmp_path), backend="filesystem")
    with pytest.raises(RuntimeError):
        await storage.save_document(b"", "empty.pdf")


def test_missing_key_raises_value_error(tmp_path):
    storage = StorageService(base_dir=str(tmp_path), backend="filesystem")
    with pytest.raises(ValueError):
        storage.load_document("uploads/nope.pdf")


class _UnreachableMinio:
    """Client whose every call fails like an unreachable endpoint."""

    def __init__(self, *args, **kwargs):
        pass

    def bucket_exists(self, bucket):
        raise _MaxRetries("connection refused")

    def put_object(self, *args, **kwargs):
        raise _MaxRetries("connection refused")

    def get_object(self, *args, **kwargs):
        raise _MaxRetries("connection refused")


class _MaxRetries(Exception):
    pass


@pytest.mark.asyncio
async def test_minio_network_failures_become_runtime_errors(monkeypatch):
    import rfq_intel.services.storage_service as storage_module

    monkeypatch.setattr(storage_module, "Minio", _UnreachableMinio)
    storage = StorageService(backend="minio")

    with pytest.raises(RuntimeError, match="MinIO upload failed"):
        await storage.save_document(b"data", "rfq.pdf")
    with pytest.raises(RuntimeError, match="MinIO download failed"):
        storage.load_document("uploads/x.pdf")
