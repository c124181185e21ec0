"""
Notecard — Storage Service Tests
==================================

What:  LocalStorageService, S3StorageService (boto3 client mocked) and the
       identity-scoped StorageBinding.

What we test:
    ✅ Paths given as callables receive the bound identity
    ✅ Local uploads land under the root; traversal is refused
    ✅ Signed URLs never equal the raw key and verify only for their key
    ✅ Expired signatures are rejected
    ✅ boto3 errors surface as StorageError
"""

import threading
from unittest.mock import MagicMock

import jwt
import pytest
from botocore.exceptions import ClientError

from notecard.exceptions import AuthenticationError, NotFoundError, StorageError, ValidationError
from notecard.services.base import media_path, normalize_key
from notecard.services.storage_service import LocalStorageService, S3StorageService


def _token_from(url: str) -> str:
    return url.split("?token=", 1)[1]


class TestKeys:

    def test_media_path_uses_identity(self):
        assert media_path("cat.png")("us-east-1:abc") == "media/us-east-1:abc/cat.png"

    @pytest.mark.parametrize("key", ["", "/etc/passwd", "media/../secret", "media//cat.png", "./cat.png"])
    def test_invalid_keys_rejected(self, key):
        with pytest.raises(ValidationError):
            normalize_key(key)


class TestStorageBinding:

    @pytest.mark.asyncio
    async def test_callable_path_receives_identity(self, storage, sample_png_bytes):
        binding = storage.bind("alice-identity")

        task = binding.upload_data(media_path("cat.png"), sample_png_bytes, "image/png")
        key = await task.result

        assert key == "media/alice-identity/cat.png"
        assert task.done()
        assert (storage.root / key).read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_string_path_used_as_is(self, storage):
        binding = storage.bind("alice")
        assert binding.resolve("media/shared/logo.png") == "media/shared/logo.png"

    @pytest.mark.asyncio
    async def test_get_url_reports_expiry(self, storage):
        signed = await storage.bind("alice").get_url(media_path("cat.png"))

        assert signed.url != "cat.png"
        assert signed.url.startswith("/storage/media/alice/cat.png?token=")
        assert signed.expires_at is not None


class TestLocalStorage:

    @pytest.mark.asyncio
    async def test_upload_overwrites_same_key(self, storage):
        await storage.put_object("media/a/cat.png", b"one")
        await storage.put_object("media/a/cat.png", b"two")
        assert (storage.root / "media/a/cat.png").read_bytes() == b"two"

    @pytest.mark.asyncio
    async def test_signed_url_opens_object(self, storage, sample_png_bytes):
        await storage.put_object("media/a/cat.png", sample_png_bytes)
        url = await storage.presign("media/a/cat.png", 60)

        path = storage.open_object("media/a/cat.png", _token_from(url))

        assert path.read_bytes() == sample_png_bytes

    @pytest.mark.asyncio
    async def test_signature_bound_to_key(self, storage):
        await storage.put_object("media/a/cat.png", b"cat")
        await storage.put_object("media/b/dog.png", b"dog")
        url = await storage.presign("media/a/cat.png", 60)

        with pytest.raises(AuthenticationError):
            storage.open_object("media/b/dog.png", _token_from(url))

    def test_expired_signature_rejected(self, storage):
        token = jwt.encode(
            {"sub": "media/a/cat.png", "purpose": "storage", "exp": 1},
            storage.secret,
            algorithm=storage.algorithm,
        )
        with pytest.raises(AuthenticationError, match="expired"):
            storage.verify_token("media/a/cat.png", token)

    def test_session_token_is_not_a_url_signature(self, storage, session_token):
        with pytest.raises(AuthenticationError):
            storage.verify_token("media/a/cat.png", session_token)

    @pytest.mark.asyncio
    async def test_missing_object_is_not_found(self, storage):
        url = await storage.presign("media/a/never.png", 60)
        with pytest.raises(NotFoundError):
            storage.open_object("media/a/never.png", _token_from(url))

    @pytest.mark.asyncio
    async def test_write_failure_wrapped(self, tmp_path):
        service = LocalStorageService(str(tmp_path / "root"), secret="s")
        # A file where the directory should be makes mkdir fail
        (service.root / "media").write_bytes(b"")

        with pytest.raises(StorageError):
            await service.put_object("media/a/cat.png", b"data")

    @pytest.mark.asyncio
    async def test_health_check(self, storage):
        assert await storage.health_check() is True


class TestS3Storage:

    def setup_method(self):
        self.client = MagicMock()
        self.service = S3StorageService("notes-bucket", client=self.client, url_expires=300)

    @pytest.mark.asyncio
    async def test_put_object_passes_content_type(self):
        await self.service.put_object("media/a/cat.png", b"png", "image/png")

        self.client.put_object.assert_called_once_with(
            Bucket="notes-bucket",
            Key="media/a/cat.png",
            Body=b"png",
            ContentType="image/png",
        )

    @pytest.mark.asyncio
    async def test_presign_get_object(self):
        self.client.generate_presigned_url.return_value = "https://s3.example/cat.png?X-Amz-Signature=abc"

        signed = await self.service.bind("alice").get_url(media_path("cat.png"))

        assert signed.url.startswith("https://s3.example/")
        self.client.generate_presigned_url.assert_called_once_with(
            ClientMethod="get_object",
            Params={"Bucket": "notes-bucket", "Key": "media/alice/cat.png"},
            ExpiresIn=300,
        )

    @pytest.mark.asyncio
    async def test_client_error_wrapped(self):
        self.client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )

        task = self.service.bind("alice").upload_data(media_path("cat.png"), b"png")

        with pytest.raises(StorageError):
            await task.result

    @pytest.mark.asyncio
    async def test_health_check_false_on_error(self):
        self.client.head_bucket.side_effect = ClientError(
            {"Error": {"Code": "404", "Message": "missing"}}, "HeadBucket"
        )
        assert await self.service.health_check() is False

    @pytest.mark.asyncio
    async def test_calls_do_not_block_event_loop(self):
        loop_thread = threading.get_ident()
        seen = {}

        def put_object(**kwargs):
            seen["thread"] = threading.get_ident()

        self.client.put_object.side_effect = put_object
        await self.service.put_object("media/a/cat.png", b"png")

        assert seen["thread"] != loop_thread
