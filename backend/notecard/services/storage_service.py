"""
Notecard — Object Storage Backends
====================================

What:  Concrete StorageService implementations and the factory that picks one.
Who:   Bound per user by the notes view; LocalStorageService also backs the
       GET /storage/{key} route.

Backends:
    LocalStorageService  files under STORAGE_ROOT, written with aiofiles;
                         retrieval URLs carry a short-lived JWT (PyJWT) that
                         names the object key
    S3StorageService     any S3-compatible endpoint (AWS, R2, MinIO) through
                         boto3; retrieval URLs are presigned GET requests

Directory Structure (local backend):
    storage/
    └── media/
        └── <identity_id>/
            ├── groceries.png
            └── whiteboard.jpg
"""

import asyncio
import logging
import os
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiofiles
import boto3
import jwt
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from notecard.config import Settings, settings
from notecard.exceptions import (
    AuthenticationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from notecard.services.base import StorageService, normalize_key

logger = logging.getLogger(__name__)

STORAGE_TOKEN_PURPOSE = "storage"


class LocalStorageService(StorageService):
    """
    Stores objects on the local file system and signs retrieval URLs.

    A signed URL looks like `/storage/media/<identity>/<name>?token=<jwt>`;
    the token's `sub` claim is the object key and `exp` bounds its lifetime.
    """

    def __init__(
        self,
        root: str,
        *,
        secret: str,
        algorithm: str = "HS256",
        url_expires: int = 900,
        base_url: str = "",
    ):
        super().__init__(url_expires)
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.secret = secret
        self.algorithm = algorithm
        self.base_url = base_url.rstrip("/")
        logger.info("LocalStorageService initialized with root=%s", self.root)

    def object_path(self, key: str) -> Path:
        """Absolute path of `key`, guaranteed to stay inside the storage root."""
        path = (self.root / normalize_key(key)).resolve()
        if not path.is_relative_to(self.root):
            raise ValidationError(message="Invalid storage path", field="path")
        return path

    async def put_object(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        path = self.object_path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error("Failed to store object %s: %s", key, str(e))
            raise StorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"key": key, "os_error": str(e)},
            )
        logger.info("Object stored: %s (%d bytes)", key, len(data))

    async def presign(self, key: str, expires_in: int) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": key,
            "purpose": STORAGE_TOKEN_PURPOSE,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        }
        token = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return f"{self.base_url}/storage/{quote(key)}?token={token}"

    def verify_token(self, key: str, token: str) -> None:
        """
        Check that `token` is an unexpired URL signature for exactly `key`.

        Raises:
            AuthenticationError: bad signature, expired, wrong purpose or key.
        """
        try:
            payload = jwt.decode(token, key=self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError(message="This link has expired", context={"key": key})
        except jwt.InvalidTokenError:
            raise AuthenticationError(message="Invalid link signature", context={"key": key})
        if payload.get("purpose") != STORAGE_TOKEN_PURPOSE or payload.get("sub") != key:
            raise AuthenticationError(message="Invalid link signature", context={"key": key})

    def open_object(self, key: str, token: str) -> Path:
        """Verify a signed request and return the file to serve."""
        self.verify_token(key, token)
        path = self.object_path(key)
        if not path.is_file():
            raise NotFoundError(resource="file", resource_id=key)
        return path

    async def health_check(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)


class S3StorageService(StorageService):
    """
    S3-compatible object storage through boto3.

    boto3 is synchronous; calls run in a worker thread so the event loop is
    never blocked.
    """

    def __init__(
        self,
        bucket: str,
        *,
        client: Any = None,
        url_expires: int = 900,
        endpoint_url: Optional[str] = None,
        region: str = "auto",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        addressing_style: str = "path",
    ):
        super().__init__(url_expires)
        self.bucket = bucket
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            endpoint_url=endpoint_url,
            region_name=region,
            config=Config(signature_version="s3v4", s3={"addressing_style": addressing_style}),
        )
        logger.info("S3StorageService initialized for bucket=%s endpoint=%s", bucket, endpoint_url)

    async def put_object(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        params: Dict[str, Any] = {"Bucket": self.bucket, "Key": key, "Body": data}
        if content_type:
            params["ContentType"] = content_type
        try:
            await asyncio.to_thread(self.client.put_object, **params)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for %s: %s", key, str(e))
            raise StorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"key": key, "error_type": type(e).__name__},
            )
        logger.info("Object stored: s3://%s/%s (%d bytes)", self.bucket, key, len(data))

    async def presign(self, key: str, expires_in: int) -> str:
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=int(expires_in),
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning("Could not presign %s: %s", key, str(e))
            raise StorageError(
                message="Could not create an image link.",
                context={"key": key, "error_type": type(e).__name__},
            )

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning("S3 health check failed: %s", str(e))
            return False


def build_storage_service(config: Settings) -> StorageService:
    """Instantiate the backend selected by STORAGE_BACKEND."""
    if config.storage_backend == "s3":
        if not config.s3_bucket:
            raise ValueError("STORAGE_BACKEND=s3 requires S3_BUCKET")
        return S3StorageService(
            config.s3_bucket,
            url_expires=config.signed_url_expires,
            endpoint_url=config.s3_endpoint_url,
            region=config.s3_region,
            access_key_id=config.s3_access_key_id,
            secret_access_key=config.s3_secret_access_key,
            addressing_style=config.s3_addressing_style,
        )
    return LocalStorageService(
        config.storage_root,
        secret=config.auth_secret,
        algorithm=config.auth_algorithm,
        url_expires=config.signed_url_expires,
        base_url=config.media_base_url,
    )


@lru_cache(maxsize=1)
def get_storage_service() -> StorageService:
    """FastAPI dependency returning the process-wide storage backend."""
    return build_storage_service(settings)
