# app/services/storage.py
"""Thin wrapper over an S3-compatible client (Supabase Storage, R2, Linode, ...)."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import boto3
from botocore.client import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Request

from app import config

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Any failure talking to object storage."""


class ObjectStorage:
    def __init__(self, client, *, endpoint: str = "", assets_base: str = ""):
        self.client = client
        self.endpoint = endpoint.rstrip("/")
        self.assets_base = assets_base.rstrip("/")

    @classmethod
    def from_env(cls) -> "ObjectStorage":
        if not (config.S3_ENDPOINT and config.S3_ACCESS_KEY and config.S3_SECRET_KEY):
            raise RuntimeError(
                "S3 env is missing. Check S3_ENDPOINT, S3_REGION, S3_ACCESS_KEY, S3_SECRET_KEY."
            )
        client = boto3.client(
            "s3",
            region_name=config.S3_REGION or None,
            endpoint_url=config.S3_ENDPOINT,
            aws_access_key_id=config.S3_ACCESS_KEY,
            aws_secret_access_key=config.S3_SECRET_KEY,
            config=BotoConfig(s3={"addressing_style": "path"}),
        )
        return cls(client, endpoint=config.S3_ENDPOINT, assets_base=config.ASSETS_BASE_URL)

    # ---- writes ----

    def upload_binary(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> str:
        key = key.lstrip("/")
        logger.debug("Uploading %s bytes to %s/%s", len(data), bucket, key)
        try:
            self.client.put_object(
                Bucket=bucket,
                Key=key,
                Body=data,
                ContentType=content_type or "application/octet-stream",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Upload failed for {bucket}/{key}: {e}") from e
        return key

    def remove(self, bucket: str, keys: Iterable[str]) -> None:
        objects = [{"Key": k.lstrip("/")} for k in keys if k]
        if not objects:
            return
        logger.debug("Removing %d object(s) from %s", len(objects), bucket)
        try:
            resp = self.client.delete_objects(
                Bucket=bucket, Delete={"Objects": objects, "Quiet": True}
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Delete failed in {bucket}: {e}") from e
        errors = (resp or {}).get("Errors") or []
        if errors:
            failed = ", ".join(err.get("Key", "?") for err in errors)
            raise StorageError(f"Delete failed in {bucket} for: {failed}")

    # ---- URLs ----

    def public_url(self, bucket: str, key: str) -> str:
        key = key.lstrip("/")
        if self.assets_base:
            return f"{self.assets_base}/{bucket}/{key}"
        return f"{self.endpoint}/{bucket}/{key}"

    def signed_url(self, bucket: str, key: str, expires: int = config.AUDIO_URL_EXPIRY) -> str:
        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": bucket, "Key": key.lstrip("/")},
                ExpiresIn=expires,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Presign failed: {e}") from e

    def presign_upload(self, bucket: str, key: str, content_type: str, expires: int = 300) -> dict:
        """
        Return {'upload_url', 'public_url'} for a direct PUT upload.
        NOTE: No ACL in the signature, so the PUT needs no extra headers.
        """
        key = key.lstrip("/")
        try:
            upload_url = self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params={
                    "Bucket": bucket,
                    "Key": key,
                    "ContentType": content_type or "application/octet-stream",
                },
                ExpiresIn=expires,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Presign failed: {e}") from e
        return {"upload_url": upload_url, "public_url": self.public_url(bucket, key)}


def get_storage(request: Request) -> ObjectStorage:
    """FastAPI dependency: the app-wide storage, built lazily from env."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = ObjectStorage.from_env()
        request.app.state.storage = storage
    return storage
