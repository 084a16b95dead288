# storefront/services/blob_store.py
"""
S3-compatible blob storage for product images and uploads.

Usage::

    store = BlobStore(bucket="storefront-uploads", endpoint_url="http://localhost:9000")
    ref = store.upload(data, "image/png", "photo.png")   # {"url": ..., "key": ...}
    blob = store.fetch_stream(ref["key"])
"""
import uuid
from dataclasses import dataclass
from typing import Iterator

import boto3
from botocore.exceptions import ClientError

from storefront.domain.errors import NotFoundError
from storefront.utils.logging import get_logger
from storefront.utils.retry import s3_retry
from storefront.utils.settings import AWS_REGION, S3_BUCKET_NAME, S3_ENDPOINT_URL

logger = get_logger(__name__)

_MISSING_CODES = {"NoSuchKey", "404", "NotFound"}


@dataclass
class BlobObject:
    chunks: Iterator[bytes]
    content_type: str
    content_length: int | None = None


class BlobStore:
    def __init__(
        self,
        bucket: str | None = None,
        endpoint_url: str | None = None,
        region_name: str | None = None,
        client=None,
    ):
        self.bucket = bucket or S3_BUCKET_NAME
        self.endpoint_url = endpoint_url if endpoint_url is not None else S3_ENDPOINT_URL
        self.region_name = region_name or AWS_REGION
        self._client = client

    def _get_client(self):
        if self._client is None:
            kwargs = {"region_name": self.region_name}
            if self.endpoint_url:
                kwargs["endpoint_url"] = self.endpoint_url
            self._client = boto3.client("s3", **kwargs)
        return self._client

    def _object_url(self, key: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region_name}.amazonaws.com/{key}"

    @s3_retry()
    def upload(self, data: bytes, content_type: str, filename: str = "") -> dict:
        key = f"{uuid.uuid4()}-{filename}" if filename else str(uuid.uuid4())
        self._get_client().put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        url = self._object_url(key)
        logger.info(f"Uploaded blob {key} ({len(data)} bytes)")
        return {"url": url, "key": key}

    @s3_retry()
    def _get_object(self, key: str) -> dict:
        return self._get_client().get_object(Bucket=self.bucket, Key=key)

    def fetch_stream(self, key: str) -> BlobObject:
        try:
            resp = self._get_object(key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise NotFoundError("File not found") from e
            raise
        return BlobObject(
            chunks=resp["Body"].iter_chunks(),
            content_type=resp.get("ContentType") or "application/octet-stream",
            content_length=resp.get("ContentLength"),
        )

    @s3_retry()
    def delete(self, key: str) -> None:
        self._get_client().delete_object(Bucket=self.bucket, Key=key)
        logger.info(f"Deleted blob {key}")
