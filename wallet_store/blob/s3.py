from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, WaiterError
from urllib3.exceptions import HTTPError

from ..exceptions import ObjectNotFoundError, TransportError
from .base import BlobStore, ObjectPage

logger = logging.getLogger(__name__)

# A missing bucket on get_object is a transport failure, not a missing key.
_MISSING_KEY_CODES = {"NoSuchKey", "404"}
_MISSING_BUCKET_CODES = {"NoSuchBucket", "404", "NotFound"}


def _error_code(err: ClientError) -> str:
    return err.response.get("Error", {}).get("Code", "")


def build_client(
    session: Optional[boto3.Session] = None,
    *,
    region: Optional[str] = None,
    endpoint: Optional[str] = None,
    max_pool_connections: int = 15,
):
    """Return a boto3 S3 client for AWS or an S3-compatible endpoint."""
    session = session or boto3.Session(region_name=region)
    options: Dict[str, Any] = {"max_pool_connections": max_pool_connections}
    if endpoint:
        options["s3"] = {"addressing_style": "path"}
    return session.client(
        "s3",
        region_name=region,
        endpoint_url=endpoint,
        config=Config(**options),
    )


class S3BlobStore(BlobStore):
    """BlobStore backed by a boto3 S3 client.

    boto3 clients are thread-safe, so one instance is shared by every
    concurrent fetch of a listing.
    """

    def __init__(self, client=None, *, region: Optional[str] = None, endpoint: Optional[str] = None):
        self.region = region
        self._s3 = client if client is not None else build_client(region=region, endpoint=endpoint)

    def put_object(self, bucket: str, key: str, data: bytes) -> None:
        logger.debug(f"PUT {bucket}/{key} ({len(data)} bytes)")
        try:
            self._s3.put_object(Bucket=bucket, Key=key, Body=data)
        except (ClientError, BotoCoreError) as e:
            raise TransportError(f"Failed to store {key}: {e}") from e

    def get_object(self, bucket: str, key: str) -> bytes:
        logger.debug(f"GET {bucket}/{key}")
        try:
            resp = self._s3.get_object(Bucket=bucket, Key=key)
            return resp["Body"].read()
        except ClientError as e:
            if _error_code(e) in _MISSING_KEY_CODES:
                raise ObjectNotFoundError(bucket, key) from e
            raise TransportError(f"Failed to retrieve {key}: {e}") from e
        except (BotoCoreError, HTTPError, OSError) as e:
            # Body reads can surface raw urllib3 or socket errors.
            raise TransportError(f"Failed to retrieve {key}: {e}") from e

    def list_objects(self, bucket: str, prefix: str, continuation_token: Optional[str] = None) -> ObjectPage:
        kwargs: Dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        logger.debug(f"LIST {bucket}/{prefix} token={continuation_token!r}")
        try:
            resp = self._s3.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise TransportError(f"Failed to list {prefix!r}: {e}") from e
        truncated = bool(resp.get("IsTruncated"))
        return ObjectPage(
            keys=[item["Key"] for item in resp.get("Contents", [])],
            next_token=resp.get("NextContinuationToken") if truncated else None,
            truncated=truncated,
        )

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self._s3.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_BUCKET_CODES:
                return False
            raise TransportError(f"Unable to access bucket {bucket}: {e}") from e
        except BotoCoreError as e:
            raise TransportError(f"Unable to access bucket {bucket}: {e}") from e

    def create_bucket(self, bucket: str) -> None:
        kwargs: Dict[str, Any] = {"Bucket": bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self._s3.create_bucket(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise TransportError(f"Unable to create bucket {bucket}: {e}") from e

    def wait_until_bucket_exists(self, bucket: str) -> None:
        try:
            self._s3.get_waiter("bucket_exists").wait(Bucket=bucket)
        except (WaiterError, ClientError, BotoCoreError) as e:
            raise TransportError(f"Failed to confirm bucket creation: {e}") from e
