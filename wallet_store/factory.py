"""
Build an S3Store from settings: resolve credentials, pick the bucket, make
sure the bucket and the base path exist.

Credentials come from explicit settings when given, otherwise from boto3's
standard chain (environment, ~/.aws/credentials, instance profile).
"""

from __future__ import annotations

import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError

from .blob.base import BlobStore
from .blob.s3 import S3BlobStore, build_client
from .config import StoreSettings
from .exceptions import ConfigurationError, ProvisioningError, TransportError
from .paths import SEPARATOR, derive_bucket_name, join
from .store import S3Store

logger = logging.getLogger(__name__)


def _build_session(settings: StoreSettings) -> boto3.Session:
    if bool(settings.credentials_id) != bool(settings.credentials_secret):
        raise ConfigurationError("credentials_id and credentials_secret must be supplied together")
    return boto3.Session(
        aws_access_key_id=settings.credentials_id,
        aws_secret_access_key=settings.credentials_secret,
        region_name=settings.region,
    )


def _access_key_id(session: boto3.Session) -> str:
    try:
        credentials = session.get_credentials()
    except BotoCoreError as exc:
        raise ProvisioningError(f"Unable to resolve credentials: {exc}") from exc
    if credentials is None or not credentials.access_key:
        raise ProvisioningError("No credentials found; configure AWS credentials or set WALLET_STORE_CREDENTIALS_ID.")
    return credentials.access_key


def _ensure_bucket(blob_store: BlobStore, bucket: str) -> None:
    try:
        if blob_store.bucket_exists(bucket):
            return
        logger.info(f"Creating bucket {bucket}")
        blob_store.create_bucket(bucket)
        blob_store.wait_until_bucket_exists(bucket)
    except TransportError as exc:
        raise ProvisioningError(f"Unable to prepare bucket {bucket}: {exc}") from exc


def _ensure_path(blob_store: BlobStore, bucket: str, path: str) -> None:
    """Create a directory placeholder for each element of `path`."""
    current = ""
    for element in path.split(SEPARATOR):
        if not element:
            continue
        current = join(current, element)
        placeholder = f"{current}{SEPARATOR}"
        try:
            if blob_store.object_exists(bucket, placeholder):
                continue
            logger.info(f"Creating path {bucket}/{placeholder}")
            blob_store.put_object(bucket, placeholder, b"")
        except TransportError as exc:
            raise ProvisioningError(f"Unable to prepare path {current}: {exc}") from exc


def load_store(
    settings: Optional[StoreSettings] = None,
    blob_store: Optional[BlobStore] = None,
    session: Optional[boto3.Session] = None,
) -> S3Store:
    """
    Return a ready-to-use S3Store.

    Steps:
        1) Settings from the argument, or the environment (.env included)
        2) Bucket: explicit, or derived from the access key id and `settings.id`
        3) Create the bucket if it does not exist and wait for it
        4) Create placeholders for each element of the base path

    Any failure raises ProvisioningError (or ConfigurationError) and no store
    is returned.
    """
    settings = settings or StoreSettings.from_env()

    bucket = settings.bucket
    if blob_store is None or bucket is None:
        session = session or _build_session(settings)
        access_key_id = _access_key_id(session)
        if bucket is None:
            bucket = derive_bucket_name(access_key_id, settings.id)
        if blob_store is None:
            client = build_client(
                session,
                region=settings.region,
                endpoint=settings.endpoint,
                max_pool_connections=settings.download_concurrency,
            )
            blob_store = S3BlobStore(client, region=settings.region)

    _ensure_bucket(blob_store, bucket)
    _ensure_path(blob_store, bucket, settings.path)

    store = S3Store(
        blob_store,
        bucket,
        path=settings.path,
        passphrase=settings.passphrase,
        key_scheme=settings.key_scheme,
        concurrency=settings.download_concurrency,
        kdf_iterations=settings.kdf_iterations,
    )
    logger.debug(f"Wallet store ready at {store.location}")
    return store
