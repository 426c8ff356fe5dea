import uuid
from types import SimpleNamespace

import pytest
from botocore.exceptions import NoCredentialsError

from wallet_store.config import StoreSettings
from wallet_store.exceptions import ConfigurationError, ProvisioningError, TransportError
from wallet_store.factory import load_store
from wallet_store.paths import derive_bucket_name

from .conftest import BUCKET, FAST_KDF_ITERATIONS, RecordingBlobStore, record


class FakeSession:
    def __init__(self, access_key=None, error=None):
        self.access_key = access_key
        self.error = error

    def get_credentials(self):
        if self.error is not None:
            raise self.error
        if self.access_key is None:
            return None
        return SimpleNamespace(access_key=self.access_key)


def _settings(**values) -> StoreSettings:
    values.setdefault("kdf_iterations", FAST_KDF_ITERATIONS)
    return StoreSettings(**values)


def test_creates_bucket_and_path_placeholders() -> None:
    blob_store = RecordingBlobStore()

    store = load_store(_settings(bucket=BUCKET, path="/base/path"), blob_store=blob_store)

    assert blob_store.bucket_exists(BUCKET)
    assert blob_store.puts == ["base/", "base/path/"]
    assert store.location == f"{BUCKET}/base/path"
    assert store.name == "s3"


def test_existing_placeholders_are_kept() -> None:
    blob_store = RecordingBlobStore()
    blob_store.create_bucket(BUCKET)
    blob_store.put_object(BUCKET, "base/", b"")

    load_store(_settings(bucket=BUCKET, path="base/path"), blob_store=blob_store)

    assert blob_store.puts == ["base/", "base/path/"]


def test_store_is_usable() -> None:
    blob_store = RecordingBlobStore()
    store = load_store(_settings(bucket=BUCKET, path="base", passphrase="secret"), blob_store=blob_store)

    wallet_id = uuid.uuid4()
    data = record("test wallet", wallet_id)
    store.store_wallet(wallet_id, "test wallet", data)

    assert store.retrieve_wallet_by_id(wallet_id) == data
    assert load_store(_settings(bucket=BUCKET, path="base"), blob_store=blob_store).location == f"{BUCKET}/base"


def test_bucket_derived_from_access_key() -> None:
    blob_store = RecordingBlobStore()
    settings = _settings(id=b"salt")

    store = load_store(settings, blob_store=blob_store, session=FakeSession("AKIAEXAMPLE"))

    expected = derive_bucket_name("AKIAEXAMPLE", b"salt")
    assert store.bucket == expected
    assert blob_store.bucket_exists(expected)


def test_missing_credentials() -> None:
    with pytest.raises(ProvisioningError, match="No credentials"):
        load_store(_settings(), blob_store=RecordingBlobStore(), session=FakeSession())


def test_credential_resolution_failure() -> None:
    with pytest.raises(ProvisioningError, match="Unable to resolve credentials"):
        load_store(_settings(), blob_store=RecordingBlobStore(), session=FakeSession(error=NoCredentialsError()))


@pytest.mark.parametrize(
    "values",
    [{"credentials_id": "AKIAEXAMPLE"}, {"credentials_secret": "secret"}],
)
def test_partial_credentials_rejected(values) -> None:
    with pytest.raises(ConfigurationError, match="together"):
        load_store(_settings(**values))


def test_bucket_creation_failure() -> None:
    class NoCreate(RecordingBlobStore):
        def create_bucket(self, bucket):
            raise TransportError("AccessDenied")

    with pytest.raises(ProvisioningError, match="Unable to prepare bucket"):
        load_store(_settings(bucket=BUCKET), blob_store=NoCreate())


def test_path_creation_failure() -> None:
    class NoPut(RecordingBlobStore):
        def put_object(self, bucket, key, data):
            raise TransportError("AccessDenied")

    with pytest.raises(ProvisioningError, match="Unable to prepare path"):
        load_store(_settings(bucket=BUCKET, path="base"), blob_store=NoPut())
