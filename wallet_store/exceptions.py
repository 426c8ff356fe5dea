class WalletStoreError(Exception):
    """Base exception for wallet store errors"""
    pass


class ConfigurationError(WalletStoreError):
    """Raised when store settings are missing or invalid"""
    pass


class ProvisioningError(WalletStoreError):
    """Raised when credentials, bucket or path setup fails while building a store"""
    pass


class TransportError(WalletStoreError):
    """Raised when the object store rejects or fails a request"""
    pass


class NotFoundError(WalletStoreError):
    """Base exception for records that do not exist"""
    pass


class ObjectNotFoundError(NotFoundError):
    """Raised when a key is absent from the backing object store"""

    def __init__(self, bucket: str, key: str):
        self.bucket = bucket
        self.key = key
        super().__init__(f"The specified key does not exist: {bucket}/{key}")


class WalletNotFoundError(NotFoundError):
    """Raised when a wallet, or the parent wallet of a record, does not exist"""

    def __init__(self, message: str = "wallet not found"):
        super().__init__(message)


class AccountNotFoundError(NotFoundError):
    """Raised when no account matches a name or identifier"""

    def __init__(self, message: str = "account not found"):
        super().__init__(message)


class DuplicateAccountError(WalletStoreError):
    """Raised when an account name is already bound to a different identifier"""

    def __init__(self, message: str = "account already exists"):
        super().__init__(message)


class RenameNotSupportedError(WalletStoreError):
    """Raised when an id already stored under one name is stored under another,
    in a layout whose keys are derived from names"""

    def __init__(self, message: str = "record is already stored under a different name"):
        super().__init__(message)


class DecryptionError(WalletStoreError):
    """Raised when stored data cannot be decrypted; usually a wrong passphrase"""
    pass


class PayloadTooShortError(WalletStoreError):
    """Raised when data under the minimum length is encrypted or decrypted"""

    def __init__(self, message: str = "data must be at least 16 bytes"):
        super().__init__(message)
