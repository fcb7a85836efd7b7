"""
Exceptions for AESBox
Everything raised on purpose derives from AESBoxError so callers have a general error catcher
"""


class AESBoxError(Exception):
    # general container for errors
    pass


class ConfigurationError(AESBoxError):
    # raised when a setting (env var or argument) is out of range
    pass


class EntropyError(AESBoxError):
    # raised when the OS cannot provide secure random bytes
    pass


class SessionLockedError(AESBoxError):
    # raised when a locked session is asked to encrypt/decrypt/save
    pass


class CryptoError(AESBoxError):
    # general container for cipher failures
    pass


class InvalidKeyMaterial(CryptoError):
    # raised when a key or IV has the wrong length
    pass


class PaddingError(CryptoError):
    # raised when the final block does not carry valid padding (wrong key/password or corruption)
    pass


class IntegrityError(CryptoError):
    # raised on an authentication tag mismatch in a sealed file
    pass


class UnsupportedFormatError(CryptoError):
    # raised on bad magic or unknown version in a sealed file
    pass


class TruncatedKeyFile(AESBoxError):
    # raised when a key file is too short or its payload is not 48 bytes
    pass


class StorageError(AESBoxError, OSError):
    # raised on filesystem failure (open/read/write/rename)
    pass
