"""Encryption of secrets saved in the provider configuration file."""

from pathlib import Path
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

ENCRYPTION_KEY_ENV = "TERRAKUBE_ENCRYPTION_KEY"
ENCRYPTED_PREFIX = "enc:"


class EncryptionError(Exception):
    """Raised when encryption/decryption operations fail."""
    pass


class SecureConfig:
    """Encrypts and decrypts sensitive configuration values with Fernet."""

    def __init__(self, key_file: Path, encryption_key: Optional[bytes] = None) -> None:
        """Initialize secure configuration manager.

        Args:
            key_file: Where the generated key lives when none is supplied.
            encryption_key: Optional Fernet key. Defaults to $TERRAKUBE_ENCRYPTION_KEY,
                            then the key file, then a newly generated key.

        Raises:
            EncryptionError: If the key is invalid or cannot be stored.
        """
        self.key_file = key_file
        self.key = encryption_key or self._get_or_create_key()
        try:
            self.cipher = Fernet(self.key)
        except (TypeError, ValueError) as e:
            raise EncryptionError(f"Invalid encryption key: {e}")

    def _get_or_create_key(self) -> bytes:
        env_key = os.environ.get(ENCRYPTION_KEY_ENV)
        if env_key:
            return env_key.strip().encode()

        if self.key_file.exists():
            try:
                return self.key_file.read_bytes().strip()
            except OSError as e:
                raise EncryptionError(f"Failed to read encryption key file: {e}")

        try:
            key = Fernet.generate_key()
            self.key_file.parent.mkdir(parents=True, exist_ok=True)
            self.key_file.write_bytes(key)
            os.chmod(self.key_file, 0o600)
            return key
        except OSError as e:
            raise EncryptionError(f"Failed to generate encryption key: {e}")

    def encrypt_value(self, value: str) -> str:
        """Encrypt a string value.

        Returns:
            The Fernet token, prefixed so it can be recognized on load.
        """
        if not isinstance(value, str):
            raise EncryptionError("Value must be a string")

        return ENCRYPTED_PREFIX + self.cipher.encrypt(value.encode('utf-8')).decode('ascii')

    def decrypt_value(self, encrypted_value: str) -> str:
        """Decrypt a value produced by ``encrypt_value``.

        Raises:
            EncryptionError: If the value was encrypted with another key or is corrupt.
        """
        if not self.is_encrypted(encrypted_value):
            raise EncryptionError("Value is not encrypted")

        try:
            token = encrypted_value[len(ENCRYPTED_PREFIX):].encode('ascii')
            return self.cipher.decrypt(token).decode('utf-8')
        except (InvalidToken, UnicodeError) as e:
            raise EncryptionError(f"Failed to decrypt value: {e or 'invalid token'}")

    @staticmethod
    def is_encrypted(value: object) -> bool:
        return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)

    def encrypt_dict_values(self, data: dict, sensitive_keys: list) -> dict:
        """Encrypt sensitive values in a dictionary, leaving the input untouched."""
        result = data.copy()

        for key in sensitive_keys:
            if result.get(key) is not None and not self.is_encrypted(result[key]):
                result[key] = self.encrypt_value(str(result[key]))

        return result

    def decrypt_dict_values(self, data: dict, sensitive_keys: list) -> dict:
        """Decrypt sensitive values in a dictionary.

        Raises:
            EncryptionError: If any encrypted value cannot be decrypted.
        """
        result = data.copy()

        for key in sensitive_keys:
            if self.is_encrypted(result.get(key)):
                result[key] = self.decrypt_value(result[key])

        return result
