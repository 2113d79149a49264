"""Saved connection settings for the terrakube command line."""

import json
import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Self

from .encryption import EncryptionError, SecureConfig
from .provider_logging import get_provider_logger
from .validators import InputValidator, ValidationError

CONFIG_DIR_ENV = "TERRAKUBE_CONFIG_DIR"


class ConfigError(Exception):
    """Configuration-related errors."""
    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""
    pass


class ConfigBackupError(ConfigError):
    """Raised when backup operations fail."""
    pass


class Config:
    """Manages CLI configuration with encryption, validation, and backup."""

    CONFIG_SCHEMA = {
        'endpoint': {'type': str, 'required': False, 'validator': 'validate_endpoint'},
        'token': {'type': str, 'required': False, 'validator': 'validate_token'},
        'insecure_http_client': {'type': bool, 'required': False, 'default': False},
        'timeout': {'type': int, 'required': False, 'min': 1, 'max': 300, 'default': 30},
        'backup_count': {'type': int, 'required': False, 'min': 1, 'max': 50, 'default': 5}
    }

    SENSITIVE_KEYS = ['token']

    def __init__(self: Self, config_dir: Optional[Path] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Directory holding config.json. Defaults to
                        $TERRAKUBE_CONFIG_DIR or ~/.terrakube
        """
        if config_dir is None:
            env_dir = os.environ.get(CONFIG_DIR_ENV)
            config_dir = Path(env_dir) if env_dir else Path.home() / ".terrakube"

        self.config_dir = config_dir
        self.config_file = self.config_dir / "config.json"
        self.backup_dir = self.config_dir / "backups"
        self._secure_config: Optional[SecureConfig] = None

    @property
    def secure_config(self: Self) -> SecureConfig:
        if self._secure_config is None:
            self._ensure_directories()
            self._secure_config = SecureConfig(self.config_dir / ".encryption_key")
        return self._secure_config

    def _ensure_directories(self: Self) -> None:
        """Create config directories with owner-only permissions."""
        self.config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_dir, 0o700)

        self.backup_dir.mkdir(exist_ok=True)
        os.chmod(self.backup_dir, 0o700)

    def _validate_config_schema(self: Self, config: Dict[str, Any]) -> None:
        """Validate configuration against schema.

        Raises:
            ConfigValidationError: If validation fails.
        """
        errors = []

        for key, schema in self.CONFIG_SCHEMA.items():
            value = config.get(key)

            if schema['required'] and value is None:
                errors.append(f"Required field '{key}' is missing")
                continue

            if value is None:
                continue

            if not InputValidator.is_value_of_type(value, schema['type']):
                errors.append(f"Field '{key}' must be of type {schema['type'].__name__}")
                continue

            if 'min' in schema and value < schema['min']:
                errors.append(f"Field '{key}' must be >= {schema['min']}")
            if 'max' in schema and value > schema['max']:
                errors.append(f"Field '{key}' must be <= {schema['max']}")

            if 'validator' in schema:
                validator = getattr(self, schema['validator'])
                if not validator(value):
                    errors.append(f"Field '{key}' failed validation")

        if errors:
            raise ConfigValidationError(f"Configuration validation failed: {'; '.join(errors)}")

    def validate_endpoint(self: Self, endpoint: str) -> bool:
        try:
            InputValidator.validate_url(endpoint)
        except ValidationError:
            return False
        return True

    def validate_token(self: Self, token: str) -> bool:
        try:
            InputValidator.validate_api_token(token)
        except ValidationError:
            return False
        return True

    def _create_backup(self: Self) -> None:
        """Create a backup of the current configuration."""
        if not self.config_file.exists():
            return

        try:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S_%f')
            backup_file = self.backup_dir / f"config_{timestamp}.json"
            shutil.copy2(self.config_file, backup_file)
            os.chmod(backup_file, 0o600)
        except OSError as e:
            raise ConfigBackupError(f"Failed to create backup: {e}")

        self._cleanup_old_backups()

    def _backup_files(self: Self) -> List[Path]:
        if not self.backup_dir.exists():
            return []
        return sorted(self.backup_dir.glob("config_*.json"), key=lambda p: p.name, reverse=True)

    def _cleanup_old_backups(self: Self) -> None:
        """Remove old backup files beyond the configured limit."""
        max_backups = self.get('backup_count', 5)
        for old_backup in self._backup_files()[max_backups:]:
            old_backup.unlink(missing_ok=True)

    def list_backups(self: Self) -> List[str]:
        """List available backup timestamps, newest first."""
        return [path.name[len("config_"):-len(".json")] for path in self._backup_files()]

    def restore_from_backup(self: Self, backup_timestamp: Optional[str] = None) -> None:
        """Restore configuration from backup.

        Args:
            backup_timestamp: Backup to restore; the most recent one when None.

        Raises:
            ConfigError: If no backup exists or restoration fails.
        """
        if backup_timestamp:
            backup_file = self.backup_dir / f"config_{backup_timestamp}.json"
        else:
            backups = self._backup_files()
            if not backups:
                raise ConfigError("No backup files found")
            backup_file = backups[0]

        if not backup_file.exists():
            raise ConfigError(f"Backup file not found: {backup_file}")

        try:
            shutil.copy2(backup_file, self.config_file)
            os.chmod(self.config_file, 0o600)
        except OSError as e:
            raise ConfigError(f"Failed to restore from backup: {e}")

    def load(self: Self, validate: bool = True, restore_corrupt: bool = True) -> Dict[str, Any]:
        """Load configuration from file.

        A config.json that is not valid JSON is replaced by the most recent
        backup, once, before giving up.

        Args:
            validate: Whether to validate the configuration schema.
            restore_corrupt: Whether to restore from backup on a corrupt file.

        Returns:
            Configuration with defaults applied and the token decrypted.

        Raises:
            ConfigError: If loading fails.
        """
        config: Dict[str, Any] = {}
        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    config = json.load(f)
                config = self.secure_config.decrypt_dict_values(config, self.SENSITIVE_KEYS)
            except json.JSONDecodeError as e:
                if restore_corrupt and self._backup_files():
                    self.restore_from_backup()
                    get_provider_logger().log_warning("config", "Restored corrupt configuration from backup", {
                        "config_file": str(self.config_file),
                        "error": str(e)
                    })
                    return self.load(validate=validate, restore_corrupt=False)
                raise ConfigError(f"Failed to load configuration: {e}")
            except OSError as e:
                raise ConfigError(f"Failed to load configuration: {e}")
            except EncryptionError as e:
                raise ConfigError(f"Failed to decrypt configuration: {e}")

        for key, schema in self.CONFIG_SCHEMA.items():
            if key not in config and 'default' in schema:
                config[key] = schema['default']

        if validate:
            self._validate_config_schema(config)

        return config

    def save(self: Self, config: Dict[str, Any], create_backup: bool = True) -> None:
        """Save configuration with the token encrypted.

        Raises:
            ConfigError: If validation or saving fails.
        """
        self._validate_config_schema(config)
        self._ensure_directories()

        if create_backup:
            self._create_backup()

        try:
            encrypted_config = self.secure_config.encrypt_dict_values(config, self.SENSITIVE_KEYS)
        except EncryptionError as e:
            raise ConfigError(f"Failed to encrypt configuration: {e}")

        # Write to a temporary file first, then move into place.
        temp_file = self.config_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w') as f:
                json.dump(encrypted_config, f, indent=2)
            os.chmod(temp_file, 0o600)
            temp_file.replace(self.config_file)
        except OSError as e:
            temp_file.unlink(missing_ok=True)
            raise ConfigError(f"Failed to save configuration: {e}")

    def get(self: Self, key: str, default: Any = None) -> Any:
        """Get a configuration value, or ``default`` if unset or unreadable."""
        try:
            config = self.load(validate=False)
        except ConfigError:
            return default
        value = config.get(key)
        return default if value is None else value

    def set(self: Self, key: str, value: Any) -> None:
        """Set one configuration value.

        Raises:
            ConfigError: If the resulting configuration is invalid.
        """
        config = self.load(validate=False)
        config[key] = value
        self.save(config, create_backup=True)

    def get_endpoint(self: Self) -> Optional[str]:
        return self.get('endpoint')

    def get_token(self: Self) -> Optional[str]:
        return self.get('token')

    def is_configured(self: Self) -> bool:
        """True if both endpoint and token are saved."""
        return bool(self.get_endpoint() and self.get_token())

    def reset(self: Self) -> None:
        """Reset configuration to defaults, keeping a backup of the old file."""
        config = {key: schema['default'] for key, schema in self.CONFIG_SCHEMA.items() if 'default' in schema}
        self.save(config, create_backup=True)
