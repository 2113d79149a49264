"""Input validation for provider settings and attribute values."""

import re
from typing import Any
from urllib.parse import urlparse


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class InputValidator:
    """Validates user inputs before they reach the API client."""

    PATTERNS = {
        'api_token': re.compile(r'^[a-zA-Z0-9\-_\.=+/]+$'),
    }

    MAX_LENGTHS = {
        'url': 2048,
        'api_token': 4096,
    }

    @classmethod
    def validate_url(cls, url: str) -> str:
        """Validate an API endpoint URL.

        Args:
            url: URL to validate

        Returns:
            URL without surrounding whitespace or trailing slash

        Raises:
            ValidationError: If URL is invalid
        """
        if not url:
            raise ValidationError("Endpoint URL cannot be empty")

        if len(url) > cls.MAX_LENGTHS['url']:
            raise ValidationError(f"URL cannot exceed {cls.MAX_LENGTHS['url']} characters")

        url = url.strip()
        parsed = urlparse(url)
        if parsed.scheme not in ['http', 'https']:
            raise ValidationError("Endpoint URL must use http or https protocol")

        if not parsed.netloc:
            raise ValidationError(f"Endpoint URL has no host: {url}")

        return url.rstrip('/')

    @classmethod
    def validate_api_token(cls, token: str) -> str:
        """Validate an API token.

        Terrakube personal access tokens are JWTs, so dots and base64
        characters are allowed.

        Raises:
            ValidationError: If token is invalid
        """
        if not token:
            raise ValidationError("API token cannot be empty")

        if len(token) < 10:
            raise ValidationError("API token is too short")

        if len(token) > cls.MAX_LENGTHS['api_token']:
            raise ValidationError(f"API token cannot exceed {cls.MAX_LENGTHS['api_token']} characters")

        if not cls.PATTERNS['api_token'].match(token):
            raise ValidationError("API token contains invalid characters")

        return token

    @staticmethod
    def is_value_of_type(value: Any, value_type: type) -> bool:
        """Check an attribute value against its declared type.

        ``bool`` is a subclass of ``int`` in Python; it is not accepted where
        an integer is declared.
        """
        if value_type is int and isinstance(value, bool):
            return False
        return isinstance(value, value_type)
