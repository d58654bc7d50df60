"""
API token storage.

Tokens are looked up from an ordered list of providers:

1. STD_TOKEN environment variable (read-only, highest priority)
2. OS keychain via keyring
3. ~/.stacktodate/credentials.yaml (plain text, mode 0600)

New tokens go to the keychain when one is available, otherwise to the file.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

import keyring
import keyring.errors
import yaml

from .common import StackToDateError, ensure_config_dir, get_config_dir

logger = logging.getLogger(__name__)

SERVICE_NAME = "stacktodate"
KEYRING_USERNAME = "token"
TOKEN_ENV_VAR = "STD_TOKEN"
CREDENTIALS_FILE_NAME = "credentials.yaml"

NO_TOKEN_HELP = (
    "no authentication token found\n\n"
    "Setup your token with one of these methods:\n"
    "  1. Interactive setup: stacktodate global-config set\n"
    f"  2. Environment variable: export {TOKEN_ENV_VAR}=<your_token>\n\n"
    "For more help: stacktodate global-config --help"
)


class CredentialsError(StackToDateError):
    """Raised when a token cannot be found, stored or removed."""
    pass


class TokenProvider:
    """A place a token can be read from and, optionally, written to."""

    name = ""
    secure = True
    writable = True

    def available(self) -> bool:
        return True

    def get(self) -> str | None:
        raise NotImplementedError

    def set(self, token: str) -> None:
        raise CredentialsError(f"{self.name} is read-only")

    def delete(self) -> bool:
        """Remove the stored token; returns False when nothing was stored."""
        return False


class EnvTokenProvider(TokenProvider):
    """Token from the STD_TOKEN environment variable."""

    name = f"{TOKEN_ENV_VAR} environment variable"
    writable = False

    def get(self) -> str | None:
        return os.environ.get(TOKEN_ENV_VAR) or None

    def available(self) -> bool:
        return self.get() is not None


class KeyringTokenProvider(TokenProvider):
    """Token in the OS keychain (macOS Keychain, Secret Service, Windows Credential Locker)."""

    name = "OS keychain"

    def available(self) -> bool:
        try:
            backend = keyring.get_keyring()
        except keyring.errors.KeyringError:
            return False
        return getattr(backend, "priority", 0) > 0

    def get(self) -> str | None:
        try:
            return keyring.get_password(SERVICE_NAME, KEYRING_USERNAME) or None
        except keyring.errors.KeyringError as e:
            logger.debug(f"Keychain lookup failed: {e}")
            return None

    def set(self, token: str) -> None:
        try:
            keyring.set_password(SERVICE_NAME, KEYRING_USERNAME, token)
        except keyring.errors.KeyringError as e:
            raise CredentialsError(f"Keychain error: {e}") from e

    def delete(self) -> bool:
        try:
            keyring.delete_password(SERVICE_NAME, KEYRING_USERNAME)
        except keyring.errors.PasswordDeleteError:
            return False
        except keyring.errors.KeyringError as e:
            raise CredentialsError(f"Keychain error: {e}") from e
        return True


class FileTokenProvider(TokenProvider):
    """Token in a plain-text YAML file readable only by the owner."""

    secure = False

    def __init__(self, path: Path | None = None):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or get_config_dir() / CREDENTIALS_FILE_NAME

    @property
    def name(self) -> str:  # type: ignore[override]
        return f"credentials file ({self.path})"

    def get(self) -> str | None:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            return None
        except (OSError, yaml.YAMLError) as e:
            logger.debug(f"Cannot read {self.path}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        token = data.get("token")
        return str(token) if token else None

    def set(self, token: str) -> None:
        if self._path is None:
            ensure_config_dir()
        else:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        try:
            # Create with owner-only permissions before any content is written
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.safe_dump({"token": token}, f, default_flow_style=False)
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise CredentialsError(f"File storage error: {e}") from e

    def delete(self) -> bool:
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise CredentialsError(f"failed to delete credentials file: {e}") from e
        return True


def default_providers() -> list[TokenProvider]:
    """Providers in lookup order."""
    return [EnvTokenProvider(), KeyringTokenProvider(), FileTokenProvider()]


def get_token_with_source(providers: Sequence[TokenProvider] | None = None) -> tuple[str, TokenProvider]:
    """
    Find the token and the provider that holds it.

    Returns:
        (token, provider)

    Raises:
        CredentialsError: If no provider has a token
    """
    for provider in providers if providers is not None else default_providers():
        token = provider.get()
        if token:
            return token, provider
    raise CredentialsError(NO_TOKEN_HELP)


def get_token(providers: Sequence[TokenProvider] | None = None) -> str:
    """Return the API token, raising CredentialsError with setup help if missing."""
    token, _ = get_token_with_source(providers)
    return token


def get_token_source(providers: Sequence[TokenProvider] | None = None) -> tuple[str, bool] | None:
    """
    Describe where the token is stored.

    Returns:
        (description, is_secure), or None when no token is configured
    """
    try:
        _, provider = get_token_with_source(providers)
    except CredentialsError:
        return None
    return provider.name, provider.secure


def set_token(token: str, providers: Sequence[TokenProvider] | None = None) -> TokenProvider:
    """
    Store a token in the first writable provider that accepts it.

    Returns:
        The provider the token was stored in

    Raises:
        CredentialsError: If the token is empty or every provider fails
    """
    token = token.strip()
    if not token:
        raise CredentialsError("token cannot be empty")

    errors: list[str] = []
    for provider in providers if providers is not None else default_providers():
        if not provider.writable or not provider.available():
            continue
        try:
            provider.set(token)
        except CredentialsError as e:
            errors.append(str(e))
            continue
        if not provider.secure:
            logger.warning(
                f"Token stored in plain text at {provider.name}. "
                "For better security, use a system with OS keychain support"
            )
        return provider

    raise CredentialsError(
        "failed to store token securely:\n  "
        + "\n  ".join(errors)
        + f"\n\nFor CI/headless environments, use: export {TOKEN_ENV_VAR}=<your_token>"
    )


def delete_token(providers: Sequence[TokenProvider] | None = None) -> int:
    """
    Remove the token from every writable provider.

    Returns:
        Number of providers a token was removed from

    Raises:
        CredentialsError: If every writable provider failed
    """
    writable = [p for p in (providers if providers is not None else default_providers()) if p.writable]
    removed = 0
    errors: list[str] = []
    for provider in writable:
        try:
            if provider.delete():
                removed += 1
        except CredentialsError as e:
            errors.append(str(e))

    if writable and len(errors) == len(writable):
        raise CredentialsError("failed to delete token: " + "; ".join(errors))
    return removed
