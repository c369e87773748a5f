"""
config.py - Validated settings read from the environment

    PAGE_STORE_DIR          store root (default: $XDG_DATA_HOME/page)
    PAGE_PASSWORD_LENGTH    generated password length (default: 12)
    PAGE_PASSWORD_PATTERN   tr(1) style character set (default: [:alnum:]_)
    PAGE_CLIPBOARD          clipboard command line, or "system" (default: wl-copy)
    PAGE_CLIPBOARD_TIMEOUT  seconds before the clipboard is cleared, or "off"
    PAGE_FILE_MODE_MASK     umask applied once at startup (default: 077)
"""
import os
import logging
from typing import Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger("page.config")

DEFAULT_PATTERN = "[:alnum:]_"
DEFAULT_CLIPBOARD = "wl-copy"
DEFAULT_TIMEOUT = 15
DEFAULT_UMASK = 0o077

_ENV_FIELDS = {
    "PAGE_STORE_DIR": "store_dir",
    "PAGE_PASSWORD_LENGTH": "password_length",
    "PAGE_PASSWORD_PATTERN": "password_pattern",
    "PAGE_CLIPBOARD": "clipboard",
    "PAGE_CLIPBOARD_TIMEOUT": "clipboard_timeout",
    "PAGE_FILE_MODE_MASK": "umask",
}


def default_store_dir(environ: Optional[Mapping[str, str]] = None) -> str:
    """Per-user data directory + /page"""
    environ = os.environ if environ is None else environ
    data_home = environ.get("XDG_DATA_HOME") or os.path.join(
        os.path.expanduser("~"), ".local", "share"
    )
    return os.path.join(data_home, "page")


def parse_timeout(value) -> Optional[int]:
    """Turn "15" into 15 and "off" into None."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value.lower() == "off":
            return None
        if not value.isdigit():
            raise ValueError(f"clipboard timeout must be seconds or 'off', got {value!r}")
        return int(value)
    if value < 0:
        raise ValueError("clipboard timeout cannot be negative")
    return int(value)


class PageConfig(BaseModel):
    """Settings for one invocation."""

    store_dir: str = Field(default_factory=default_store_dir)
    password_length: int = Field(default=12, ge=1)
    password_pattern: str = Field(default=DEFAULT_PATTERN, min_length=1)
    clipboard: str = Field(default=DEFAULT_CLIPBOARD, min_length=1)
    clipboard_timeout: Optional[int] = DEFAULT_TIMEOUT
    umask: int = Field(default=DEFAULT_UMASK, ge=0, le=0o777)

    @field_validator("store_dir")
    @classmethod
    def expand_store_dir(cls, v: str) -> str:
        return os.path.abspath(os.path.expanduser(v))

    @field_validator("clipboard_timeout", mode="before")
    @classmethod
    def validate_timeout(cls, v):
        return parse_timeout(v)

    @field_validator("umask", mode="before")
    @classmethod
    def validate_umask(cls, v):
        if isinstance(v, str):
            return int(v, 8)
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> "PageConfig":
        """Build the configuration from PAGE_* variables.

        Args:
            environ: Mapping to read instead of os.environ.
            **overrides: Values from the command line, applied last. None is ignored.

        Raises:
            ConfigError: If any value fails validation.
        """
        environ = os.environ if environ is None else environ
        values = {}
        if "PAGE_STORE_DIR" not in environ:
            values["store_dir"] = default_store_dir(environ)
        for name, field in _ENV_FIELDS.items():
            if name in environ:
                values[field] = environ[name]
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            config = cls(**values)
        except (ValidationError, ValueError) as e:
            raise ConfigError(f"invalid configuration: {_first_error(e)}") from e
        logger.debug("Store root: %s", config.store_dir)
        return config


def _first_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        err = exc.errors()[0]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        return f"{loc}: {err.get('msg')}"
    return str(exc)
