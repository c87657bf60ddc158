"""Environment driven configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_DB_URL = "sqlite:///./dev.db"
DEFAULT_DOCUMENT_KEY = "luckygen_lottery_data"
DEFAULT_API_TIMEOUT = 10.0


@dataclass(frozen=True)
class Settings:
    """Runtime settings read from the environment (and ``.env``).

    Attributes
    ----------
    db_url : str
        SQLAlchemy URL of the database holding the configuration document
        (``DB_URL``).
    document_key : str
        Key under which the configuration document is stored
        (``LUCKYGEN_DOCUMENT_KEY``).
    api_base : Optional[str]
        Base URL of a remote lottery backend (``LUCKYGEN_API_BASE``). When
        set, the remote store is used instead of the database.
    api_timeout : float
        Request timeout in seconds for the remote backend
        (``LUCKYGEN_API_TIMEOUT``).
    admin_password : Optional[str]
        Organizer password (``LUCKYGEN_ADMIN_PASSWORD``). Admin login is
        refused when unset.
    """

    db_url: str = DEFAULT_DB_URL
    document_key: str = DEFAULT_DOCUMENT_KEY
    api_base: Optional[str] = None
    api_timeout: float = DEFAULT_API_TIMEOUT
    admin_password: Optional[str] = None

    def __repr__(self) -> str:
        # Keep the password out of logs and tracebacks.
        return (
            f"Settings(db_url={self.db_url!r}, document_key={self.document_key!r}, "
            f"api_base={self.api_base!r}, api_timeout={self.api_timeout!r}, "
            f"admin_password={'***' if self.admin_password else None})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ``, or from ``os.environ`` after loading ``.env``."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        timeout_raw = environ.get("LUCKYGEN_API_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_API_TIMEOUT
        except ValueError as exc:
            raise ValueError(
                f"LUCKYGEN_API_TIMEOUT must be a number, got {timeout_raw!r}"
            ) from exc

        return cls(
            db_url=environ.get("DB_URL") or DEFAULT_DB_URL,
            document_key=environ.get("LUCKYGEN_DOCUMENT_KEY") or DEFAULT_DOCUMENT_KEY,
            api_base=environ.get("LUCKYGEN_API_BASE") or None,
            api_timeout=timeout,
            admin_password=environ.get("LUCKYGEN_ADMIN_PASSWORD") or None,
        )
