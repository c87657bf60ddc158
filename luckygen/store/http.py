from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

import requests
from dotenv import load_dotenv

from ..lottery.config import LotteryConfig
from ..lottery.errors import StoreUnavailableError
from ..settings import DEFAULT_API_TIMEOUT, DEFAULT_DOCUMENT_KEY
from .base import ConfigStore

logger = logging.getLogger(__name__)


class HttpConfigStore(ConfigStore):
    """Store backed by a remote lottery backend.

    The backend exposes the whole document at ``GET /api/data`` and accepts
    a full replacement at ``POST /api/save``.
    """

    data_path = "/api/data"
    save_path = "/api/save"

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        key: str = DEFAULT_DOCUMENT_KEY,
        timeout: float = DEFAULT_API_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        load_dotenv()
        base = base_url or os.getenv("LUCKYGEN_API_BASE")
        if not base:
            raise ValueError("Environment variable 'LUCKYGEN_API_BASE' is not set")

        super().__init__(key)
        self.base_url = base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    # -------- headers --------
    @property
    def headers(self) -> Mapping[str, str]:
        return {"Accept": "application/json"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        try:
            return self.session.request(
                method=method.upper(),
                url=url,
                headers=self.headers,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error(f"{method.upper()} {url} failed: {exc}")
            raise StoreUnavailableError(f"Cannot reach lottery backend: {exc}") from exc

    # -------- store API --------
    def load(self) -> Optional[LotteryConfig]:
        response = self._request("GET", self.data_path)
        if response.status_code == 404:
            return None
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise StoreUnavailableError(f"Lottery backend rejected load: {exc}") from exc

        if not response.content:
            return None
        try:
            data = response.json()
        except ValueError as exc:
            raise StoreUnavailableError("Lottery backend returned invalid JSON") from exc
        if data is None:
            return None
        return LotteryConfig.from_json(data)

    def save(self, config: LotteryConfig) -> None:
        response = self._request("POST", self.save_path, json=config.to_json())
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise StoreUnavailableError(f"Lottery backend rejected save: {exc}") from exc

    def clear(self) -> None:
        # The backend only exposes whole-document load and save.
        raise StoreUnavailableError("The remote lottery backend does not support reset")
