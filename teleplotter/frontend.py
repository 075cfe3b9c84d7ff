"""HTTP client for the chat relay that forwards requests and carries replies."""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import requests

from .errors import DeliveryError, FrontendError

logger = logging.getLogger(__name__)


class HttpChatFrontend:
    """Talk to the chat relay over its REST endpoints.

    ``POST {api_url}/messages`` posts text to a channel, ``POST {api_url}/files``
    uploads a file.  Attachment URLs are fetched with the same bearer token.
    """

    def __init__(self, api_url: str, token: str = "", *, timeout_s: float = 30.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout_s = timeout_s
        self.session: Optional[Any] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self.session = requests.Session()
        if self.token:
            self.session.headers["Authorization"] = f"Bearer {self.token}"

    def stop(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None

    def restart(self) -> None:
        self.stop()
        self.start()

    def _session(self) -> Any:
        if self.session is None:
            self.start()
        return self.session

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def fetch_attachment(self, url: str) -> str:
        try:
            res = self._session().get(url, timeout=self.timeout_s)
            res.raise_for_status()
        except requests.RequestException as exc:
            raise FrontendError(f"Could not download the attachment: {exc}") from exc
        return res.text

    def post_message(self, channel: str, text: str) -> None:
        try:
            res = self._session().post(
                f"{self.api_url}/messages",
                json={"channel": channel, "text": text},
                timeout=self.timeout_s,
            )
            res.raise_for_status()
        except requests.RequestException as exc:
            raise FrontendError(f"Could not post message: {exc}") from exc

    def deliver_file(self, channel: str, path: Path, name: str = "", comment: str = "") -> None:
        """Upload ``path`` and delete it locally, whether or not the upload worked."""

        path = Path(path)
        try:
            with path.open("rb") as fh:
                res = self._session().post(
                    f"{self.api_url}/files",
                    data={"channel": channel, "filename": name or path.name, "initial_comment": comment},
                    files={"file": (name or path.name, fh)},
                    timeout=self.timeout_s,
                )
            res.raise_for_status()
        except (OSError, requests.RequestException) as exc:
            raise DeliveryError(f"Could not deliver {path.name}: {exc}") from exc
        finally:
            _remove(path)
        logger.info("Delivered %s to %s", path.name, channel)


def _remove(path: Path) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError:
        logger.exception("Could not remove %s", path)


__all__ = ["HttpChatFrontend"]
