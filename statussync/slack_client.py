# statussync/slack_client.py
import logging
from typing import Optional, Tuple

import requests

from .errors import SlackApiError

logger = logging.getLogger(__name__)

API_BASE = "https://slack.com/api"
TIMEOUT_SECONDS = 10

# Highest resolution first.
PROFILE_IMAGE_FIELDS = (
    "image_original",
    "image_1024",
    "image_512",
    "image_192",
    "image_72",
    "image_48",
    "image_32",
    "image_24",
)


def detect_image_type(data: bytes) -> Optional[Tuple[str, str]]:
    """Return (extension, mime type) for PNG/JPEG data, None for anything else."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png", "image/png"
    if data.startswith(b"\xff\xd8"):
        return "jpg", "image/jpeg"
    return None


def pick_photo_url(profile: dict) -> Optional[str]:
    for field in PROFILE_IMAGE_FIELDS:
        url = profile.get(field)
        if url:
            return url
    return None


class SlackClient:
    """Thin wrapper over the Slack Web API calls we need.

    Every method raises SlackApiError on failure; ``error.code`` is the Slack
    error string (or ``http_<status>`` / ``request_failed`` for transport
    problems).
    """

    def __init__(self, token: str, session: Optional[requests.Session] = None, timeout: float = TIMEOUT_SECONDS):
        self._token = token
        self._http = session or requests.Session()
        self._timeout = timeout

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self._token}"}

    def _call(self, method: str, *, json_body: Optional[dict] = None, files: Optional[dict] = None,
              http_method: str = "POST") -> dict:
        url = f"{API_BASE}/{method}"
        try:
            if http_method == "GET":
                r = self._http.get(url, headers=self._headers(), timeout=self._timeout)
            elif files is not None:
                r = self._http.post(url, headers=self._headers(), files=files, timeout=self._timeout)
            else:
                r = self._http.post(url, headers=self._headers(), json=json_body or {}, timeout=self._timeout)
        except requests.RequestException as e:
            raise SlackApiError("request_failed", str(e)) from e

        if r.status_code in (401, 403):
            raise SlackApiError(f"http_{r.status_code}")
        try:
            data = r.json()
        except ValueError as e:
            raise SlackApiError(f"http_{r.status_code}", f"unparseable response from {method}") from e

        if not data.get("ok"):
            raise SlackApiError(data.get("error") or "unknown_error")
        return data

    def set_status(self, text: str, emoji: str) -> None:
        self._call(
            "users.profile.set",
            json_body={
                "profile": {
                    "status_text": text,
                    "status_emoji": emoji,
                    "status_expiration": 0,
                }
            },
        )

    def get_profile_photo_url(self) -> Optional[str]:
        data = self._call("users.profile.get", http_method="GET")
        return pick_photo_url(data.get("profile") or {})

    def download(self, url: str) -> bytes:
        try:
            r = self._http.get(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise SlackApiError("request_failed", str(e)) from e
        if r.status_code != 200:
            raise SlackApiError(f"http_{r.status_code}", f"download failed for {url}")
        return r.content

    def set_photo(self, data: bytes) -> None:
        kind = detect_image_type(data)
        if kind:
            ext, mime = kind
            files = {"image": (f"photo.{ext}", data, mime)}
        else:
            files = {"image": ("photo", data, "application/octet-stream")}
        self._call("users.setPhoto", files=files)
        logger.debug("[Slack] Uploaded %d bytes (%s)", len(data), kind[1] if kind else "unknown type")
