from dataclasses import dataclass
from typing import Optional, Dict

import requests

from .config import ImageConfig
from .client import get_session
from .logger import get_logger

logger = get_logger()

@dataclass(slots=True)
class PublishResult:
    """Outcome of a publish attempt: a public URL, or the reason it failed."""
    url: Optional[str] = None
    reason: Optional[str] = None
    status: Optional[int] = None
    body: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None

    def describe(self) -> str:
        parts = [self.reason or "unknown"]
        if self.status is not None:
            parts.append(f"status={self.status}")
        if self.body:
            parts.append(f"body={self.body[:200]!r}")
        if self.error:
            parts.append(f"error={self.error}")
        return ", ".join(parts)


def _looks_like_url(text: str) -> bool:
    return text.startswith("http://") or text.startswith("https://")


class ImagePublisher:
    """Re-hosts images on a public image host (catbox-style multipart API)."""

    def __init__(self, img_config: ImageConfig, session: Optional[requests.Session] = None):
        self.img_config = img_config
        self.upload_url = str(img_config.upload_url)
        self.session = session or get_session()

    def _fetch(self, source_url: str, headers: Optional[Dict[str, str]]) -> requests.Response:
        return self.session.get(source_url, headers=headers, timeout=self.img_config.fetch_timeout)

    def _content_type(self, response: requests.Response) -> str:
        content_type = response.headers.get("Content-Type", "")
        content_type = content_type.split(";", 1)[0].strip()
        return content_type or self.img_config.default_content_type

    def _upload(self, image_bytes: bytes, content_type: str) -> requests.Response:
        data = {"reqtype": "fileupload"}
        files = {"fileToUpload": (self.img_config.upload_filename, image_bytes, content_type)}
        return self.session.post(self.upload_url, data=data, files=files, timeout=self.img_config.upload_timeout)

    def publish(self, source_url: str, headers: Optional[Dict[str, str]] = None) -> PublishResult:
        """Downloads the image at source_url and uploads it to the image host."""
        try:
            r = self._fetch(source_url, headers)
            if not r.ok:
                return PublishResult(reason="fetch_failed", status=r.status_code, body=r.text[:500])

            image_bytes = r.content
            if not image_bytes:
                return PublishResult(reason="empty_payload", status=r.status_code)

            content_type = self._content_type(r)
            logger.debug(f"Fetched {len(image_bytes)} bytes ({content_type}) from {source_url}")

            up = self._upload(image_bytes, content_type)
            body = up.text.strip()
            if up.ok and _looks_like_url(body):
                return PublishResult(url=body, status=up.status_code)
            return PublishResult(reason="bad_response", status=up.status_code, body=body)
        except requests.RequestException as e:
            return PublishResult(reason="network_error", error=str(e))
        except Exception as e:
            logger.debug("Unexpected error while publishing image", exc_info=True)
            return PublishResult(reason="network_error", error=f"{type(e).__name__}: {e}")
