# html2figma/tasks/assets.py
from __future__ import annotations

from io import BytesIO
import base64
import binascii
import logging
import os
import random
import re
from time import perf_counter, sleep
from typing import Any, Dict, Optional
from urllib.parse import unquote_to_bytes, urljoin, urlparse

import requests
from requests.exceptions import RequestException
from PIL import Image

from ..models import FrameNode, ImageNode, iter_nodes

log = logging.getLogger("html2figma/assets")

# ── Konfiguration via env ───────────────────────────────────────────────────
IMG_FETCH_ATTEMPTS = int(os.getenv("IMG_FETCH_ATTEMPTS", "3"))
IMG_FETCH_BACKOFF_S = float(os.getenv("IMG_FETCH_BACKOFF_S", "0.2"))     # 0.2 → 0.4 → 0.8 …
IMG_FETCH_TIMEOUT_S = float(os.getenv("IMG_FETCH_TIMEOUT_S", "10"))

USER_AGENT = os.getenv("IMG_FETCH_USER_AGENT", "html2figma/0.4 (+image-embed)")

# Format som designverktyget läser direkt; allt annat konverteras till PNG
PASSTHROUGH_FORMATS = {"PNG", "JPEG", "GIF"}


class ImageAssetError(ValueError):
    """Bilden gick inte att hämta eller avkoda."""


# ── Hjälpare ────────────────────────────────────────────────────────────────
def _should_retry_status(status: int) -> bool:
    return status == 429 or (500 <= status < 600)


def _sleep_backoff(base: float, attempt: int) -> None:
    t = base * (2 ** (attempt - 1))
    jitter = t * 0.25 * (random.random() - 0.5)  # ±12.5%
    sleep(max(0.0, t + jitter))


def get_with_retries(
    url: str,
    *,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = IMG_FETCH_TIMEOUT_S,
    attempts: int = IMG_FETCH_ATTEMPTS,
    backoff_s: float = IMG_FETCH_BACKOFF_S,
) -> requests.Response:
    """GET med exponentiell backoff på nätverksfel, 429 och 5xx."""
    last_exc: Optional[Exception] = None
    r: Optional[requests.Response] = None
    for i in range(1, max(1, attempts) + 1):
        try:
            r = requests.get(url, headers=headers, timeout=timeout)
            if _should_retry_status(r.status_code) and i < attempts:
                _sleep_backoff(backoff_s, i)
                continue
            return r
        except RequestException as e:
            last_exc = e
            if i < attempts:
                _sleep_backoff(backoff_s, i)
                continue
            break
    if last_exc:
        raise last_exc
    return r  # type: ignore[return-value]


_DATA_URL = re.compile(r"^data:([^,]*?),(.*)$", re.IGNORECASE | re.DOTALL)


def decode_data_url(url: str) -> bytes:
    """data:[<mime>][;base64],<payload> → råa bytes."""
    m = _DATA_URL.match(url.strip())
    if not m:
        raise ImageAssetError("Ogiltig data-URL")
    meta, payload = m.group(1), m.group(2)
    if ";base64" in meta.lower():
        try:
            return base64.b64decode(payload)
        except (binascii.Error, ValueError) as e:
            raise ImageAssetError(f"data-URL är inte giltig base64: {e}") from e
    return unquote_to_bytes(payload)


def normalize_image_bytes(raw: bytes) -> bytes:
    """
    PNG/JPEG/GIF passerar orörda. Övriga rasterformat (WebP, BMP, TIFF …)
    konverteras till PNG. Oläsbar data → ImageAssetError.
    """
    try:
        im = Image.open(BytesIO(raw))
        fmt = (im.format or "").upper()
        im.load()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageAssetError(f"Kunde inte avkoda bild: {e}") from e

    if fmt in PASSTHROUGH_FORMATS:
        return raw

    log.info("Converting image to PNG", extra={"format": fmt, "size": im.size})
    if im.mode not in ("RGB", "RGBA"):
        im = im.convert("RGBA")
    out = BytesIO()
    im.save(out, format="PNG", optimize=True)
    return out.getvalue()


def fetch_image_bytes(url: str, base_url: Optional[str] = None) -> bytes:
    """Relativa URL:er löses mot base_url. data: avkodas lokalt, http(s) hämtas."""
    if not url:
        raise ImageAssetError("Tom bild-URL")
    if url.lower().startswith("data:"):
        return decode_data_url(url)

    absolute = urljoin(base_url, url) if base_url else url
    scheme = urlparse(absolute).scheme.lower()
    if scheme not in ("http", "https"):
        raise ImageAssetError(f"Schemat stöds inte: {scheme or '(saknas)'}")

    t0 = perf_counter()
    r = get_with_retries(absolute, headers={"User-Agent": USER_AGENT})
    dt = (perf_counter() - t0) * 1000
    log.debug("Image fetch", extra={"url": absolute, "status": r.status_code, "ms": round(dt, 1)})

    if r.status_code != 200:
        raise ImageAssetError(f"HTTP {r.status_code} för {absolute}")
    if not r.content:
        raise ImageAssetError(f"Tomt svar för {absolute}")
    return r.content


def fetch_image_base64(url: str, base_url: Optional[str] = None) -> Optional[str]:
    """Hämta + normalisera + base64. Fel loggas och ger None; URL:en ligger kvar i IR."""
    try:
        raw = fetch_image_bytes(url, base_url)
        data = normalize_image_bytes(raw)
    except (RequestException, ImageAssetError) as e:
        log.warning("Could not embed image", extra={"url": url[:200], "err": str(e)})
        return None
    return base64.b64encode(data).decode("ascii")


def embed_images(root: Any, base_url: Optional[str] = None) -> int:
    """
    Bädda in bilddata i IR-trädet (muterar noderna).
      • IMAGE: image_url → image_base64
      • FRAME: background_image_url → background_image_base64
    Returnerar antal inbäddade bilder.
    """
    embedded = 0
    failed = 0
    for node in iter_nodes(root):
        if isinstance(node, ImageNode) and node.image_url and not node.image_base64:
            b64 = fetch_image_base64(node.image_url, base_url)
            if b64:
                node.image_base64 = b64
                embedded += 1
            else:
                failed += 1
        elif isinstance(node, FrameNode) and node.background_image_url and not node.background_image_base64:
            b64 = fetch_image_base64(node.background_image_url, base_url)
            if b64:
                node.background_image_base64 = b64
                embedded += 1
            else:
                failed += 1
    log.info("Image embedding done", extra={"embedded": embedded, "failed": failed})
    return embedded


__all__ = [
    "ImageAssetError",
    "get_with_retries",
    "decode_data_url",
    "normalize_image_bytes",
    "fetch_image_bytes",
    "fetch_image_base64",
    "embed_images",
]
