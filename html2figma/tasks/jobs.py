from __future__ import annotations
"""
Celery-worker: URL → design.json, och design.json → scen (i minnet).

- html2figma.extract_page: renderar sidan med Playwright och returnerar IR som dict.
- html2figma.materialize_document: bygger IR i InMemorySceneHost och
  rapporterar PROGRESS (processed/total) medan lagren skapas.

Start:
    celery -A html2figma.tasks.jobs worker --loglevel=INFO
"""

import asyncio
import logging
import os
from typing import Any, Dict

from celery import Celery

from ..models import dump_document
from .extractor import VIEWPORT_HEIGHT, VIEWPORT_WIDTH, extract
from .materializer import materialize
from .scene import InMemorySceneHost, to_dict

log = logging.getLogger("html2figma/jobs")

# ─────────────────────────────────────────────────────────
# Miljö & konfiguration
# ─────────────────────────────────────────────────────────

BROKER_URL = (os.getenv("CELERY_BROKER_URL") or "redis://redis:6379/0").strip()
RESULT_BACKEND = (os.getenv("CELERY_RESULT_BACKEND") or BROKER_URL).strip()

# ─────────────────────────────────────────────────────────
# Celery-app
# ─────────────────────────────────────────────────────────

app = Celery("html2figma", broker=BROKER_URL, backend=RESULT_BACKEND)
app.conf.broker_connection_retry_on_startup = True
app.conf.broker_connection_timeout = 3
app.conf.redis_socket_timeout = 3
app.conf.task_track_started = True
celery_app: Celery = app


def progress_meta(processed: int, total: int) -> Dict[str, Any]:
    pct = round(processed * 100 / total) if total else 0
    return {"processed": processed, "total": total, "percent": pct}


# ─────────────────────────────────────────────────────────
# Tasks
# ─────────────────────────────────────────────────────────

@app.task(name="html2figma.extract_page")
def extract_page_task(
    *,
    url: str,
    width: int = VIEWPORT_WIDTH,
    height: int = VIEWPORT_HEIGHT,
    embed_images: bool = True,
) -> Dict[str, Any]:
    log.info("extract_page", extra={"url": url, "width": width, "height": height})
    doc = extract(url, width, height, embed_images=embed_images)
    return dump_document(doc)


@app.task(name="html2figma.materialize_document", bind=True)
def materialize_document_task(self, document: Dict[str, Any]) -> Dict[str, Any]:
    def _report(processed: int, total: int) -> None:
        self.update_state(state="PROGRESS", meta=progress_meta(processed, total))

    host = InMemorySceneHost()
    result = asyncio.run(materialize(document, host, reporter=_report))
    return {"layers": result.layers, "total": result.total, "scene": to_dict(result.root)}
