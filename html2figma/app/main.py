# html2figma/app/main.py
from __future__ import annotations

"""
FastAPI-gateway för html2figma (extrahering + materialisering).

Kör:
    uvicorn html2figma.app.main:app --reload
"""

import logging
from pathlib import Path
from typing import Dict

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ── Ladda .env TIDIGT ─────────────────────────────────────────────────────
ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / ".env", override=False)

# ── Importer som läser env vid import ─────────────────────────────────────
from html2figma import __version__  # noqa: E402
from .convert import router as convert_router  # noqa: E402

# ── Logging ───────────────────────────────────────────────────────────────
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("html2figma")

# ── FastAPI + CORS ────────────────────────────────────────────────────────
app = FastAPI(title="html2figma", version=__version__)
app.add_middleware(
  CORSMiddleware,
  allow_origins=["*"],      # begränsa i prod
  allow_methods=["*"],
  allow_headers=["*"],
)

app.include_router(convert_router)

# ── Healthcheck ───────────────────────────────────────────────────────────
@app.get("/healthz")
async def healthz() -> Dict[str, str]:
  return {"status": "ok"}

# ── Logga alla rutter vid uppstart (hjälper felsöka 404) ──────────────────
@app.on_event("startup")
async def _log_routes() -> None:  # pragma: no cover
  lines = []
  for r in app.router.routes:
    methods = ",".join(sorted(getattr(r, "methods", []) or []))
    path = getattr(r, "path", "")
    name = getattr(r, "name", "")
    lines.append(f"{methods:15s} {path:40s} → {name}")
  logger.info("Registrerade rutter:\n" + "\n".join(lines))
