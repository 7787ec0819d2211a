from __future__ import annotations

# html2figma/app/convert.py
from typing import Any, Dict, List, Optional

from celery.result import AsyncResult
from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel, Field

from html2figma.models import InvalidDocumentError, load_document
from html2figma.tasks.extractor import VIEWPORT_HEIGHT, VIEWPORT_WIDTH
from html2figma.tasks.jobs import celery_app
from html2figma.tasks.materializer import MaterializeError, materialize
from html2figma.tasks.scene import InMemorySceneHost, to_dict
from html2figma.tasks.schemas import build_ir_schema

router = APIRouter(prefix="/convert", tags=["convert"])

# ==== Scheman ====

class ExtractRequest(BaseModel):
    url: str = Field(..., min_length=1, description="Sidan som ska renderas (http/https)")
    width: int = Field(default=VIEWPORT_WIDTH, ge=1, le=10000)
    height: int = Field(default=VIEWPORT_HEIGHT, ge=1, le=10000)
    embed_images: bool = True

class TaskStartResponse(BaseModel):
    task_id: str

class TaskStatusResponse(BaseModel):
    status: str
    result: Optional[Dict[str, Any]] = None
    progress: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

class MaterializeResponse(BaseModel):
    layers: int
    total: int
    scene: Dict[str, Any]

# ==== Endpoints ====

@router.post("/extract", response_model=TaskStartResponse)
def start_extract(req: ExtractRequest):
    """
    Köar extrahering av en URL. Returnerar Celery task_id.
    """
    if not req.url.lower().startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="url måste börja med http:// eller https://")
    try:
        task = celery_app.send_task("html2figma.extract_page", kwargs=req.model_dump())
    except Exception as e:  # pragma: no cover - broker nere
        raise HTTPException(status_code=500, detail=f"Kunde inte queue:a extract_page: {e}")
    return TaskStartResponse(task_id=task.id)

@router.get("/schema")
def ir_schema() -> Dict[str, Any]:
    """JSON Schema för design.json."""
    return build_ir_schema()

@router.post("/materialize", response_model=MaterializeResponse)
async def materialize_now(document: Dict[str, Any] = Body(...)):
    """
    Bygger design.json direkt i en scen i minnet och returnerar scenträdet.
    Ogiltigt dokument → 400 innan något byggs.
    """
    try:
        doc = load_document(document)
    except InvalidDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    host = InMemorySceneHost()
    try:
        result = await materialize(doc, host)
    except MaterializeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return MaterializeResponse(layers=result.layers, total=result.total, scene=to_dict(result.root))

@router.post("/materialize/async", response_model=TaskStartResponse)
def start_materialize(document: Dict[str, Any] = Body(...)):
    """Som /materialize men körs i Celery; följ förloppet via GET /convert/{task_id}."""
    try:
        load_document(document)
    except InvalidDocumentError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        task = celery_app.send_task("html2figma.materialize_document", args=[document])
    except Exception as e:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"Kunde inte queue:a materialize_document: {e}")
    return TaskStartResponse(task_id=task.id)

@router.get("/{task_id}", response_model=TaskStatusResponse)
def get_task(task_id: str):
    """
    Hämtar status, förlopp samt resultat (om klart).
    """
    res: AsyncResult = AsyncResult(task_id, app=celery_app)
    state = res.state
    if state == "PROGRESS":
        info = res.info if isinstance(res.info, dict) else None
        return TaskStatusResponse(status=state, progress=info)
    if state == "FAILURE":
        # res.result kan vara exception-objekt
        err_str = str(res.result) if res.result else "Okänt fel"
        return TaskStatusResponse(status="FAILURE", error=err_str)
    if state == "SUCCESS":
        data = res.result if isinstance(res.result, dict) else {}
        return TaskStatusResponse(status="SUCCESS", result=data)
    # PENDING, STARTED, RETRY m.fl.
    return TaskStatusResponse(status=state)


__all__: List[str] = ["router"]
