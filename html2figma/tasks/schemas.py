# html2figma/tasks/schemas.py
from __future__ import annotations

from ..models import IRDocument


def build_ir_schema() -> dict:
    """JSON Schema för design.json (camelCase, som på tråden)."""
    schema = IRDocument.model_json_schema(by_alias=True)
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        **schema,
        "title": "DesignDocument",
    }
