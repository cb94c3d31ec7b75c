"""
DxReasoning — REST API

Запуск:
    uvicorn dx_reasoning.api.app:app --port 8000
"""

from .app import STATUS_BY_REASON, create_app, refusal_response


__all__ = [
    "STATUS_BY_REASON",
    "create_app",
    "refusal_response",
]
