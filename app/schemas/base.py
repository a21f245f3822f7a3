from pydantic import BaseModel
from typing import Any, Dict, Optional, Generic, TypeVar

T = TypeVar('T')


class Envelope(BaseModel, Generic[T]):
    status: str
    data: Optional[T] = None
    error: Optional[str] = None


class ErrorEnvelope(BaseModel):
    """Body of every error response"""
    status: str = "error"
    error: str
    error_code: str
    details: Optional[Dict[str, Any]] = None
    request_id: Optional[str] = None
