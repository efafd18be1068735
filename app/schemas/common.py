"""
Common Schemas

The uniform result envelope every endpoint returns.
"""

from typing import Generic, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

T = TypeVar("T")


class ActionResult(BaseModel, Generic[T]):
    """
    `{success, data?, error?}` envelope.

    `code` carries the machine-readable error kind (NOT_FOUND, EXPIRED, ...)
    next to the human-readable `error` message.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ActionResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: Optional[str] = None) -> "ActionResult[T]":
        return cls(success=False, error=error, code=code)


class CreatedResponse(BaseModel):
    id: UUID
