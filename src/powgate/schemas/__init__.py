"""
Pydantic schemas for gateway request/response bodies.
"""

from .submission import ContentBlob, ContentEntry, SubmissionRecord, WireSchema

__all__ = [
    "ContentBlob", "ContentEntry", "SubmissionRecord", "WireSchema",
]
