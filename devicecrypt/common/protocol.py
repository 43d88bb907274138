"""Pydantic models: envelope, envelope info, CLI result and error."""

from pydantic import BaseModel
from typing import Optional


class EnvelopeMessage(BaseModel):
    """JSON form of an iv || ciphertext envelope."""
    type: str = "envelope"
    iv: str  # base64, 16 bytes
    ciphertext: str  # base64, whole AES blocks


class EnvelopeInfo(BaseModel):
    """Structure of an envelope, without decrypting it."""
    total_size: int
    iv_size: int
    ciphertext_size: int
    blocks: int
    block_aligned: bool
    iv_hex: Optional[str] = None


class ResultMessage(BaseModel):
    """CLI success output."""
    type: str = "result"
    op: str
    input_size: int
    output_size: int
    output: Optional[str] = None  # hex or text, when not written to a file


class ErrorMessage(BaseModel):
    """CLI failure output."""
    type: str = "error"
    op: str
    error: str
