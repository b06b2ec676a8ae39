"""
API Request/Response Schemas.

Pydantic models for the /narrate endpoint. Field presence and blankness
are checked by the service validators rather than by pydantic, so a
missing title yields the same 400 body as a blank one.

Example Request:
    {
        "title": "Card A",
        "campaign": "Camp1",
        "text": "Hello world",
        "voiceId": "21m00Tcm4TlvDq8ikWAM"
    }
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class NarrateRequestBody(BaseModel):
    """
    Body of POST /narrate.

    Attributes:
        title: Card title, used only for the suggested filename.
        campaign: Campaign name, used only for the suggested filename.
        text: Text to narrate.
        voiceId: Optional voice override (letters, digits, '_' and '-').
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(default=None, description="Card title")
    campaign: str | None = Field(default=None, description="Campaign name")
    text: str | None = Field(default=None, description="Text to narrate")
    voice_id: str | None = Field(
        default=None,
        alias="voiceId",
        description="Voice identifier (defaults to the configured voice)",
    )


class NarrateResponse(BaseModel):
    """200 body. `bytes` is present only when the audio was generated by this request."""
    ok: bool = True
    id: str = Field(..., description="12-hex content identifier")
    url: str = Field(..., description="Public or signed URL of the MP3")
    filename: str = Field(..., description="Suggested download filename")
    bytes: int | None = Field(default=None, description="Size of newly generated audio")


class ProcessingResponse(BaseModel):
    """202 body: synthesis outlived its deadline; resubmit the same payload."""
    ok: bool = False
    status: str = "processing"
    id: str
    hint: str


class ErrorResponse(BaseModel):
    """4xx/5xx body."""
    ok: bool = False
    error: str
    code: str
    detail: str | None = None
