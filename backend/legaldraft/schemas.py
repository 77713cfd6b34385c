from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class Party(BaseModel):
    name: str = ""
    id_number: str = Field("", description="Emirates ID, Iqama, passport or trade licence number")
    nationality: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""


class Parties(BaseModel):
    party_a: Party = Field(default_factory=Party)
    party_b: Party = Field(default_factory=Party)


class GenerationRequest(BaseModel):
    document_type: str = Field(..., description="Document type key, or 'custom' for free-form documents")
    language: str = Field("en", description="en, ar, ur or bilingual")
    country: str = Field("ae", description="GCC country code")
    jurisdiction: Optional[str] = Field(None, description="Optional sub-jurisdiction, e.g. 'DIFC'")
    parties: Parties = Field(default_factory=Parties)
    details: Dict[str, Any] = Field(default_factory=dict, description="Amounts, dates, addresses, custom terms")
    chat_history: List[ChatMessage] = Field(default_factory=list)
    custom_title: Optional[str] = None
    custom_description: Optional[str] = None


class RenderRequest(BaseModel):
    language: str = "en"
    values: Dict[str, str] = Field(default_factory=dict)
    flags: Dict[str, bool] = Field(default_factory=dict)


class StartSessionRequest(BaseModel):
    request: GenerationRequest


class ChatRequest(BaseModel):
    message: str


class SetModeRequest(BaseModel):
    mode: Literal["direct", "ai_assisted"]


class DirectEditRequest(BaseModel):
    content: str


class InsertMarkupRequest(BaseModel):
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    before: str
    after: str = ""


class AiEditRequest(BaseModel):
    instruction: Optional[str] = Field(None, description="Natural-language edit instruction")
    quick_action: Optional[str] = Field(None, description="Quick action key used to pre-fill the instruction")
