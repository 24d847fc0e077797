from pydantic import AliasChoices, BaseModel, Field
from typing import Any, List, Optional

# REQUESTS
# url is left untyped so that a missing or non-string value reaches the
# share link validator and gets its "URL is required." message
class ShareImportPreviewRequest(BaseModel):
    url: Any = Field(default=None, validation_alias=AliasChoices("url", "shareUrl"))

class ShareLinkValidateRequest(BaseModel):
    url: Any = Field(default=None, validation_alias=AliasChoices("url", "shareUrl"))

# RESPONSES
class RecipeCandidateResponse(BaseModel):
    import_index: int = Field(serialization_alias="importIndex")
    title: str
    raw_text: str = Field(serialization_alias="rawText")
    suggested_parent_index: Optional[int] = Field(default=None, serialization_alias="suggestedParentIndex")

class ShareImportPreviewResponse(BaseModel):
    title: str
    candidates: List[RecipeCandidateResponse]

class ShareLinkValidateResponse(BaseModel):
    valid: bool
    error: Optional[str] = None
