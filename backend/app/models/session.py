from pydantic import BaseModel, ConfigDict, Field, model_serializer
from typing import List, Optional, Dict, Any, Literal
from enum import Enum

BINARY_PART_KEYS = ("inline_data", "inlineData", "file_data", "fileData")


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Part(BaseModel):
    """
    One content part. Only `text` is interpreted; everything else
    (inline_data, functionCall, ...) is carried through untouched.
    """
    model_config = ConfigDict(extra="allow")

    text: Optional[str] = None

    @model_serializer(mode="wrap")
    def _drop_missing_text(self, handler):
        data = handler(self)
        if data.get("text") is None:
            data.pop("text", None)
        return data

    def is_binary(self) -> bool:
        extra = self.model_extra or {}
        return any(key in extra for key in BINARY_PART_KEYS)


class Turn(BaseModel):
    role: Literal["user", "model"]
    parts: List[Part]

    def has_binary(self) -> bool:
        return any(part.is_binary() for part in self.parts)


class Conversation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    history: List[Turn] = []
    created_at: int = Field(0, alias="createdAt")  # epoch ms, strictly increasing per record


class SessionRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: Theme = Theme.LIGHT
    model: str
    credential: Optional[str] = Field(None, alias="apiKey")
    quota: int = Field(alias="trialCount")  # -1 means unlimited
    redeemed_codes: List[str] = Field([], alias="redeemedCodes")
    conversations: Dict[str, Conversation] = {}
    active_conversation_id: Optional[str] = Field(None, alias="activeConversationId")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=False)

    @property
    def active_conversation(self) -> Optional[Conversation]:
        if self.active_conversation_id is None:
            return None
        return self.conversations.get(self.active_conversation_id)


# --- Request bodies ---

class ChatRequest(BaseModel):
    contents: List[Turn] = Field(min_length=1)
    model: Optional[str] = None
    tools: Optional[List[Dict[str, Any]]] = None


class ConversationAction(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    RENAME = "rename"
    SWITCH = "switch"


class ConversationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: ConversationAction
    conv_id: Optional[str] = Field(None, alias="convId")
    new_title: Optional[str] = Field(None, alias="newTitle")


class SettingsUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = Field(None, alias="apiKey")


class RedeemRequest(BaseModel):
    code: str = ""
