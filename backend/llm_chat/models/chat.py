from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ChatRole = Literal["system", "user", "assistant"]

DEFAULT_MODEL = "workers-ai"
GENERIC_ERROR_MESSAGE = "Failed to process request"


class ChatMessage(BaseModel):
    role: ChatRole
    content: str


class ChatRequest(BaseModel):
    """
    Body of POST /api/chat.
    Sampling parameters are optional and only forwarded when present.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: List[ChatMessage] = []
    model: Optional[str] = DEFAULT_MODEL
    temperature: Optional[float] = None
    top_k: Optional[int] = Field(default=None, alias="topK")
    top_p: Optional[float] = Field(default=None, alias="topP")

    def sampling_params(self) -> Dict[str, Any]:
        params = {
            "temperature": self.temperature,
            "top_k": self.top_k,
            "top_p": self.top_p,
        }
        return {k: v for k, v in params.items() if v is not None}


class ErrorResponse(BaseModel):
    error: str = GENERIC_ERROR_MESSAGE
