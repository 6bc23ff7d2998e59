# src/translate_relay/request.py

from pydantic import BaseModel, Field, field_validator

from translate_relay.adapters.base import Message, Role
from translate_relay.prompts.prompt import Prompt

DEFAULT_TARGET_LANGUAGE = "zh-CN"


class TranslateRequest(BaseModel):
    """Inbound translation request as sent by the extension UI."""

    text: str = Field(min_length=1)
    context: str | None = None
    target_language: str = Field(DEFAULT_TARGET_LANGUAGE, alias="targetLanguage")
    source_language: str | None = Field(None, alias="sourceLanguage")
    provider: str | None = None
    model: str | None = None

    class Config:
        extra = "ignore"
        populate_by_name = True

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value


def build_messages(request: TranslateRequest, prompt: Prompt) -> list[Message]:
    """Render the translation prompt into the message list sent upstream."""
    context_block = f'Context: "{request.context}"' if request.context else ""
    content = prompt.render(
        input_text=request.text,
        context_block=context_block,
        target_language=request.target_language or DEFAULT_TARGET_LANGUAGE,
    )
    return [Message(role=Role.USER, content=content)]
