from typing import Any, Callable, List, Optional, Sequence
import logging

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from chatty.core.config import settings
from chatty.models.chats import MessageRole
from chatty.schemas.chat import Generation, Turn

logger = logging.getLogger(__name__)

ChatModelFactory = Callable[[str, str], BaseChatModel]

class ModelGatewayError(Exception):
    """Any failure to obtain a generation. Transient and permanent errors are not told apart."""

def build_chat_model(model_name: str, api_key: str) -> BaseChatModel:
    # Retries are left to the caller; a failed call falls back immediately
    return ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=api_key,
        max_retries=0,
    )

def to_provider_messages(turns: Sequence[Turn], system_prompt: Optional[str] = None) -> List[BaseMessage]:
    """
    Translates stored turns into the provider's message list.

    The last turn is sent as the live user message; earlier turns become
    history, with `user` kept as-is and every other role sent as the model.
    Blank history turns are dropped since the provider rejects them.
    """
    if not turns:
        raise ModelGatewayError("No messages provided")

    latest = turns[-1]
    if not latest.content or not latest.content.strip():
        raise ModelGatewayError("Latest message content is empty")

    messages: List[BaseMessage] = []
    if system_prompt:
        messages.append(SystemMessage(content=system_prompt))

    for turn in turns[:-1]:
        if not turn.content or not turn.content.strip():
            continue
        if turn.role == MessageRole.USER.value:
            messages.append(HumanMessage(content=turn.content))
        else:
            messages.append(AIMessage(content=turn.content))

    messages.append(HumanMessage(content=latest.content))
    return messages

def _response_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type", "text") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)

class GenerationCall:
    """A single-use handle bound to one model and one system prompt."""

    def __init__(self, llm: BaseChatModel, model_name: str, system_prompt: Optional[str]):
        self.llm = llm
        self.model_name = model_name
        self.system_prompt = system_prompt

    async def __call__(self, turns: Sequence[Turn]) -> Generation:
        messages = to_provider_messages(turns, self.system_prompt)
        logger.info(f"Sending {len(messages)} messages via Gemini ({self.model_name})")
        try:
            response = await self.llm.ainvoke(messages)
        except Exception as e:
            raise ModelGatewayError(f"{type(e).__name__}: {e}") from e

        usage = getattr(response, "usage_metadata", None) or {}
        return Generation(
            content=_response_text(response.content),
            # Zero when the provider reports no usage
            token_count=usage.get("total_tokens") or 0,
            model=self.model_name,
        )

class ModelGateway:
    def __init__(
        self,
        model_name: str,
        api_key: Optional[str],
        mock_mode: bool = False,
        model_factory: ChatModelFactory = build_chat_model,
    ):
        self.model_name = model_name
        self.api_key = api_key
        self.mock_mode = mock_mode
        self.model_factory = model_factory

    @property
    def enabled(self) -> bool:
        return bool(self.api_key) and not self.mock_mode

    def session(self, system_prompt: Optional[str] = None) -> GenerationCall:
        """Builds a fresh call handle; nothing is shared between requests."""
        if not self.enabled:
            raise ModelGatewayError("Model gateway is disabled")
        try:
            llm = self.model_factory(self.model_name, self.api_key)
        except Exception as e:
            raise ModelGatewayError(f"Could not create model client: {e}") from e
        return GenerationCall(llm, self.model_name, system_prompt)

    async def generate(self, turns: Sequence[Turn], system_prompt: Optional[str] = None) -> Generation:
        return await self.session(system_prompt)(turns)

def get_model_gateway() -> ModelGateway:
    return ModelGateway(
        model_name=settings.GEMINI_MODEL,
        api_key=settings.GEMINI_API_KEY,
        mock_mode=settings.AI_MOCK_MODE,
    )
