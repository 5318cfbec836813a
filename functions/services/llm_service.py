"""LLM service for DesignFlow.

Provides LangChain/OpenAI integration for the vision model used by scene
analysis.
"""

import json
from typing import Dict, Any, Optional, List, Union

import structlog
from langchain_openai import ChatOpenAI
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from config.settings import settings
from config.errors import DesignFlowError, ErrorCode

logger = structlog.get_logger()

JSON_INSTRUCTION = (
    "IMPORTANT: You MUST respond with valid JSON only. "
    "No markdown, no explanation, just JSON."
)


class LLMService:
    """Service for LLM operations using LangChain.

    Provides a wrapper around ChatOpenAI with token tracking,
    image + text messages and error classification.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None,
        max_tokens: Optional[int] = None
    ):
        """Initialize LLMService.

        Args:
            model: Model name (default from settings).
            temperature: Temperature (default from settings).
            api_key: OpenAI API key (default from settings).
            max_tokens: Default response limit (default from settings).
        """
        self.model = model or settings.vision_model
        self.temperature = temperature if temperature is not None else settings.vision_temperature
        self.api_key = api_key or settings.openai_api_key
        self.max_tokens = max_tokens or settings.vision_max_tokens

        self._client: Optional[ChatOpenAI] = None
        self._total_tokens_used = 0

    @property
    def client(self) -> ChatOpenAI:
        """Get LangChain ChatOpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key
            )
        return self._client

    @property
    def total_tokens_used(self) -> int:
        """Get total tokens used across all calls."""
        return self._total_tokens_used

    async def generate(
        self,
        messages: List[BaseMessage],
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response from the LLM.

        Args:
            messages: List of LangChain messages.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and token usage.

        Raises:
            DesignFlowError: If LLM call fails.
        """
        try:
            response = await self.client.ainvoke(
                messages,
                max_tokens=max_tokens or self.max_tokens
            )
        except Exception as e:
            raise classify_llm_error(e) from e

        tokens_used = 0
        if hasattr(response, "response_metadata"):
            usage = response.response_metadata.get("token_usage", {}) or {}
            tokens_used = usage.get("total_tokens", 0)
            self._total_tokens_used += tokens_used

        content = _content_text(response.content)
        logger.info(
            "llm_generated",
            model=self.model,
            tokens_used=tokens_used,
            content_length=len(content)
        )

        return {
            "content": content,
            "tokens_used": tokens_used
        }

    async def generate_with_system_prompt(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        image_base64: Optional[str] = None,
        image_mime_type: str = "image/jpeg"
    ) -> Dict[str, Any]:
        """Generate a response with system prompt and optional image.

        Args:
            system_prompt: System prompt for context.
            user_message: User message/query.
            max_tokens: Optional max tokens for response.
            image_base64: Optional base64 image sent ahead of the text.
            image_mime_type: MIME type of the image.

        Returns:
            Dict with content and token usage.
        """
        messages = [
            SystemMessage(content=system_prompt),
            build_user_message(user_message, image_base64, image_mime_type)
        ]
        return await self.generate(messages, max_tokens)

    async def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None,
        image_base64: Optional[str] = None,
        image_mime_type: str = "image/jpeg"
    ) -> Dict[str, Any]:
        """Generate a JSON response.

        Adds JSON formatting instructions to the system prompt.

        Returns:
            Dict with parsed JSON content and token usage.

        Raises:
            DesignFlowError: If response is not valid JSON.
        """
        result = await self.generate_with_system_prompt(
            f"{system_prompt}\n\n{JSON_INSTRUCTION}",
            user_message,
            max_tokens,
            image_base64=image_base64,
            image_mime_type=image_mime_type
        )

        try:
            parsed = parse_json_content(result["content"])
        except json.JSONDecodeError as e:
            raise DesignFlowError(
                code=ErrorCode.LLM_ERROR,
                message="LLM did not return valid JSON",
                details={
                    "parse_error": str(e),
                    "raw_content": result["content"][:500]
                }
            )

        return {
            "content": parsed,
            "tokens_used": result["tokens_used"]
        }


def build_user_message(
    text: str,
    image_base64: Optional[str] = None,
    image_mime_type: str = "image/jpeg"
) -> HumanMessage:
    """Human message with the image first, then the text."""
    if not image_base64:
        return HumanMessage(content=text)
    return HumanMessage(content=[
        {
            "type": "image_url",
            "image_url": {"url": f"data:{image_mime_type};base64,{image_base64}"}
        },
        {"type": "text", "text": text}
    ])


def parse_json_content(content: str) -> Any:
    """Parse JSON, tolerating a surrounding markdown code fence."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    if content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return json.loads(content.strip())


def classify_llm_error(error: Exception) -> DesignFlowError:
    """Map a provider exception onto an LLM error code."""
    if isinstance(error, DesignFlowError):
        return error

    error_msg = str(error)
    lowered = error_msg.lower()
    details = {"original_error": error_msg}

    if "rate_limit" in lowered or "rate limit" in lowered or "429" in lowered:
        return DesignFlowError(
            code=ErrorCode.LLM_RATE_LIMIT,
            message="OpenAI rate limit exceeded",
            details=details
        )
    if (
        "401" in lowered
        or "authentication" in lowered
        or "invalid api key" in lowered
        or "incorrect api key" in lowered
    ):
        return DesignFlowError(
            code=ErrorCode.LLM_AUTH_FAILED,
            message="OpenAI authentication failed",
            details=details
        )
    if "context_length" in lowered or "maximum context" in lowered:
        return DesignFlowError(
            code=ErrorCode.LLM_CONTEXT_TOO_LONG,
            message="Input too long for model context",
            details=details
        )
    return DesignFlowError(
        code=ErrorCode.LLM_ERROR,
        message=f"LLM generation failed: {error_msg}",
        details=details
    )


def _content_text(content: Union[str, List[Any]]) -> str:
    """Flatten message content blocks to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
