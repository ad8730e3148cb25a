from langchain_google_genai import ChatGoogleGenerativeAI
from langchain_core.messages import BaseMessage
from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential
from typing import Any, List, Optional
import logging
from study_companion.config import Config

logger = logging.getLogger(__name__)

FALLBACK_RESPONSE = "죄송합니다. AI 튜터 연결에 문제가 발생했습니다."

class GeminiLLMWrapper:
    def __init__(self, llm: Optional[Any] = None, max_retries: int = Config.LLM_MAX_RETRIES, retry_wait=None):
        """Wrap a Gemini chat model; `llm` and `retry_wait` are injectable for tests."""
        self.llm = llm or ChatGoogleGenerativeAI(
            google_api_key=Config.GEMINI_API_KEY,
            model=Config.GEMINI_MODEL,
            temperature=Config.GEMINI_TEMPERATURE,
            max_output_tokens=Config.GEMINI_MAX_OUTPUT_TOKENS,
        )
        self.max_retries = max_retries
        # 1s, 2s, 4s ... between attempts
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=8)

    async def generate_response(
        self,
        messages: List[BaseMessage],
        **kwargs
    ) -> str:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=self.retry_wait,
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    response = await self.llm.ainvoke(messages, **kwargs)
            return self._content_text(response.content)
        except Exception as e:
            logger.error(f"LLM generation error after {self.max_retries} attempts: {e}")
            return FALLBACK_RESPONSE

    @staticmethod
    def _content_text(content: Any) -> str:
        # newer chat models may answer with a list of content blocks
        if isinstance(content, list):
            parts = [block.get("text", "") if isinstance(block, dict) else str(block) for block in content]
            return "".join(parts)
        return content or ""
