"""
Tests for the AI tutor chat layer and the Gemini wrapper's retry handling.
"""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage
from tenacity import wait_none

from study_companion.core.exceptions import ValidationError
from study_companion.core.llm import FALLBACK_RESPONSE, GeminiLLMWrapper
from study_companion.prompts import tutor_prompts


def sent_messages(llm_wrapper):
    return llm_wrapper.generate_response.await_args.args[0]


class TestTutorChat:

    def test_plain_question(self, tutor_agent, llm_wrapper):
        reply = asyncio.run(tutor_agent.chat("미분이 뭐예요?"))

        assert reply == "튜터 답변"
        messages = sent_messages(llm_wrapper)
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[-1], HumanMessage)
        assert messages[-1].content == "미분이 뭐예요?"

    def test_history_is_replayed(self, tutor_agent, llm_wrapper):
        history = [
            {"role": "user", "content": "안녕"},
            {"role": "gemini", "content": "무엇을 도와줄까?"},
            {"role": "system", "content": "ignored"},
        ]
        asyncio.run(tutor_agent.chat("적분도 알려줘", history=history))

        messages = sent_messages(llm_wrapper)
        assert [type(m) for m in messages] == [SystemMessage, HumanMessage, AIMessage, HumanMessage]

    def test_captured_quiz_is_attached(self, tutor_agent, llm_wrapper):
        asyncio.run(tutor_agent.chat("", image_base64="aGVsbG8=", image_text="문제 1\n정답?"))

        content = sent_messages(llm_wrapper)[-1].content
        expected_text = tutor_prompts.CAPTURED_QUIZ_TEMPLATE.format(
            image_text="문제 1 정답?", message=tutor_prompts.DEFAULT_CAPTURE_QUESTION
        )
        assert content[0] == {"type": "text", "text": expected_text}
        assert content[1]["image_url"] == "data:image/png;base64,aGVsbG8="

    def test_empty_request_rejected(self, tutor_agent, llm_wrapper):
        with pytest.raises(ValidationError):
            asyncio.run(tutor_agent.chat("   "))
        llm_wrapper.generate_response.assert_not_awaited()


class TestGeminiLLMWrapper:
    """Retries and fallback without touching the network."""

    def make_wrapper(self, side_effect):
        llm = MagicMock()
        llm.ainvoke = AsyncMock(side_effect=side_effect)
        return GeminiLLMWrapper(llm=llm, max_retries=3, retry_wait=wait_none()), llm

    def test_retries_transient_failures(self):
        wrapper, llm = self.make_wrapper([RuntimeError("503"), RuntimeError("503"), SimpleNamespace(content="ok")])

        assert asyncio.run(wrapper.generate_response([HumanMessage(content="hi")])) == "ok"
        assert llm.ainvoke.await_count == 3

    def test_falls_back_after_last_attempt(self):
        wrapper, llm = self.make_wrapper(RuntimeError("quota"))

        assert asyncio.run(wrapper.generate_response([HumanMessage(content="hi")])) == FALLBACK_RESPONSE
        assert llm.ainvoke.await_count == 3

    def test_content_blocks_are_joined(self):
        blocks = [{"type": "text", "text": "첫 "}, {"type": "text", "text": "번째"}]
        wrapper, _ = self.make_wrapper([SimpleNamespace(content=blocks)])

        assert asyncio.run(wrapper.generate_response([])) == "첫 번째"
