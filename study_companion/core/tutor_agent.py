from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from typing import Any, Dict, List, Optional
import logging
from study_companion.config import Config
from study_companion.core.exceptions import ValidationError
from study_companion.core.llm import GeminiLLMWrapper
from study_companion.prompts import tutor_prompts

logger = logging.getLogger(__name__)

class TutorAgent:
    """
    Thin chat layer over Gemini for the AI tutor.
    - Answers free-form questions, optionally about a captured quiz screen
    - Writes step-by-step explanations for error-note entries
    """

    def __init__(self, llm_wrapper: GeminiLLMWrapper, system_instruction: str = Config.TUTOR_SYSTEM_INSTRUCTION):
        self.llm = llm_wrapper
        self.system_instruction = system_instruction

    async def chat(
        self,
        message: str,
        image_base64: Optional[str] = None,
        image_text: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> str:
        """
        Send one user turn to the tutor.

        Input: message (str), image_base64 (Optional[str], PNG), image_text (Optional[str]),
               history (Optional[List[Dict]] with role/content)
        Output: str (tutor reply)
        """
        query = (message or "").strip()
        if not query and not image_base64:
            raise ValidationError("message or image is required")

        if image_base64 and not query:
            query = tutor_prompts.DEFAULT_CAPTURE_QUESTION
        if image_base64 and image_text:
            flattened = image_text.replace("\n", " ")
            query = tutor_prompts.CAPTURED_QUIZ_TEMPLATE.format(image_text=flattened, message=query)

        messages: List[BaseMessage] = [SystemMessage(content=self.system_instruction)]
        messages.extend(self._history_messages(history or []))
        messages.append(self._user_message(query, image_base64))

        logger.info(f"Tutor chat request ({len(messages) - 1} turns, image={'yes' if image_base64 else 'no'})")
        return await self.llm.generate_response(messages)

    async def explain_note(self, note: Dict[str, Any]) -> str:
        """Ask for a step-by-step explanation of an error-note question."""
        prompt = tutor_prompts.NOTE_EXPLANATION_TEMPLATE.format(text=note["text"], answer=note["answer"])
        return await self.llm.generate_response([
            SystemMessage(content=self.system_instruction),
            HumanMessage(content=prompt)
        ])

    def _history_messages(self, history: List[Dict[str, str]]) -> List[BaseMessage]:
        messages = []
        for turn in history:
            if turn.get("role") == "user":
                messages.append(HumanMessage(content=turn.get("content", "")))
            elif turn.get("role") in ("assistant", "gemini"):
                messages.append(AIMessage(content=turn.get("content", "")))
        return messages

    def _user_message(self, query: str, image_base64: Optional[str]) -> HumanMessage:
        if not image_base64:
            return HumanMessage(content=query)
        return HumanMessage(content=[
            {"type": "text", "text": query},
            {"type": "image_url", "image_url": f"data:image/png;base64,{image_base64}"},
        ])
