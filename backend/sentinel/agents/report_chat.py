"""
AI agent answering follow-up questions about a stored report.
"""

from typing import Any, Dict, List, Optional

from sentinel.agents.base_agent import BaseAgent, AgentProcessingError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_RESPONSE = (
    "I'm sorry, but I encountered an issue and couldn't generate a response based on the report."
)


class ReportChatAgent(BaseAgent):
    """Answers questions strictly from the supplied report context."""

    async def process(self, content: str, question: str = "",
                      chat_history: Optional[List[Dict[str, str]]] = None, **kwargs) -> Dict[str, Any]:
        """
        Args:
            content: Report context the answer must be drawn from
            question: The user's question
            chat_history: Earlier turns as ``{'role', 'content'}`` dicts

        Returns:
            {'ai_response': text} or {'error': message}
        """
        logger.info(f"[{self.agent_name}] Answering question",
                    context_length=len(content), history_turns=len(chat_history or []))

        if not content.strip():
            raise AgentProcessingError("Report context cannot be empty")
        if not question.strip():
            raise AgentProcessingError("Question cannot be empty")

        try:
            raw_response = await self._call_claude(
                self._build_prompt(content, question, chat_history or []), self._build_system_prompt()
            )
            result = self._parse_json_response(raw_response)
        except Exception as e:
            logger.error(f"[{self.agent_name}] Chat failed", error=str(e))
            raise AgentProcessingError(f"Report chat failed: {str(e)}")

        if "error" in result:
            return {"error": str(result["error"])}

        answer = str(result.get("ai_response") or "").strip()
        if not answer:
            logger.warning(f"[{self.agent_name}] Empty answer, using fallback")
            answer = FALLBACK_RESPONSE

        logger.info(f"[{self.agent_name}] Answer ready", response_length=len(answer))
        return {"ai_response": answer}

    def _build_system_prompt(self) -> str:
        return """You are a helpful theological assistant. Answer questions strictly from the provided report context.
Do not use outside knowledge or make assumptions beyond the context. If the answer is not in the context, say that the information is not available in the provided text.
Always answer with a single JSON object: {"ai_response": "<your answer>"}."""

    def _build_prompt(self, content: str, question: str, chat_history: List[Dict[str, str]]) -> str:
        history = ""
        if chat_history:
            turns = "\n".join(f"{turn['role']}: {turn['content']}" for turn in chat_history)
            history = f"CONVERSATION HISTORY:\n{turns}\n--- End of History ---\n\n"

        return f"""{history}REPORT CONTEXT:
---
{self._truncate_content(content)}
---

USER QUESTION: {question}

JSON:"""
