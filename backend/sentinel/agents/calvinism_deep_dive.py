"""
AI agent for the in-depth examination of Calvinistic elements in content.
"""

from typing import Any, Dict

from sentinel.agents.base_agent import BaseAgent, AgentProcessingError
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)


class CalvinismDeepDiveAgent(BaseAgent):
    """Produces a detailed, narrower analysis of Calvinistic elements."""

    async def process(self, content: str, **kwargs) -> Dict[str, Any]:
        """
        Returns:
            {'analysis': text} or {'error': message}

        Raises:
            AgentProcessingError: If the call fails or the answer is empty
        """
        logger.info(f"[{self.agent_name}] Starting deep dive", content_length=len(content))

        if not content.strip():
            raise AgentProcessingError("Cannot run a deep dive on empty content")

        try:
            raw_response = await self._call_claude(self._build_prompt(content), self._build_system_prompt())
            result = self._parse_json_response(raw_response)

            if "error" in result:
                return {"error": str(result["error"])}

            analysis = str(result.get("analysis") or "").strip()
            if not analysis:
                raise AgentProcessingError("Deep dive completed but no analysis returned")

            logger.info(f"[{self.agent_name}] Deep dive complete", analysis_length=len(analysis))
            return {"analysis": analysis}

        except Exception as e:
            logger.error(f"[{self.agent_name}] Deep dive failed", error=str(e))
            raise AgentProcessingError(f"Deep dive failed: {str(e)}")

    def _build_system_prompt(self) -> str:
        return """You are a theological expert specializing in Calvinism, assessing it against the KJV 1611.
Always answer with a single JSON object: {"analysis": "<detailed report>"}, or {"error": "<reason>"} if the content cannot be analyzed."""

    def _build_prompt(self, content: str) -> str:
        content = self._truncate_content(content)
        return f"""Analyze the following content for Calvinistic elements and provide a detailed report that will be shown to the user.

Cover overt doctrines (TULIP points, covenant theology, readings of sovereignty and election), what is subtly communicated, psychological tactics used to reinforce the viewpoint, and how the character of God the Father, the Lord Jesus Christ and the Holy Spirit is represented.

CONTENT:
{content}

JSON:"""
