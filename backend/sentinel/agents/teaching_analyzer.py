"""
AI agent for analyzing a specific teaching, philosophy or saying against the
KJV 1611. Produces church history context, promoters, council decisions, a
letter of clarification and biblical warnings.
"""

from typing import Any, Dict, Optional

from sentinel.agents.base_agent import BaseAgent, AgentProcessingError, KJV_AUTHORITY_NOTE
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_KEYS = (
    "church_history_context",
    "promoters_demonstrators",
    "church_council_summary",
    "letter_of_clarification",
    "biblical_warnings",
)


class TeachingAnalyzerAgent(BaseAgent):
    """
    AI agent that analyzes a teaching and drafts a letter of clarification.

    The letter tone follows the caller's preference (gentle, firm or urgent).
    """

    async def process(self, content: str, recipient_name_title: str = "",
                      tone_preference: str = "gentle",
                      additional_notes: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        """
        Analyze a teaching against the KJV 1611.

        Args:
            content: The teaching to analyze
            recipient_name_title: Addressee of the letter of clarification
            tone_preference: gentle, firm or urgent
            additional_notes: Optional user context

        Returns:
            Dictionary matching the TeachingAnalysisResult schema, or
            {'error': message}

        Raises:
            AgentProcessingError: If the analysis fails
        """
        logger.info(f"[{self.agent_name}] Starting teaching analysis",
                    teaching_length=len(content),
                    tone=tone_preference)

        if not content.strip():
            raise AgentProcessingError("Cannot analyze empty teaching")

        prompt = self._build_teaching_prompt(content, recipient_name_title, tone_preference, additional_notes)

        try:
            raw_response = await self._call_claude(prompt, self._build_system_prompt())
            result = self._parse_json_response(raw_response)

            if "error" in result:
                return {"error": str(result["error"])}

            missing = [key for key in REQUIRED_KEYS if key not in result]
            if missing:
                raise AgentProcessingError(f"Teaching analysis is missing fields: {', '.join(missing)}")

            logger.info(f"[{self.agent_name}] Teaching analysis complete",
                        promoters=len(result.get("promoters_demonstrators", [])),
                        letter_words=len(str(result.get("letter_of_clarification", "")).split()))
            return result

        except Exception as e:
            logger.error(f"[{self.agent_name}] Teaching analysis failed", error=str(e))
            raise AgentProcessingError(f"Teaching analysis failed: {str(e)}")

    def _build_system_prompt(self) -> str:
        return f"""You are a theological scholar specializing in the KJV 1611 Bible and church history.
Analyze teachings based exclusively on the KJV 1611 Bible and historical facts aligned with a KJV 1611 perspective. {KJV_AUTHORITY_NOTE}

Always answer with a single JSON object and nothing else. If the teaching cannot be analyzed, answer with {{"error": "<reason>"}}."""

    def _build_teaching_prompt(self, teaching: str, recipient_name_title: str,
                               tone_preference: str, additional_notes: Optional[str]) -> str:
        teaching = self._truncate_content(teaching)

        return f"""Teaching to Analyze: {teaching}
Recipient for Letter: {recipient_name_title}
Desired Tone for Letter: {tone_preference}
Additional User Notes: {additional_notes or "None provided."}

Return JSON with exactly these keys:
- "church_history_context": string (200-300 words) on the teaching's historical emergence, key events, and church acceptance or rejection
- "promoters_demonstrators": list of {{"name": string, "description": string (100-150 words)}}
- "church_council_summary": string (150-200 words) on relevant council decisions (e.g. Nicaea, Chalcedon), or a note that none exist
- "letter_of_clarification": string (500-700 words) starting with "Dear {recipient_name_title},". Cite Galatians 6:1 and 2 Timothy 4:2 as the mandate to correct error, identify contradictions with KJV scripture, warn using Galatians 1:6-9, 1 Timothy 1:3-7 and 2 Timothy 2:16-18, call to repentance with Acts 3:19 and 2 Corinthians 7:10, and offer dialogue and hope for restoration. The tone must strictly be {tone_preference}.
- "biblical_warnings": string (100-150 words) restating warnings about false teachers, quoting Galatians 1:6-9, 1 Timothy 1:3-7, 2 Timothy 2:16-18 and James 3:1

JSON:"""
