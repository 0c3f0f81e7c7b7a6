"""
AI agent for the primary analysis of religious content against the KJV 1611.
Produces the structured report: summary, scriptural analysis, historical
context, fallacies, manipulative tactics, identified isms and Calvinism.
"""

from typing import Any, Dict, Optional

from sentinel.agents.base_agent import BaseAgent, AgentProcessingError, KJV_AUTHORITY_NOTE
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)

REQUIRED_KEYS = (
    "summary",
    "scriptural_analysis",
    "historical_context",
    "fallacies",
    "manipulative_tactics",
    "identified_isms",
    "calvinism_analysis",
)


class ContentAnalyzerAgent(BaseAgent):
    """
    AI agent that performs the primary theological analysis of submitted content.

    Asks Claude for a single JSON object matching ``ContentAnalysisResult``.
    """

    async def process(self, content: str, reference_material: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        """
        Analyze sermon or teaching content.

        Args:
            content: The religious content (text or transcript) to analyze
            reference_material: Optional user-supplied material to consider

        Returns:
            Dictionary matching the ContentAnalysisResult schema, or
            {'error': message} if the model reports it cannot analyze

        Raises:
            AgentProcessingError: If the analysis fails
        """
        logger.info(f"[{self.agent_name}] Starting content analysis",
                    content_length=len(content),
                    has_reference=bool(reference_material))

        if not content.strip():
            raise AgentProcessingError("Cannot analyze empty content")

        prompt = self._build_analysis_prompt(content, reference_material)

        try:
            raw_response = await self._call_claude(prompt, self._build_system_prompt())
            result = self._parse_json_response(raw_response)

            if "error" in result:
                logger.warning(f"[{self.agent_name}] Model returned an error payload",
                               error=result["error"])
                return {"error": str(result["error"])}

            missing = [key for key in REQUIRED_KEYS if key not in result]
            if missing:
                raise AgentProcessingError(f"Analysis is missing fields: {', '.join(missing)}")

            logger.info(f"[{self.agent_name}] Content analysis complete",
                        scripture_entries=len(result.get("scriptural_analysis", [])),
                        fallacies=len(result.get("fallacies", [])),
                        isms=len(result.get("identified_isms", [])),
                        summary_preview=self._truncate_for_log(str(result.get("summary", "")), 100))
            return result

        except Exception as e:
            logger.error(f"[{self.agent_name}] Content analysis failed", error=str(e))
            raise AgentProcessingError(f"Content analysis failed: {str(e)}")

    def _build_system_prompt(self) -> str:
        """Build the system prompt for Claude."""
        return f"""You are an expert theologian and discerning analyst, specializing in evaluating religious content against the King James Version (KJV) 1611 Bible's orthodoxy.

You conduct rigorous, scholarly examinations of sermons and teachings. {KJV_AUTHORITY_NOTE}

Always answer with a single JSON object and nothing else. If the content cannot be analyzed (for example it is not religious content at all), answer with {{"error": "<reason>"}}."""

    def _build_analysis_prompt(self, content: str, reference_material: Optional[str] = None) -> str:
        """
        Build the prompt for the primary analysis.

        Args:
            content: The content to analyze
            reference_material: Optional supporting material

        Returns:
            Formatted prompt string
        """
        content = self._truncate_content(content)

        reference_block = ""
        if reference_material:
            reference_block = f"""
Additionally, consider the following user-provided reference material:
--- REFERENCE MATERIAL START ---
{reference_material}
--- REFERENCE MATERIAL END ---
"""

        return f"""Produce a structured theological assessment of the content below.

CONTENT:
{content}
{reference_block}
Return JSON with exactly these keys:
- "summary": string, a concise overview of your findings
- "scriptural_analysis": list of {{"verse": string, "analysis": string}}, verse-by-verse or thematic analysis against KJV 1611
- "historical_context": string
- "fallacies": list of {{"type": string, "description": string}}
- "manipulative_tactics": list of {{"technique": string, "description": string}}
- "identified_isms": list of {{"ism": string, "description": string, "evidence": string}}
- "calvinism_analysis": list of {{"element": string, "description": string, "evidence": string, "infiltration_tactic": string or null}}
- "etymology": string, etymology of impactful theological terms
- "exposure": string, potential exposure to harmful ideologies
- "biblical_remonstrance": {{"scriptural_foundation_assessment": string, "historical_theological_contextualization": string, "rhetorical_and_homiletical_observations": string, "theological_framework_remarks": string, "kjv_scriptural_counterpoints": string, "suggestions_for_further_study": string}}
- "potential_manipulative_speaker_profile": string
- "guidance_on_wise_confrontation": string

JSON:"""
