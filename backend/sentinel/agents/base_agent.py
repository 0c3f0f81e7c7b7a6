"""
Abstract base class for all AI agents in the KJV Sentinel analysis system.
Provides common functionality for Claude API interactions and error handling.
"""

import asyncio
import json
import re
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import anthropic
from anthropic import AsyncAnthropic

from sentinel.config import get_settings
from sentinel.utils.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()

KJV_AUTHORITY_NOTE = (
    "The King James Version (KJV) 1611 is the final authority on all matters "
    "scriptural and theological, and is the reference for everything examined."
)


class AgentProcessingError(Exception):
    """Raised when an agent fails to process content."""
    pass


class BaseAgent(ABC):
    """
    Abstract base class for AI agents that analyze religious content.

    Provides common Claude API interaction patterns, JSON extraction,
    error handling, and logging functionality for all specialized agents.
    """

    def __init__(self, client: Optional[AsyncAnthropic] = None) -> None:
        """Initialize the agent with a Claude API client."""
        if client is None:
            if not settings.anthropic_api_key:
                raise ValueError("ANTHROPIC_API_KEY environment variable is required")
            client = AsyncAnthropic(api_key=settings.anthropic_api_key)

        self.client: AsyncAnthropic = client
        self.model: str = settings.claude_model
        self.agent_name: str = self.__class__.__name__

    @abstractmethod
    async def process(self, content: str, **kwargs) -> Dict[str, Any]:
        """
        Analyze content and return structured results.

        Args:
            content: The raw text to analyze
            **kwargs: Additional agent-specific parameters

        Returns:
            Dictionary containing the agent's structured analysis, or a
            dictionary with a single 'error' key when the model declines

        Raises:
            AgentProcessingError: If processing fails
        """
        pass

    async def _call_claude(self, prompt: str, system_prompt: str = None, max_retries: int = 3) -> str:
        """
        Make a call to Claude API with error handling and logging.

        Args:
            prompt: The user prompt to send to Claude
            system_prompt: Optional system prompt for Claude
            max_retries: Attempts allowed after a rate limit response

        Returns:
            Claude's text response

        Raises:
            AgentProcessingError: If the API call fails
        """
        start_time = time.time()
        retry_count = 0

        while retry_count <= max_retries:
            try:
                logger.info(f"[{self.agent_name}] Sending prompt to Claude",
                            prompt_length=len(prompt),
                            has_system=bool(system_prompt))

                message_params = {
                    "model": self.model,
                    "max_tokens": settings.claude_max_tokens,
                    "temperature": 0.2,
                    "messages": [{"role": "user", "content": prompt}]
                }
                if system_prompt:
                    message_params["system"] = system_prompt

                response = await self.client.messages.create(**message_params)

                if response.content and len(response.content) > 0:
                    response_text = response.content[0].text
                else:
                    raise AgentProcessingError("Empty response from Claude API")

                duration = time.time() - start_time
                logger.info(f"[{self.agent_name}] Claude response received",
                            duration_seconds=round(duration, 2),
                            response_length=len(response_text),
                            input_tokens=response.usage.input_tokens if hasattr(response, 'usage') else 0,
                            output_tokens=response.usage.output_tokens if hasattr(response, 'usage') else 0)

                return response_text

            except anthropic.RateLimitError as e:
                retry_count += 1
                if retry_count <= max_retries:
                    # Exponential backoff: 2^retry_count * 10 seconds
                    wait_time = (2 ** retry_count) * 10
                    logger.warning(f"[{self.agent_name}] Rate limit hit, waiting {wait_time}s (attempt {retry_count}/{max_retries})")
                    await asyncio.sleep(wait_time)
                    continue
                duration = time.time() - start_time
                logger.error(f"[{self.agent_name}] Rate limit exceeded after {max_retries} retries",
                             error=str(e),
                             duration_seconds=round(duration, 2))
                raise AgentProcessingError(f"Rate limit exceeded: {str(e)}")

            except anthropic.APIError as e:
                duration = time.time() - start_time
                logger.error(f"[{self.agent_name}] Claude API error",
                             error=str(e),
                             duration_seconds=round(duration, 2))
                raise AgentProcessingError(f"Claude API error: {str(e)}")

            except AgentProcessingError:
                raise

            except Exception as e:
                duration = time.time() - start_time
                logger.error(f"[{self.agent_name}] Unexpected error calling Claude",
                             error=str(e),
                             duration_seconds=round(duration, 2))
                raise AgentProcessingError(f"Unexpected error: {str(e)}")

        raise AgentProcessingError("Claude call did not complete")

    def _parse_json_response(self, raw_response: str) -> Dict[str, Any]:
        """
        Extract the JSON object from Claude's response.

        Accepts bare JSON, JSON inside a ```json fence, or JSON surrounded by
        prose.

        Raises:
            AgentProcessingError: If no JSON object can be decoded
        """
        text = raw_response.strip()

        fenced = re.search(r"```(?:json)?\s*(\{.*\})\s*```", text, re.DOTALL)
        if fenced:
            text = fenced.group(1)
        elif not text.startswith("{"):
            start, end = text.find("{"), text.rfind("}")
            if start == -1 or end <= start:
                raise AgentProcessingError("Claude response did not contain a JSON object")
            text = text[start:end + 1]

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"[{self.agent_name}] Failed to decode JSON response",
                         error=str(e),
                         response_preview=self._truncate_for_log(raw_response))
            raise AgentProcessingError(f"Invalid JSON from Claude: {str(e)}")

        if not isinstance(data, dict):
            raise AgentProcessingError("Claude response JSON was not an object")
        return data

    def _truncate_content(self, content: str) -> str:
        """Trim content to the configured prompt budget."""
        if len(content) > settings.max_content_length:
            logger.info(f"[{self.agent_name}] Truncated long content for processing",
                        original_length=len(content))
            return content[:settings.max_content_length] + "\n[...content truncated...]"
        return content

    def _truncate_for_log(self, text: str, max_length: int = 200) -> str:
        """Truncate text for logging to avoid overly long log messages."""
        if len(text) <= max_length:
            return text
        return text[:max_length] + "..."
