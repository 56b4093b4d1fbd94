"""Content provider gateway over an OpenAI-compatible API."""
from __future__ import annotations

import asyncio
import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import openai

from .models import MemberRecord

logger = logging.getLogger(__name__)


class ContentProviderError(RuntimeError):
    """Raised when the content provider cannot produce a response."""


class MalformedContentError(ContentProviderError):
    """Raised when a structured response cannot be parsed."""


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Invalid %s value: %s", key, value)
        return default


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Invalid %s value: %s", key, value)
        return default


@dataclass
class LLMConfig:
    """Configuration for the content provider client."""
    api_base: str = "http://localhost:5000/v1"  # Default to local server
    api_key: str = "not-needed-for-local"
    model_name: str = "local-model"
    temperature: float = 0.8
    max_tokens: int = 500
    timeout: int = 30
    mock_mode: bool = False

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """Load configuration from environment variables."""
        return cls(
            api_base=os.getenv("LLM_API_BASE", "http://localhost:5000/v1"),
            api_key=os.getenv("LLM_API_KEY", "not-needed-for-local"),
            model_name=os.getenv("LLM_MODEL_NAME", "local-model"),
            temperature=_env_float("LLM_TEMPERATURE", 0.8),
            max_tokens=_env_int("LLM_MAX_TOKENS", 500),
            timeout=_env_int("LLM_TIMEOUT", 30),
            mock_mode=os.getenv("LLM_MODE", "").lower() == "mock",
        )


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()[1:]
    if lines and lines[-1].strip().startswith("```"):
        lines = lines[:-1]
    return "\n".join(lines).strip()


def parse_script(text: Optional[str]) -> List[str]:
    """Parse a JSON array of step strings.

    Raises :class:`MalformedContentError` when the payload is not an array.
    An empty payload is an empty script.
    """

    if text is None or not text.strip():
        return []
    try:
        payload = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise MalformedContentError(f"script is not valid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise MalformedContentError(f"script must be a JSON array, got {type(payload).__name__}")
    return [str(item) for item in payload]


class LLMClient:
    """Single-shot generative content requests for the dashboard core.

    Calls are neither retried nor cancelled; the blocking SDK call runs in a
    worker thread so the event loop keeps sampling telemetry meanwhile.
    """

    def __init__(self, config: Optional[LLMConfig] = None, *, script_length: int = 10, language: str = "English"):
        self.config = config or LLMConfig.from_env()
        self.script_length = script_length
        self.language = language
        self._executor = ThreadPoolExecutor(max_workers=2)

        if self.config.mock_mode:
            self.client = None
            logger.info("LLM client initialised in mock mode")
            return

        self.client = openai.OpenAI(
            api_key=self.config.api_key,
            base_url=self.config.api_base,
            timeout=self.config.timeout,
            max_retries=0,
        )
        logger.info("LLM client initialized with base URL: %s", self.config.api_base)

    async def _complete(self, messages: List[Dict[str, str]]) -> str:
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                self._executor,
                lambda: self.client.chat.completions.create(
                    model=self.config.model_name,
                    messages=messages,
                    temperature=self.config.temperature,
                    max_tokens=self.config.max_tokens,
                ),
            )
        except openai.OpenAIError as exc:
            logger.error("Content provider call failed: %s", exc)
            raise ContentProviderError(str(exc)) from exc
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as exc:
            raise ContentProviderError("content provider returned no choices") from exc
        return content or ""

    async def request_threat_narrative(self, members: Sequence[MemberRecord], *, sample: int = 10) -> str:
        """Ask for a short assessment of likely raid or bot patterns."""

        member_list = ", ".join(
            f"{member.username} (Joined: {member.joined_date})" for member in list(members)[:sample]
        )
        if self.config.mock_mode:
            return f"[MOCK] No coordinated raid pattern detected among: {member_list or 'nobody'}"

        prompt = (
            "Analyze these members for potential raid patterns or suspicious bot-like names: "
            f"{member_list}.\nIdentify top 2 threats and explain why. "
            f"Keep it concise in {self.language} language."
        )
        messages = [
            {"role": "system", "content": "You are a moderation analyst for a chat community server."},
            {"role": "user", "content": prompt},
        ]
        return (await self._complete(messages)).strip()

    async def request_operation_script(self, target_name: str) -> List[str]:
        """Return terminal-style narration lines for a simulated purge.

        Malformed responses fail closed to an empty script.
        """

        if self.config.mock_mode:
            return [
                f"[MOCK] step {index + 1}/{self.script_length}: dismantling {target_name} sector {index + 1}... OK"
                for index in range(self.script_length)
            ]

        prompt = (
            f"The user has triggered a simulated 'Nuke' purge on server '{target_name}'.\n"
            f"Provide a sequence of {self.script_length} terminal-style log lines showing "
            "structural destruction.\nReturn only a JSON array of strings."
        )
        messages = [
            {"role": "system", "content": "You write terse, theatrical terminal output. Respond with JSON only."},
            {"role": "user", "content": prompt},
        ]
        text = await self._complete(messages)
        try:
            return parse_script(text)
        except MalformedContentError as exc:
            logger.warning("Discarding malformed operation script: %s", exc)
            return []

    def close(self) -> None:
        """Clean up resources without waiting on in-flight calls."""
        self._executor.shutdown(wait=False)


__all__ = [
    "ContentProviderError",
    "LLMClient",
    "LLMConfig",
    "MalformedContentError",
    "parse_script",
]
