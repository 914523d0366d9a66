from __future__ import annotations

from typing import Optional

from dagster import ConfigurableResource, get_dagster_logger
from openai import OpenAI

from covid_risk.narrative import build_messages, strip_code_fences


class NarrativeResource(ConfigurableResource):
    """OpenAI-compatible chat completion client that writes the HTML briefing.

    One synchronous request per call. No retries and no streaming; failures
    propagate to the run.
    """

    api_key: str
    base_url: Optional[str] = None
    model: str = "gpt-4o-mini"
    temperature: float = 0.3
    max_tokens: int = 2000
    timeout_seconds: float = 120.0

    def _client(self) -> OpenAI:
        return OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout_seconds)

    def generate_briefing(self, full_report: str) -> str:
        """Return the model's HTML fragment for `full_report`, code fences stripped."""

        log = get_dagster_logger()
        response = self._client().chat.completions.create(
            model=self.model,
            messages=build_messages(full_report),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        content = response.choices[0].message.content or ""
        log.info(f"Narrative model {self.model} returned {len(content)} characters")
        return strip_code_fences(content)
