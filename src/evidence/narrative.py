"""Short analyst narratives for monitoring cases.

Narratives are optional enrichment. With an API key configured they come
from an OpenAI-compatible chat completions endpoint; otherwise, or on any
failure, a deterministic sentence is built from the case itself. Scores and
cases never depend on this module.
"""

import asyncio
import json

import httpx
import structlog

from src.config import Settings, settings
from src.domains.risk.models import MonitoringCase

logger = structlog.get_logger()

SYSTEM_PROMPT = "You write concise AML monitoring narratives (<=2 sentences)."


def fallback_narrative(case: MonitoringCase) -> str:
    amount = f"${case.amount:,.2f}" if case.amount is not None else "n/a"
    return f"Rule {case.rule.value}: {case.detail}. Client {case.client}. Amount {amount}."


class NarrativeWriter:
    def __init__(
        self,
        config: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or settings
        self._client = client

    @property
    def enabled(self) -> bool:
        return bool(self.config.openai_api_key)

    async def _complete(self, client: httpx.AsyncClient, case: MonitoringCase) -> str:
        payload = json.dumps(case.to_output())[:1500]
        response = await client.post(
            f"{self.config.narrative_base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {self.config.openai_api_key}"},
            json={
                "model": self.config.narrative_model,
                "temperature": 0.2,
                "messages": [
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": f"Create a short narrative for: {payload}"},
                ],
            },
            timeout=self.config.narrative_timeout_seconds,
        )
        response.raise_for_status()
        message = response.json()["choices"][0]["message"]
        content = message.get("content") if isinstance(message, dict) else None
        if content is None:
            return ""
        if not isinstance(content, str):
            raise ValueError(f"Unexpected completion content: {type(content).__name__}")
        return content.strip()

    async def narrate(self, case: MonitoringCase, client: httpx.AsyncClient | None = None) -> str:
        if not self.enabled:
            return fallback_narrative(case)

        http = client or self._client
        try:
            if http is None:
                async with httpx.AsyncClient() as owned:
                    text = await self._complete(owned, case)
            else:
                text = await self._complete(http, case)
        except (httpx.HTTPError, AttributeError, KeyError, IndexError, TypeError, ValueError):
            logger.warning("narrative_generation_failed", rule=case.rule.value, exc_info=True)
            return fallback_narrative(case)
        return text or fallback_narrative(case)

    async def narrate_all(self, cases: list[MonitoringCase]) -> list[MonitoringCase]:
        """Return copies of ``cases`` with ``narrative`` filled in, same order."""
        if not cases:
            return []
        if not self.enabled:
            return [c.model_copy(update={"narrative": fallback_narrative(c)}) for c in cases]

        if self._client is not None:
            texts = await asyncio.gather(*(self.narrate(c, self._client) for c in cases))
        else:
            async with httpx.AsyncClient() as owned:
                texts = await asyncio.gather(*(self.narrate(c, owned) for c in cases))
        return [c.model_copy(update={"narrative": text}) for c, text in zip(cases, texts)]
