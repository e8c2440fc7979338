# tripbot/llm/completion.py
import logging
from typing import Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from tripbot.providers.base import CompletionError, CompletionProvider

logger = logging.getLogger(__name__)

# temperature / max_tokens per use
PROFILES: Dict[str, dict] = {
    "itinerary": {"temperature": 0.7},
    "qa": {"temperature": 0.7, "max_tokens": 350},
    "inspiration": {"temperature": 0.9, "max_tokens": 450},
}


class OpenAICompletionProvider(CompletionProvider):
    def __init__(
        self,
        model: str = "gpt-4.1-mini",
        api_key: Optional[str] = None,
        timeout: int = 60,
        max_retries: int = 1,
    ):
        self.model = model
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max_retries
        self._clients: Dict[str, ChatOpenAI] = {}

    def _llm(self, profile: str) -> ChatOpenAI:
        if profile not in self._clients:
            kwargs = dict(PROFILES.get(profile, PROFILES["itinerary"]))
            if self.api_key:
                kwargs["api_key"] = self.api_key
            self._clients[profile] = ChatOpenAI(
                model=self.model,
                timeout=self.timeout,
                max_retries=self.max_retries,
                **kwargs,
            )
        return self._clients[profile]

    def complete(self, system: str, user: str, profile: str = "itinerary") -> str:
        try:
            resp = self._llm(profile).invoke([SystemMessage(content=system), HumanMessage(content=user)])
        except Exception as e:
            raise CompletionError(f"Completion failed ({profile}): {e}") from e

        text = (resp.content or "").strip() if isinstance(resp.content, str) else ""
        if not text:
            raise CompletionError(f"Empty completion ({profile})")
        return text
