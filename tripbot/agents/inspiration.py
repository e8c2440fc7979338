import logging

from tripbot.llm.prompts import INSPIRATION_SYSTEM_PROMPT, inspiration_user_prompt
from tripbot.providers.base import CompletionProvider
from tripbot.utils.text import shorten

logger = logging.getLogger(__name__)

INSPIRATION_FAILURE = (
    "Sorry, I had trouble generating trip ideas just now. 😅\n\n"
    "Please try again in a moment, or type *MENU* to go back."
)


def run_inspiration_agent(completion: CompletionProvider, preferences: str, brand: str) -> str:
    try:
        ideas = completion.complete(
            INSPIRATION_SYSTEM_PROMPT.format(brand=brand),
            inspiration_user_prompt(preferences),
            profile="inspiration",
        )
    except Exception:
        logger.exception("Error from completion service for trip inspiration")
        return INSPIRATION_FAILURE
    return shorten(ideas, 1200, cut_at=1180, notice="\n\n(Shortened for WhatsApp.)")
