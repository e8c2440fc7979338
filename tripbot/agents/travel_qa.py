import logging

from tripbot.llm.prompts import TRAVEL_QA_SYSTEM_PROMPT
from tripbot.providers.base import CompletionProvider
from tripbot.utils.text import shorten

logger = logging.getLogger(__name__)

QA_LIMIT = 1200
QA_FAILURE = (
    "Sorry, I had trouble answering that question just now.\n\n"
    "Please try rephrasing, or type *MENU* to go back."
)


def run_travel_qa_agent(completion: CompletionProvider, question: str, brand: str) -> str:
    try:
        answer = completion.complete(TRAVEL_QA_SYSTEM_PROMPT.format(brand=brand), question, profile="qa")
    except Exception:
        logger.exception("Error from completion service for travel Q&A")
        return QA_FAILURE
    # keep under the 1600-char WhatsApp limit once wrapped
    return shorten(answer, QA_LIMIT, cut_at=1180, notice="\n\n(Shortened to fit WhatsApp limits.)")
