from typing import TypedDict, Optional, Any

from tripbot.providers.base import OutboundMessage
from tripbot.sessions import ConversationSession


class TurnState(TypedDict, total=False):
    sender: str
    body: str                       # raw inbound text
    text: str                       # trimmed, lower-cased

    session: ConversationSession

    # outputs
    replies: list[OutboundMessage]
    handled: bool                   # a global command answered the turn
    trace: list[dict]


class DeliveryState(TypedDict, total=False):
    kind: str                       # paid|edit
    request_id: int
    sender: str
    destination: str

    # edit input
    edit_text: Optional[str]
    original_text: Optional[str]
    raw_details: Optional[str]

    # intermediate results
    itinerary_text: str
    cities: list[str]
    pdf_bytes: Optional[bytes]
    pdf_url: Optional[str]
    rejected: bool
    error: Optional[str]

    # outputs
    replies: list[OutboundMessage]
    trace: list[dict[str, Any]]
