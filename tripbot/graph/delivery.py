"""
Itinerary delivery: generate -> persist -> render -> upload -> notify.

One graph serves both a freshly paid request (kind="paid") and an edit of a
delivered one (kind="edit"). Render or upload failures fall back to sending
the itinerary as text; an edit whose window closed before the write is
answered with the rejection message and nothing is changed.
"""
import logging
from typing import Callable, Optional

from langgraph.graph import StateGraph, END

from tripbot import messages
from tripbot.agents.itinerary import ItineraryGenerator
from tripbot.dispatcher import MessageDispatcher
from tripbot.graph.state import DeliveryState
from tripbot.models import ItineraryRequest
from tripbot.providers.base import ObjectStorage, OutboundMessage
from tripbot.repository import ItineraryRepository
from tripbot.utils.pdf import render_itinerary_pdf
from tripbot.utils.text import WHATSAPP_TEXT_LIMIT, shorten

logger = logging.getLogger(__name__)

PDF_TITLE = "Trip Itinerary"


def pdf_key(request_id: int) -> str:
    # stable per request so an edit overwrites the previous file
    return f"itineraries/itinerary_{request_id}.pdf"


def add_trace(state: DeliveryState, node: str, status: str, **detail):
    state.setdefault("trace", [])
    state["trace"].append({"node": node, "status": status, **detail})


def _short(text: str) -> str:
    return shorten(text, WHATSAPP_TEXT_LIMIT, notice=messages.SHORTENED_NOTICE)


class DeliveryPipeline:
    def __init__(
        self,
        repository: ItineraryRepository,
        generator: ItineraryGenerator,
        storage: ObjectStorage,
        dispatcher: MessageDispatcher,
        brand_name: str = "",
        renderer: Optional[Callable[..., bytes]] = None,
    ):
        self.repository = repository
        self.generator = generator
        self.storage = storage
        self.dispatcher = dispatcher
        self.brand_name = brand_name
        self.renderer = renderer or render_itinerary_pdf
        self.graph = self.build_graph()

    # ---------------------------
    # Nodes
    # ---------------------------
    def node_generate(self, state: DeliveryState) -> DeliveryState:
        if state["kind"] == "edit":
            draft = self.generator.draft_update(
                state.get("original_text"),
                state.get("edit_text") or "",
                state.get("raw_details"),
                state.get("destination"),
            )
        else:
            draft = self.generator.draft(state.get("raw_details"), state.get("destination"))

        state["itinerary_text"] = draft.text
        state["cities"] = draft.cities
        status = "ok" if draft.source == "ai" else "fallback"
        add_trace(state, "generate", status, strategy=draft.strategy, error=draft.error)
        return state

    def node_persist(self, state: DeliveryState) -> DeliveryState:
        request_id = state["request_id"]
        try:
            if state["kind"] == "edit":
                applied = self.repository.apply_edit(
                    request_id, state["itinerary_text"], state.get("edit_text") or ""
                )
            else:
                self.repository.save_itinerary_text(request_id, state["itinerary_text"])
                applied = True
        except Exception as e:
            logger.exception("Saving itinerary for request %s failed", request_id)
            state["error"] = str(e)
            if state["kind"] == "edit":
                # the stored itinerary is unchanged, so do not claim an update
                state["rejected"] = True
                state.setdefault("replies", []).append(OutboundMessage(body=messages.EDIT_FAILED))
            # a paid itinerary is still delivered from the generated text
            add_trace(state, "persist", "failed", error=str(e))
            return state

        if not applied:
            logger.info("Edit for request %s rejected: window closed", request_id)
            state["rejected"] = True
            state.setdefault("replies", []).append(OutboundMessage(body=messages.EDIT_WINDOW_EXPIRED))
            add_trace(state, "persist", "failed", reason="edit window closed")
            return state
        add_trace(state, "persist", "ok")
        return state

    def node_render(self, state: DeliveryState) -> DeliveryState:
        try:
            state["pdf_bytes"] = self.renderer(
                state["itinerary_text"],
                title=PDF_TITLE,
                city_links=self.generator.city_links(state.get("cities") or []),
                brand_name=self.brand_name,
            )
        except Exception as e:
            logger.exception("PDF render failed for request %s", state["request_id"])
            state["pdf_bytes"] = None
            state["error"] = str(e)
            add_trace(state, "render", "failed", error=str(e))
            return state
        add_trace(state, "render", "ok", size=len(state["pdf_bytes"]))
        return state

    def node_upload(self, state: DeliveryState) -> DeliveryState:
        key = pdf_key(state["request_id"])
        try:
            state["pdf_url"] = self.storage.upload(key, state["pdf_bytes"], content_type="application/pdf")
        except Exception as e:
            logger.error("PDF upload failed for request %s: %s", state["request_id"], e)
            state["pdf_url"] = None
            state["error"] = str(e)
            add_trace(state, "upload", "failed", error=str(e))
            return state
        add_trace(state, "upload", "ok", key=key)
        return state

    def node_record_pdf(self, state: DeliveryState) -> DeliveryState:
        # the uploaded PDF is sent either way; only VIEW loses the link
        try:
            self.repository.save_pdf_url(state["request_id"], state["pdf_url"])
        except Exception as e:
            logger.exception("Recording PDF url for request %s failed", state["request_id"])
            state["error"] = str(e)
            add_trace(state, "record_pdf", "failed", error=str(e))
            return state
        add_trace(state, "record_pdf", "ok")
        return state

    def node_compose_pdf(self, state: DeliveryState) -> DeliveryState:
        replies = state.setdefault("replies", [])
        itinerary = _short(state["itinerary_text"])
        if state["kind"] == "edit":
            replies.append(OutboundMessage(
                body=messages.UPDATED_PDF_TEXT,
                media_url=state["pdf_url"],
                fallback_body=messages.updated_text(itinerary),
            ))
        else:
            destination = state.get("destination") or "your trip"
            replies.append(OutboundMessage(
                body=messages.paid_pdf_text(destination),
                media_url=state["pdf_url"],
                fallback_body=messages.paid_text(destination, itinerary),
            ))
            # the transport can drop media silently
            replies.append(OutboundMessage(body=messages.PDF_SENT_CONFIRMATION))
        add_trace(state, "compose_pdf", "ok")
        return state

    def node_compose_text(self, state: DeliveryState) -> DeliveryState:
        itinerary = _short(state["itinerary_text"])
        if state["kind"] == "edit":
            body = messages.updated_text(itinerary)
        else:
            body = messages.paid_text(state.get("destination") or "your trip", itinerary)
        state.setdefault("replies", []).append(OutboundMessage(body=body))
        add_trace(state, "compose_text", "fallback")
        return state

    def node_notify(self, state: DeliveryState) -> DeliveryState:
        replies = state.get("replies") or []
        try:
            sent = self.dispatcher.send(state["sender"], replies)
        except Exception:
            logger.exception("Notifying %s about request %s failed", state["sender"], state["request_id"])
            sent = 0
        add_trace(state, "notify", "ok" if sent == len(replies) else "failed", sent=sent)
        return state

    # ---------------------------
    # Routing
    # ---------------------------
    @staticmethod
    def route_after_persist(state: DeliveryState) -> str:
        return "notify" if state.get("rejected") else "render"

    @staticmethod
    def route_after_render(state: DeliveryState) -> str:
        return "upload" if state.get("pdf_bytes") else "compose_text"

    @staticmethod
    def route_after_upload(state: DeliveryState) -> str:
        return "record_pdf" if state.get("pdf_url") else "compose_text"

    def build_graph(self):
        g = StateGraph(DeliveryState)

        g.add_node("generate", self.node_generate)
        g.add_node("persist", self.node_persist)
        g.add_node("render", self.node_render)
        g.add_node("upload", self.node_upload)
        g.add_node("record_pdf", self.node_record_pdf)
        g.add_node("compose_pdf", self.node_compose_pdf)
        g.add_node("compose_text", self.node_compose_text)
        g.add_node("notify", self.node_notify)

        g.set_entry_point("generate")
        g.add_edge("generate", "persist")
        g.add_conditional_edges("persist", self.route_after_persist, {
            "notify": "notify",
            "render": "render",
        })
        g.add_conditional_edges("render", self.route_after_render, {
            "upload": "upload",
            "compose_text": "compose_text",
        })
        g.add_conditional_edges("upload", self.route_after_upload, {
            "record_pdf": "record_pdf",
            "compose_text": "compose_text",
        })
        g.add_edge("record_pdf", "compose_pdf")
        g.add_edge("compose_pdf", "notify")
        g.add_edge("compose_text", "notify")
        g.add_edge("notify", END)

        return g.compile()

    # ---------------------------
    # Entry points
    # ---------------------------
    def deliver_paid(self, row: ItineraryRequest) -> DeliveryState:
        logger.info("Delivering itinerary for request %s to %s", row.id, row.sender)
        return self.graph.invoke({
            "kind": "paid",
            "request_id": row.id,
            "sender": row.sender,
            "destination": row.last_destination,
            "raw_details": row.raw_details,
            "replies": [],
            "trace": [],
        })

    def deliver_edit(self, row: ItineraryRequest, edit_text: str) -> DeliveryState:
        logger.info("Regenerating itinerary %s for %s", row.id, row.sender)
        return self.graph.invoke({
            "kind": "edit",
            "request_id": row.id,
            "sender": row.sender,
            "destination": row.last_destination,
            "original_text": row.itinerary_text,
            "raw_details": row.raw_details,
            "edit_text": edit_text,
            "replies": [],
            "trace": [],
        })
