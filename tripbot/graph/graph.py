import logging
from typing import Optional

from langgraph.graph import StateGraph, END

from tripbot import messages
from tripbot.agents.inspiration import INSPIRATION_FAILURE, run_inspiration_agent
from tripbot.agents.payment import run_checkout_agent
from tripbot.agents.travel_qa import QA_FAILURE, run_travel_qa_agent
from tripbot.config import Settings
from tripbot.dispatcher import MessageDispatcher
from tripbot.graph.delivery import DeliveryPipeline
from tripbot.graph.intent import detect_command, is_yes, normalize_text
from tripbot.graph.state import TurnState
from tripbot.providers.base import CompletionProvider, OutboundMessage, PaymentGateway
from tripbot.repository import ItineraryRepository
from tripbot.sessions import ConversationSession, ConversationState, Service, SessionStore
from tripbot.utils.links import build_flight_links, build_hotel_links, build_tour_links
from tripbot.utils.text import WHATSAPP_TEXT_LIMIT, format_local, shorten

logger = logging.getLogger(__name__)

S = ConversationState

# one graph node per conversation state
STATE_NODES = {s: s.value.lower() for s in ConversationState}


# ---------------------------
# Utilities
# ---------------------------
def add_trace(state: TurnState, node: str, detail: Optional[dict] = None):
    state.setdefault("trace", [])
    state["trace"].append({"node": node, "detail": detail or {}})


def reply(state: TurnState, body: str, media_url: Optional[str] = None,
          fallback_body: Optional[str] = None) -> None:
    state.setdefault("replies", []).append(
        OutboundMessage(body=body, media_url=media_url, fallback_body=fallback_body)
    )


def _to(session: ConversationSession, new_state: ConversationState) -> None:
    if session.state != new_state:
        logger.debug("%s: %s -> %s", session.sender, session.state.value, new_state.value)
    session.state = new_state


class ConversationWorkflow:
    """
    Per-sender chat state machine, run as a langgraph graph once per
    inbound message. Global commands are tried first; otherwise the turn
    goes to the node for the session's current state.
    """

    def __init__(
        self,
        settings: Settings,
        store: SessionStore,
        repository: ItineraryRepository,
        dispatcher: MessageDispatcher,
        pipeline: DeliveryPipeline,
        gateway: PaymentGateway,
        completion: CompletionProvider,
    ):
        self.settings = settings
        self.store = store
        self.repository = repository
        self.dispatcher = dispatcher
        self.pipeline = pipeline
        self.gateway = gateway
        self.completion = completion
        self.graph = self.build_graph()

    @property
    def brand(self) -> str:
        return self.settings.brand_name

    # ---------------------------
    # Global commands
    # ---------------------------
    def node_commands(self, state: TurnState) -> TurnState:
        command = detect_command(state["text"])
        session = state["session"]
        state["handled"] = command is not None

        if command == "menu":
            _to(session, S.MAIN_MENU)
            reply(state, messages.main_menu_text(self.brand))
        elif command == "view":
            self._view_itinerary(state)
        elif command == "edit":
            self._start_edit(state)

        if command:
            add_trace(state, "command", {"command": command})
        return state

    def _view_itinerary(self, state: TurnState) -> None:
        try:
            row = self.repository.latest_paid(state["sender"])
        except Exception:
            logger.exception("Failed to load itinerary for %s", state["sender"])
            reply(state, messages.ITINERARY_LOAD_FAILED)
            return

        if row is None or not (row.itinerary_text or row.itinerary_pdf_url):
            reply(state, messages.NO_PAID_ITINERARY)
            return

        extra = ""
        if row.editable_until:
            zone = self.settings.display_timezone
            extra = messages.edit_window_line(format_local(row.editable_until, zone), zone)

        text = shorten(row.itinerary_text or "", WHATSAPP_TEXT_LIMIT, notice=messages.VIEW_TRUNCATED_NOTICE)
        if row.itinerary_pdf_url:
            reply(
                state,
                messages.view_pdf_text(extra),
                media_url=row.itinerary_pdf_url,
                fallback_body=messages.view_text(text, extra) if text else None,
            )
        else:
            reply(state, messages.view_text(text, extra))

    def _start_edit(self, state: TurnState) -> None:
        session = state["session"]
        try:
            row = self.repository.latest_paid(state["sender"])
            if row is None:
                reply(state, messages.NO_ITINERARY_TO_EDIT)
                return
            if self.repository.editable_for(state["sender"], row.id) is None:
                reply(state, messages.EDIT_WINDOW_EXPIRED)
                return
        except Exception:
            logger.exception("Failed to prepare edit for %s", state["sender"])
            reply(state, messages.EDIT_PREPARE_FAILED)
            return

        session.current_itinerary_id = row.id
        _to(session, S.EDIT_ITINERARY_DETAILS)
        reply(state, messages.ASK_EDIT_DETAILS)

    def route_command(self, state: TurnState) -> str:
        if state.get("handled"):
            return "end"
        # anything unexpected behaves like a fresh session
        return STATE_NODES.get(state["session"].state, STATE_NODES[S.NEW])

    # ---------------------------
    # State nodes
    # ---------------------------
    def node_new(self, state: TurnState) -> TurnState:
        _to(state["session"], S.MAIN_MENU)
        reply(state, messages.main_menu_text(self.brand))
        return state

    def node_main_menu(self, state: TurnState) -> TurnState:
        session = state["session"]
        choice = state["text"]

        if choice == "1":
            session.last_service = Service.TOURS
            _to(session, S.ASK_TOUR_DEST)
            reply(state, messages.ASK_TOUR_DEST)
        elif choice == "2":
            session.last_service = Service.HOTELS
            _to(session, S.ASK_HOTEL_DEST)
            reply(state, messages.ASK_HOTEL_DEST)
        elif choice == "3":
            session.last_service = Service.FLIGHTS
            _to(session, S.ASK_FLIGHT_ROUTE)
            reply(state, messages.ASK_FLIGHT_ROUTE)
        elif choice == "4":
            _to(session, S.ASK_TRAVEL_QUESTION)
            reply(state, messages.ASK_TRAVEL_QUESTION)
        elif choice == "5":
            _to(session, S.ASK_ITINERARY_DETAILS)
            reply(state, messages.ASK_ITINERARY_DETAILS)
        elif choice == "6":
            _to(session, S.ASK_TRIP_INSPIRATION)
            reply(state, messages.ASK_TRIP_INSPIRATION)
        else:
            reply(state, messages.not_understood_text(self.brand))

        add_trace(state, "main_menu", {"choice": choice})
        return state

    def _links_turn(self, state: TurnState, service: Service, builder, text_fn, prompt: str) -> TurnState:
        session = state["session"]
        destination = state["body"].strip()
        if not destination:
            reply(state, prompt)
            return state
        session.last_destination = destination
        session.last_service = service

        links = builder(destination, self.settings.affiliates)
        reply(state, text_fn(destination, links) + messages.itinerary_upsell_text(destination))
        _to(session, S.AFTER_LINKS)
        add_trace(state, "links", {"service": service.value, "destination": destination})
        return state

    def node_ask_tour_dest(self, state: TurnState) -> TurnState:
        return self._links_turn(state, Service.TOURS, build_tour_links, messages.tour_links_text,
                                messages.ASK_TOUR_DEST)

    def node_ask_hotel_dest(self, state: TurnState) -> TurnState:
        return self._links_turn(state, Service.HOTELS, build_hotel_links, messages.hotel_links_text,
                                messages.ASK_HOTEL_DEST)

    def node_ask_flight_route(self, state: TurnState) -> TurnState:
        return self._links_turn(state, Service.FLIGHTS, build_flight_links, messages.flight_links_text,
                                messages.ASK_FLIGHT_ROUTE)

    def node_ask_travel_question(self, state: TurnState) -> TurnState:
        question = state["body"].strip()
        answer = run_travel_qa_agent(self.completion, question, self.brand)
        if answer == QA_FAILURE:
            reply(state, answer)
        else:
            reply(state, messages.travel_answer_text(question, answer))
        # stays in Q&A until MENU
        return state

    def node_ask_trip_inspiration(self, state: TurnState) -> TurnState:
        ideas = run_inspiration_agent(self.completion, state["body"].strip(), self.brand)
        reply(state, ideas if ideas == INSPIRATION_FAILURE else messages.inspiration_text(ideas))
        _to(state["session"], S.MAIN_MENU)
        return state

    def node_after_links(self, state: TurnState) -> TurnState:
        session = state["session"]
        if is_yes(state["text"]):
            _to(session, S.ASK_ITINERARY_DETAILS)
            reply(state, messages.ASK_ITINERARY_DETAILS_AFTER_LINKS)
        else:
            reply(state, messages.AFTER_LINKS_NUDGE)
        return state

    def node_ask_itinerary_details(self, state: TurnState) -> TurnState:
        session = state["session"]
        details = state["body"].strip()
        if not details:
            # media-only messages arrive with an empty body
            reply(state, messages.ASK_ITINERARY_DETAILS)
            return state
        session.itinerary_details = details

        try:
            row, link = run_checkout_agent(
                self.repository,
                self.gateway,
                sender=state["sender"],
                last_service=session.last_service.value if session.last_service else None,
                last_destination=session.last_destination,
                details=details,
                amount=self.settings.itinerary_amount,
                currency=self.settings.itinerary_currency,
                email_domain=self.settings.customer_email_domain,
            )
        except Exception as e:
            logger.exception("Checkout failed for %s", state["sender"])
            reply(state, messages.PAYMENT_LINK_FAILED)
            add_trace(state, "checkout", {"error": str(e)})
        else:
            reply(state, messages.payment_link_text(details, link.authorization_url))
            add_trace(state, "checkout", {"request_id": row.id, "reference": link.reference})

        _to(session, S.MAIN_MENU)
        return state

    def node_edit_itinerary_details(self, state: TurnState) -> TurnState:
        session = state["session"]
        if not state["body"].strip():
            reply(state, messages.ASK_EDIT_DETAILS)
            return state
        request_id = session.current_itinerary_id
        session.current_itinerary_id = None
        _to(session, S.MAIN_MENU)

        try:
            row = None
            if request_id is not None:
                row = self.repository.editable_for(state["sender"], request_id)
            if row is None:
                expired = request_id is not None and self.repository.get(request_id) is not None
                reply(state, messages.EDIT_WINDOW_EXPIRED if expired else messages.NO_EDITABLE_ITINERARY)
                return state
            # the pipeline sends its own messages
            result = self.pipeline.deliver_edit(row, state["body"].strip())
        except Exception as e:
            logger.exception("Edit failed for %s", state["sender"])
            reply(state, messages.EDIT_FAILED)
            add_trace(state, "edit", {"error": str(e)})
            return state

        add_trace(state, "edit", {"request_id": row.id, "pipeline": result.get("trace", [])})
        return state

    # ---------------------------
    # Graph
    # ---------------------------
    def build_graph(self):
        g = StateGraph(TurnState)

        g.add_node("commands", self.node_commands)
        for name in STATE_NODES.values():
            g.add_node(name, getattr(self, f"node_{name}"))

        g.set_entry_point("commands")
        g.add_conditional_edges(
            "commands",
            self.route_command,
            {"end": END, **{name: name for name in STATE_NODES.values()}},
        )
        for name in STATE_NODES.values():
            g.add_edge(name, END)

        return g.compile()

    def handle_incoming(self, sender: str, body: Optional[str]) -> list[OutboundMessage]:
        """
        Run one inbound message through the graph and send the replies.

        Never raises: any failure resets the session to the main menu and
        answers with an apology.
        """
        body = body or ""
        self.repository.log_message(sender, "inbound", body)

        with self.store.lock(sender):
            session = self.store.get_or_create(sender)
            try:
                out = self.graph.invoke({
                    "sender": sender,
                    "body": body,
                    "text": normalize_text(body),
                    "session": session,
                    "replies": [],
                    "handled": False,
                    "trace": [],
                })
                replies = out.get("replies") or []
                logger.debug("Turn trace for %s: %s", sender, out.get("trace"))
            except Exception:
                logger.exception("Error handling message from %s", sender)
                session.state = S.MAIN_MENU
                session.current_itinerary_id = None
                replies = [OutboundMessage(body=messages.GENERIC_ERROR)]

            self.store.put(session)
            self.dispatcher.send(sender, replies)
        return replies
