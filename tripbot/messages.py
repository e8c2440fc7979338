"""User-visible chat texts."""

SHORTENED_NOTICE = "\n\n(Shortened to fit WhatsApp limits.)"


def main_menu_text(brand: str = "Hugu Adventures") -> str:
    return (
        f"Hi 👋, I'm your *{brand} Travel Assistant*.\n\n"
        "What would you like to do today?\n"
        "1️⃣ Find *tours & activities*\n"
        "2️⃣ Find *hotels / stays*\n"
        "3️⃣ Find *flights*\n"
        "4️⃣ Ask a *travel question*\n"
        "5️⃣ Get a *custom itinerary* (from *$5*)\n"
        "6️⃣ Get *trip inspiration* (free ideas)\n\n"
        "Reply with *1, 2, 3, 4, 5 or 6*."
    )


def not_understood_text(brand: str) -> str:
    return "Sorry, I didn't understand that.\n\n" + main_menu_text(brand)


def itinerary_upsell_text(destination: str) -> str:
    return (
        f"Would you like me to build a *detailed day-by-day itinerary* for *{destination}* from just *$5*? 🧳✨\n\n"
        "You'll get:\n"
        "• A suggested day-by-day plan\n"
        "• Tours, hotels, and optional activities linked\n"
        "• Ability to request edits for up to *3 days*\n\n"
        "Reply *YES* to learn how it works, or *MENU* to go back."
    )


ASK_TOUR_DEST = (
    "Awesome! 🎟\nWhich *city or destination* are you interested in for tours?\n\n"
    "Example: *Nairobi*, *Diani*, *Dubai*"
)
ASK_HOTEL_DEST = (
    "Great! 🏨\nWhich *city or area* do you want to stay in?\n\n"
    "Example: *Nairobi CBD*, *Westlands*, *Diani Beach*"
)
ASK_FLIGHT_ROUTE = (
    "✈️ Nice!\nPlease type your route in this format:\n\n"
    "*From City → To City*\nExample: *Nairobi → Cape Town*"
)
ASK_TRAVEL_QUESTION = (
    "Sure! ✨\nAsk me anything about *Kenya, East Africa, or trip planning* and I'll do my best to help."
)
ASK_ITINERARY_DETAILS = (
    "Amazing! 🧳\nLet's get some details so I can prepare a *custom itinerary* (from *$5*).\n\n"
    "Please reply in this format:\n"
    "*Destination(s)*:\n"
    "*Number of days*:\n"
    "*Rough budget* (low / mid / luxury):\n"
    "*Travel month*:"
)
ASK_ITINERARY_DETAILS_AFTER_LINKS = (
    "Awesome! 🧳\nI can create a *draft itinerary* for you.\n\n"
    "Before we talk about payment, please share these details:\n"
    "*Destination(s)*:\n"
    "*Number of days*:\n"
    "*Rough budget* (low / mid / luxury):\n"
    "*Travel month*:"
)
ASK_TRIP_INSPIRATION = (
    "Love it! 🌍✨\nTell me a bit about what you're dreaming of.\n\n"
    "You can reply in *one message* like this:\n"
    "*From*: (your country or city)\n"
    "*Where to*: (region or \"surprise me\")\n"
    "*Number of days*:\n"
    "*Budget*: low / mid / luxury\n"
    "*Who*: solo / couple / family / friends\n"
    "*Travel month*:\n\n"
    "Example:\n"
    "\"From Nairobi, 4-5 days, mid-budget, for a couple, somewhere beachy in April.\""
)
AFTER_LINKS_NUDGE = (
    "Got it 👍\nIf you change your mind, just type *YES* for a custom itinerary, or *MENU* to see options again."
)


def tour_links_text(destination: str, links: list[str]) -> str:
    return (
        f"Great choice! 🎉 Here are *tour ideas* for *{destination}* on Viator:\n\n"
        + "\n".join(f"🔗 {link}" for link in links)
        + "\n\n"
    )


def hotel_links_text(destination: str, links: list[str]) -> str:
    return (
        f"Nice! 🛌 Here are *stay ideas* for *{destination}*:\n\n"
        + "\n".join(f"🔗 {link}" for link in links)
        + "\n\n"
    )


def flight_links_text(route: str, links: list[str]) -> str:
    return (
        f"Great! ✈️ Here is a *flight search idea* for *{route}*:\n\n"
        + "\n".join(f"🔗 {link}" for link in links)
        + "\n\n"
    )


def travel_answer_text(question: str, answer: str) -> str:
    return (
        "🧭 *Travel Q&A*\n\n"
        f"*Your question:*\n{question}\n\n"
        f"*My answer:*\n{answer}\n\n"
        "You can ask another question, or type *MENU* to go back."
    )


def inspiration_text(ideas: str) -> str:
    return (
        "🌍 *Trip inspiration for you*\n\n"
        + ideas
        + "\n\nIf you'd like me to turn one of these into a *day-by-day custom itinerary* with links, "
        "reply with *5* to start the paid itinerary flow, or type *MENU* to go back."
    )


def payment_link_text(details: str, pay_link: str) -> str:
    return (
        "Thank you! 🙏\nI've noted your trip details:\n\n"
        + details
        + "\n\nTo proceed with your *custom itinerary* (from *$5*), please complete payment using this secure link:\n\n"
        f"💳 *Payment link*: {pay_link}\n\n"
        "Once payment is confirmed, I'll start creating your detailed itinerary. "
        "You'll be able to request edits for up to *3 days* after delivery. 🧳✨\n\n"
        "Type *MENU* to go back."
    )


PAYMENT_LINK_FAILED = (
    "Sorry 😔 I had trouble preparing the payment link. Please type *MENU* and try again in a moment."
)

# ---------------------------
# View / edit itinerary
# ---------------------------
NO_PAID_ITINERARY = (
    "I couldn't find any paid itineraries for this number yet. "
    "You can get one by choosing *5* from the main menu."
)
NO_ITINERARY_TO_EDIT = (
    "I couldn't find a paid itinerary to edit. You can request one by choosing *5* from the main menu."
)
EDIT_WINDOW_EXPIRED = (
    "Your 3-day edit window for this itinerary has expired. To create a new version, "
    "please choose *5* from the main menu and request a fresh itinerary."
)
ASK_EDIT_DETAILS = (
    "No problem! 😊\nPlease send your *updated trip details* (or describe the changes you'd like). "
    "I'll regenerate your itinerary based on your new message."
)
NO_EDITABLE_ITINERARY = "Sorry, I couldn't find an editable itinerary for you."
ITINERARY_LOAD_FAILED = "Sorry, I had trouble loading your itinerary. Please try again in a moment."
EDIT_PREPARE_FAILED = "Sorry, I hit a problem while preparing your edit. Please try again shortly."
EDIT_FAILED = (
    "Sorry, I hit a problem while updating your itinerary. Please try again shortly or type *MENU* to go back."
)
VIEW_TRUNCATED_NOTICE = "\n\n(Shortened. Please request a new PDF itinerary if needed.)"
ITINERARY_MISSING_TEXT = "I have your itinerary, but I couldn't load the details."


def edit_window_line(local_time: str, zone: str) -> str:
    return f"\n\n🕒 *Edit window:* until {local_time} ({zone} time)."


def view_pdf_text(extra: str) -> str:
    return "Here is your latest itinerary as a PDF. 📄" + extra


def view_text(itinerary: str, extra: str) -> str:
    return "Here is your latest itinerary:\n\n" + itinerary + extra


# ---------------------------
# Delivery
# ---------------------------
def paid_pdf_text(destination: str) -> str:
    return (
        "🎉 *Payment received successfully!* Thank you.\n\n"
        f"I've created your *custom itinerary* for *{destination}* as a PDF.\n"
        "📄 Please open the attached file to view your day-by-day plan.\n\n"
        "You can reply with *EDIT ITINERARY* within the next *3 days* to request changes."
    )


PDF_SENT_CONFIRMATION = (
    "✅ Your itinerary PDF has been sent. If you don't see it, reply with *ITINERARY* "
    "and I'll resend the text version."
)


def paid_text(destination: str, itinerary: str) -> str:
    return (
        "🎉 *Payment received successfully!* Thank you.\n\n"
        f"Here is your *draft itinerary* for *{destination}*:\n\n"
        + itinerary
        + "\n\nYou can reply with *EDIT ITINERARY* to request changes within the next *3 days*, "
        "or *ITINERARY* any time to view this plan again."
    )


UPDATED_PDF_TEXT = (
    "Here is your *updated itinerary* as a PDF. 📄\n\n"
    "You can still request more edits within your 3-day window by sending *EDIT ITINERARY* again."
)


def updated_text(itinerary: str) -> str:
    return (
        "Here is your *updated itinerary*:\n\n"
        + itinerary
        + "\n\nYou can still request more edits within your 3-day window by sending *EDIT ITINERARY* again."
    )


GENERIC_ERROR = "Oops 😅 something went wrong on my side. Please type *MENU* to start again."
