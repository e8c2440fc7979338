from tripbot.graph.intent import DEFAULT_DAYS, extract_day_count


def fallback_itinerary(destination: str | None, details: str | None) -> str:
    """Fixed-template draft used whenever the completion service can't deliver."""
    destination = (destination or "").strip() or "your trip"
    days = extract_day_count(details) or DEFAULT_DAYS

    out = f"🧳 *Draft Itinerary for {destination}*\n"
    out += "_This is a first draft based on the info you shared. We can tweak it within 3 days._\n\n"

    for d in range(1, days + 1):
        out += f"*Day {d}:*\n"
        if d == 1:
            out += f"• Arrival in {destination}, transfer to your accommodation.\n"
            out += "• Easy walk / rest, get familiar with the area.\n\n"
        else:
            out += "• Morning: Flexible activity (city tour, safari, beach time, or cultural visit).\n"
            out += "• Afternoon: Another activity or free time.\n"
            out += "• Evening: Dinner at a recommended local spot or at your lodge.\n\n"

    out += (
        "📌 *Next steps:*\n"
        "• We can swap days around or add/remove activities.\n"
        "• Reply *EDIT ITINERARY* to request changes.\n"
    )
    return out
