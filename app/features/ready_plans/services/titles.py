"""
Plan title generation.

Titles are picked deterministically from activity templates plus a few
context-specific variations, so the same inputs always give the same title
while different invitees, venues and interests spread across templates.
"""

import re
from dataclasses import dataclass, field

_NON_LETTERS = re.compile(r"[^a-z]")


@dataclass(slots=True)
class TitleContext:
    activity_type: str
    shared_interests: list[str] = field(default_factory=list)
    venue_name: str | None = None
    invitee_name: str | None = None
    invitee_school: str | None = None
    city: str | None = None


def _normalize_interests(interests: list[str], limit: int = 3) -> list[str]:
    cleaned = (i.lower().strip() for i in interests if i)
    return list(dict.fromkeys(i for i in cleaned if i))[:limit]


def _first_name(name: str | None) -> str | None:
    return name.split(" ")[0] if name else None


def _activity_templates(
    activity: str, venue: str | None, interest: str, first: str | None, city: str | None
) -> list[str]:
    templates = {
        "coffee": [
            f"Coffee at {venue}" if venue else "Coffee & catch up",
            f"Chat about {interest}" if interest else "Coffee conversation",
            f"Try {venue}" if venue else "Coffee meetup",
            f"Talk {interest} over coffee" if interest else "Coffee & connect",
            f"Visit {venue}" if venue else "Coffee break together",
            f"Coffee with {first}" if first else "Coffee & hang",
        ],
        "walk": [
            f"Walk around {city}" if city else "Neighborhood stroll",
            f"Talk about {interest} while walking" if interest else "Walk & talk",
            "Explore together",
            f"Stroll & discuss {interest}" if interest else "City walk",
            "Walking meetup",
            f"Walk with {first}" if first else "Explore the area",
        ],
        "casual_food": [
            f"Dinner at {venue}" if venue else "Grab dinner together",
            f"Talk {interest} over dinner" if interest else "Dinner & catch up",
            f"Try {venue}" if venue else "Try a new spot",
            f"Food & {interest} conversation" if interest else "Casual dinner",
            f"Check out {venue}" if venue else "New restaurant discovery",
            f"Dinner with {first}" if first else "Dinner together",
        ],
        "museum": [
            f"Visit {venue}" if venue else "Museum exploration",
            f"Explore {interest} together" if interest else "Museum visit",
            f"See {venue}" if venue else "Cultural discovery",
            f"Learn about {interest}" if interest else "Museum day",
            "Art & culture",
            f"Museum visit with {first}" if first else "Gallery exploration",
        ],
        "art": [
            f"See {venue}" if venue else "Gallery visit",
            f"Explore {interest} art" if interest else "Art gallery",
            f"Check out {venue}" if venue else "Art discovery",
            f"Discuss {interest} at the gallery" if interest else "Gallery exploration",
            "Art & culture",
            f"Art with {first}" if first else "Creative meetup",
        ],
        "concert": [
            f"Live show at {venue}" if venue else "Live music",
            f"Enjoy {interest} & music" if interest else "Concert night",
            f"See a show at {venue}" if venue else "Music night",
            f"Connect through {interest} & live music" if interest else "Live performance",
            "Music & vibes",
            f"Concert with {first}" if first else "Music discovery",
        ],
        "sports": [
            f"Watch at {venue}" if venue else "Game night",
            f"Sports & {interest} chat" if interest else "Sports viewing",
            f"Catch the game at {venue}" if venue else "Game together",
            "Sports & hang",
            f"Game with {first}" if first else "Watch the game",
        ],
        "fitness": [
            "Workout together",
            f"Fitness & {interest} talk" if interest else "Active meetup",
            "Exercise & connect",
            f"Stay active & discuss {interest}" if interest else "Fitness session",
            "Workout & hang",
            f"Workout with {first}" if first else "Get active",
        ],
        "bookstore": [
            f"Browse {venue}" if venue else "Bookstore visit",
            f"Books & {interest} discussion" if interest else "Bookstore exploration",
            f"Check out {venue}" if venue else "Literary discovery",
            f"Talk {interest} at the bookstore" if interest else "Book meetup",
            "Books & conversation",
            f"Bookstore with {first}" if first else "Literary hangout",
        ],
    }
    return templates.get(activity, templates["coffee"])


def _contextual_templates(
    venue: str | None, primary: str, secondary: str, first: str | None, school: str | None
) -> list[str]:
    templates = []
    if first and venue:
        templates += [f"Meet {first} at {venue}", f"Hang with {first} at {venue}", f"{first} & you at {venue}"]
    if school and primary:
        templates += [f"{school} meetup: {primary}", f"Connect over {primary}"]
    # Skip when the venue already names the interest ("Music Hall: music conversation")
    if venue and primary and primary not in venue.lower():
        templates += [f"{venue}: {primary} conversation", f"Explore {venue} & talk {primary}"]
    if primary and secondary and primary != secondary:
        templates += [f"Talk {primary} & {secondary}", f"Connect over {primary} & {secondary}"]
    return templates


def _drop_repeated_words(title: str) -> str:
    seen = set()
    kept = []
    for word in title.split():
        key = _NON_LETTERS.sub("", word.lower())
        if key in seen:
            continue
        seen.add(key)
        kept.append(word)
    return " ".join(kept)


def generate_plan_title(context: TitleContext) -> str:
    interests = _normalize_interests(context.shared_interests)
    primary = interests[0] if interests else ""
    secondary = interests[1] if len(interests) > 1 else ""
    venue = context.venue_name or None
    first = _first_name(context.invitee_name)

    templates = _contextual_templates(
        venue, primary, secondary, first, context.invitee_school
    ) + _activity_templates(context.activity_type, venue, primary, first, context.city)

    seed = (
        len(venue or "")
        + len(primary)
        + len(context.invitee_name or "")
        + len(context.activity_type or "")
    )
    title = _drop_repeated_words(templates[seed % len(templates)]).strip()

    if len(title) < 3:
        if venue:
            title = f"Meet at {venue}"
        elif primary:
            title = f"Connect over {primary}"
        elif first:
            title = f"Meet {first}"
        else:
            title = "Let's meet up"

    return title[0].upper() + title[1:]
