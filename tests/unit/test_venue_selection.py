from app.features.ready_plans.domain.models import BatchState, Venue
from app.features.ready_plans.pipeline.scheduling.venues import (
    choose_venue,
    parse_distance_miles,
    placeholder_venue,
    score_venue,
)


def test_parse_distance_miles():
    assert parse_distance_miles("3.7 mi") == 3.7
    assert parse_distance_miles("12 mi") == 12.0
    assert parse_distance_miles(None) == 10.0
    assert parse_distance_miles("nearby") == 10.0


def test_score_weights_rating_and_distance():
    venue = Venue(name="A", address="x", rating=5.0, distance="0 mi")
    far = Venue(name="B", address="x", rating=5.0, distance="15 mi")

    assert score_venue(venue) == 1.0
    assert score_venue(far) == 0.6


def test_best_venue_is_selected_and_marked_used():
    venues = [
        Venue(name="Far Cafe", address="1 St", rating=4.8, distance="8.0 mi"),
        Venue(name="Blue Bottle Coffee", address="2 St", rating=4.6, distance="0.4 mi"),
    ]

    choice, state = choose_venue(venues, BatchState(), "coffee", "Oakland")

    assert choice.placeholder is False
    assert choice.venue.name == "Blue Bottle Coffee"
    assert state.used_venue_names == frozenset({"blue bottle coffee"})


def test_venue_used_in_batch_is_not_selected_again_despite_case_and_whitespace():
    state = BatchState().with_venue("Blue Bottle Coffee")
    venues = [
        Venue(name="blue bottle coffee ", address="2 St", rating=5.0, distance="0.1 mi"),
        Venue(name="Philz", address="3 St", rating=4.0, distance="2.0 mi"),
    ]

    choice, _ = choose_venue(venues, state, "coffee", "Oakland")

    assert choice.venue.name == "Philz"


def test_placeholder_when_every_venue_is_used_and_not_marked():
    state = BatchState().with_venue("Philz")

    choice, new_state = choose_venue(
        [Venue(name="Philz", address="3 St", rating=4.5)], state, "walk", "Oakland"
    )

    assert choice.placeholder is True
    assert choice.venue.name == "Local Park"
    assert choice.venue.address == "Oakland"
    assert new_state.used_venue_names == frozenset({"philz"})


def test_no_venue_when_placeholders_are_disabled():
    state = BatchState()

    choice, new_state = choose_venue([], state, "coffee", "Oakland", allow_placeholder=False)

    assert choice is None
    assert new_state is state


def test_placeholder_names_by_activity():
    assert placeholder_venue("coffee", "Austin").name == "Local Coffee Shop"
    assert placeholder_venue("walk", "Austin").name == "Local Park"
    assert placeholder_venue("museum", "Austin").name == "Local Restaurant"

    venue = placeholder_venue("coffee", "Austin")
    assert venue.rating == 4.5
    assert venue.distance == "0.5 mi"
