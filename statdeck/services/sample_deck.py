"""
Sample deck for demo mode.

"Tales of the Uncanny": three cards, one each of character, item and
location. The images are bare file names that only resolve inside the
bundled app, so the deck also exercises the image migration warnings.
"""

from statdeck.models.deck import Card, Deck, DeckMeta, LocalImage, new_id, now_ms

SAMPLE_DECK_NAME = "Tales of the Uncanny"

_SAMPLE_CARDS = [
    {
        "name": "Dr. Blackwood",
        "role": "Enigmatic Professor",
        "image": "blackwood.jpg",
        "traits": [
            "Appearance: Wears a well-worn tweed jacket",
            "Personality: Obsessed with ancient mysteries",
        ],
        "secrets": [
            "Hidden: Knows too much about forbidden magic",
            "Plot: Recently acquired a cursed artifact",
        ],
        "desc": "A brilliant but eccentric academic whose research into occult artifacts "
        "has led him down dangerous paths.",
        "type": "character",
    },
    {
        "name": "The Ethereal Compass",
        "role": "Mystical Device",
        "image": "classic.png",
        "traits": [
            "Appearance: Brass and silver construction",
            "Property: Points to magical disturbances",
        ],
        "secrets": ["Hidden: Has a mind of its own", "Plot: Previous owner vanished mysteriously"],
        "desc": "An ornate compass that responds to supernatural phenomena rather than "
        "magnetic north.",
        "type": "item",
    },
    {
        "name": "The Misty Vale",
        "role": "Mysterious Location",
        "image": "scriptorum_cropped.png",
        "traits": [
            "Appearance: Perpetually shrouded in fog",
            "Property: Time flows strangely here",
        ],
        "secrets": [
            "Hidden: Contains a gateway to elsewhere",
            "Plot: Local children have been disappearing",
        ],
        "desc": "A secluded valley where reality seems to bend and shift, defying the laws "
        "of nature.",
        "type": "location",
    },
]


def get_sample_deck() -> Deck:
    """
    Get the sample deck for demo mode.

    Every call returns a new deck with fresh ids.
    """
    stamp = now_ms()
    return Deck(
        id=new_id(),
        meta=DeckMeta(name=SAMPLE_DECK_NAME, last_edited=stamp, created_at=stamp),
        cards=[
            Card(
                id=new_id(),
                name=card["name"],
                role=card["role"],
                desc=card["desc"],
                type=card["type"],
                traits=list(card["traits"]),
                secrets=list(card["secrets"]),
                image=LocalImage(handle=card["image"]),
            )
            for card in _SAMPLE_CARDS
        ],
    )
