"""Tests for structural validation rules."""

from statdeck.config import MAX_CARDS_PER_DECK
from statdeck.models.validation import (
    validate_card,
    validate_deck,
    validate_game_preset,
    validate_statblock_config,
    validate_vocabulary,
)


def _fields(issues) -> list[str]:
    return [issue.field for issue in issues]


class TestValidateCard:
    def test_valid_card(self, make_card) -> None:
        """A complete card has no issues."""
        assert validate_card(make_card().to_dict()) == []

    def test_missing_name(self, make_card) -> None:
        """Blank names are rejected."""
        data = make_card(name="   ").to_dict()

        assert "name" in _fields(validate_card(data))

    def test_name_too_long(self, make_card) -> None:
        """Names are capped at 100 characters."""
        data = make_card(name="x" * 101).to_dict()

        issues = validate_card(data)
        assert issues[0].message == "Name must be at most 100 characters"

    def test_too_many_traits(self, make_card) -> None:
        """Trait lists are capped."""
        data = make_card(traits=[f"Trait {i}" for i in range(11)]).to_dict()

        assert "traits" in _fields(validate_card(data))

    def test_bad_mechanic_type(self, make_card) -> None:
        """Mechanic types must be known."""
        data = make_card().to_dict()
        data["mechanics"][0]["type"] = "charisma"

        assert "mechanics[0].type" in _fields(validate_card(data))

    def test_boolean_stat_value_rejected(self, make_card) -> None:
        """Stat values are text or numbers, never booleans."""
        data = make_card().to_dict()
        data["stats"][0]["value"] = True

        assert "stats[0].value" in _fields(validate_card(data))

    def test_unknown_card_theme(self, make_card) -> None:
        """Per-card theme overrides must name a real theme."""
        data = make_card(theme="neon").to_dict()

        assert "theme" in _fields(validate_card(data))

    def test_non_mapping(self) -> None:
        """Non-objects are rejected outright."""
        assert _fields(validate_card("card")) == ["card"]


class TestValidateDeck:
    def test_valid_deck(self, make_deck) -> None:
        """A well-formed deck has no issues."""
        assert validate_deck(make_deck().to_dict()) == []

    def test_empty_deck_rejected_by_default(self, make_deck) -> None:
        """Decks need at least one card unless allow_empty is set."""
        data = make_deck(cards=[]).to_dict()

        assert _fields(validate_deck(data)) == ["cards"]
        assert validate_deck(data, allow_empty=True) == []

    def test_card_cap(self, make_deck, make_card) -> None:
        """A deck holds at most 60 cards."""
        cards = [make_card(f"Card {i}") for i in range(MAX_CARDS_PER_DECK + 1)]

        issues = validate_deck(make_deck(cards=cards).to_dict())

        assert any(i.message == "A deck holds at most 60 cards" for i in issues)

    def test_card_cap_boundary(self, make_deck, make_card) -> None:
        """Exactly 60 cards is allowed."""
        cards = [make_card(f"Card {i}") for i in range(MAX_CARDS_PER_DECK)]

        assert validate_deck(make_deck(cards=cards).to_dict()) == []

    def test_invalid_theme_and_size(self, make_deck) -> None:
        """Theme and card size must come from the fixed sets."""
        data = make_deck().to_dict()
        data["meta"]["theme"] = "vaporwave"
        data["meta"]["cardSize"] = "mini"

        assert _fields(validate_deck(data)) == ["meta.theme", "meta.cardSize"]

    def test_duplicate_card_ids(self, make_deck, make_card) -> None:
        """Card ids are unique within a deck."""
        card = make_card()
        data = make_deck(cards=[card, card]).to_dict()

        assert "cards[1].id" in _fields(validate_deck(data))

    def test_nested_card_error_is_reported_per_card(self, make_deck) -> None:
        """Card errors are summarized under the card index."""
        data = make_deck().to_dict()
        data["cards"][1]["name"] = ""

        issues = validate_deck(data)

        assert issues[0].field == "cards[1]"
        assert issues[0].message.startswith("Invalid card: ")

    def test_negative_timestamp(self, make_deck) -> None:
        """Timestamps are non-negative whole numbers."""
        data = make_deck().to_dict()
        data["meta"]["lastEdited"] = -1

        assert "meta.lastEdited" in _fields(validate_deck(data))

    def test_missing_meta(self) -> None:
        """A deck without metadata is rejected, not crashed on."""
        issues = validate_deck({"id": "d", "cards": []})

        assert "meta" in _fields(issues)


class TestValidateVocabulary:
    def test_distinct_labels(self) -> None:
        """Distinct labels are valid."""
        assert validate_vocabulary({"health": "Health", "defense": "Defense"}) == []

    def test_case_and_whitespace_collisions(self) -> None:
        """Labels differing only by case or padding collide."""
        issues = validate_vocabulary({"health": "Health", "resource": " health "})

        assert len(issues) == 1
        assert issues[0].message == "Duplicate stat names: health"

    def test_empty_labels_exempt(self) -> None:
        """Blank labels never collide with each other."""
        assert validate_vocabulary({"health": "", "defense": "  ", "attack": "Attack"}) == []

    def test_empty_vocabulary(self) -> None:
        """An empty vocabulary is invalid."""
        assert _fields(validate_vocabulary({})) == ["vocabulary"]


class TestValidateStatblockConfig:
    @staticmethod
    def _config(**labels: str) -> dict:
        names = {
            "health": "Health",
            "defense": "Defense",
            "initiative": "Initiative",
            "movement": "Movement",
            "attack": "Attack",
            "resource": "Resource",
        }
        names.update(labels)
        return {
            "id": "custom",
            "name": "Custom",
            "vocabulary": {key: {"name": name, "defaultValue": 1} for key, name in names.items()},
        }

    def test_valid_config(self) -> None:
        """Every mechanic type labelled once is valid."""
        assert validate_statblock_config(self._config()) == []

    def test_missing_mechanic_type(self) -> None:
        """Every mechanic type needs a label."""
        config = self._config()
        del config["vocabulary"]["resource"]

        assert _fields(validate_statblock_config(config)) == ["vocabulary.resource"]

    def test_duplicate_labels(self) -> None:
        """Config labels go through the vocabulary collision check."""
        config = self._config(movement="Athletics", initiative="athletics")

        issues = validate_statblock_config(config)

        assert [i.message for i in issues] == ["Duplicate stat names: athletics"]


class TestValidateGamePreset:
    def test_valid_preset(self) -> None:
        """A preset with stats and mechanics is valid."""
        preset = {
            "id": "p",
            "name": "Preset",
            "frontStats": [{"id": "role", "label": "Role"}],
            "backMechanics": [{"id": "m", "name": "Defense", "value": 12, "type": "defense"}],
        }

        assert validate_game_preset(preset) == []

    def test_stat_without_label(self) -> None:
        """Front stats need labels."""
        preset = {"id": "p", "name": "Preset", "frontStats": [{"id": "role", "label": ""}]}

        assert _fields(validate_game_preset(preset)) == ["frontStats[0].label"]


class TestDeckMetaShapes:
    def test_custom_stats(self, make_deck) -> None:
        """Custom stat definitions need text ids and labels."""
        data = make_deck().to_dict()
        data["meta"]["customStats"] = [
            {"id": "speed", "label": "Speed"},
            {"id": "luck", "label": ["Luck"]},
            "reach",
        ]

        assert _fields(validate_deck(data)) == [
            "meta.customStats[1].label",
            "meta.customStats[2]",
        ]

    def test_custom_stats_must_be_a_list(self, make_deck) -> None:
        data = make_deck().to_dict()
        data["meta"]["customStats"] = {"id": "speed"}

        assert _fields(validate_deck(data)) == ["meta.customStats"]

    def test_custom_stat_icon_must_be_text(self, make_deck) -> None:
        data = make_deck().to_dict()
        data["meta"]["customStats"] = [{"id": "speed", "label": "Speed", "icon": 3}]

        assert _fields(validate_deck(data)) == ["meta.customStats[0].icon"]

    def test_ruleset_url_must_be_text(self, make_deck) -> None:
        data = make_deck().to_dict()
        data["meta"]["rulesetRef"] = {"name": "SRD 5.1", "url": 51}

        assert _fields(validate_deck(data)) == ["meta.rulesetRef.url"]

    def test_ruleset_without_url(self, make_deck) -> None:
        data = make_deck().to_dict()
        data["meta"]["rulesetRef"] = {"name": "SRD 5.1"}

        assert validate_deck(data) == []

    def test_unhashable_choices_are_invalid(self, make_deck) -> None:
        """Lists and objects where a choice is expected fail instead of crashing."""
        data = make_deck().to_dict()
        data["meta"]["theme"] = ["cordial"]
        data["meta"]["cardSize"] = {"size": "poker"}

        assert _fields(validate_deck(data)) == ["meta.theme", "meta.cardSize"]
