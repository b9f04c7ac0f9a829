"""
Structural validation rules for decks, cards, vocabularies and presets.

Every function takes the wire-shaped mapping (the same JSON form that is
stored and shared), so untrusted input from a share link is checked by
exactly the rules that guard storage writes. Functions are pure and return
a list of violations; an empty list means valid.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from statdeck.config import (
    MAX_CARD_DESC_LENGTH,
    MAX_CARD_NAME_LENGTH,
    MAX_CARD_ROLE_LENGTH,
    MAX_CARDS_PER_DECK,
    MAX_DECK_NAME_LENGTH,
    MAX_MECHANIC_NAME_LENGTH,
    MAX_MECHANICS,
    MAX_SECRETS,
    MAX_STATS,
    MAX_TEXT_ITEM_LENGTH,
    MAX_TRAITS,
)
from statdeck.models.deck import CARD_SIZES, THEMES, MechanicType

_MECHANIC_TYPES = frozenset(kind.value for kind in MechanicType)


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single violated rule."""

    field: str
    message: str


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_choice(value: Any, choices: frozenset[str]) -> bool:
    return isinstance(value, str) and value in choices


def _is_stat_value(value: Any) -> bool:
    # bool is an int subclass but never a meaningful stat value
    return isinstance(value, str | int | float) and not isinstance(value, bool)


def _check_text_list(
    value: Any, field: str, label: str, max_items: int, errors: list[ValidationIssue]
) -> None:
    if not isinstance(value, list):
        errors.append(ValidationIssue(field, f"{label} must be an array"))
        return
    if len(value) > max_items:
        errors.append(ValidationIssue(field, f"At most {max_items} {label.lower()} allowed"))
    for index, item in enumerate(value):
        if not isinstance(item, str):
            errors.append(ValidationIssue(f"{field}[{index}]", f"{label} entries must be text"))
        elif len(item) > MAX_TEXT_ITEM_LENGTH:
            errors.append(
                ValidationIssue(
                    f"{field}[{index}]",
                    f"{label} entries must be at most {MAX_TEXT_ITEM_LENGTH} characters",
                )
            )


def _check_length(
    value: Any, field: str, label: str, limit: int, errors: list[ValidationIssue]
) -> None:
    if isinstance(value, str) and len(value) > limit:
        errors.append(ValidationIssue(field, f"{label} must be at most {limit} characters"))


def validate_mechanic(mechanic: Any, field: str) -> list[ValidationIssue]:
    """Validate one back-of-card mechanic."""
    if not isinstance(mechanic, Mapping):
        return [ValidationIssue(field, "Mechanic must be an object")]

    errors: list[ValidationIssue] = []
    if not _is_text(mechanic.get("id")):
        errors.append(ValidationIssue(f"{field}.id", "Mechanic ID is required"))
    name = mechanic.get("name")
    if not _is_text(name):
        errors.append(ValidationIssue(f"{field}.name", "Mechanic name is required"))
    else:
        _check_length(name, f"{field}.name", "Mechanic name", MAX_MECHANIC_NAME_LENGTH, errors)
    if not _is_stat_value(mechanic.get("value")):
        errors.append(ValidationIssue(f"{field}.value", "Mechanic value is required"))
    if not _is_choice(mechanic.get("type"), _MECHANIC_TYPES):
        errors.append(ValidationIssue(f"{field}.type", "Invalid mechanic type"))
    if "tracked" in mechanic and not isinstance(mechanic["tracked"], bool):
        errors.append(ValidationIssue(f"{field}.tracked", "Tracked must be true or false"))
    return errors


def validate_card(card: Any) -> list[ValidationIssue]:
    """Validate a single card mapping."""
    if not isinstance(card, Mapping):
        return [ValidationIssue("card", "Card must be an object")]

    errors: list[ValidationIssue] = []

    if not _is_text(card.get("id")):
        errors.append(ValidationIssue("id", "Card ID is required"))

    name = card.get("name")
    if not _is_text(name):
        errors.append(ValidationIssue("name", "Name is required"))
    else:
        _check_length(name, "name", "Name", MAX_CARD_NAME_LENGTH, errors)

    role = card.get("role", "")
    if not isinstance(role, str):
        errors.append(ValidationIssue("role", "Role must be text"))
    else:
        _check_length(role, "role", "Role", MAX_CARD_ROLE_LENGTH, errors)

    desc = card.get("desc", "")
    if not isinstance(desc, str):
        errors.append(ValidationIssue("desc", "Description must be text"))
    else:
        _check_length(desc, "desc", "Description", MAX_CARD_DESC_LENGTH, errors)

    if not _is_text(card.get("type")):
        errors.append(ValidationIssue("type", "Card type is required"))

    _check_text_list(card.get("traits", []), "traits", "Traits", MAX_TRAITS, errors)
    _check_text_list(card.get("secrets", []), "secrets", "Secrets", MAX_SECRETS, errors)

    image = card.get("image")
    if image is not None and not isinstance(image, str):
        errors.append(ValidationIssue("image", "Image must be a URL or null"))

    stats = card.get("stats", [])
    if not isinstance(stats, list):
        errors.append(ValidationIssue("stats", "Stats must be an array"))
    else:
        if len(stats) > MAX_STATS:
            errors.append(ValidationIssue("stats", f"At most {MAX_STATS} stats allowed"))
        for index, stat in enumerate(stats):
            if not isinstance(stat, Mapping) or not _is_text(stat.get("statId")):
                errors.append(ValidationIssue(f"stats[{index}].statId", "Stat ID is required"))
            elif not _is_stat_value(stat.get("value")):
                errors.append(ValidationIssue(f"stats[{index}].value", "Stat value is required"))

    mechanics = card.get("mechanics", [])
    if not isinstance(mechanics, list):
        errors.append(ValidationIssue("mechanics", "Mechanics must be an array"))
    else:
        if len(mechanics) > MAX_MECHANICS:
            errors.append(
                ValidationIssue("mechanics", f"At most {MAX_MECHANICS} mechanics allowed")
            )
        for index, mechanic in enumerate(mechanics):
            errors.extend(validate_mechanic(mechanic, f"mechanics[{index}]"))

    theme = card.get("theme")
    if theme is not None and not _is_choice(theme, THEMES):
        errors.append(ValidationIssue("theme", "Invalid theme"))

    return errors


def _validate_custom_stats(custom_stats: Any) -> list[ValidationIssue]:
    if custom_stats is None:
        return []
    if not isinstance(custom_stats, list):
        return [ValidationIssue("meta.customStats", "Custom stats must be an array")]

    errors: list[ValidationIssue] = []
    for index, stat in enumerate(custom_stats):
        field = f"meta.customStats[{index}]"
        if not isinstance(stat, Mapping):
            errors.append(ValidationIssue(field, "Custom stat must be an object"))
            continue
        if not _is_text(stat.get("id")):
            errors.append(ValidationIssue(f"{field}.id", "Stat ID is required"))
        if not _is_text(stat.get("label")):
            errors.append(ValidationIssue(f"{field}.label", "Stat label is required"))
        for key in ("icon", "category"):
            if key in stat and not isinstance(stat[key], str):
                errors.append(ValidationIssue(f"{field}.{key}", f"Stat {key} must be text"))
    return errors


def validate_deck(deck: Any, allow_empty: bool = False) -> list[ValidationIssue]:
    """
    Validate a deck mapping.

    Args:
        deck: Wire-shaped deck
        allow_empty: Accept a deck with zero cards (new decks, theme
            changes on an empty deck, deleting the last card)
    """
    if not isinstance(deck, Mapping):
        return [ValidationIssue("deck", "Deck must be an object")]

    errors: list[ValidationIssue] = []

    if not _is_text(deck.get("id")):
        errors.append(ValidationIssue("id", "Deck ID is required"))

    meta = deck.get("meta")
    if not isinstance(meta, Mapping):
        errors.append(ValidationIssue("meta", "Deck metadata is required"))
        meta = {}

    name = meta.get("name")
    if not _is_text(name):
        errors.append(ValidationIssue("meta.name", "Deck name is required"))
    else:
        _check_length(name, "meta.name", "Deck name", MAX_DECK_NAME_LENGTH, errors)

    if not _is_choice(meta.get("theme"), THEMES):
        errors.append(ValidationIssue("meta.theme", "Invalid theme"))

    if not _is_choice(meta.get("cardSize"), CARD_SIZES):
        errors.append(ValidationIssue("meta.cardSize", "Invalid card size"))

    for stamp in ("lastEdited", "createdAt"):
        value = meta.get(stamp, 0)
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            errors.append(ValidationIssue(f"meta.{stamp}", "Timestamp must be a whole number"))

    if "description" in meta and not isinstance(meta["description"], str):
        errors.append(ValidationIssue("meta.description", "Description must be a string"))

    if "tags" in meta and not (
        isinstance(meta["tags"], list) and all(isinstance(t, str) for t in meta["tags"])
    ):
        errors.append(ValidationIssue("meta.tags", "Tags must be an array"))

    if "rulesetRef" in meta:
        ruleset = meta["rulesetRef"]
        if not isinstance(ruleset, Mapping):
            errors.append(
                ValidationIssue("meta.rulesetRef", "Ruleset reference must be an object")
            )
        else:
            if not _is_text(ruleset.get("name")):
                errors.append(ValidationIssue("meta.rulesetRef.name", "Ruleset name is required"))
            url = ruleset.get("url")
            if url is not None and not isinstance(url, str):
                errors.append(ValidationIssue("meta.rulesetRef.url", "Ruleset URL must be text"))

    if "customStats" in meta:
        errors.extend(_validate_custom_stats(meta["customStats"]))

    if "statblockConfigId" in meta and not _is_text(meta["statblockConfigId"]):
        errors.append(
            ValidationIssue("meta.statblockConfigId", "Statblock config id must be text")
        )

    cards = deck.get("cards")
    if not isinstance(cards, list):
        errors.append(ValidationIssue("cards", "Cards must be an array"))
        return errors

    if not allow_empty and not cards:
        errors.append(ValidationIssue("cards", "At least one card is required"))
    if len(cards) > MAX_CARDS_PER_DECK:
        errors.append(
            ValidationIssue("cards", f"A deck holds at most {MAX_CARDS_PER_DECK} cards")
        )

    seen_ids: set[str] = set()
    for index, card in enumerate(cards):
        card_errors = validate_card(card)
        if card_errors:
            errors.append(
                ValidationIssue(
                    f"cards[{index}]",
                    f"Invalid card: {', '.join(e.message for e in card_errors)}",
                )
            )
            continue
        if card["id"] in seen_ids:
            errors.append(ValidationIssue(f"cards[{index}].id", "Duplicate card ID"))
        seen_ids.add(card["id"])

    return errors


def validate_vocabulary(vocabulary: Any) -> list[ValidationIssue]:
    """
    Validate a {mechanic key: label} vocabulary.

    Labels are rendered as-is, so two non-empty labels that differ only by
    case or surrounding whitespace would be ambiguous. Empty labels are
    exempt from the collision check.
    """
    if not isinstance(vocabulary, Mapping) or not vocabulary:
        return [ValidationIssue("vocabulary", "Vocabulary must not be empty")]

    errors: list[ValidationIssue] = []
    seen: dict[str, str] = {}
    duplicates: list[str] = []

    for key, label in vocabulary.items():
        if not isinstance(label, str):
            errors.append(ValidationIssue(f"vocabulary.{key}", "Label must be text"))
            continue
        normalized = label.strip().casefold()
        if not normalized:
            continue
        if normalized in seen:
            if normalized not in duplicates:
                duplicates.append(normalized)
        else:
            seen[normalized] = key

    if duplicates:
        errors.append(
            ValidationIssue("vocabulary", f"Duplicate stat names: {', '.join(duplicates)}")
        )
    return errors


def validate_statblock_config(config: Any) -> list[ValidationIssue]:
    """Validate a stored statblock configuration mapping."""
    if not isinstance(config, Mapping):
        return [ValidationIssue("config", "Statblock config must be an object")]

    errors: list[ValidationIssue] = []
    if not _is_text(config.get("id")):
        errors.append(ValidationIssue("id", "Config ID is required"))
    if not _is_text(config.get("name")):
        errors.append(ValidationIssue("name", "Config name is required"))

    vocabulary = config.get("vocabulary")
    if not isinstance(vocabulary, Mapping):
        errors.append(ValidationIssue("vocabulary", "Vocabulary is required"))
        return errors

    labels: dict[str, Any] = {}
    for kind in _MECHANIC_TYPES:
        entry = vocabulary.get(kind)
        if not isinstance(entry, Mapping) or not _is_text(entry.get("name")):
            errors.append(ValidationIssue(f"vocabulary.{kind}", f"Missing required stat: {kind}"))
            continue
        labels[kind] = entry["name"]
    for key in vocabulary:
        if key not in _MECHANIC_TYPES:
            errors.append(ValidationIssue(f"vocabulary.{key}", "Unknown mechanic type"))

    if labels:
        errors.extend(validate_vocabulary(labels))
    return errors


def validate_game_preset(preset: Any) -> list[ValidationIssue]:
    """Validate a stored game preset mapping."""
    if not isinstance(preset, Mapping):
        return [ValidationIssue("preset", "Game preset must be an object")]

    errors: list[ValidationIssue] = []
    if not _is_text(preset.get("id")):
        errors.append(ValidationIssue("id", "Preset ID is required"))
    if not _is_text(preset.get("name")):
        errors.append(ValidationIssue("name", "Preset name is required"))

    front_stats = preset.get("frontStats", [])
    if not isinstance(front_stats, list):
        errors.append(ValidationIssue("frontStats", "Front stats must be an array"))
    else:
        if len(front_stats) > MAX_STATS:
            errors.append(ValidationIssue("frontStats", f"At most {MAX_STATS} stats allowed"))
        for index, stat in enumerate(front_stats):
            if not isinstance(stat, Mapping) or not _is_text(stat.get("id")):
                errors.append(ValidationIssue(f"frontStats[{index}].id", "Stat ID is required"))
            elif not _is_text(stat.get("label")):
                errors.append(
                    ValidationIssue(f"frontStats[{index}].label", "Stat label is required")
                )

    back_mechanics = preset.get("backMechanics", [])
    if not isinstance(back_mechanics, list):
        errors.append(ValidationIssue("backMechanics", "Back mechanics must be an array"))
    else:
        if len(back_mechanics) > MAX_MECHANICS:
            errors.append(
                ValidationIssue("backMechanics", f"At most {MAX_MECHANICS} mechanics allowed")
            )
        for index, mechanic in enumerate(back_mechanics):
            errors.extend(validate_mechanic(mechanic, f"backMechanics[{index}]"))

    return errors
