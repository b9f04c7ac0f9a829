"""Tests for deck, card and library domain models."""

import base64

from statdeck.models.deck import (
    LOCAL_IMAGE_HANDLE,
    Card,
    Deck,
    DeckMeta,
    DurableImage,
    LocalImage,
    MechanicType,
    RulesetRef,
    image_ref_from_wire,
    is_durable_url,
)
from statdeck.models.library import GamePreset, StatblockConfig, VocabularyEntry


class TestDurableUrl:
    def test_https_url_is_durable(self) -> None:
        """Absolute https URLs resolve anywhere."""
        assert is_durable_url("https://images.example.com/a.png")

    def test_http_url_is_durable(self) -> None:
        """Plain http URLs also count as durable."""
        assert is_durable_url("http://example.com/a.png")

    def test_blob_handle_is_not_durable(self) -> None:
        """The local blob placeholder never resolves for a recipient."""
        assert not is_durable_url(LOCAL_IMAGE_HANDLE)

    def test_bare_filename_is_not_durable(self) -> None:
        """Bundled asset names are local-only."""
        assert not is_durable_url("blackwood.jpg")

    def test_empty_is_not_durable(self) -> None:
        """Missing image is not a durable reference."""
        assert not is_durable_url("")
        assert not is_durable_url(None)


class TestImageRefFromWire:
    def test_url_becomes_durable_image(self) -> None:
        """Network URLs map to DurableImage."""
        ref = image_ref_from_wire("https://example.com/a.png")

        assert ref == DurableImage(url="https://example.com/a.png")

    def test_filename_becomes_local_image(self) -> None:
        """Bare file names keep their handle as a LocalImage."""
        ref = image_ref_from_wire("classic.png")

        assert isinstance(ref, LocalImage)
        assert ref.handle == "classic.png"
        assert ref.data is None

    def test_blob_carries_bytes(self) -> None:
        """A base64 blob is decoded into the LocalImage bytes."""
        ref = image_ref_from_wire(LOCAL_IMAGE_HANDLE, base64.b64encode(b"png").decode())

        assert isinstance(ref, LocalImage)
        assert ref.data == b"png"

    def test_no_image(self) -> None:
        """Null image stays None."""
        assert image_ref_from_wire(None) is None


class TestCardWireForm:
    def test_to_dict_uses_camel_case_keys(self, make_card) -> None:
        """Stats serialize with statId keys."""
        data = make_card().to_dict()

        assert data["stats"] == [{"statId": "role", "value": "Scholar"}]
        assert data["mechanics"][0]["type"] == "health"
        assert data["image"] == "https://images.example.com/blackwood.jpg"

    def test_blob_bytes_only_with_include_blob(self, make_card) -> None:
        """Image bytes are emitted for storage but never for sharing."""
        card = make_card(image=LocalImage(data=b"\x89PNG"))

        assert "imageBlob" not in card.to_dict()
        stored = card.to_dict(include_blob=True)
        assert stored["image"] == LOCAL_IMAGE_HANDLE
        assert base64.b64decode(stored["imageBlob"]) == b"\x89PNG"

    def test_from_dict_restores_card(self, make_card) -> None:
        """A stored card converts back to an equal card."""
        card = make_card(image=LocalImage(data=b"bytes"), theme="cyberdeck")

        restored = Card.from_dict(card.to_dict(include_blob=True))

        assert restored == card

    def test_optional_card_fields_default(self) -> None:
        """Missing optional fields fall back to defaults."""
        card = Card.from_dict({"id": "c1", "name": "Lone"})

        assert card.traits == []
        assert card.mechanics == []
        assert card.image is None
        assert card.type == "character"


class TestDeckWireForm:
    def test_meta_omits_unset_optionals(self) -> None:
        """Optional metadata keys are absent rather than null."""
        data = DeckMeta(name="Deck", last_edited=5, created_at=1).to_dict()

        assert data == {
            "name": "Deck",
            "theme": "classic",
            "cardSize": "poker",
            "lastEdited": 5,
            "createdAt": 1,
        }

    def test_meta_round_trip_with_optionals(self) -> None:
        """Ruleset, tags and statblock config survive conversion."""
        meta = DeckMeta(
            name="Deck",
            description="Horror one-shot",
            tags=["horror"],
            ruleset_ref=RulesetRef(name="OSR", url="https://example.com/osr"),
            statblock_config_id="osr-classic",
        )

        assert DeckMeta.from_dict(meta.to_dict()) == meta

    def test_deck_find_card(self, make_deck) -> None:
        """Cards are found by id."""
        deck = make_deck()

        assert deck.find_card(deck.cards[1].id) is deck.cards[1]
        assert deck.find_card("missing") is None

    def test_deck_round_trip(self, make_deck) -> None:
        """Deck wire form converts back to an equal deck."""
        deck = make_deck()

        assert Deck.from_dict(deck.to_dict()) == deck


class TestLibraryModels:
    def test_simple_vocabulary(self) -> None:
        """Vocabulary flattens to mechanic key -> label."""
        config = StatblockConfig(
            id="c",
            name="Config",
            vocabulary={
                MechanicType.HEALTH: VocabularyEntry(name="Hit Dice", default_value="3+1"),
                MechanicType.DEFENSE: VocabularyEntry(name="Armor Class", default_value=15),
            },
        )

        assert config.simple_vocabulary() == {"health": "Hit Dice", "defense": "Armor Class"}

    def test_config_round_trip_keeps_timestamps(self) -> None:
        """Created/updated timestamps survive as ISO strings."""
        config = StatblockConfig(
            id="c",
            name="Config",
            vocabulary={MechanicType.HEALTH: VocabularyEntry(name="Stress", tracked=True)},
        )

        restored = StatblockConfig.from_dict(config.to_dict())

        assert restored.created == config.created
        assert restored.vocabulary[MechanicType.HEALTH].tracked is True

    def test_preset_wire_keys(self) -> None:
        """Presets use camelCase wire keys."""
        data = GamePreset(id="p", name="Preset", is_official=True).to_dict()

        assert data["isOfficial"] is True
        assert data["frontStats"] == []
        assert data["backMechanics"] == []
