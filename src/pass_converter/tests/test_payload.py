"""Tests for pass_converter/google/generator.py, reader.py and localized.py."""

import typing as t
from unittest.mock import AsyncMock

import pytest

from pass_converter.content import ContentField
from pass_converter.exceptions import InvalidPassData, UnsupportedVariant
from pass_converter.formatting import Color
from pass_converter.google.generator import PayloadGenerator, drop_none, pack_rows, row_template
from pass_converter.google.localized import LocalizedReader, PayloadWriter
from pass_converter.google.reader import read_payload, template_keys
from pass_converter.passes import EventPass, GenericPass, OfferPass
from pass_converter.settings import Settings


def _fields(*keys: str) -> list[ContentField]:
    return [ContentField(key=key, label=key.title(), value=f"{key} value") for key in keys]


def _template(cls: dict[str, t.Any]) -> list[dict[str, t.Any]]:
    return cls["classTemplateInfo"]["cardTemplateOverride"]["cardRowTemplateInfos"]


class TestPackRows:
    """Tests for splitting rows into template rows."""

    def test_splits_long_rows(self) -> None:
        """Should cut a row of five into rows of three and two."""
        packed = pack_rows([_fields("a", "b", "c", "d", "e")])

        assert [[f.key for f in row] for row in packed] == [["a", "b", "c"], ["d", "e"]]

    def test_keeps_short_rows(self) -> None:
        packed = pack_rows([_fields("a", "b", "c"), _fields("d")])

        assert [[f.key for f in row] for row in packed] == [["a", "b", "c"], ["d"]]

    def test_drops_empty_rows(self) -> None:
        assert pack_rows([[], _fields("a")]) == [_fields("a")]


class TestRowTemplate:
    """Tests for card row templates."""

    def test_one_item(self) -> None:
        assert row_template(_fields("gate")) == {
            "oneItem": {"item": {"firstValue": {"fields": [{"fieldPath": "object.textModulesData['gate']"}]}}}
        }

    def test_three_items(self) -> None:
        template = row_template(_fields("a", "b", "c"))

        assert set(template["threeItems"]) == {"startItem", "middleItem", "endItem"}

    def test_template_keys_reads_back(self) -> None:
        cls = {
            "classTemplateInfo": {
                "cardTemplateOverride": {
                    "cardRowTemplateInfos": [row_template(_fields("a", "b")), row_template(_fields("c"))]
                }
            }
        }

        assert template_keys(cls) == [["a", "b"], ["c"]]


class TestDropNone:
    """Tests for drop_none."""

    def test_removes_nested_none(self) -> None:
        value = {"a": None, "b": {"c": None, "d": 1}, "e": [{"f": None}], "g": 0}

        assert drop_none(value) == {"b": {"d": 1}, "e": [{}], "g": 0}


class TestPayloadWriter:
    """Tests for LocalizedString generation."""

    def test_translations(self, settings: Settings) -> None:
        pass_ = GenericPass(strings={"en": {"Gate": "Gate"}, "fr": {"Gate": "Porte"}})
        writer = PayloadWriter(pass_, settings)

        assert writer.localized("Gate") == {
            "defaultValue": {"language": "en", "value": "Gate"},
            "translatedValues": [{"language": "fr", "value": "Porte"}],
        }

    def test_omits_translations_equal_to_default(self, settings: Settings) -> None:
        pass_ = GenericPass(strings={"fr": {"Gate": "Porte"}, "de": {}})
        writer = PayloadWriter(pass_, settings)

        assert writer.localized("Seat") == {"defaultValue": {"language": "fr", "value": "Seat"}}

    def test_blank_value_uses_empty_value(self, settings: Settings) -> None:
        writer = PayloadWriter(GenericPass(), settings)

        assert writer.localized("") == {"defaultValue": {"language": "en", "value": "-"}}
        assert writer.localized(None) == {"defaultValue": {"language": "en", "value": "-"}}

    def test_date_fields_are_localized(self, settings: Settings) -> None:
        """Should format date fields idiomatically for each language."""
        pass_ = GenericPass(strings={"en": {}, "fr": {}})
        writer = PayloadWriter(pass_, settings)
        content = ContentField(key="expires", value="2025-01-15T14:30:00", date_style="PKDateStyleMedium")

        localized = writer.localized_field(content)

        assert localized["defaultValue"] == {"language": "en", "value": "Jan 15, 2025"}
        assert localized["translatedValues"] == [{"language": "fr", "value": "15 janv. 2025"}]

    @pytest.mark.asyncio
    async def test_image_resolved_once(self, settings: Settings) -> None:
        resolver = AsyncMock(return_value="https://cdn.example.com/icon.png")
        writer = PayloadWriter(GenericPass(), settings, resolver)

        first = await writer.image(b"png")
        second = await writer.image(b"png")

        assert first == second == {"sourceUri": {"uri": "https://cdn.example.com/icon.png"}}
        resolver.assert_awaited_once_with(b"png")

    @pytest.mark.asyncio
    async def test_image_without_resolver(self, settings: Settings) -> None:
        writer = PayloadWriter(GenericPass(), settings)

        assert await writer.image("https://cdn.example.com/icon.png") is None

    @pytest.mark.asyncio
    async def test_image_resolver_returning_bytes(self, settings: Settings) -> None:
        """Should omit the image when the resolver cannot provide a URI."""
        writer = PayloadWriter(GenericPass(), settings, AsyncMock(return_value=b"png"))

        assert await writer.image(b"png") is None


class TestLocalizedReader:
    """Tests for reconciling LocalizedStrings."""

    def test_collects_translations(self, settings: Settings) -> None:
        reader = LocalizedReader(settings)
        localized = {
            "defaultValue": {"language": "en", "value": "Gate"},
            "translatedValues": [{"language": "fr", "value": "Porte"}],
        }

        assert reader.text(localized) == "Gate"
        assert reader.strings == {"en": {"Gate": "Gate"}, "fr": {"Gate": "Porte"}}

    def test_prefers_localized_attribute(self, settings: Settings) -> None:
        reader = LocalizedReader(settings)
        resource = {"title": "Plain", "localizedTitle": {"defaultValue": {"language": "en", "value": "Localized"}}}

        assert reader.field(resource, "title") == "Localized"
        assert reader.field({"title": "Plain"}, "title") == "Plain"
        assert reader.field({}, "title") is None


class TestPayloadGenerator:
    """Tests for class+object payload generation."""

    @pytest.mark.asyncio
    async def test_class_and_object(self, settings: Settings) -> None:
        pass_ = OfferPass(
            id="offer-1",
            type_id="pass.com.example.coupon",
            title="10% off",
            issuer="Example Shop",
            background_color=Color(206, 17, 38),
            front_content=[_fields("store")],
            back_content=_fields("terms"),
        )

        payload = await PayloadGenerator(settings).generate(pass_)

        cls = payload["offerClasses"][0]
        obj = payload["offerObjects"][0]
        assert cls["id"] == "3388000000012345678.pass.com.example.coupon"
        assert cls["reviewStatus"] == "UNDER_REVIEW"
        assert cls["issuerName"] == "Example Shop"
        assert obj["id"] == "3388000000012345678.offer-1"
        assert obj["classId"] == cls["id"]
        assert obj["state"] == "ACTIVE"
        assert obj["hexBackgroundColor"] == "#ce1126"
        assert "barcode" not in obj
        assert [module["id"] for module in obj["textModulesData"]] == ["store"]
        assert obj["infoModuleData"]["labelValueRows"][0]["columns"][0]["localizedValue"] == {
            "defaultValue": {"language": "en", "value": "terms value"}
        }

    @pytest.mark.asyncio
    async def test_long_row_is_split(self, settings: Settings) -> None:
        """Should lay out a row of five as rows of three and two."""
        pass_ = GenericPass(id="g-1", front_content=[_fields("a", "b", "c", "d", "e")])

        payload = await PayloadGenerator(settings).generate(pass_)

        template = _template(payload["genericClasses"][0])
        assert [next(iter(row)) for row in template] == ["threeItems", "twoItems"]

    @pytest.mark.asyncio
    async def test_extra_rows_become_text_modules_only(self, settings: Settings) -> None:
        """Should keep rows beyond the third as text modules outside the template."""
        pass_ = GenericPass(id="g-1", front_content=[_fields("a"), _fields("b"), _fields("c"), _fields("d")])

        payload = await PayloadGenerator(settings).generate(pass_)

        assert len(_template(payload["genericClasses"][0])) == 3
        modules = payload["genericObjects"][0]["textModulesData"]
        assert [module["id"] for module in modules] == ["a", "b", "c", "d"]

    @pytest.mark.asyncio
    async def test_does_not_modify_pass(self, settings: Settings) -> None:
        pass_ = GenericPass(id="g-1", front_content=[_fields("a", "b", "c", "d", "e")], back_content=_fields("z"))

        await PayloadGenerator(settings).generate(pass_)

        assert pass_.front_content == [_fields("a", "b", "c", "d", "e")]
        assert pass_.back_content == _fields("z")


class TestReadPayload:
    """Tests for decoding class+object payloads."""

    def test_decodes_event(self, event_payload: dict[str, t.Any], settings: Settings) -> None:
        pass_ = read_payload(event_payload, settings)

        assert isinstance(pass_, EventPass)
        assert pass_.id == "ticket-42"
        assert pass_.type_id == "concert-2025"
        assert pass_.title == "Summer Concert"
        assert pass_.issuer == "Example Venue"
        assert pass_.background_color == Color(0x33, 0x66, 0x99)
        assert pass_.logo == "https://example.com/logo.png"
        assert pass_.barcode is not None
        assert pass_.barcode.message == "TICKET-42"

    def test_front_content_follows_template(self, event_payload: dict[str, t.Any], settings: Settings) -> None:
        pass_ = read_payload(event_payload, settings)

        assert [[(f.label, f.value) for f in row] for row in pass_.front_content] == [[("Gate", "7"), ("Row", "F")]]

    def test_unreferenced_modules_become_back_content(
        self, event_payload: dict[str, t.Any], settings: Settings
    ) -> None:
        """Should keep text modules outside the template after the info rows."""
        pass_ = read_payload(event_payload, settings)

        assert [(f.label, f.value) for f in pass_.back_content] == [
            ("Venue", "Arena"),
            ("Notes", "Doors open at 19:00"),
        ]

    def test_collects_translations(self, event_payload: dict[str, t.Any], settings: Settings) -> None:
        pass_ = read_payload(event_payload, settings)

        assert pass_.strings["fr"] == {"Gate": "Porte", "Summer Concert": "Concert d'été"}
        assert pass_.strings["en"]["Gate"] == "Gate"

    def test_requires_single_class_and_object(self, event_payload: dict[str, t.Any], settings: Settings) -> None:
        event_payload["eventTicketObjects"].append(dict(event_payload["eventTicketObjects"][0]))

        with pytest.raises(InvalidPassData, match="exactly one"):
            read_payload(event_payload, settings)

    def test_payload_without_resources(self, settings: Settings) -> None:
        with pytest.raises(InvalidPassData):
            read_payload({"something": []}, settings)

    def test_unsupported_prefix(self, settings: Settings) -> None:
        with pytest.raises(UnsupportedVariant):
            read_payload({"giftCardClasses": [{}], "giftCardObjects": [{}]}, settings)

    def test_missing_identifiers_are_generated(self, settings: Settings) -> None:
        payload = {
            "genericClasses": [{}],
            "genericObjects": [{"cardTitle": {"defaultValue": {"language": "en", "value": "Member"}}}],
        }

        pass_ = read_payload(payload, settings)

        assert isinstance(pass_, GenericPass)
        assert pass_.id
        assert pass_.title == "Member"
        assert pass_.issuer == "Default Org"

