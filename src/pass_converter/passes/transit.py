"""Train, ferry and bus tickets (Apple `boardingPass`, Google `transit`)."""

import typing as t
from dataclasses import dataclass
from datetime import datetime

from pass_converter.content import ContentField
from pass_converter.formatting import format_date, format_time, parse_datetime
from pass_converter.google.localized import LocalizedReader, PayloadWriter, image_uri
from pass_converter.hints import HintResolver
from pass_converter.passes.base import Pass, Variant

# Google transit type to Apple transit type
TRANSIT_TYPES: dict[str, str] = {
    "RAIL": "PKTransitTypeTrain",
    "FERRY": "PKTransitTypeBoat",
    "BUS": "PKTransitTypeBus",
    "TRAM": "PKTransitTypeGeneric",
    "OTHER": "PKTransitTypeGeneric",
}

# Apple transit type to Google transit type
APPLE_TRANSIT_TYPES: dict[str, str] = {
    "PKTransitTypeTrain": "RAIL",
    "PKTransitTypeBoat": "FERRY",
    "PKTransitTypeBus": "BUS",
    "PKTransitTypeGeneric": "OTHER",
}

DEFAULT_TRANSIT_TYPE = "OTHER"


def _labelled(label: str, value: str) -> ContentField:
    return ContentField(key=label, label=label, value=value)


@dataclass(kw_only=True)
class TransitPass(Pass):
    """A single-leg transit ticket."""

    variant = Variant(
        name="transit",
        archive_key="boardingPass",
        payload_prefix="transit",
        transit_types=tuple(APPLE_TRANSIT_TYPES),
    )

    transit_type: str = DEFAULT_TRANSIT_TYPE
    origin_name: str = ""
    origin_date: str = ""
    origin_time: str = ""
    destination_name: str = ""
    destination_date: str = ""
    destination_time: str = ""
    departure: datetime | None = None
    arrival: datetime | None = None

    def scheduled_departure(self) -> datetime | None:
        return self.departure or parse_datetime(f"{self.origin_date} {self.origin_time}")

    def scheduled_arrival(self) -> datetime | None:
        return self.arrival or parse_datetime(f"{self.destination_date} {self.destination_time}")

    def decode_archive(self, pass_json: dict[str, t.Any], hints: HintResolver) -> None:
        apple_type = pass_json[self.variant.archive_key].get("transitType")
        self.transit_type = APPLE_TRANSIT_TYPES.get(apple_type, DEFAULT_TRANSIT_TYPE)
        self.origin_name = hints.value("transit.originName")
        self.origin_date = hints.value("transit.originDate")
        self.origin_time = hints.value("transit.originTime")
        self.destination_name = hints.value("transit.destinationName")
        self.destination_date = hints.value("transit.destinationDate")
        self.destination_time = hints.value("transit.destinationTime")

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: LocalizedReader) -> None:
        leg = obj.get("ticketLeg") or {}
        empty = reader.settings.empty_value
        self.origin_name = reader.field(leg, "originName") or leg.get("originStationCode") or empty
        self.destination_name = reader.field(leg, "destinationName") or leg.get("destinationStationCode") or empty
        self.title = f"{self.origin_name} - {self.destination_name}"
        self.logo = image_uri(cls.get("logo")) or self.logo
        self.transit_type = cls.get("transitType") or DEFAULT_TRANSIT_TYPE

        self.departure = parse_datetime(leg.get("departureDateTime"))
        if self.departure is not None:
            self.origin_date = format_date(self.departure, reader.language)
            self.origin_time = format_time(self.departure, reader.language, "short")

        self.arrival = parse_datetime(leg.get("arrivalDateTime"))
        if self.arrival is not None:
            self.destination_date = format_date(self.arrival, reader.language)
            self.destination_time = format_time(self.arrival, reader.language, "short")

    def archive_content(self) -> dict[str, t.Any]:
        departing = f"{self.origin_date} {self.origin_time}".strip()
        arriving = f"{self.destination_date} {self.destination_time}".strip()
        return {
            "transitType": TRANSIT_TYPES.get(self.transit_type.upper(), TRANSIT_TYPES[DEFAULT_TRANSIT_TYPE]),
            "primaryFields": [_labelled("Origin", self.origin_name), _labelled("Destination", self.destination_name)],
            "secondaryFields": [_labelled("Departing", departing), _labelled("Arriving", arriving)],
        }

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: PayloadWriter) -> None:
        departure = self.scheduled_departure()
        arrival = self.scheduled_arrival()

        cls["transitType"] = self.transit_type
        cls["logo"] = await writer.image(self.logo)
        obj["tripType"] = "ONE_WAY"
        obj["ticketLeg"] = {
            "originName": writer.localized(self.origin_name),
            "destinationName": writer.localized(self.destination_name),
            "departureDateTime": departure.isoformat() if departure else None,
            "arrivalDateTime": arrival.isoformat() if arrival else None,
        }
