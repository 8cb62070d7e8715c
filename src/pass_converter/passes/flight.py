"""Boarding passes (Apple `boardingPass` with `PKTransitTypeAir`, Google `flight`)."""

import re
import typing as t
from dataclasses import dataclass
from datetime import datetime

from pass_converter.content import ContentField
from pass_converter.exceptions import MissingRequiredField
from pass_converter.formatting import format_date, format_local_iso, format_time, parse_datetime
from pass_converter.google.localized import LocalizedReader, PayloadWriter, image_uri
from pass_converter.hints import HintResolver
from pass_converter.passes.base import Pass, Variant
from pass_converter.settings import Settings

AIR_TRANSIT_TYPE = "PKTransitTypeAir"

_WHITESPACE = re.compile(r"\s")


def _labelled(label: str, value: str) -> ContentField:
    return ContentField(key=label, label=label, value=value)


@dataclass(kw_only=True)
class FlightPass(Pass):
    """A flight boarding pass.

    Archive boarding passes carry no structured flight data, so every
    attribute is recovered through `flight.*` hints.
    """

    variant = Variant(
        name="flight",
        archive_key="boardingPass",
        payload_prefix="flight",
        transit_types=(AIR_TRANSIT_TYPE,),
    )

    passenger: str = ""
    seat_number: str = ""
    seat_class: str = ""
    gate: str = ""
    origin: str = ""
    destination: str = ""
    flight_number: str = ""
    date: str = ""
    time: str = ""
    confirmation_code: str = ""
    departure: datetime | None = None

    @property
    def carrier_code(self) -> str:
        """The IATA carrier code, the first two characters of the flight number."""
        return self.flight_number[:2]

    def issuer_name(self, settings: Settings) -> str:
        """Name the operating airline when its carrier code is known."""
        return settings.airlines.get(self.carrier_code.upper()) or super().issuer_name(settings)

    def scheduled_departure(self) -> datetime | None:
        return self.departure or parse_datetime(f"{self.date} {self.time}")

    def decode_archive(self, pass_json: dict[str, t.Any], hints: HintResolver) -> None:
        semantics = pass_json.get("semantics") or {}
        self.passenger = hints.value("flight.passenger")
        self.seat_number = hints.value("flight.seatNumber")
        self.seat_class = hints.value("flight.seatClass")
        self.gate = hints.value("flight.gate")
        self.origin = semantics.get("departureAirportCode") or hints.value("flight.originCode")
        self.destination = semantics.get("arrivalAirportCode") or hints.value("flight.destinationCode")
        self.flight_number = _WHITESPACE.sub("", hints.value("flight.flightNumber"))
        self.date = hints.value("flight.date")
        self.time = hints.value("flight.time")
        self.confirmation_code = hints.value("flight.confirmationCode")

        self.departure = parse_datetime(f"{self.date} {self.time}")
        if self.departure is None:
            raise MissingRequiredField("flight departure date/time", hint="flight.date")

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: LocalizedReader) -> None:
        departure = parse_datetime(cls.get("localScheduledDepartureDateTime"))
        if departure is None:
            raise MissingRequiredField("flight departure date/time")

        header = cls.get("flightHeader") or {}
        carrier = header.get("carrier") or {}
        seating = obj.get("boardingAndSeatingInfo") or {}
        reservation = obj.get("reservationInfo") or {}
        flight_number = f"{carrier.get('carrierIataCode', '')}{header.get('flightNumber', '')}"

        self.title = obj.get("passengerName") or self.title
        self.description = flight_number
        self.logo = image_uri(carrier.get("airlineLogo")) or self.logo
        self.passenger = obj.get("passengerName", "")
        self.seat_number = seating.get("seatNumber", "")
        self.seat_class = seating.get("seatClass", "")
        self.confirmation_code = reservation.get("confirmationCode", "")
        self.gate = (cls.get("origin") or {}).get("gate", "")
        self.origin = (cls.get("origin") or {}).get("airportIataCode", "")
        self.destination = (cls.get("destination") or {}).get("airportIataCode", "")
        self.flight_number = flight_number
        self.departure = departure
        self.date = format_date(departure, reader.language)
        self.time = format_time(departure, reader.language, "short")

    def archive_content(self) -> dict[str, t.Any]:
        return {
            "transitType": AIR_TRANSIT_TYPE,
            "headerFields": [_labelled("Date", self.date), _labelled("Flight", self.flight_number)],
            "primaryFields": [_labelled("From", self.origin), _labelled("To", self.destination)],
            "secondaryFields": [_labelled("Passenger", self.passenger), _labelled("Seat", self.seat_number)],
            "auxiliaryFields": [_labelled("Gate", self.gate), _labelled("Time", self.time)],
            "backFields": self.flattened_content(),
        }

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: PayloadWriter) -> None:
        departure = self.scheduled_departure()
        if departure is None:
            raise MissingRequiredField("flight departure date/time", hint="flight.date")

        obj["passengerName"] = self.passenger
        obj["boardingAndSeatingInfo"] = {"seatNumber": self.seat_number, "seatClass": self.seat_class}
        obj["reservationInfo"] = {"confirmationCode": self.confirmation_code}

        cls["origin"] = {"gate": self.gate, "airportIataCode": self.origin}
        cls["destination"] = {"airportIataCode": self.destination}
        cls["flightHeader"] = {
            "flightNumber": self.flight_number[2:],
            "carrier": {
                "carrierIataCode": self.carrier_code,
                "airlineLogo": await writer.image(self.image("icon") or self.logo),
            },
        }
        cls["localScheduledDepartureDateTime"] = format_local_iso(departure)
