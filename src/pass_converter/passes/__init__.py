"""Pass variants and variant selection.

Variants are tested in a fixed order and the first match wins, so narrow
predicates must come before broad ones: Flight (air only) is listed before
Transit, which accepts the remaining transit types under the same
`boardingPass` key.
"""

import typing as t

from pass_converter.exceptions import InvalidPassData, UnsupportedVariant
from pass_converter.passes.base import Pass, Variant
from pass_converter.passes.event import EventPass
from pass_converter.passes.flight import FlightPass
from pass_converter.passes.generic import GenericPass
from pass_converter.passes.loyalty import LoyaltyPass
from pass_converter.passes.offer import OfferPass
from pass_converter.passes.transit import TransitPass

PASS_TYPES: tuple[type[Pass], ...] = (
    GenericPass,
    LoyaltyPass,
    EventPass,
    OfferPass,
    FlightPass,
    TransitPass,
)

__all__ = [
    "PASS_TYPES",
    "EventPass",
    "FlightPass",
    "GenericPass",
    "LoyaltyPass",
    "OfferPass",
    "Pass",
    "TransitPass",
    "Variant",
    "pass_type_for_archive",
    "pass_type_for_payload",
    "pass_type_for_prefix",
]


def pass_type_for_archive(pass_json: dict[str, t.Any]) -> type[Pass]:
    """Select the pass type for a pass.json document.

    Raises:
        UnsupportedVariant: If no variant matches the document.
    """
    for pass_type in PASS_TYPES:
        if pass_type.variant.matches_archive(pass_json):
            return pass_type
    raise UnsupportedVariant("Archive does not describe a supported pass type")


def pass_type_for_prefix(prefix: str) -> type[Pass]:
    """Select the pass type for a payload prefix (e.g. 'eventTicket').

    Raises:
        UnsupportedVariant: If no variant uses the prefix.
    """
    for pass_type in PASS_TYPES:
        if pass_type.variant.payload_prefix == prefix:
            return pass_type
    raise UnsupportedVariant(f"Unsupported payload type: {prefix}")


def pass_type_for_payload(payload: dict[str, t.Any]) -> type[Pass]:
    """Select the pass type from the `<prefix>Classes` / `<prefix>Objects` keys.

    Raises:
        InvalidPassData: If the payload has no class or object key.
        UnsupportedVariant: If the prefix is not supported.
    """
    for key in payload:
        for suffix in ("Classes", "Objects"):
            if key.endswith(suffix) and len(key) > len(suffix):
                return pass_type_for_prefix(key.removesuffix(suffix))
    raise InvalidPassData("Payload contains no pass classes or objects")
