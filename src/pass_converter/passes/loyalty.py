"""Loyalty cards (Apple `storeCard`, Google `loyalty`)."""

import typing as t
from dataclasses import dataclass

from pass_converter.balance import Balance
from pass_converter.google.localized import LocalizedReader, PayloadWriter, image_uri
from pass_converter.hints import HintResolver
from pass_converter.passes.base import Pass, Variant


@dataclass(kw_only=True)
class LoyaltyPass(Pass):
    """A loyalty card with up to two balances (points, money or free text)."""

    variant = Variant(name="loyalty", archive_key="storeCard", payload_prefix="loyalty")

    primary_balance: Balance | None = None
    secondary_balance: Balance | None = None

    def decode_archive(self, pass_json: dict[str, t.Any], hints: HintResolver) -> None:
        self.primary_balance = Balance.from_field(hints.field("loyalty.primaryBalance"))
        self.secondary_balance = Balance.from_field(hints.field("loyalty.secondaryBalance"))

    def decode_payload(self, obj: dict[str, t.Any], cls: dict[str, t.Any], reader: LocalizedReader) -> None:
        self.title = cls.get("programName") or self.title
        self.logo = image_uri(cls.get("programLogo")) or self.logo
        self.primary_balance = _balance_from_payload(obj.get("loyaltyPoints"), reader, "primaryBalance")
        self.secondary_balance = _balance_from_payload(obj.get("secondaryLoyaltyPoints"), reader, "secondaryBalance")

    def archive_content(self) -> dict[str, t.Any]:
        content: dict[str, t.Any] = {}
        if self.primary_balance:
            content["headerFields"] = [self.primary_balance.to_field()]
        if self.secondary_balance:
            content["primaryFields"] = [self.secondary_balance.to_field()]
        return content

    async def extend_payload(self, cls: dict[str, t.Any], obj: dict[str, t.Any], writer: PayloadWriter) -> None:
        cls["programName"] = self.issuer_name(writer.settings)
        cls["programLogo"] = await writer.image(self.logo)
        obj["loyaltyPoints"] = _balance_to_payload(self.primary_balance, writer)
        obj["secondaryLoyaltyPoints"] = _balance_to_payload(self.secondary_balance, writer)


def _balance_from_payload(points: dict[str, t.Any] | None, reader: LocalizedReader, key: str) -> Balance | None:
    if not points or not isinstance(points.get("balance"), dict):
        return None
    value, currency_code = Balance.value_from_payload(points["balance"])
    return Balance(value=value, label=reader.field(points, "label"), currency_code=currency_code, key=key)


def _balance_to_payload(balance: Balance | None, writer: PayloadWriter) -> dict[str, t.Any] | None:
    if balance is None:
        return None
    return {
        "localizedLabel": writer.localized(balance.label) if balance.label else None,
        "balance": balance.to_payload_balance(),
    }
