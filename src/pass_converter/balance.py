"""Loyalty balance encoding.

Google Wallet stores a balance in one of four mutually exclusive slots:
`int`, `double`, `string` or `money`. Monetary balances are expressed in
micros scaled by the currency's ISO 4217 minor unit.
"""

import re
import typing as t
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

import structlog

from pass_converter.content import ContentField
from pass_converter.exceptions import InvalidPassData

logger = structlog.get_logger(__name__)

DEFAULT_PRECISION = 2

_INTEGER = re.compile(r"-?\d+")
_DECIMAL = re.compile(r"-?\d+\.\d+")

# ISO 4217 minor units
CURRENCY_PRECISION: dict[str, int] = {
    "AED": 2, "AFN": 2, "AMD": 2, "ANG": 2, "AOA": 2, "ARS": 2, "AUD": 2, "AWG": 2,
    "AZN": 2, "BAM": 2, "BBD": 2, "BDT": 2, "BGN": 2, "BHD": 3, "BIF": 0, "BMD": 2,
    "BND": 2, "BOB": 2, "BRL": 2, "BSD": 2, "BWP": 2, "BYR": 0, "BYN": 2, "BZD": 2,
    "CAD": 2, "CDF": 2, "CHF": 2, "CLP": 0, "CNY": 2, "COP": 2, "CRC": 2, "CSK": 2,
    "CVE": 2, "CZK": 2, "DJF": 0, "DKK": 2, "DOP": 2, "DZD": 2, "EGP": 2, "ERN": 2,
    "ETB": 2, "EUR": 2, "FJD": 2, "FKP": 2, "GBP": 2, "GEL": 2, "GHS": 2, "GIP": 2,
    "GMD": 2, "GNF": 0, "GTQ": 2, "GWP": 0, "GYD": 2, "HKD": 2, "HNL": 2, "HRK": 2,
    "HTG": 2, "HUF": 2, "IDR": 2, "ILS": 2, "INR": 2, "IQD": 3, "ISK": 2, "JMD": 2,
    "JOD": 3, "JPY": 0, "KES": 2, "KGS": 2, "KHR": 2, "KMF": 0, "KRW": 0, "KWD": 3,
    "KYD": 2, "KZT": 2, "LAK": 2, "LBP": 2, "LKR": 2, "LRD": 2, "LSL": 2, "LTL": 2,
    "LVL": 2, "MAD": 2, "MDL": 2, "MGA": 0, "MKD": 2, "MMK": 2, "MNT": 2, "MOP": 2,
    "MRO": 2, "MUR": 2, "MVR": 2, "MWK": 2, "MXN": 2, "MYR": 2, "MZN": 2, "NAD": 2,
    "NGN": 2, "NIO": 2, "NOK": 2, "NPR": 2, "NZD": 2, "OMR": 3, "PAB": 2, "PEN": 2,
    "PGK": 2, "PHP": 2, "PKR": 2, "PLN": 2, "PYG": 0, "QAR": 2, "RON": 2, "RSD": 2,
    "RUB": 2, "RWF": 0, "SAR": 2, "SBD": 2, "SCR": 2, "SEK": 2, "SGD": 2, "SHP": 2,
    "SLL": 2, "SOS": 2, "SRD": 2, "SSP": 2, "STD": 2, "SYP": 2, "SZL": 2, "THB": 2,
    "TJS": 2, "TND": 3, "TOP": 2, "TRY": 2, "TTD": 2, "TWD": 2, "TZS": 2, "UAH": 2,
    "UGX": 2, "USD": 2, "UYU": 2, "UZS": 2, "VEF": 2, "VND": 0, "VUV": 0, "WST": 2,
    "XAF": 0, "XCD": 2, "XOF": 0, "XPF": 0, "YER": 2, "ZAR": 2, "ZMK": 2, "ZMW": 2,
    "ZWD": 2,
}  # fmt: skip


def currency_precision(currency_code: str) -> int:
    """Get the number of minor-unit decimals for a currency.

    Args:
        currency_code: ISO 4217 code, case insensitive.

    Returns:
        The decimal precision. Unknown codes use two decimals.
    """
    precision = CURRENCY_PRECISION.get(currency_code.upper())
    if precision is None:
        logger.warning("unknown_currency_code", currency_code=currency_code, precision=DEFAULT_PRECISION)
        return DEFAULT_PRECISION
    return precision


def to_micros(value: str, currency_code: str) -> int:
    """Scale a monetary amount to minor units, rounding half up.

    Args:
        value: The amount as text (e.g. "12.3").
        currency_code: ISO 4217 code.

    Returns:
        The amount in minor units. Yen 12.3 becomes 12.

    Raises:
        InvalidPassData: If the value is not a number.
    """
    try:
        amount = Decimal(value.strip())
    except InvalidOperation as e:
        raise InvalidPassData(f"Balance '{value}' is not a monetary amount") from e
    scaled = amount.scaleb(currency_precision(currency_code))
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_micros(micros: int | str, currency_code: str) -> str:
    """Format minor units back to an amount with the currency's precision."""
    precision = currency_precision(currency_code)
    amount = Decimal(micros).scaleb(-precision)
    return f"{amount:.{precision}f}"


@dataclass
class Balance:
    """A loyalty balance with an optional currency."""

    value: str
    label: str | None = None
    currency_code: str | None = None
    key: str = "balance"

    @classmethod
    def from_field(cls, content: ContentField | None) -> "Balance | None":
        """Build a balance from an archive content field."""
        if content is None:
            return None
        return cls(value=content.value, label=content.label, currency_code=content.currency_code, key=content.key)

    def to_field(self) -> ContentField:
        return ContentField(key=self.key, label=self.label, value=self.value, currency_code=self.currency_code)

    def to_payload_balance(self) -> dict[str, t.Any]:
        """Encode into the polymorphic Google Wallet balance slot.

        Returns:
            A dict with exactly one of `int`, `double`, `string` or `money`.
        """
        if self.currency_code:
            return {
                "money": {
                    "currencyCode": self.currency_code,
                    "micros": to_micros(self.value, self.currency_code),
                }
            }

        text = self.value.strip()
        if _INTEGER.fullmatch(text) and str(int(text)) == text:
            return {"int": int(text)}
        if _DECIMAL.fullmatch(text):
            return {"double": float(text)}
        return {"string": self.value}

    @staticmethod
    def value_from_payload(balance: dict[str, t.Any]) -> tuple[str, str | None]:
        """Decode a Google Wallet balance slot.

        Args:
            balance: The `balance` object of a LoyaltyPoints entry.

        Returns:
            The value as text and the currency code, if monetary.
        """
        for slot in ("string", "int", "double"):
            if slot in balance:
                return str(balance[slot]), None

        money = balance.get("money") or {}
        currency_code = money.get("currencyCode")
        if currency_code is None:
            return "", None
        return from_micros(money.get("micros", 0), currency_code), currency_code
