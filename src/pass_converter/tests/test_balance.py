"""Tests for pass_converter/balance.py."""

import pytest
from structlog.testing import capture_logs

from pass_converter.balance import Balance, currency_precision, from_micros, to_micros
from pass_converter.content import ContentField
from pass_converter.exceptions import InvalidPassData


class TestCurrencyPrecision:
    """Tests for ISO 4217 minor units."""

    @pytest.mark.parametrize(("code", "expected"), [("USD", 2), ("jpy", 0), ("KWD", 3), ("EUR", 2)])
    def test_known_currencies(self, code: str, expected: int) -> None:
        assert currency_precision(code) == expected

    def test_unknown_currency_defaults_to_two(self) -> None:
        """Should fall back to two decimals and warn."""
        with capture_logs() as logs:
            assert currency_precision("XYZ") == 2

        assert any(entry["event"] == "unknown_currency_code" for entry in logs)


class TestMicros:
    """Tests for scaling amounts to minor units."""

    def test_yen_has_no_minor_unit(self) -> None:
        """Should round yen 12.3 down to 12 and format it without decimals."""
        assert to_micros("12.3", "JPY") == 12
        assert from_micros(12, "JPY") == "12"

    def test_rounds_half_up(self) -> None:
        assert to_micros("12.345", "USD") == 1235
        assert to_micros("0.005", "EUR") == 1

    def test_three_decimal_currency(self) -> None:
        assert to_micros("1.5", "KWD") == 1500
        assert from_micros(1500, "KWD") == "1.500"

    def test_formats_with_currency_precision(self) -> None:
        assert from_micros(1999, "EUR") == "19.99"
        assert from_micros("500", "USD") == "5.00"

    def test_rejects_non_numeric_amount(self) -> None:
        with pytest.raises(InvalidPassData):
            to_micros("lots", "USD")


class TestBalancePayload:
    """Tests for the polymorphic Google Wallet balance slot."""

    def test_money(self) -> None:
        balance = Balance(value="12.3", currency_code="JPY")
        assert balance.to_payload_balance() == {"money": {"currencyCode": "JPY", "micros": 12}}

    def test_integer_points(self) -> None:
        assert Balance(value="1250").to_payload_balance() == {"int": 1250}
        assert Balance(value="-5").to_payload_balance() == {"int": -5}

    def test_decimal_points(self) -> None:
        assert Balance(value="12.5").to_payload_balance() == {"double": 12.5}

    def test_non_canonical_numbers_are_text(self) -> None:
        """Should keep leading zeros by sending the value as a string."""
        assert Balance(value="007").to_payload_balance() == {"string": "007"}

    def test_free_text(self) -> None:
        assert Balance(value="Gold").to_payload_balance() == {"string": "Gold"}

    @pytest.mark.parametrize(
        ("slot", "expected"),
        [
            ({"string": "Gold"}, ("Gold", None)),
            ({"int": 0}, ("0", None)),
            ({"int": 1250}, ("1250", None)),
            ({"double": 12.5}, ("12.5", None)),
            ({"money": {"currencyCode": "EUR", "micros": 1999}}, ("19.99", "EUR")),
            ({}, ("", None)),
        ],
    )
    def test_value_from_payload(self, slot: dict[str, object], expected: tuple[str, str | None]) -> None:
        assert Balance.value_from_payload(slot) == expected


class TestBalanceFields:
    """Tests for converting balances to and from archive fields."""

    def test_from_field(self) -> None:
        content = ContentField(key="cash", label="Balance", value="12.3", currency_code="USD")

        balance = Balance.from_field(content)

        assert balance == Balance(value="12.3", label="Balance", currency_code="USD", key="cash")

    def test_from_missing_field(self) -> None:
        assert Balance.from_field(None) is None

    def test_to_field_emits_number_for_money(self) -> None:
        """Should write a numeric value when a currency code is set."""
        field = Balance(value="12", label="Balance", currency_code="JPY").to_field()

        assert field.to_archive() == {"key": "balance", "label": "Balance", "value": 12, "currencyCode": "JPY"}
