"""Content fields shared by every pass variant."""

import itertools
import typing as t
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass
class ContentField:
    """A labelled value shown on the front or back of a pass.

    Date fields carry the Apple `dateStyle` / `timeStyle` flags, monetary
    fields carry a currency code.
    """

    key: str
    label: str | None = None
    value: str = ""
    date_style: str | None = None
    time_style: str | None = None
    currency_code: str | None = None

    @property
    def is_date_time(self) -> bool:
        return bool(self.date_style or self.time_style)

    @classmethod
    def from_archive(cls, data: dict[str, t.Any]) -> "ContentField":
        """Build a field from a pass.json field dictionary.

        Numeric values are kept as their text form.
        """
        value = data.get("value")
        label = data.get("label")
        return cls(
            key=str(data.get("key") or label or ""),
            label=label,
            value="" if value is None else str(value),
            date_style=data.get("dateStyle"),
            time_style=data.get("timeStyle"),
            currency_code=data.get("currencyCode"),
        )

    def to_archive(self) -> dict[str, t.Any]:
        """Serialize to a pass.json field dictionary, omitting unset attributes."""
        data: dict[str, t.Any] = {"key": self.key, "value": self._archive_value()}
        if self.label is not None:
            data["label"] = self.label
        if self.date_style:
            data["dateStyle"] = self.date_style
        if self.time_style:
            data["timeStyle"] = self.time_style
        if self.currency_code:
            data["currencyCode"] = self.currency_code
        return data

    def _archive_value(self) -> str | int | float:
        # Apple requires a number when a currency code is present
        if not self.currency_code:
            return self.value
        try:
            number = float(self.value)
        except ValueError:
            return self.value
        return int(number) if number.is_integer() and "." not in self.value else number


def flatten(rows: Iterable[Iterable[ContentField]]) -> list[ContentField]:
    return list(itertools.chain.from_iterable(rows))


def copy_rows(rows: Iterable[Iterable[ContentField]]) -> list[list[ContentField]]:
    """Copy the row structure without copying the fields themselves."""
    return [list(row) for row in rows]
