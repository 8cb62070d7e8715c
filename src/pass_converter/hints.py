"""Field hint resolution for archive passes.

Archive content fields have free-form keys and labels, so semantic values
(a passenger name, a gate, a loyalty balance) can only be found through a
configured hint table mapping hint names such as `flight.gate` to the
archive field label that carries them.

The resolver owns the remaining front and back content. A field is
consumed the first time any hint referencing it is resolved: it is removed
from the remaining content and cached by its archive field name, so it
only appears on the converted pass through its semantic attribute.
"""

import typing as t

import structlog

from pass_converter.content import ContentField, copy_rows

logger = structlog.get_logger(__name__)


class HintResolver:
    """Resolves hinted fields out of a pass's front and back content."""

    def __init__(
        self,
        hints: t.Mapping[str, str],
        front_content: list[list[ContentField]],
        back_content: list[ContentField],
        empty_value: str = "-",
    ) -> None:
        """Initialize the resolver.

        Args:
            hints: Mapping of hint name to archive field label.
            front_content: Rows of front fields. The resolver works on a copy.
            back_content: Back fields. The resolver works on a copy.
            empty_value: Placeholder returned when no value could be resolved.
        """
        self.hints = hints
        self.empty_value = empty_value
        self.front_content = copy_rows(front_content)
        self.back_content = list(back_content)
        self.resolved: dict[str, ContentField] = {}

    def field(self, hint_name: str) -> ContentField | None:
        """Get the field a hint refers to, consuming it from the remaining content.

        Args:
            hint_name: The hint name, e.g. 'flight.gate'.

        Returns:
            The matching field, or None if the hint is not configured or nothing matches.
        """
        archive_name = self.hints.get(hint_name)
        if not archive_name:
            return None

        if archive_name in self.resolved:
            return self.resolved[archive_name]

        match = self._take(archive_name)
        if match is None:
            logger.debug("hint_unmatched", hint=hint_name, archive_field=archive_name)
            return None

        self.resolved[archive_name] = match
        logger.debug("hint_resolved", hint=hint_name, archive_field=archive_name)
        return match

    def value(self, hint_name: str, default: str | None = None) -> str:
        """Get the value of a hinted field.

        Args:
            hint_name: The hint name.
            default: Value to use when nothing matched or the value is blank.

        Returns:
            The field value, else the default, else the configured empty value.
        """
        match = self.field(hint_name)
        if match is not None and match.value.strip():
            return match.value
        return default or self.empty_value

    def _take(self, archive_name: str) -> ContentField | None:
        for row in self.front_content:
            for index, candidate in enumerate(row):
                if _matches(candidate, archive_name):
                    del row[index]
                    self.front_content = [remaining for remaining in self.front_content if remaining]
                    return candidate

        for index, candidate in enumerate(self.back_content):
            if _matches(candidate, archive_name):
                del self.back_content[index]
                return candidate

        return None


def _matches(candidate: ContentField, archive_name: str) -> bool:
    return candidate.label == archive_name or candidate.key == archive_name
