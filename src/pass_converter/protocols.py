"""Protocol definitions for the pass converter's collaborators.

The conversion core never talks to storage or the network directly. Image
hosting, the Wallet Objects API and token signing are supplied by the
caller through these protocols, enabling a pluggable architecture.
"""

import typing as t
from typing import Protocol

ImageSource = bytes | str


class ImageResolver(Protocol):
    """Resolves an image reference for the target format.

    When encoding an archive the resolver should return image bytes (or a
    URL that can be fetched). When encoding a payload it should return a
    publicly reachable URI. Returning None omits the image.
    """

    async def __call__(self, image: ImageSource) -> ImageSource | None:
        """Resolve an image.

        Args:
            image: Raw image bytes or an image URL from the source pass.

        Returns:
            The resolved image, or None if it cannot be provided.
        """
        ...


class WalletObjectsAPI(Protocol):
    """Remote create/update calls against the Google Wallet Objects API."""

    async def insert_class(self, prefix: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Create a pass class.

        Args:
            prefix: The variant payload prefix (e.g. 'eventTicket').
            resource: The class JSON.

        Returns:
            The created resource as returned by the API.
        """
        ...

    async def insert_object(self, prefix: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Create a pass object."""
        ...

    async def update_object(self, prefix: str, resource: dict[str, t.Any]) -> dict[str, t.Any]:
        """Patch an existing pass object."""
        ...


class TokenSigner(Protocol):
    """Signs a class+object payload into a "save to wallet" token."""

    def sign(self, payload: dict[str, t.Any]) -> str:
        """Sign a payload.

        Args:
            payload: The `<prefix>Classes` / `<prefix>Objects` payload.

        Returns:
            The encoded token.
        """
        ...
