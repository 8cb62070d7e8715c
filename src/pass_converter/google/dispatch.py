"""Size-bounded issuance of save tokens.

Save tokens travel in a URL, so they must stay short. Dispatch runs up to
three stages, each driven by checking the signed token's length:

1. FULL: the token embeds the whole class+object payload.
2. CLASS_STRIPPED: the class is created through the REST API and removed
   from the payload.
3. OBJECT_MINIMAL: the object is created through the REST API as well and
   the token only references its identifier. No size check applies.

REST failures are logged and never abort dispatch: the token is still
produced from the local payload.
"""

import copy
import typing as t
from dataclasses import dataclass
from enum import StrEnum

import structlog

from pass_converter.exceptions import RemotePersistFailure
from pass_converter.google.tokens import save_url
from pass_converter.protocols import TokenSigner, WalletObjectsAPI

logger = structlog.get_logger(__name__)

MAX_TOKEN_LENGTH = 1800


class DispatchStage(StrEnum):
    FULL = "full"
    CLASS_STRIPPED = "class_stripped"
    OBJECT_MINIMAL = "object_minimal"


@dataclass(frozen=True)
class DispatchResult:
    """The outcome of a dispatch."""

    token: str
    stage: DispatchStage
    payload: dict[str, t.Any]

    @property
    def save_url(self) -> str:
        return save_url(self.token)


def fits(token: str, limit: int = MAX_TOKEN_LENGTH) -> bool:
    return len(token) <= limit


class Dispatcher:
    """Signs payloads into tokens, moving content to the REST API when too large."""

    def __init__(self, signer: TokenSigner, api: WalletObjectsAPI | None = None, limit: int = MAX_TOKEN_LENGTH) -> None:
        """Initialize the dispatcher.

        Args:
            signer: Signs payloads into tokens.
            api: REST client used to persist stripped content. Persistence is skipped if None.
            limit: Maximum token length.
        """
        self.signer = signer
        self.api = api
        self.limit = limit

    async def dispatch(self, payload: dict[str, t.Any], prefix: str) -> DispatchResult:
        """Produce a save token for a payload.

        Args:
            payload: The class+object payload. It is not modified.
            prefix: The variant payload prefix (e.g. 'offer').

        Returns:
            The token, the stage that produced it and the payload it embeds.
        """
        classes_key = f"{prefix}Classes"
        objects_key = f"{prefix}Objects"
        working = copy.deepcopy(payload)

        token = self.signer.sign(working)
        if fits(token, self.limit):
            return self._result(token, DispatchStage.FULL, working)

        logger.info("token_too_large", stage=DispatchStage.FULL, length=len(token), limit=self.limit)
        for resource in working.pop(classes_key, []):
            await self._persist("insert_class", prefix, resource)

        token = self.signer.sign(working)
        if fits(token, self.limit):
            return self._result(token, DispatchStage.CLASS_STRIPPED, working)

        logger.info("token_too_large", stage=DispatchStage.CLASS_STRIPPED, length=len(token), limit=self.limit)
        objects = working.get(objects_key, [])
        for resource in objects:
            await self._persist("insert_object", prefix, resource)

        working = {objects_key: [{"id": resource["id"]} for resource in objects if "id" in resource]}
        token = self.signer.sign(working)
        return self._result(token, DispatchStage.OBJECT_MINIMAL, working)

    async def _persist(self, operation: str, prefix: str, resource: dict[str, t.Any]) -> bool:
        """Create a resource remotely, logging failures.

        Returns:
            True if the resource was created.
        """
        if self.api is None:
            logger.warning("remote_persist_skipped", operation=operation, resource_id=resource.get("id"))
            return False
        try:
            await getattr(self.api, operation)(prefix, resource)
        except RemotePersistFailure as e:
            logger.warning(
                "remote_persist_failed",
                operation=operation,
                resource_id=resource.get("id"),
                status_code=e.status_code,
                reason=e.reason,
                error=str(e),
            )
            return False
        return True

    def _result(self, token: str, stage: DispatchStage, payload: dict[str, t.Any]) -> DispatchResult:
        logger.info("token_dispatched", stage=stage, length=len(token))
        return DispatchResult(token=token, stage=stage, payload=payload)
