"""Document-scoped registry of named schemas."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger(__name__)


class DefinitionRegistry:
    """Named schema fragments shared by every operation of one document.

    The first schema collected under a name is kept; later writes for that
    name are ignored. The registry is not synchronized: callers building one
    document from several threads must serialize their calls.
    """

    def __init__(self, schemas: dict[str, dict[str, Any]] | None = None) -> None:
        self._schemas = schemas if schemas is not None else {}

    def collect(self, name: str, schema: dict[str, Any]) -> bool:
        """Insert ``schema`` under ``name`` unless the name is taken.

        Returns True when the schema was inserted.
        """
        if name in self._schemas:
            logger.debug("Definition %s already collected, keeping first", name)
            return False
        self._schemas[name] = schema
        logger.debug("Collected definition %s", name)
        return True

    def get(self, name: str) -> dict[str, Any] | None:
        return self._schemas.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return dict(self._schemas)
