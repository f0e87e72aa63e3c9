"""
Content Store
Read-only boundary to the CMS that owns place records.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..models import Place


class ContentStore(ABC):
    """Source of truth for places; the indexes are derived from it."""

    @abstractmethod
    async def find_one(self, document_id: str) -> Optional[Place]:
        """Published version of a place with relations populated, or None."""

    @abstractmethod
    async def find_many(self, document_ids: Optional[Sequence[str]] = None) -> List[Place]:
        """
        Published places.

        Args:
            document_ids: Restrict to these ids (None = every published place).
                An empty sequence returns [] without querying.
        """

    async def aclose(self) -> None:
        pass
