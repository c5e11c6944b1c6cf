"""Abstract base class for candidate sources."""

from abc import ABC, abstractmethod

from hunter.core.schemas import SearchFilters, SourceResult


class CandidateSource(ABC):
    """Base class that every primary candidate source must implement."""

    @property
    @abstractmethod
    def source_id(self) -> str:
        """Unique identifier for this source (e.g. 'github')."""

    @abstractmethod
    async def search(self, filters: SearchFilters) -> SourceResult:
        """Run one query and return raw (unscored) candidates.

        Raises on any failure; the caller decides whether that is fatal.
        """
