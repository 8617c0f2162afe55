"""
First-match format dispatch

A registry holds candidates in an explicit priority order and selects the first
one whose ``is_support`` accepts the source. More specific candidates must be
registered ahead of generic fallbacks.
"""
import logging
from typing import Generic, Protocol, Sequence, TypeVar

from mytv.errors import UnsupportedSourceError
from mytv.utils.logging_helpers import sanitize_url_for_logging


logger = logging.getLogger(__name__)


class SupportsSource(Protocol):
    def is_support(self, *args) -> bool: ...


T = TypeVar('T', bound=SupportsSource)


class SourceRegistry(Generic[T]):
    """Ordered candidates; position is priority."""

    def __init__(self, name: str, candidates: Sequence[T] = ()):
        self.name = name
        self._candidates: list[T] = list(candidates)

    @property
    def candidates(self) -> tuple[T, ...]:
        return tuple(self._candidates)

    def register(self, candidate: T, *, before: type | None = None) -> None:
        """
        Add a candidate at the end, or ahead of the first candidate of type ``before``.

        Raises:
            ValueError: If ``before`` is given but no such candidate is registered
        """
        if before is None:
            self._candidates.append(candidate)
        else:
            for index, existing in enumerate(self._candidates):
                if isinstance(existing, before):
                    self._candidates.insert(index, candidate)
                    break
            else:
                raise ValueError(f"No {before.__name__} registered in {self.name}")

        logger.debug(f"Registered {type(candidate).__name__} in {self.name}")

    def select(self, *args) -> T:
        """
        Return the first candidate supporting ``args``.

        Raises:
            UnsupportedSourceError: If no candidate matches
        """
        for candidate in self._candidates:
            if candidate.is_support(*args):
                logger.debug(f"{self.name}: selected {type(candidate).__name__}")
                return candidate

        resource = sanitize_url_for_logging(args[0]) if args and isinstance(args[0], str) else None
        raise UnsupportedSourceError(f"No {self.name} supports this source", resource=resource)
