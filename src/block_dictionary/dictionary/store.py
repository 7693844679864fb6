"""Process-wide dictionary store with single-assignment publication.

The store starts empty, is populated exactly once through
:meth:`DictionaryStore.initialize`, and never changes afterwards.  Lookups
through :meth:`DictionaryStore.get` are total: whenever a record cannot be
served (store not initialized, initialization failed, index out of range) the
record type's ``MISSING`` sentinel is returned and a diagnostic is logged.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Type, TypeVar, Union

from .bitfield import Record
from .config import StoreConfig, coerce_config
from .dictionary_common import AlreadyInitializedError, DictionaryError
from .loader import Dictionary, PathLike, _require_record_type, load_dictionary

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)
Loader = Callable[..., Dictionary]


class StoreState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class _Outcome(Generic[R]):
    """Result of one decode attempt; exactly one of the fields is set."""

    dictionary: Optional[Dictionary[R]] = None
    error: Optional[DictionaryError] = None

    @property
    def state(self) -> StoreState:
        return StoreState.FAILED if self.error is not None else StoreState.READY


class DictionaryStore(Generic[R]):
    """Holds at most one decoded dictionary for the lifetime of the process."""

    def __init__(
        self,
        record_type: Type[R],
        *,
        name: Optional[str] = None,
        config: Union[StoreConfig, dict, None] = None,
        loader: Optional[Loader] = None,
    ) -> None:
        self._record_type = _require_record_type(record_type)
        self._name = name or record_type.__name__.lower()
        self._config = coerce_config(config, StoreConfig, StoreConfig)
        self._loader = loader if loader is not None else load_dictionary
        self._lock = threading.Lock()
        self._outcome: Optional[_Outcome[R]] = None

    def __repr__(self) -> str:
        return f"DictionaryStore({self._record_type.__name__}, name={self._name!r}, state={self.state.value})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def record_type(self) -> Type[R]:
        return self._record_type

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def missing(self) -> R:
        return self._record_type.MISSING

    @property
    def state(self) -> StoreState:
        outcome = self._outcome
        if outcome is None:
            return StoreState.UNINITIALIZED
        return outcome.state

    @property
    def is_initialized(self) -> bool:
        return self._outcome is not None

    @property
    def dictionary(self) -> Optional[Dictionary[R]]:
        outcome = self._outcome
        return None if outcome is None else outcome.dictionary

    @property
    def error(self) -> Optional[DictionaryError]:
        outcome = self._outcome
        return None if outcome is None else outcome.error

    def __len__(self) -> int:
        dictionary = self.dictionary
        return 0 if dictionary is None else len(dictionary)

    def initialize(self, path: PathLike) -> Dictionary[R]:
        """Decode ``path`` and publish the outcome into the store.

        Decode failures are published too, so later lookups report them, and
        are then raised to the caller.  Any call made once the store holds an
        outcome raises :class:`AlreadyInitializedError`; a result decoded by a
        caller that loses the race is discarded.
        """

        if self._outcome is not None:
            raise AlreadyInitializedError(self._name)

        try:
            dictionary = self._loader(path, self._record_type, config=self._config.decoder)
        except DictionaryError as exc:
            outcome: _Outcome[R] = _Outcome(error=exc)
        else:
            outcome = _Outcome(dictionary=dictionary)

        with self._lock:
            if self._outcome is not None:
                logger.debug(
                    "Discarding %s dictionary decoded from %s; store already initialized",
                    self._name,
                    path,
                )
                raise AlreadyInitializedError(self._name)
            self._outcome = outcome

        if outcome.error is not None:
            logger.debug("Published failed %s dictionary: %s", self._name, outcome.error)
            raise outcome.error
        logger.info(
            "Initialized %s dictionary with %d records from %s",
            self._name,
            len(outcome.dictionary),
            path,
        )
        return outcome.dictionary

    def get(self, index: int) -> R:
        """Return the record at ``index`` or ``MISSING``; never raises."""

        outcome = self._outcome
        if outcome is None:
            self._report("Need to initialize %s dictionary", self._name)
            return self._record_type.MISSING
        if outcome.error is not None:
            self._report("Error loading %s dictionary: %s", self._name, outcome.error)
            return self._record_type.MISSING
        record = outcome.dictionary.get(index)
        if record is None:
            self._report(
                "No %s definition at index %r (dictionary holds %d records)",
                self._name,
                index,
                len(outcome.dictionary),
            )
            return self._record_type.MISSING
        return record

    def definition(self, index: int) -> R:
        return self.get(index)

    def _report(self, message: str, *args: object) -> None:
        if self._config.log_fallbacks:
            logger.log(self._config.fallback_log_level, message, *args)


__all__ = ["DictionaryStore", "StoreState"]
