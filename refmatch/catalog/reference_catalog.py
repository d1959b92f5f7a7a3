"""
Reference Catalog
Holds one FeatureSet per known reference image, built once by a background load
"""

import logging
import threading
import time
from concurrent.futures import Future, TimeoutError as FutureTimeoutError
from enum import Enum
from types import MappingProxyType
from typing import Callable, Dict, Iterable, Iterator, Mapping, Optional, Tuple, Union

from refmatch.detection.feature_extractor import FeatureExtractor, FeatureSet
from refmatch.engine import VisionEngine
from refmatch.exceptions import DecodeError, EngineNotReadyError
from refmatch.preprocessing.image_loader import ImageLoader

logger = logging.getLogger(__name__)

SourcePairs = Iterable[Tuple[str, bytes]]
Source = Union[Callable[[], SourcePairs], SourcePairs, Mapping[str, bytes]]


class CatalogState(Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    LOAD_FAILED = "load_failed"


class ReferenceCatalog:
    """
    Read-only mapping from reference identifier to FeatureSet.

    State machine: UNINITIALIZED -> LOADING -> READY, or LOADING -> LOAD_FAILED.
    LOAD_FAILED is terminal until reset().
    """

    def __init__(self, source: Source, loader: ImageLoader = None,
                 extractor: FeatureExtractor = None,
                 engine: Optional[VisionEngine] = None,
                 max_attempts: int = 10, retry_interval: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initialize catalog.

        Args:
            source: Callable returning (identifier, bytes) pairs, or the pairs
                themselves, or a mapping of identifier to bytes
            loader: Image loader used for every reference
            extractor: Feature extractor used for every reference
            engine: Vision engine handle whose availability gates the load
            max_attempts: Availability checks before the load fails
            retry_interval: Seconds between availability checks
            sleep: Sleep function (injectable for tests)
        """
        self.source = source
        self.loader = loader or ImageLoader()
        self.engine = engine or (extractor.engine if extractor else VisionEngine())
        self.extractor = extractor or FeatureExtractor(engine=self.engine)
        self.max_attempts = max_attempts
        self.retry_interval = retry_interval
        self._sleep = sleep

        self._lock = threading.Lock()
        self._state = CatalogState.UNINITIALIZED
        self._entries: Mapping[str, FeatureSet] = MappingProxyType({})
        self._future: Optional[Future] = None
        self.error: Optional[BaseException] = None

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is CatalogState.READY

    @property
    def entries(self) -> Mapping[str, FeatureSet]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Tuple[str, FeatureSet]]:
        return iter(list(self._entries.items()))

    def __contains__(self, reference_id: str) -> bool:
        return reference_id in self._entries

    def get(self, reference_id: str) -> Optional[FeatureSet]:
        return self._entries.get(reference_id)

    def load(self) -> Future:
        """
        Start loading in the background.

        Returns:
            Future resolved with this catalog once READY, or with the load error

        Raises:
            EngineNotReadyError: If a previous load already failed
        """
        with self._lock:
            if self._state is CatalogState.LOAD_FAILED:
                raise EngineNotReadyError(f"Catalog load failed: {self.error}")
            if self._state in (CatalogState.LOADING, CatalogState.READY):
                return self._future

            future = Future()
            future.set_running_or_notify_cancel()
            self._future = future
            self._state = CatalogState.LOADING

        thread = threading.Thread(target=self._run_load, args=(future,),
                                  name="refmatch-catalog-load", daemon=True)
        thread.start()
        return future

    def wait_until_ready(self, timeout: Optional[float] = None) -> 'ReferenceCatalog':
        """
        Block until READY.

        Raises:
            EngineNotReadyError: If never loaded, failed, or timed out
        """
        with self._lock:
            state = self._state
            future = self._future

        if state is CatalogState.READY:
            return self
        if state is CatalogState.UNINITIALIZED:
            raise EngineNotReadyError("Catalog has not been loaded")
        if state is CatalogState.LOAD_FAILED:
            raise EngineNotReadyError(f"Catalog load failed: {self.error}") from self.error

        try:
            error = future.exception(timeout=timeout)
        except FutureTimeoutError as e:
            raise EngineNotReadyError(f"Catalog not ready after {timeout}s") from e
        if error is not None:
            raise EngineNotReadyError(f"Catalog load failed: {error}") from error
        return self

    def reset(self):
        """Return to UNINITIALIZED, dropping all entries."""
        with self._lock:
            if self._state is CatalogState.LOADING:
                raise RuntimeError("Cannot reset a catalog while it is loading")
            self._state = CatalogState.UNINITIALIZED
            self._entries = MappingProxyType({})
            self._future = None
            self.error = None

    def _run_load(self, future: Future):
        try:
            entries = self._build_entries()
        except Exception as e:
            logger.error(f"Reference catalog load failed: {e}")
            with self._lock:
                self.error = e
                self._state = CatalogState.LOAD_FAILED
            future.set_exception(e)
            return

        with self._lock:
            self._entries = MappingProxyType(entries)
            self._state = CatalogState.READY
        logger.info(f"Reference catalog ready with {len(entries)} references")
        future.set_result(self)

    def _build_entries(self) -> Dict[str, FeatureSet]:
        self.engine.wait_until_available(self.max_attempts, self.retry_interval,
                                         sleep=self._sleep)

        entries: Dict[str, FeatureSet] = {}
        for reference_id, data in self._iter_source():
            try:
                image = self.loader.decode(data)
            except DecodeError as e:
                logger.warning(f"Skipping reference {reference_id}: {e}")
                continue

            features = self.extractor.extract(image)
            if features.is_empty:
                logger.warning(f"Reference {reference_id} has no keypoints")
            else:
                logger.debug(f"Reference {reference_id}: {len(features)} keypoints")
            entries[reference_id] = features
        return entries

    def _iter_source(self) -> SourcePairs:
        source = self.source
        if callable(source):
            source = source()
        if isinstance(source, Mapping):
            return list(source.items())
        return source
