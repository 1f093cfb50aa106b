"""
Dataset Store - Process-wide Transaction Snapshot

Holds the parsed dataset for the lifetime of the process. Loaded exactly
once; read-only afterwards, so concurrent requests share it without locks.
Readers check `is_ready` and decline to proceed before the load completes.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import requests

from core.errors import DataFormatError, DatasetNotReady
from core.estimation.models import TransactionRecord
from core.ingestion.parser import ParsedDataset, parse_transactions


logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 60


class LoadState(Enum):
    """Dataset load lifecycle."""

    PENDING = "pending"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class DatasetStore:
    """
    Owner of the in-memory transaction dataset.

    Usage:
        store = DatasetStore()
        store.load_from_path("dvf_light.csv")
        records = store.records  # tuple, never mutated
    """

    def __init__(self):
        self._state = LoadState.PENDING
        self._dataset: Optional[ParsedDataset] = None
        self._error: Optional[str] = None
        self._source: str = ""
        # Guards the one-shot transition out of PENDING only
        self._init_lock = threading.Lock()

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is LoadState.READY

    @property
    def error(self) -> Optional[str]:
        """Load failure message, if the load failed."""
        return self._error

    @property
    def records(self) -> tuple[TransactionRecord, ...]:
        """
        All parsed transactions.

        Raises:
            DatasetNotReady: If the dataset is not loaded
        """
        self.require_ready()
        return self._dataset.records

    def require_ready(self) -> None:
        """Raise DatasetNotReady unless the dataset is loaded."""
        if not self.is_ready:
            raise DatasetNotReady(self._not_ready_message())

    @property
    def count(self) -> int:
        return self._dataset.count if self._dataset else 0

    def status(self) -> dict:
        """Load status for health/status endpoints."""
        return {
            "state": self._state.value,
            "source": self._source,
            "count": self.count,
            "error": self._error,
        }

    # =========================================================================
    # Loading
    # =========================================================================

    def load(self, content: Union[bytes, str], source: str = "<memory>") -> ParsedDataset:
        """
        Parse and install the dataset.

        Args:
            content: Raw file content
            source: Path or URL, for status and logs

        Returns:
            The parsed dataset

        Raises:
            RuntimeError: If a load was already started
            DataFormatError: If the content cannot be parsed
        """
        self._begin(source)
        return self._parse(content)

    def load_from_path(self, path: Union[str, Path]) -> ParsedDataset:
        """Load the dataset from a local file."""
        path = Path(path)
        self._begin(str(path))
        try:
            content = path.read_bytes()
        except OSError as e:
            message = f"Dataset not found: {path} ({e.strerror})"
            self._fail(message)
            raise DataFormatError(message) from e
        return self._parse(content)

    def load_from_url(
        self,
        url: str,
        session: Optional[requests.Session] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> ParsedDataset:
        """Fetch the dataset over HTTP and load it."""
        self._begin(url)
        http = session or requests.Session()
        try:
            response = http.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            status = getattr(e.response, "status_code", None)
            message = f"Dataset unavailable: {url}"
            if status is not None:
                message += f" (HTTP {status})"
            self._fail(message)
            raise DataFormatError(message) from e
        finally:
            if session is None:
                http.close()
        return self._parse(response.content)

    def _parse(self, content: Union[bytes, str]) -> ParsedDataset:
        try:
            dataset = parse_transactions(content)
        except DataFormatError as e:
            self._fail(str(e))
            raise
        return self._install(dataset)

    def _begin(self, source: str) -> None:
        with self._init_lock:
            if self._state is not LoadState.PENDING:
                raise RuntimeError(f"Dataset already {self._state.value}")
            self._state = LoadState.LOADING
            self._source = source
        logger.info("Loading transaction dataset from %s", source)

    def _install(self, dataset: ParsedDataset) -> ParsedDataset:
        self._dataset = dataset
        self._state = LoadState.READY
        logger.info("Dataset ready: %d transactions from %s", dataset.count, self._source)
        return dataset

    def _fail(self, message: str) -> None:
        self._error = message
        self._state = LoadState.FAILED
        logger.error("Dataset load failed: %s", message)

    def _not_ready_message(self) -> str:
        if self._state is LoadState.FAILED:
            return f"Dataset failed to load: {self._error}"
        return "Dataset is still loading, retry in a few seconds"


# Singleton instance for the application
_dataset_store: Optional[DatasetStore] = None


def get_dataset_store() -> DatasetStore:
    """Get the dataset store singleton."""
    global _dataset_store
    if _dataset_store is None:
        _dataset_store = DatasetStore()
    return _dataset_store
