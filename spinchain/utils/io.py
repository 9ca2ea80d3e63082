"""Time-series sinks for persisting chain trajectories."""

import numpy as np
import h5py
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, Tuple
import json
from pathlib import Path

DATASET_NAME = "magnetization"
AXIS_NAMES = ("t", "z", "y", "x", "c")


class TimeSeriesSink(ABC):
    """
    Destination for one (time, site, component) record per absolute time index.

    The logical layout is time × z × y × x × component with shape
    (total_steps + 1, 1, 1, chain_length, 3). Every write covers the full
    spatial and vector extent of one time index.
    """

    def __init__(self):
        self.total_steps = None
        self.chain_length = None
        self._closed = False

    @staticmethod
    def series_shape(total_steps: int, chain_length: int) -> Tuple[int, ...]:
        return (total_steps + 1, 1, 1, chain_length, 3)

    @property
    def shape(self) -> Optional[Tuple[int, ...]]:
        if self.total_steps is None:
            return None
        return self.series_shape(self.total_steps, self.chain_length)

    @property
    def is_open(self) -> bool:
        return self.total_steps is not None

    def create_series(self, total_steps: int, chain_length: int):
        """
        Allocate storage for total_steps + 1 slices of chain_length moments.

        A closed sink may start a new series. The sink only reports open
        once the storage has been created.

        Args:
            total_steps: Number of integration steps T
            chain_length: Number of sites N
        """
        if total_steps < 0:
            raise ValueError(f"Step count must be non-negative, got {total_steps}")
        if chain_length < 1:
            raise ValueError(f"Chain length must be positive, got {chain_length}")

        if self.is_open:
            self.close()

        self._create(int(total_steps), int(chain_length))
        self.total_steps = int(total_steps)
        self.chain_length = int(chain_length)
        self._closed = False

    def write_slice(self, time_index: int, vectors: np.ndarray):
        """
        Write the chain at one absolute time index.

        Args:
            time_index: Index in [0, total_steps]
            vectors: chain_length * 3 interleaved values or (chain_length, 3)
        """
        if not self.is_open:
            if self._closed:
                raise ValueError("Sink has been closed; call create_series "
                                 "to start a new series")
            raise ValueError("create_series must be called before write_slice")
        if not 0 <= time_index <= self.total_steps:
            raise ValueError(f"Time index {time_index} outside [0, {self.total_steps}]")

        vectors = np.asarray(vectors, dtype=np.float64)
        if vectors.size != self.chain_length * 3:
            raise ValueError(f"Slice must hold {self.chain_length} x 3 values, "
                             f"got shape {vectors.shape}")

        self._write(int(time_index), vectors.reshape(1, 1, self.chain_length, 3))

    @abstractmethod
    def _create(self, total_steps: int, chain_length: int):
        pass

    @abstractmethod
    def _write(self, time_index: int, block: np.ndarray):
        pass

    def _release(self):
        """Release backend resources."""
        pass

    def close(self):
        """Flush and release the store. Further writes raise until a new series."""
        was_open = self.is_open
        try:
            self._release()
        finally:
            self.total_steps = None
            self.chain_length = None
            if was_open:
                self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


class ArrayTimeSeriesSink(TimeSeriesSink):
    """In-memory sink backed by a numpy array."""

    def __init__(self):
        super().__init__()
        self.data = None

    def _create(self, total_steps: int, chain_length: int):
        self.data = np.full(self.series_shape(total_steps, chain_length), np.nan)

    def _write(self, time_index: int, block: np.ndarray):
        self.data[time_index] = block

    @property
    def trajectory(self) -> np.ndarray:
        """Stored series as (total_steps + 1, chain_length, 3)."""
        if self.data is None:
            raise ValueError("No series has been created")
        return self.data[:, 0, 0]


class HDF5TimeSeriesSink(TimeSeriesSink):
    """
    HDF5 sink with one chunk per time index.

    The dataset is chunked as (1, 1, 1, chain_length, 3) so each slice is
    one contiguous, compressed write.
    """

    def __init__(
        self,
        filename: str,
        compression: Optional[str] = "gzip",
        compression_opts: Optional[int] = 4,
        overwrite: bool = True,
        metadata: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize HDF5 sink.

        Args:
            filename: Output filename
            compression: h5py compression filter ("gzip", "lzf" or None)
            compression_opts: Compression level for gzip
            overwrite: Remove a pre-existing file instead of failing
            metadata: Attributes stored alongside the dataset
        """
        super().__init__()
        self.filename = str(filename)
        self.compression = compression
        self.compression_opts = compression_opts if compression == "gzip" else None
        self.overwrite = overwrite
        self.metadata = dict(metadata) if metadata else {}
        self._file = None
        self._dataset = None

    def _create(self, total_steps: int, chain_length: int):
        path = Path(self.filename)
        if path.exists():
            if not self.overwrite:
                raise RuntimeError(f"Output file {self.filename} already exists")
            try:
                path.unlink()
            except OSError as e:
                raise RuntimeError(f"Cannot remove existing output {self.filename}: {e}") from e

        try:
            self._file = h5py.File(self.filename, 'w')
            self._dataset = self._file.create_dataset(
                DATASET_NAME,
                shape=self.series_shape(total_steps, chain_length),
                chunks=(1, 1, 1, chain_length, 3),
                dtype=np.float64,
                compression=self.compression,
                compression_opts=self.compression_opts
            )
            self._dataset.attrs['axes'] = json.dumps(AXIS_NAMES)
            for key, value in self.metadata.items():
                self._dataset.attrs[key] = _to_attr(value)
        except OSError as e:
            self._release()
            raise RuntimeError(f"Cannot create output {self.filename}: {e}") from e

    def _write(self, time_index: int, block: np.ndarray):
        try:
            self._dataset[time_index] = block
        except OSError as e:
            raise RuntimeError(f"Failed writing time index {time_index} "
                               f"to {self.filename}: {e}") from e

    def _release(self):
        if self._file is not None:
            try:
                self._file.close()
            finally:
                self._file = None
                self._dataset = None


def _to_attr(value):
    """Convert metadata values into something HDF5 attributes accept."""
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value)
    if value is None:
        return "null"
    return value


def load_time_series(filename: str) -> Tuple[np.ndarray, Dict[str, Any]]:
    """
    Load a stored trajectory.

    Args:
        filename: HDF5 file written by HDF5TimeSeriesSink

    Returns:
        Tuple of ((T+1, N, 3) array, metadata dictionary)
    """
    metadata = {}
    with h5py.File(filename, 'r') as f:
        dataset = f[DATASET_NAME]
        data = dataset[:]
        for key, value in dataset.attrs.items():
            if isinstance(value, bytes):
                value = value.decode()
            if isinstance(value, str):
                try:
                    value = json.loads(value)
                except json.JSONDecodeError:
                    pass
            metadata[key] = value

    return data[:, 0, 0], metadata
