"""Fixed-length spectrum buffer with per-channel summation."""

from __future__ import annotations

from typing import Iterable, Union

import numpy as np


class Spectrum:
    """MCA spectrum for one pixel or one accumulated frame.

    Channel counts live in a 1-D float64 array. Acquisition statistics
    (live/real time, input/output counts) travel with the data so that
    summing spectra also sums the statistics.
    """

    def __init__(
        self,
        data: Union[np.ndarray, Iterable[float], int],
        *,
        elapsed_livetime: float = 1.0,
        elapsed_realtime: float = 1.0,
        input_counts: float = 1.0,
        output_counts: float = 1.0,
    ):
        if isinstance(data, (int, np.integer)):
            arr = np.zeros(int(data), dtype=np.float64)
        else:
            arr = np.asarray(data, dtype=np.float64)
        if arr.ndim != 1:
            raise ValueError(f"spectrum data must be 1-D, got shape {arr.shape}")
        self.data = arr
        self.elapsed_livetime = float(elapsed_livetime)
        self.elapsed_realtime = float(elapsed_realtime)
        self.input_counts = float(input_counts)
        self.output_counts = float(output_counts)

    @property
    def size(self) -> int:
        return int(self.data.size)

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, idx):
        return self.data[idx]

    def __repr__(self) -> str:
        return f"Spectrum(n_channels={self.size}, total={float(self.data.sum()):.6g})"

    def add(self, other: "Spectrum") -> "Spectrum":
        """Fold ``other`` into this spectrum in place."""
        if other.size != self.size:
            raise ValueError(f"cannot add spectrum of {other.size} channels to one of {self.size}")
        np.add(self.data, other.data, out=self.data)
        self.elapsed_livetime += other.elapsed_livetime
        self.elapsed_realtime += other.elapsed_realtime
        self.input_counts += other.input_counts
        self.output_counts += other.output_counts
        return self

    def segment_sum(self, start: int, length: int) -> float:
        """Sum ``length`` channels beginning at ``start``."""
        if length <= 0:
            return 0.0
        return float(self.data[start : start + length].sum())

    def sum(self) -> float:
        return float(self.data.sum())

    def recalc_elapsed_livetime(self) -> None:
        if self.input_counts > 0.0 and self.output_counts > 0.0:
            self.elapsed_livetime = self.elapsed_realtime * self.output_counts / self.input_counts

    def copy(self) -> "Spectrum":
        return Spectrum(
            self.data.copy(),
            elapsed_livetime=self.elapsed_livetime,
            elapsed_realtime=self.elapsed_realtime,
            input_counts=self.input_counts,
            output_counts=self.output_counts,
        )
