import numpy as np
import pytest

from xrfstream.data.model import CalibrationModel
from xrfstream.data.spectrum import Spectrum


def test_add_sums_channels_and_acquisition_stats() -> None:
    a = Spectrum(np.array([1.0, 2.0, 3.0]), elapsed_realtime=0.5, input_counts=10.0, output_counts=8.0)
    b = Spectrum(np.array([10.0, 20.0, 30.0]), elapsed_realtime=0.25, input_counts=5.0, output_counts=4.0)

    result = a.add(b)

    assert result is a
    assert np.array_equal(a.data, [11.0, 22.0, 33.0])
    assert a.elapsed_realtime == 0.75
    assert a.input_counts == 15.0
    assert a.output_counts == 12.0
    assert np.array_equal(b.data, [10.0, 20.0, 30.0])


def test_add_rejects_length_mismatch() -> None:
    with pytest.raises(ValueError):
        Spectrum(4).add(Spectrum(5))


def test_segment_sum_and_empty_segment() -> None:
    spectra = Spectrum(np.arange(10, dtype=float))
    assert spectra.segment_sum(2, 3) == 2.0 + 3.0 + 4.0
    assert spectra.segment_sum(5, 0) == 0.0


def test_int_constructor_allocates_zeroed_channels() -> None:
    spectra = Spectrum(2048)
    assert spectra.size == 2048
    assert len(spectra) == 2048
    assert spectra.sum() == 0.0


def test_recalc_elapsed_livetime_uses_count_ratio() -> None:
    spectra = Spectrum(4, elapsed_realtime=2.0, input_counts=100.0, output_counts=80.0)
    spectra.recalc_elapsed_livetime()
    assert spectra.elapsed_livetime == pytest.approx(1.6)


def test_copy_is_independent() -> None:
    spectra = Spectrum(np.ones(4))
    dup = spectra.copy()
    dup.add(Spectrum(np.ones(4)))
    assert spectra.sum() == 4.0
    assert dup.sum() == 8.0


def test_energy_axis_is_linear_plus_quadratic() -> None:
    model = CalibrationModel(energy_offset=0.1, energy_slope=0.01, energy_quadratic=0.001)
    axis = model.energy_axis(3)
    assert axis == pytest.approx([0.1, 0.111, 0.124])
