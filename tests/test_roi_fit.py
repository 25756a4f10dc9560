import numpy as np
import pytest

from xrfstream.data.model import CalibrationModel
from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import FitElement
from xrfstream.fitting.base import FittingRoutine, make_fit_routine
from xrfstream.fitting.roi import ROIFitRoutine, roi_channels


def _ramp(n: int) -> Spectrum:
    return Spectrum(np.arange(n, dtype=np.float64))


def test_roi_sum_covers_inclusive_channel_window() -> None:
    spectra = _ramp(16)
    model = CalibrationModel(energy_offset=0.0, energy_slope=1.0)
    elements = {"Fe": FitElement("Fe", center=5.0, width=2000.0)}

    counts = ROIFitRoutine().fit_counts(model, spectra, elements)

    assert counts == {"Fe": 4.0 + 5.0 + 6.0}


def test_roi_window_uses_offset_and_slope() -> None:
    element = FitElement("Ca", center=3.0, width=1000.0)
    assert roi_channels(1.0, 0.5, 64, element) == (3, 5)


def test_right_channel_past_end_clamps_to_second_last() -> None:
    element = FitElement("U", center=25.0, width=1000.0)
    left, right = roi_channels(0.0, 0.01, 2048, element)
    assert right == 2046
    assert left == 2045


def test_inverted_window_moves_left_below_right() -> None:
    element = FitElement("Zn", center=5.0, width=-2000.0)
    assert roi_channels(0.0, 1.0, 16, element) == (3, 4)


def test_negative_left_channel_clamps_to_one() -> None:
    element = FitElement("Na", center=0.5, width=2000.0)
    assert roi_channels(0.0, 1.0, 16, element) == (1, 1)


def test_negative_right_channel_takes_whole_spectrum() -> None:
    element = FitElement("X", center=-5.0, width=2000.0)
    assert roi_channels(0.0, 1.0, 16, element) == (1, 14)


def test_clamped_window_is_summed_without_error() -> None:
    spectra = Spectrum(np.ones(2048))
    model = CalibrationModel(energy_offset=0.0, energy_slope=0.01)
    elements = {"U": FitElement("U", center=25.0, width=1000.0)}

    counts = ROIFitRoutine().fit_counts(model, spectra, elements)

    assert counts["U"] == 2.0


def test_tiny_spectrum_yields_zero_for_empty_window() -> None:
    spectra = Spectrum(np.array([5.0, 7.0]))
    model = CalibrationModel(energy_offset=0.0, energy_slope=1.0)
    elements = {"Fe": FitElement("Fe", center=10.0, width=100.0)}

    counts = ROIFitRoutine().fit_counts(model, spectra, elements)

    assert counts == {"Fe": 0.0}


def test_each_element_is_fitted_independently() -> None:
    spectra = _ramp(32)
    model = CalibrationModel(energy_offset=0.0, energy_slope=1.0)
    elements = {
        "Ca": FitElement("Ca", center=3.0, width=0.0),
        "Fe": FitElement("Fe", center=10.0, width=2000.0),
    }
    routine = ROIFitRoutine()

    first = routine.fit_counts(model, spectra, elements)
    second = routine.fit_counts(model, spectra, elements)

    assert first == {"Ca": 3.0, "Fe": 9.0 + 10.0 + 11.0}
    assert first == second
    assert first is not second


def test_initialize_is_a_no_op() -> None:
    routine = ROIFitRoutine()
    model = CalibrationModel()
    assert routine.initialize(model, {}) is None


def test_factory_builds_roi_and_rejects_others() -> None:
    assert isinstance(make_fit_routine("ROI"), ROIFitRoutine)
    assert isinstance(make_fit_routine(FittingRoutine.ROI), ROIFitRoutine)
    with pytest.raises(NotImplementedError):
        make_fit_routine(FittingRoutine.NNLS)
    with pytest.raises(ValueError):
        make_fit_routine("bogus")


def test_zero_slope_is_rejected() -> None:
    with pytest.raises(ValueError):
        CalibrationModel(energy_offset=0.0, energy_slope=0.0)
