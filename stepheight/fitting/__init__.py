"""Fit engine for vertical calibration standards."""

from .boundaries import (Boundaries, FitBoundaries, generate_boundaries,
                         DEFAULT_LENGTH_E, DEFAULT_LENGTH_A, DEFAULT_LENGTH_C)
from .fitter import FitResult, VerticalStandardFitter, fit_profile, FIT_ALGORITHMS
from .flat_topped import fit_flat_topped
from .cylindrical import fit_cylindrical
from .statistics import FitStatistics, summarize, format_fit_result, format_statistics

__all__ = [
    'Boundaries',
    'FitBoundaries',
    'generate_boundaries',
    'DEFAULT_LENGTH_E',
    'DEFAULT_LENGTH_A',
    'DEFAULT_LENGTH_C',
    'FitResult',
    'VerticalStandardFitter',
    'fit_profile',
    'FIT_ALGORITHMS',
    'fit_flat_topped',
    'fit_cylindrical',
    'FitStatistics',
    'summarize',
    'format_fit_result',
    'format_statistics',
]
