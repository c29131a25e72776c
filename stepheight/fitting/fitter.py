"""
Fit engine for vertical calibration standards.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from utils.logger import log_debug, log_error
from ..data_preprocessing import as_profile, remove_bad_points, shift_profile
from ..feature_types import FeatureFamily, FeatureType, FitStatus
from .boundaries import (DEFAULT_LENGTH_A, DEFAULT_LENGTH_C, DEFAULT_LENGTH_E,
                         Boundaries, FitBoundaries)
from .cylindrical import fit_cylindrical
from .flat_topped import fit_flat_topped


def _empty_points():
    return np.empty((0, 3))


@dataclass(frozen=True, eq=False)
class FitResult:
    """
    Result of fitting a single profile.

    Scalar values that were not (or could not be) computed are NaN. The
    cylindrical parameters are NaN for flat-topped features. Positions
    (center_position, boundaries, residual and predicted x values) are in
    the frame of the profile passed to the fit.
    """
    feature_type: FeatureType
    status: FitStatus = FitStatus.UNKNOWN
    height: float = np.nan
    pt: float = np.nan
    range_of_residuals: float = np.nan
    number_of_fit_points: int = 0
    profile_too_short: bool = False
    feature_width: float = np.nan
    wall_width: float = np.nan
    y_position: float = np.nan
    radius: float = np.nan
    center_position: float = np.nan
    asymmetry: float = np.nan
    boundaries: Optional[Boundaries] = None
    residuals: np.ndarray = field(default_factory=_empty_points, repr=False)
    predicted_function: np.ndarray = field(default_factory=_empty_points, repr=False)

    @property
    def success(self):
        return self.status is FitStatus.SUCCESS


def _fit_not_supported(profile, boundaries, sign):
    return None


# Fit algorithm registry - maps feature families to fit functions
FIT_ALGORITHMS = {
    FeatureFamily.FLAT_TOPPED: fit_flat_topped,
    FeatureFamily.CYLINDRICAL: fit_cylindrical,
    # TODO: single edge (rising/falling step) fit, no algorithm defined yet
    FeatureFamily.SINGLE_EDGE: _fit_not_supported,
    FeatureFamily.UNDEFINED: _fit_not_supported,
}


def fit_profile(profile, feature_type, left_edge, right_edge, left_wall=None, right_wall=None,
                length_e=DEFAULT_LENGTH_E, length_a=DEFAULT_LENGTH_A, length_c=DEFAULT_LENGTH_C):
    """
    Fit a vertical standard model to a single profile.

    Parameters
    ----------
    profile : array_like, shape (n, 3)
        Samples (x, y, z); samples with NaN x or z are ignored
    feature_type : FeatureType
        Type of the feature to be fitted
    left_edge, right_edge : float
        Feature edge positions, same unit as x
    left_wall, right_wall : float, optional
        Outer wall positions for trapezoidal features, default to the edges
    length_e, length_a, length_c : float, optional
        Normalized evaluation, reference and feature domain lengths

    Returns
    -------
    FitResult
    """
    return VerticalStandardFitter(feature_type, length_e, length_a, length_c).fit(
        profile, left_edge, right_edge, left_wall, right_wall)


class VerticalStandardFitter:
    """
    Fit engine for one feature type and one set of domain lengths.

    The fitter holds configuration only; every call to :meth:`fit`
    returns a new :class:`FitResult`.

    Attributes
    ----------
    feature_type : FeatureType
        Type of feature to be fitted
    length_e : float
        Normalized overall evaluation length (3 W)
    length_a : float
        Normalized single reference domain length (2/3 W)
    length_c : float
        Normalized feature domain length (1/3 W)
    """

    def __init__(self, feature_type, length_e=DEFAULT_LENGTH_E, length_a=DEFAULT_LENGTH_A,
                 length_c=DEFAULT_LENGTH_C):
        """
        Initialize VerticalStandardFitter.

        Parameters
        ----------
        feature_type : FeatureType
            Type of feature to be fitted
        length_e, length_a, length_c : float, optional
            Normalized domain lengths
        """
        if not isinstance(feature_type, FeatureType):
            raise ValueError(f"feature_type must be a FeatureType, got {feature_type!r}")
        self.feature_type = feature_type
        self.boundary_generator = FitBoundaries(length_e, length_a, length_c)

    @property
    def length_e(self):
        return self.boundary_generator.length_e

    @property
    def length_a(self):
        return self.boundary_generator.length_a

    @property
    def length_c(self):
        return self.boundary_generator.length_c

    @property
    def feature_type_designation(self):
        return self.feature_type.designation

    @property
    def sign(self):
        return self.feature_type.sign

    def fit(self, profile, left_edge, right_edge, left_wall=None, right_wall=None):
        """
        Fit the feature model to a profile.

        Parameters
        ----------
        profile : array_like, shape (n, 3)
            Samples (x, y, z), conventionally increasing in x
        left_edge, right_edge : float
            Feature edge positions
        left_wall, right_wall : float, optional
            Outer wall positions (trapezoidal features); default to the edges

        Returns
        -------
        FitResult
            Fresh result; status tells whether the fit values are valid
        """
        result = {'feature_type': self.feature_type}

        samples = remove_bad_points(as_profile(profile))
        if len(samples) == 0:
            log_debug("Profile contains no valid samples")
            return FitResult(status=FitStatus.NO_DATA, **result)
        result['y_position'] = float(samples[0, 1])

        # center profile to feature, avoids numerical instability with large x values
        feature_center = (left_edge + right_edge) / 2.0
        shifted = shift_profile(samples, feature_center)
        if left_wall is not None:
            left_wall = left_wall - feature_center
        if right_wall is not None:
            right_wall = right_wall - feature_center

        algorithm = FIT_ALGORITHMS[self.feature_type.family]
        if algorithm is _fit_not_supported:
            log_error(f"Fit for {self.feature_type.designation} is not implemented")
            return FitResult(status=FitStatus.NOT_SUPPORTED, **result)

        boundaries = self.boundary_generator.generate(
            left_edge - feature_center, right_edge - feature_center, left_wall, right_wall)
        result['feature_width'] = boundaries.feature_width
        result['wall_width'] = boundaries.wall_width
        result['boundaries'] = boundaries.shifted(feature_center)

        x = shifted[:, 0]
        x_min, x_max = np.min(x), np.max(x)
        if boundaries.x1 < x_min or boundaries.x6 > x_max:
            log_debug(f"Evaluation range [{boundaries.x1 + feature_center:g}, "
                      f"{boundaries.x6 + feature_center:g}] exceeds profile")
            return FitResult(status=FitStatus.BAD_EDGE_POSITION, profile_too_short=True, **result)
        if not (x_min <= boundaries.left_edge <= x_max and x_min <= boundaries.right_edge <= x_max):
            log_debug("Feature edge outside of profile")
            return FitResult(status=FitStatus.BAD_EDGE_POSITION, profile_too_short=True, **result)
        if boundaries.feature_width <= 0 or not (np.any(boundaries.reference_mask(x))
                                                 and np.any(boundaries.feature_mask(x))):
            log_debug("Evaluation domain without samples")
            return FitResult(status=FitStatus.BAD_EDGE_POSITION, profile_too_short=True, **result)

        fit = algorithm(shifted, boundaries, self.sign)

        residuals = shift_profile(fit['residuals'], -feature_center)
        predicted = shift_profile(fit['predicted'], -feature_center)
        if 'center_position' in fit:
            result['radius'] = fit['radius']
            result['center_position'] = fit['center_position'] + feature_center
            result['asymmetry'] = fit['asymmetry']

        log_debug(f"Profile at y = {result['y_position']:g} fitted, height = {fit['height']:g}")
        return FitResult(
            status=FitStatus.SUCCESS,
            height=fit['height'],
            pt=fit['pt'],
            range_of_residuals=fit['range_of_residuals'],
            number_of_fit_points=len(residuals),
            residuals=residuals,
            predicted_function=predicted,
            **result,
        )
