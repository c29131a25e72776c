"""
Flat-topped feature fit (ISO 5436-1 type A1, rectangular or trapezoidal).

Both reference domains share one straight line; the feature domain is
offset from it by the step height. The step enters the regression through
a signed dummy variable delta(x):

    delta = +sign   on the reference domains [X1, X2] and [X5, X6]
    delta = -sign   on the feature domain [X3, X4]
    delta = 0       elsewhere

and z = a*x + b + delta*c is solved in closed form. The two reference
strata sit at +c and the feature stratum at -c relative to the fitted
line, so the height is 2c.
"""

import numpy as np

from .moments import solve_step


def dummy_variable(x, boundaries, sign):
    """
    Populate the signed dummy variable for each sample.

    Parameters
    ----------
    x : array_like
        Sample positions
    boundaries : Boundaries
        Evaluation domain boundaries
    sign : int
        Fit sign of the feature type (+1 groove, -1 ridge)

    Returns
    -------
    delta : ndarray of int
    """
    x = np.asarray(x)
    delta = np.zeros(len(x), dtype=int)
    delta[boundaries.reference_mask(x)] = sign
    delta[boundaries.feature_mask(x)] = -sign  # feature domain wins on overlap
    return delta


def fit_flat_topped(profile, boundaries, sign):
    """
    Fit a rectangular or trapezoidal groove/ridge.

    Parameters
    ----------
    profile : ndarray, shape (n, 3)
        Valid, centered samples (x, y, z)
    boundaries : Boundaries
        Evaluation domain boundaries in the same frame as the profile
    sign : int
        Fit sign of the feature type

    Returns
    -------
    fit : dict
        - 'height': fitted step height (2c)
        - 'pt': height plus the largest signed residual excess
        - 'range_of_residuals': max - min of the residuals
        - 'slope', 'intercept', 'half_step': the fit coefficients a, b, c
        - 'predicted': predicted function samples, sorted by x
        - 'residuals': residual samples, sorted by x
    """
    x = profile[:, 0]
    z = profile[:, 2]
    delta = dummy_variable(x, boundaries, sign)

    fit_a, fit_b, fit_c = solve_step(x, z, delta)
    height = 2 * fit_c

    used = delta != 0
    points = profile[used]
    delta_used = delta[used]
    predicted_z = points[:, 0] * fit_a + fit_b + delta_used * fit_c
    residual_z = points[:, 2] - predicted_z
    residual_delta = residual_z * delta_used  # for Pt only

    order = np.argsort(points[:, 0], kind='stable')
    predicted = np.column_stack([points[:, 0], points[:, 1], predicted_z])[order]
    residuals = np.column_stack([points[:, 0], points[:, 1], residual_z])[order]

    return {
        'height': height,
        'pt': height + float(np.max(residual_delta)),
        'range_of_residuals': float(np.max(residual_z) - np.min(residual_z)),
        'slope': fit_a,
        'intercept': fit_b,
        'half_step': fit_c,
        'predicted': predicted,
        'residuals': residuals,
    }
