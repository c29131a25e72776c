"""
Cylindrical feature fit (ISO 5436-1 type A2).

A straight line is fitted to the reference domains and subtracted from
the whole evaluation range. The levelled feature domain is then fitted
with a parabola whose vertex gives depth, position and radius of the
cylinder.
"""

import numpy as np

from .moments import solve_line, solve_parabola


def fit_cylindrical(profile, boundaries, sign):
    """
    Fit a cylindrical groove or ridge.

    Parameters
    ----------
    profile : ndarray, shape (n, 3)
        Valid, centered samples (x, y, z)
    boundaries : Boundaries
        Evaluation domain boundaries in the same frame as the profile
    sign : int
        Fit sign of the feature type (+1 groove, -1 ridge)

    Returns
    -------
    fit : dict
        - 'height': depth of a groove or height of a ridge at the vertex
        - 'pt': peak-to-valley of the levelled data
        - 'range_of_residuals': max - min of the residuals
        - 'radius': radius of curvature at the vertex, 1/(2|a|)
        - 'center_position': x position of the vertex (profile frame)
        - 'asymmetry': (2*center - (left_edge + right_edge)) / W
        - 'slope', 'intercept': reference line k, d
        - 'parabola': coefficients (a, b, c) of the levelled parabola
        - 'predicted': predicted function samples, sorted by x
        - 'residuals': residual samples, sorted by x
    """
    x = profile[:, 0]
    z = profile[:, 2]
    in_reference = boundaries.reference_mask(x)
    in_feature = boundaries.feature_mask(x)

    fit_k, fit_d = solve_line(x, z, in_reference)
    levelled = z - (fit_k * x + fit_d)

    fit_a, fit_b, fit_c = solve_parabola(x, levelled, in_feature)

    with np.errstate(divide='ignore', invalid='ignore'):
        vertex_value = fit_c - fit_b * fit_b / (4.0 * np.float64(fit_a))
        center_position = -fit_b / (2.0 * np.float64(fit_a))
        radius = 1.0 / np.abs(2.0 * np.float64(fit_a))
        asymmetry = ((2.0 * center_position - (boundaries.right_edge + boundaries.left_edge))
                     / np.float64(boundaries.feature_width))

    reference = profile[in_reference]
    feature = profile[in_feature]
    z_reference = levelled[in_reference]
    z_feature = levelled[in_feature]

    if sign > 0:
        height = -vertex_value
        pt = np.max(z_reference) - np.min(z_feature)
    else:
        height = vertex_value
        pt = np.max(z_feature) - np.min(z_reference)

    # reference domain: the line; its levelled heights are the residuals
    reference_line = fit_k * reference[:, 0] + fit_d
    x_f = feature[:, 0]
    parabola = fit_a * x_f * x_f + fit_b * x_f + fit_c

    predicted = np.vstack([
        np.column_stack([reference[:, 0], reference[:, 1], reference_line]),
        np.column_stack([x_f, feature[:, 1], parabola + (fit_k * x_f + fit_d)]),
    ])
    residuals = np.vstack([
        np.column_stack([reference[:, 0], reference[:, 1], z_reference]),
        np.column_stack([x_f, feature[:, 1], z_feature - parabola]),
    ])
    order = np.argsort(residuals[:, 0], kind='stable')

    return {
        'height': float(height),
        'pt': float(pt),
        'range_of_residuals': float(np.max(residuals[:, 2]) - np.min(residuals[:, 2])),
        'radius': float(radius),
        'center_position': float(center_position),
        'asymmetry': float(asymmetry),
        'slope': fit_k,
        'intercept': fit_d,
        'parabola': (fit_a, fit_b, fit_c),
        'predicted': predicted[order],
        'residuals': residuals[order],
    }
