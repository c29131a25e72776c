"""
Weighted moment sums and closed-form least-squares solutions.

Every fit in this package accumulates moments of the form
``sum(w * x**p * z**q)`` over a weighted sub-domain of the profile and
solves a small normal-equation system in explicit algebraic form.
"""

import numpy as np


def weighted_moments(x, z, weights, x_orders=(0, 1, 2), xz_orders=(0, 1)):
    """
    Accumulate weighted moments of a profile.

    Parameters
    ----------
    x : array_like
        Sample positions
    z : array_like
        Sample heights
    weights : array_like
        Per-sample weights; a boolean domain mask or a signed indicator
    x_orders : sequence of int, optional
        Powers p for the sums ``sum(w * x**p)``
    xz_orders : sequence of int, optional
        Powers p for the sums ``sum(w * x**p * z)``

    Returns
    -------
    moments : dict
        ``moments['x', p]`` and ``moments['xz', p]`` for the requested
        orders. ``moments['x', 0]`` is the (weighted) number of points,
        ``moments['xz', 0]`` the weighted sum of heights.

    Examples
    --------
    >>> m = weighted_moments(x, z, mask, x_orders=(0, 1, 2), xz_orders=(0, 1))
    >>> n, sx, sxx, sz, sxz = m['x', 0], m['x', 1], m['x', 2], m['xz', 0], m['xz', 1]
    """
    x = np.asarray(x, dtype=float)
    z = np.asarray(z, dtype=float)
    w = np.asarray(weights, dtype=float)

    moments = {}
    for p in x_orders:
        moments['x', p] = float(np.sum(w * x**p))
    for p in xz_orders:
        moments['xz', p] = float(np.sum(w * x**p * z))
    return moments


def solve_line(x, z, mask):
    """
    Ordinary least-squares straight line z = k*x + d over a masked domain.

    Returns
    -------
    k : float
        Slope
    d : float
        Intercept
    """
    m = weighted_moments(x, z, mask, x_orders=(0, 1, 2), xz_orders=(0, 1))
    n, sx, sxx = m['x', 0], m['x', 1], m['x', 2]
    sz, sxz = m['xz', 0], m['xz', 1]

    with np.errstate(divide='ignore', invalid='ignore'):
        k = np.float64(n * sxz - sx * sz) / (n * sxx - sx * sx)
        d = (sz - k * sx) / np.float64(n)
    return float(k), float(d)


def solve_step(x, z, delta):
    """
    Simultaneous slope, intercept and step fit using a dummy variable.

    Solves z = a*x + b + delta(x)*c in the least-squares sense over all
    samples with delta != 0. delta takes the values +1, -1 and 0.

    Parameters
    ----------
    x, z : array_like
        Sample positions and heights
    delta : array_like of int
        Signed dummy variable per sample

    Returns
    -------
    a, b, c : float
        Slope, intercept and half step height
    """
    delta = np.asarray(delta, dtype=float)
    unsigned = np.abs(delta)
    m = weighted_moments(x, z, unsigned, x_orders=(0, 1, 2), xz_orders=(0, 1))
    md = weighted_moments(x, z, delta, x_orders=(0, 1), xz_orders=(0,))

    num, sx, sxx = m['x', 0], m['x', 1], m['x', 2]
    sy, sxy = m['xz', 0], m['xz', 1]
    delta_num, dsx, dsy = md['x', 0], md['x', 1], md['xz', 0]

    denominator = (num * dsx * dsx - 2 * delta_num * dsx * sx + num * sx * sx
                   + delta_num * delta_num * sxx - num * num * sxx)
    a_num = (num * dsx * dsy - delta_num * dsy * sx + delta_num * delta_num * sxy
             - num * num * sxy - delta_num * dsx * sy + num * sx * sy)
    b_num = (delta_num * dsy * sxx - dsx * dsy * sx - delta_num * dsx * sxy
             + num * sx * sxy + dsx * dsx * sy - num * sxx * sy)
    c_num = (dsy * sx * sx - dsx * sx * sy + num * dsx * sxy - num * dsy * sxx
             + delta_num * sy * sxx - delta_num * sx * sxy)

    with np.errstate(divide='ignore', invalid='ignore'):
        coefficients = np.array([a_num, b_num, c_num]) / np.float64(denominator)
    return tuple(float(value) for value in coefficients)


def solve_parabola(x, z, mask):
    """
    Least-squares parabola z = a*x**2 + b*x + c over a masked domain.

    Uses the explicit expansion of the 3x3 normal-equation determinants
    built from the moments up to fourth order.

    Returns
    -------
    a, b, c : float
        Parabola coefficients
    """
    m = weighted_moments(x, z, mask, x_orders=(0, 1, 2, 3, 4), xz_orders=(0, 1, 2))
    n = m['x', 0]
    s1, s2, s3, s4 = m['x', 1], m['x', 2], m['x', 3], m['x', 4]
    sy, sxy, sxxy = m['xz', 0], m['xz', 1], m['xz', 2]

    denominator = n * s2 * s4 - s1 * s1 * s4 - n * s3 * s3 + 2.0 * s1 * s2 * s3 - s2 * s2 * s2
    a_num = s1 * sy * s3 - sy * s2 * s2 + s1 * s2 * sxy - n * s3 * sxy + n * s2 * sxxy - s1 * s1 * sxxy
    b_num = sy * s2 * s3 - s1 * sy * s4 + n * s4 * sxy
    b_num += s1 * s2 * sxxy - n * s3 * sxxy - s2 * s2 * sxy
    c_num = sy * s2 * s4 - sy * s3 * s3
    c_num += s2 * s3 * sxy - s1 * s4 * sxy
    c_num += s1 * s3 * sxxy - s2 * s2 * sxxy

    with np.errstate(divide='ignore', invalid='ignore'):
        coefficients = np.array([a_num, b_num, c_num]) / np.float64(denominator)
    return tuple(float(value) for value in coefficients)
