"""
Profile preprocessing utilities.
"""

import numpy as np


def as_profile(points):
    """
    Convert point data to a float profile array.

    Parameters
    ----------
    points : array_like
        Sequence of (x, y, z) samples

    Returns
    -------
    profile : ndarray, shape (n, 3)
        Copy of the samples as floats

    Raises
    ------
    ValueError
        If the data cannot be shaped into (n, 3)
    """
    profile = np.array(points, dtype=float)
    if profile.size == 0:
        return np.empty((0, 3))
    if profile.ndim != 2 or profile.shape[1] != 3:
        raise ValueError(f"Profile must have shape (n, 3), got {profile.shape}")
    return profile


def remove_bad_points(profile):
    """
    Remove samples with NaN x or z.

    Parameters
    ----------
    profile : ndarray, shape (n, 3)
        Samples (x, y, z)

    Returns
    -------
    profile_clean : ndarray
        Valid samples, original order kept
    """
    profile = as_profile(profile)
    mask = ~(np.isnan(profile[:, 0]) | np.isnan(profile[:, 2]))
    return profile[mask]


def shift_profile(profile, center):
    """Return a copy of the profile with x moved by -center."""
    shifted = np.array(profile, dtype=float, copy=True).reshape(-1, 3)
    shifted[:, 0] -= center
    return shifted


def y_band(y_start, band_width=None):
    """
    Ordered (start, end) limits of the profile band to evaluate.

    A missing or infinite band width means no upper limit.
    """
    if band_width is None or not np.isfinite(band_width):
        return y_start, np.inf
    y_end = y_start + band_width
    if y_start > y_end:
        y_start, y_end = y_end, y_start
    return y_start, y_end


def in_y_band(y, band):
    """Check whether a profile position lies within a (start, end) band."""
    y_start, y_end = band
    return y_start <= y <= y_end


def stitch_profiles(patches):
    """
    Join profiles from disjoint scan fields into a single profile.

    The samples of all patches are concatenated in patch order. The
    patches are expected to be in a common x frame already (see
    :func:`patch_offsets`).

    Parameters
    ----------
    patches : sequence of array_like
        Profiles (n_i, 3) of the same profile index from each scan field

    Returns
    -------
    profile : ndarray, shape (sum(n_i), 3)
    """
    if not patches:
        raise ValueError("Must provide at least one patch")
    return np.vstack([as_profile(patch) for patch in patches])


def patch_offsets(x_offsets):
    """
    Offsets of disjoint scan fields relative to the first one.

    Parameters
    ----------
    x_offsets : sequence of float
        Absolute x offsets of the scan fields as recorded by the instrument

    Returns
    -------
    list of float
        x offsets to apply, the first is always 0
    """
    if not x_offsets:
        return []
    x0 = x_offsets[0]
    return [float(x - x0) for x in x_offsets]
