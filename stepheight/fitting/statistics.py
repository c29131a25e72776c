"""
Statistics over repeated profile fits and result formatting.
"""

import numpy as np

from utils.logger import log_warning


RESIDUAL_POLICIES = ('skip', 'interpolate')


def summarize(values):
    """
    Summary of a scalar channel.

    Parameters
    ----------
    values : array_like
        Collected values; NaN entries are ignored, infinite values are kept

    Returns
    -------
    stats : dict
        - 'n': number of values that are not NaN
        - 'average': mean value
        - 'range': max - min
        - 'min', 'max'
        - 'std': sample standard deviation (ddof=1)
    """
    values = np.asarray(values, dtype=float)
    valid = values[~np.isnan(values)]
    n = len(valid)
    if n == 0:
        return {'n': 0, 'average': np.nan, 'range': np.nan, 'min': np.nan,
                'max': np.nan, 'std': np.nan}
    # inf - inf is NaN
    with np.errstate(invalid='ignore'):
        return {
            'n': n,
            'average': float(np.mean(valid)),
            'range': float(np.max(valid) - np.min(valid)),
            'min': float(np.min(valid)),
            'max': float(np.max(valid)),
            'std': float(np.std(valid, ddof=1)) if n > 1 else np.nan,
        }


class FitStatistics:
    """
    Running statistics of fit results from successive profiles.

    Parameters
    ----------
    residual_policy : str, optional
        What to do with residual curves whose length differs from the
        first one: 'skip' leaves them out of the average residual plot
        (scalar channels are still updated), 'interpolate' resamples them
        linearly onto the x positions of the first curve.
    """

    def __init__(self, residual_policy='skip'):
        if residual_policy not in RESIDUAL_POLICIES:
            raise ValueError(f"Unknown residual policy: {residual_policy}. "
                             f"Available: {list(RESIDUAL_POLICIES)}")
        self.residual_policy = residual_policy
        self.restart()

    def restart(self):
        """Clear all accumulators."""
        self._heights = []
        self._pts = []
        self._residual_ranges = []
        self._radii = []
        self._sum_of_residual_plots = None
        self.number_of_residual_plots = 0

    def update(self, result):
        """
        Add a fit result.

        Results without status Success are ignored with a warning, so
        every channel counts the same profiles.

        Parameters
        ----------
        result : FitResult
            Result of a completed fit
        """
        if not result.success:
            log_warning(f"Fit result with status {result.status} not added to statistics")
            return
        self._heights.append(result.height)
        self._pts.append(result.pt)
        self._residual_ranges.append(result.range_of_residuals)
        self._radii.append(result.radius)
        self._update_residual_plot(result.residuals)

    def _update_residual_plot(self, residuals):
        residuals = np.asarray(residuals, dtype=float).reshape(-1, 3)
        if self._sum_of_residual_plots is None:
            self._sum_of_residual_plots = np.column_stack([
                residuals[:, 0], np.zeros(len(residuals)), np.zeros(len(residuals))])
            self.number_of_residual_plots = 0

        if len(residuals) == len(self._sum_of_residual_plots):
            z = residuals[:, 2]
        elif self.residual_policy == 'interpolate' and len(residuals) > 1:
            z = self._resample(residuals)
        else:
            log_warning(f"Residual plot with {len(residuals)} points skipped, "
                        f"expected {len(self._sum_of_residual_plots)}")
            return

        self._sum_of_residual_plots[:, 2] += z
        self.number_of_residual_plots += 1

    def _resample(self, residuals):
        from scipy.interpolate import interp1d

        interp_func = interp1d(residuals[:, 0], residuals[:, 2], kind='linear',
                               bounds_error=False, fill_value='extrapolate')
        return interp_func(self._sum_of_residual_plots[:, 0])

    @property
    def number_of_samples(self):
        return len(self._heights)

    @property
    def average_height(self):
        return summarize(self._heights)['average']

    @property
    def height_range(self):
        return summarize(self._heights)['range']

    @property
    def height_std_dev(self):
        return summarize(self._heights)['std']

    @property
    def average_pt(self):
        return summarize(self._pts)['average']

    @property
    def pt_range(self):
        return summarize(self._pts)['range']

    @property
    def average_radius(self):
        return summarize(self._radii)['average']

    @property
    def radius_range(self):
        return summarize(self._radii)['range']

    @property
    def average_residuals(self):
        return summarize(self._residual_ranges)['average']

    @property
    def residual_range_range(self):
        return summarize(self._residual_ranges)['range']

    @property
    def average_residual_plot(self):
        """Pointwise average residual curve (n, 3), None before the first contribution."""
        if self.number_of_residual_plots == 0:
            return None
        average = self._sum_of_residual_plots.copy()
        average[:, 2] /= self.number_of_residual_plots
        return average

    def get_statistics(self):
        """
        Collect all channel summaries.

        Returns
        -------
        stats : dict
            Channel name -> summary dict (see :func:`summarize`), plus
            'number_of_samples'
        """
        return {
            'number_of_samples': self.number_of_samples,
            'height': summarize(self._heights),
            'pt': summarize(self._pts),
            'range_of_residuals': summarize(self._residual_ranges),
            'radius': summarize(self._radii),
        }


def format_fit_result(index, result, scale=1e6):
    """
    Format one profile result as a fixed-width table line.

    Lengths are multiplied by scale (default m -> um). Cylindrical
    features additionally get radius and asymmetry columns.
    """
    y = result.y_position * scale
    h = result.height * scale
    pt = result.pt * scale
    res = result.range_of_residuals * scale
    line = f"{index:5d} {y:7.1f} {h:10.4f} {pt:10.4f} {res:10.4f}"
    if result.feature_type.is_cylindrical:
        line += f" {result.radius * scale:8.1f} {result.asymmetry:6.3f}"
    return line


def format_statistics(statistics, scale=1e6, unit='um'):
    """
    Format aggregated statistics for display.

    Parameters
    ----------
    statistics : FitStatistics
        Aggregator holding the results
    scale : float, optional
        Length scale factor for display
    unit : str, optional
        Unit label matching scale

    Returns
    -------
    str
        Formatted statistics string
    """
    lines = []
    lines.append("=== Fit Statistics ===")
    lines.append(f"N profiles = {statistics.number_of_samples}")
    lines.append(f"Average height = {statistics.average_height * scale:.5f} {unit}")
    lines.append(f"Range of heights = {statistics.height_range * scale:.5f} {unit}")
    lines.append(f"Std. dev. of heights = {statistics.height_std_dev * scale:.5f} {unit}")
    lines.append(f"Average Pt = {statistics.average_pt * scale:.5f} {unit}")
    lines.append(f"Range of Pt = {statistics.pt_range * scale:.5f} {unit}")
    lines.append(f"Average range of residuals = {statistics.average_residuals * scale:.5f} {unit}")
    if not np.isnan(statistics.average_radius):
        lines.append(f"Average radius = {statistics.average_radius * scale:.1f} {unit}")
        lines.append(f"Range of radii = {statistics.radius_range * scale:.1f} {unit}")

    return '\n'.join(lines)
