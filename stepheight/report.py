"""
Report and residual plot output for batch evaluations.

All lengths handed to this module are in m; the files use um (and nm
for the residual values of the average residual plot).
"""

import numpy as np

from . import __version__


MICROMETER = 'um'
TITLE = 'StepHeight'


def _um(value):
    return value * 1e6


def build_report(context, statistics, result_lines):
    """
    Build the calibration report.

    Parameters
    ----------
    context : dict
        Run description:
        - 'input_file', 'patches', 'manufacturer_id', 'comment'
        - 'points_per_profile', 'num_profiles'
        - 'x_scale', 'y_scale', 'z_scale', 'scan_field_width', 'scan_field_height' (m)
        - 'feature_type' (FeatureType), 'length_e', 'length_a', 'length_c'
        - 'left_edge', 'right_edge', 'feature_width' (m)
        - 'y_start' (m), 'y_width' (m or None for an unbounded band)
        - 'max_span' (m), 'discarded'
    statistics : FitStatistics
        Statistics of the accepted profiles
    result_lines : list of str
        Formatted per-profile results

    Returns
    -------
    str
        Report text
    """
    feature_type = context['feature_type']
    cylindrical = feature_type.is_cylindrical
    u = MICROMETER

    lines = []
    lines.append(f"# Output of {TITLE}, version {__version__}")
    lines.append(f"InputFile                 = {context['input_file']}")
    lines.append(f"DisjointScanFields        = {context['patches']}")
    lines.append(f"ManufacID                 = {context['manufacturer_id']}")
    lines.append(f"UserComment               = {context['comment']}")
    lines.append(f"NumberOfPointsPerProfile  = {context['points_per_profile']}")
    lines.append(f"NumberOfProfiles          = {context['num_profiles']}")
    lines.append(f"XScale                    = {_um(context['x_scale'])} {u}")
    lines.append(f"YScale                    = {_um(context['y_scale'])} {u}")
    lines.append(f"ZScale                    = {_um(context['z_scale'])} {u}")
    lines.append(f"ScanFieldWidth            = {_um(context['scan_field_width']):.2f} {u}")
    lines.append(f"ScanFieldHeight           = {_um(context['scan_field_height'])} {u}")
    lines.append("# Fit parameters =====================================")
    lines.append(f"FeatureType               = {feature_type}")
    lines.append(f"W1                        = {context['length_e']}")
    lines.append(f"W2                        = {context['length_a']}")
    lines.append(f"W3                        = {context['length_c']}")
    lines.append(f"FirstFeatureEdge          = {_um(context['left_edge'])} {u}")
    lines.append(f"SecondFeatureEdge         = {_um(context['right_edge'])} {u}")
    lines.append(f"FeatureWidth              = {_um(context['feature_width'])} {u}")
    lines.append(f"FirstProfilePosition      = {_um(context['y_start'])} {u}")
    if context.get('y_width') is None:
        lines.append("EvaluationWidth           = infinity")
    else:
        lines.append(f"EvaluationWidth           = {_um(context['y_width'])} {u}")
    lines.append(f"ThresholdResiduals        = {_um(context['max_span'])} {u}")
    lines.append("# Fit results =======================================")
    lines.append(f"NumberOfValidProfiles     = {statistics.number_of_samples}")
    lines.append(f"NumberOfDiscardedProfiles = {context['discarded']}")
    lines.append(f"AverageHeight             = {_um(statistics.average_height):.5f} {u}")
    lines.append(f"RangeOfHeights            = {_um(statistics.height_range):.5f} {u}")
    lines.append(f"AveragePt                 = {_um(statistics.average_pt):.5f} {u}")
    lines.append(f"RangeOfPt                 = {_um(statistics.pt_range):.5f} {u}")
    if cylindrical:
        lines.append(f"AverageRadius             = {_um(statistics.average_radius):.1f} {u}")
        lines.append(f"RangeOfRadii              = {_um(statistics.radius_range):.1f} {u}")
    lines.append("# Columns ============================================")
    lines.append("# 1 : Profile index")
    lines.append(f"# 2 : Profile position / {u}")
    lines.append(f"# 3 : Feature height/depth / {u}")
    lines.append(f"# 4 : Pt / {u}")
    lines.append(f"# 5 : Range of residuals / {u}")
    if cylindrical:
        lines.append(f"# 6 : Radius / {u}")
        lines.append("# 7 : Asymmetry index")
    lines.append("#=====================================================")
    lines.extend(result_lines)
    return '\n'.join(lines) + '\n'


def build_residual_plot(average_residual_plot, separator=','):
    """
    CSV text of an average residual plot, x in um and residuals in nm.
    """
    lines = [f"x coordinate in {MICROMETER}{separator}average fit residuals in nm"]
    for x, _, z in np.asarray(average_residual_plot):
        lines.append(f"{x * 1e6}{separator}{z * 1e9:.3f}")
    return '\n'.join(lines) + '\n'


def write_text(filepath, text):
    """Write text to a file, raising ValueError on failure."""
    try:
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(text)
    except OSError as e:
        raise ValueError(f"Error writing file '{filepath}': {e}")


def plot_residuals(filepath, average_residual_plot, result=None, title=None):
    """
    Save a figure of the average residual plot.

    Parameters
    ----------
    filepath : str
        Output image path (format from extension, e.g. .png)
    average_residual_plot : ndarray, shape (n, 3)
        Average residuals (x, y, z) in m
    result : FitResult, optional
        A single fit whose predicted function is drawn in an upper panel
    title : str, optional
        Figure title
    """
    from matplotlib.figure import Figure
    from matplotlib.backends.backend_agg import FigureCanvasAgg as FigureCanvas

    residuals = np.asarray(average_residual_plot)
    fig = Figure(figsize=(8, 6 if result is not None else 4), dpi=100)
    FigureCanvas(fig)

    if result is not None:
        ax1 = fig.add_subplot(2, 1, 1)
        ax2 = fig.add_subplot(2, 1, 2, sharex=ax1)
        predicted = result.predicted_function
        ax1.plot(predicted[:, 0] * 1e6, predicted[:, 2] * 1e6, '.', markersize=2,
                 label='Predicted function')
        if result.boundaries is not None:
            b = result.boundaries
            for pos in (b.x1, b.x2, b.x3, b.x4, b.x5, b.x6):
                ax1.axvline(pos * 1e6, color='gray', linewidth=0.5, linestyle='--')
        ax1.set_ylabel(f'z / {MICROMETER}')
        ax1.legend(loc='best')
    else:
        ax2 = fig.add_subplot(1, 1, 1)

    ax2.plot(residuals[:, 0] * 1e6, residuals[:, 2] * 1e9, '-', linewidth=0.8)
    ax2.axhline(0, color='k', linewidth=0.5)
    ax2.set_xlabel(f'x / {MICROMETER}')
    ax2.set_ylabel('Average residual / nm')
    if title:
        fig.suptitle(title)
    fig.tight_layout()
    fig.savefig(filepath)
