"""
Batch evaluation of step heights, groove depths or cylindrical grooves in SDF scan files.

Usage:
    stepheight-batch scan.sdf --type 3 --X1 120 --X2 180
    stepheight-batch step --multifile --type 2 --X1 -50 --X2 50 --maxspan 0.05

Notes:
- Every profile of the scan field (or of the y band given by --Y0/--Ywidth)
  is fitted separately; profiles whose range of residuals exceeds --maxspan
  are discarded.
- File names: the first name is the input file (extension .sdf if omitted).
  Report (--outextension) and average residual plot (--resextension) are
  named after the first file, or after the second file when two are given;
  with three names the residual plot is named after the third.
- --multifile reads three disjoint scan fields <name>A.sdf, <name>B.sdf and
  <name>C.sdf and joins their profiles.
- Feature types (--type):
    1: ISO A1 (rectangular ridge)      5: rising step
    2: ISO A2 (cylindrical groove)     6: falling step
    3: ISO A1 (rectangular groove)     7: ISO A1 (trapezoidal groove)
    4: ISO A2 (cylindrical ridge)      8: ISO A1 (trapezoidal ridge)
  Trapezoidal features take the outer wall positions via --XW1/--XW2.
- All positions on the command line are in um.
"""

import argparse
import logging
import os
import sys

import numpy as np

from stepheight import __version__
from stepheight.data_import import (default_sdf_path, load_sdf_file, patch_file_names,
                                    validate_profile)
from stepheight.data_preprocessing import in_y_band, patch_offsets, stitch_profiles, y_band
from stepheight.feature_types import FitStatus, get_feature_type
from stepheight.fitting import (FitStatistics, VerticalStandardFitter, format_fit_result,
                                format_statistics)
from stepheight.report import build_report, build_residual_plot, plot_residuals, write_text
from utils.logger import log_debug, log_error, log_info, setup_logger

UM = 1e-6

# exit codes
EXIT_MISSING_FILE_NAME = 1
EXIT_FILE_ERROR = 2
EXIT_NO_VALID_PROFILE = 3
EXIT_INCOMPATIBLE_PATCHES = 11
EXIT_BAD_EDGE_POSITION = 30
EXIT_NOT_SUPPORTED = 40


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="stepheight-batch",
        description="Evaluate SDF raster data files for step heights, groove depths, or edge heights")
    p.add_argument("files", nargs="*", help="filename1 [filename2] [filename3]")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    # Feature
    p.add_argument("-t", "--type", dest="type_index", type=int, default=1, help="Feature type to be fitted (1-8)")
    p.add_argument("--X1", dest="left_x", type=float, default=0.0, help="x-value of first feature edge, in um")
    p.add_argument("--X2", dest="right_x", type=float, default=0.0, help="x-value of second feature edge, in um")
    p.add_argument("--XW1", dest="left_wall", type=float, default=None, help="x-value of first outer wall end (trapezoidal features), in um")
    p.add_argument("--XW2", dest="right_wall", type=float, default=None, help="x-value of second outer wall end (trapezoidal features), in um")

    # Evaluation region
    p.add_argument("--W1", type=float, default=3.0, help="Parameter W1 of evaluation region")
    p.add_argument("--W2", type=float, default=2.0 / 3.0, help="Parameter W2 of evaluation region")
    p.add_argument("--W3", type=float, default=1.0 / 3.0, help="Parameter W3 of evaluation region")
    p.add_argument("--Y0", type=float, default=0.0, help="y-value of first profile, in um")
    p.add_argument("--Ywidth", type=float, default=None, help="Width of y band to evaluate, in um (default: all profiles)")

    # Options
    p.add_argument("--multifile", action="store_true", help="Use three separate input files")
    p.add_argument("--maxspan", type=float, default=0.1, help="Discard fit if residuals are larger, in um")
    p.add_argument("--residual_policy", default="skip", choices=["skip", "interpolate"], help="Handling of residual plots with deviating point count")
    p.add_argument("-q", "--quiet", action="store_true", help="Quiet mode. No screen output (except for errors)")
    p.add_argument("--verbose", action="store_true", help="Log every profile fit")
    p.add_argument("--log_dir", default=None, help="Directory for a log file")
    p.add_argument("--comment", default="---", help="User supplied comment string")

    # Output
    p.add_argument("--outextension", default="prn", help="Extension for output file")
    p.add_argument("--resextension", default="csv", help="Extension for residual file")
    p.add_argument("--separator", default=",", help="Separator for CSV file")
    p.add_argument("--plot", action="store_true", help="Save a figure of the average residuals (.png)")

    return p.parse_args(argv)


def error_exit(message, code):
    log_error(message)
    sys.exit(code)


def with_extension(filename, extension):
    return os.path.splitext(filename)[0] + '.' + extension.lstrip('.')


def resolve_file_names(file_names, out_extension, res_extension):
    """
    Input, report and residual plot file names from the positional arguments.

    Returns
    -------
    input_file, output_file, residuals_file : str
    """
    if not file_names:
        raise ValueError("Missing file name")
    input_file = default_sdf_path(file_names[0])
    if len(file_names) == 1:
        output_file = with_extension(file_names[0], out_extension)
        residuals_file = with_extension(file_names[0], res_extension)
    elif len(file_names) == 2:
        output_file = with_extension(file_names[1], out_extension)
        residuals_file = with_extension(file_names[1], res_extension)
    else:
        output_file = with_extension(file_names[1], out_extension)
        residuals_file = with_extension(file_names[2], res_extension)
    return input_file, output_file, residuals_file


def read_scan_fields(input_file, multifile):
    """
    Read the scan field(s) and bring them into a common coordinate frame.

    Returns
    -------
    list of ScanField
    """
    names = patch_file_names(input_file) if multifile else [input_file]
    fields = [load_sdf_file(name) for name in names]

    if len({field.num_profiles for field in fields}) != 1:
        raise ValueError("Geometry of input files incompatible")

    # x offsets relative to the first patch, y and z offsets zeroed
    offsets = patch_offsets([field.x_offset for field in fields])
    for field, x_offset in zip(fields, offsets):
        field.set_offsets(x_offset=x_offset, y_offset=0.0, z_offset=0.0)
    return fields


def extract_profile(index, fields):
    """Profile index joined over all scan fields."""
    if len(fields) == 1:
        return fields[0].profile(index)
    return stitch_profiles([field.profile(index) for field in fields])


def evaluate(fields, fitter, left_edge, right_edge, left_wall, right_wall, band, max_span,
             residual_policy='skip'):
    """
    Fit all profiles of the scan field(s) inside the y band.

    Returns
    -------
    statistics : FitStatistics
        Statistics of the accepted profiles
    result_lines : list of str
        Formatted results of the accepted profiles
    discarded : int
        Number of discarded profiles
    last_result : FitResult or None
        Last accepted result
    """
    statistics = FitStatistics(residual_policy=residual_policy)
    result_lines = []
    discarded = 0
    last_result = None

    for index in range(fields[0].num_profiles):
        if not in_y_band(fields[0].profile_y(index), band):
            continue
        profile = extract_profile(index, fields)
        result = fitter.fit(profile, left_edge, right_edge, left_wall, right_wall)
        if result.status is FitStatus.BAD_EDGE_POSITION:
            error_exit("!Feature edge location outside of profile", EXIT_BAD_EDGE_POSITION)
        if result.status is FitStatus.NOT_SUPPORTED:
            error_exit(f"!Fit for {fitter.feature_type_designation} not supported", EXIT_NOT_SUPPORTED)
        if not result.success:
            log_info(f" > {index:5d} profile discarded ({result.status})")
            discarded += 1
            continue
        if result.range_of_residuals < max_span:
            line = format_fit_result(index, result)
            log_info(f" > {line}")
            result_lines.append(line)
            statistics.update(result)
            last_result = result
        else:
            log_info(f" > {index:5d} profile discarded ({result.range_of_residuals / UM:.4f} um)")
            discarded += 1

    return statistics, result_lines, discarded, last_result


def main(argv=None):
    args = parse_args(argv)
    setup_logger(log_dir=args.log_dir,
                 log_level=logging.DEBUG if args.verbose else logging.INFO,
                 quiet=args.quiet)
    log_info(f"stepheight-batch, version {__version__}")

    try:
        input_file, output_file, residuals_file = resolve_file_names(
            args.files, args.outextension, args.resextension)
    except ValueError:
        error_exit("!Missing file name", EXIT_MISSING_FILE_NAME)

    try:
        fields = read_scan_fields(input_file, args.multifile)
    except ValueError as e:
        code = EXIT_INCOMPATIBLE_PATCHES if "incompatible" in str(e) else EXIT_FILE_ERROR
        error_exit(f"!{e}", code)

    try:
        first_profile = extract_profile(0, fields)
        validate_profile(first_profile)
    except (IndexError, ValueError) as e:
        error_exit(f"!{e}", EXIT_NO_VALID_PROFILE)
    x_valid = first_profile[:, 0][np.isfinite(first_profile[:, 0])]
    scan_field_width = float(np.max(x_valid) - np.min(x_valid))
    points_per_profile = sum(field.num_points for field in fields)

    feature_type = get_feature_type(args.type_index)
    fitter = VerticalStandardFitter(feature_type, args.W1, args.W2, args.W3)

    y_width = args.Ywidth * UM if args.Ywidth is not None else None
    if y_width is not None and y_width > fields[0].scan_field_height:
        y_width = None
    band = y_band(args.Y0 * UM, y_width)

    left_wall = args.left_wall * UM if args.left_wall is not None else None
    right_wall = args.right_wall * UM if args.right_wall is not None else None

    log_info(f"Disjoined scan fields: {len(fields)}")
    log_info(f"Number of points per profile: {points_per_profile}")
    log_info(f"Number of profiles: {fields[0].num_profiles}")
    log_info(f"Feature type: {fitter.feature_type_designation}")
    log_info(f"W1: {args.W1}")
    log_info(f"W2: {args.W2}")
    log_info(f"W3: {args.W3}")
    log_info(f"Position of left feature edge: {args.left_x} um")
    log_info(f"Position of right feature edge: {args.right_x} um")
    log_info(f"y-value of first profile {args.Y0} um")
    if y_width is None:
        log_info("Width of y-band to evaluate: infinity")
    else:
        log_info(f"Width of y-band to evaluate: {args.Ywidth} um")
    log_info(f"Threshold for residuals: {args.maxspan} um")

    log_info("Start fitting profiles.")
    statistics, result_lines, discarded, last_result = evaluate(
        fields, fitter, args.left_x * UM, args.right_x * UM, left_wall, right_wall,
        band, args.maxspan * UM, residual_policy=args.residual_policy)

    if statistics.number_of_samples == 0:
        error_exit("!No valid profile fit found", EXIT_NO_VALID_PROFILE)
    log_info(f"{statistics.number_of_samples} profile(s) fitted, {discarded} discarded.")
    if statistics.average_height < 1e-7:
        log_info(f"Average feature height/depth {statistics.average_height * 1e9:.2f} nm")
    else:
        log_info(f"Average feature height/depth {statistics.average_height / UM:.3f} um")
    log_debug(format_statistics(statistics))

    context = {
        'input_file': input_file,
        'patches': len(fields),
        'manufacturer_id': fields[0].manufacturer_id,
        'comment': args.comment,
        'points_per_profile': points_per_profile,
        'num_profiles': fields[0].num_profiles,
        'x_scale': fields[0].x_scale,
        'y_scale': fields[0].y_scale,
        'z_scale': float(fields[0].metadata.get('Zscale', 0.0)),
        'scan_field_width': scan_field_width,
        'scan_field_height': fields[0].scan_field_height,
        'feature_type': feature_type,
        'length_e': args.W1,
        'length_a': args.W2,
        'length_c': args.W3,
        'left_edge': args.left_x * UM,
        'right_edge': args.right_x * UM,
        'feature_width': last_result.feature_width,
        'y_start': args.Y0 * UM,
        'y_width': y_width,
        'max_span': args.maxspan * UM,
        'discarded': discarded,
    }

    try:
        log_info(f"Writing {output_file}")
        write_text(output_file, build_report(context, statistics, result_lines))

        average_residual_plot = statistics.average_residual_plot
        if average_residual_plot is not None:
            log_info(f"Writing {residuals_file}")
            write_text(residuals_file, build_residual_plot(average_residual_plot, args.separator))
            if args.plot:
                figure_file = with_extension(residuals_file, 'png')
                log_info(f"Writing {figure_file}")
                plot_residuals(figure_file, average_residual_plot, last_result,
                               title=fitter.feature_type_designation)
    except ValueError as e:
        error_exit(f"!{e}", EXIT_FILE_ERROR)

    return 0


if __name__ == "__main__":
    main()
