"""
Data import utilities for reading topography scan files.

Supports the ASCII surface data format of ISO 25178-71 (BCR/SDF): a
header section of ``key = value`` lines, the data section with
NumPoints x NumProfiles height values and an optional trailer section,
each terminated by a line holding a single ``*``.
"""

import os

import numpy as np

from utils.logger import log_info


SDF_EXTENSION = '.sdf'
BAD_VALUE = 'BAD'

# header keys required to interpret the data section
REQUIRED_KEYS = ('NumPoints', 'NumProfiles', 'Xscale', 'Yscale', 'Zscale')


class ScanField:
    """
    Raster topography data of a single scan field.

    Attributes
    ----------
    z : ndarray, shape (num_profiles, num_points)
        Heights in m, NaN for invalid points
    x_scale, y_scale : float
        Sampling distances in m
    x_offset, y_offset, z_offset : float
        Coordinate offsets in m
    metadata : dict
        All header and trailer entries as strings
    """

    def __init__(self, z, x_scale, y_scale, x_offset=0.0, y_offset=0.0, z_offset=0.0,
                 metadata=None, filename=None):
        self.z = np.asarray(z, dtype=float)
        if self.z.ndim != 2:
            raise ValueError(f"Height data must be two-dimensional, got shape {self.z.shape}")
        self.x_scale = float(x_scale)
        self.y_scale = float(y_scale)
        self.x_offset = float(x_offset)
        self.y_offset = float(y_offset)
        self.z_offset = float(z_offset)
        self.metadata = dict(metadata or {})
        self.filename = filename

    def __repr__(self):
        return (f"ScanField(num_profiles={self.num_profiles}, num_points={self.num_points}, "
                f"filename={self.filename!r})")

    @property
    def num_profiles(self):
        return self.z.shape[0]

    @property
    def num_points(self):
        return self.z.shape[1]

    @property
    def manufacturer_id(self):
        return self.metadata.get('ManufacID', '')

    @property
    def scan_field_width(self):
        return (self.num_points - 1) * self.x_scale

    @property
    def scan_field_height(self):
        return (self.num_profiles - 1) * self.y_scale

    def set_offsets(self, x_offset=None, y_offset=None, z_offset=None):
        """Replace coordinate offsets; arguments left as None are kept."""
        if x_offset is not None:
            self.x_offset = float(x_offset)
        if y_offset is not None:
            self.y_offset = float(y_offset)
        if z_offset is not None:
            self.z_offset = float(z_offset)

    def profile_y(self, index):
        """Transverse position of profile index."""
        return self.y_offset + index * self.y_scale

    def profile(self, index):
        """
        Extract a single profile.

        Parameters
        ----------
        index : int
            Profile index (0 <= index < num_profiles)

        Returns
        -------
        profile : ndarray, shape (num_points, 3)
            Samples (x, y, z) in m
        """
        if not 0 <= index < self.num_profiles:
            raise IndexError(f"Profile index {index} out of range (0-{self.num_profiles - 1})")
        x = self.x_offset + np.arange(self.num_points) * self.x_scale
        y = np.full(self.num_points, self.profile_y(index))
        z = self.z[index] + self.z_offset
        return np.column_stack([x, y, z])


def _parse_key_values(lines):
    entries = {}
    for line in lines:
        if '=' not in line:
            continue
        key, value = line.split('=', 1)
        entries[key.strip()] = value.strip()
    return entries


def _split_sections(text):
    """Split file content at lines holding a single '*'."""
    sections = [[]]
    for line in text.splitlines():
        stripped = line.strip()
        if stripped == '*':
            sections.append([])
        elif stripped:
            sections[-1].append(stripped)
    return sections


def _parse_value(token):
    if token.upper() == BAD_VALUE:
        return np.nan
    return float(token)


def parse_sdf(text, filename=None):
    """
    Parse ASCII SDF content.

    Parameters
    ----------
    text : str
        File content
    filename : str, optional
        Used for error messages and kept on the result

    Returns
    -------
    ScanField

    Raises
    ------
    ValueError
        If the content is not a valid ASCII SDF data set
    """
    sections = _split_sections(text)
    if len(sections) < 2 or not sections[0]:
        raise ValueError(f"'{filename}' is not an SDF file: missing header section")

    header_lines = sections[0]
    version = header_lines[0]
    if not version.startswith('a'):
        raise ValueError(f"'{filename}' is not an ASCII SDF file (version '{version}')")

    header = _parse_key_values(header_lines[1:])
    missing = [key for key in REQUIRED_KEYS if key not in header]
    if missing:
        raise ValueError(f"'{filename}' header is missing {missing}")

    try:
        num_points = int(header['NumPoints'])
        num_profiles = int(header['NumProfiles'])
        x_scale = float(header['Xscale'])
        y_scale = float(header['Yscale'])
        z_scale = float(header['Zscale'])
        values = [_parse_value(token) for line in sections[1] for token in line.split()]
    except ValueError as e:
        raise ValueError(f"Error parsing '{filename}': {e}")

    if len(values) != num_points * num_profiles:
        raise ValueError(f"'{filename}' holds {len(values)} values, "
                         f"expected {num_points} x {num_profiles}")

    trailer = _parse_key_values(sections[2]) if len(sections) > 2 else {}
    metadata = dict(header)
    metadata['Version'] = version
    metadata.update(trailer)

    z = np.array(values, dtype=float).reshape(num_profiles, num_points) * z_scale
    return ScanField(
        z,
        x_scale=x_scale,
        y_scale=y_scale,
        x_offset=float(trailer.get('XOffset', 0.0)),
        y_offset=float(trailer.get('YOffset', 0.0)),
        z_offset=float(trailer.get('ZOffset', 0.0)),
        metadata=metadata,
        filename=filename,
    )


def load_sdf_file(filepath):
    """
    Load an ASCII SDF scan file.

    Parameters
    ----------
    filepath : str
        Path to SDF file

    Returns
    -------
    ScanField
    """
    try:
        with open(filepath, 'r', encoding='latin-1') as f:
            text = f.read()
    except OSError as e:
        raise ValueError(f"Error loading file '{filepath}': {e}")
    scan_field = parse_sdf(text, filename=filepath)
    log_info(f"Read {filepath}: {scan_field.num_profiles} profiles, "
             f"{scan_field.num_points} points per profile")
    return scan_field


def default_sdf_path(filename):
    """Append the SDF extension to file names given without one."""
    root, ext = os.path.splitext(filename)
    if ext == '':
        return root + SDF_EXTENSION
    return filename


def patch_file_names(filename, patches='ABC'):
    """
    File names of disjoint scan fields, e.g. 'step' -> 'stepA.sdf', 'stepB.sdf', ...
    """
    stem = os.path.splitext(filename)[0]
    return [f"{stem}{patch}{SDF_EXTENSION}" for patch in patches]


def validate_profile(profile):
    """
    Validate profile data.

    Parameters
    ----------
    profile : array_like
        Samples (x, y, z)

    Returns
    -------
    bool
        True if the profile is usable

    Raises
    ------
    ValueError
        If data validation fails
    """
    profile = np.asarray(profile, dtype=float)

    if profile.ndim != 2 or profile.shape[1] != 3:
        raise ValueError(f"Profile must have shape (n, 3), got {profile.shape}")

    if len(profile) < 3:
        raise ValueError(f"Need at least 3 data points, got {len(profile)}")

    if not np.all(np.isfinite(profile[:, 1])):
        raise ValueError("Profile y positions contain NaN or Inf")

    if np.any(np.diff(profile[:, 0][np.isfinite(profile[:, 0])]) < 0):
        raise ValueError("Profile x positions are not increasing")

    return True
