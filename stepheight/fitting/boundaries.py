"""
Evaluation domain boundaries for vertical standards.

The evaluation length is split into a left reference domain [X1, X2],
a feature domain [X3, X4] and a right reference domain [X5, X6]. All
lengths are given relative to the feature width W.
"""

from dataclasses import dataclass

import numpy as np


DEFAULT_LENGTH_E = 3.0        # overall evaluation length (3 W)
DEFAULT_LENGTH_A = 2.0 / 3.0  # single reference domain length (2/3 W)
DEFAULT_LENGTH_C = 1.0 / 3.0  # feature domain length (1/3 W)


@dataclass(frozen=True)
class Boundaries:
    """The six boundary points plus the feature and wall widths."""
    x1: float
    x2: float
    x3: float
    x4: float
    x5: float
    x6: float
    feature_width: float
    wall_width: float
    left_edge: float
    right_edge: float

    @property
    def span(self):
        return self.x1, self.x6

    def reference_mask(self, x):
        """Boolean mask of samples inside either reference domain (closed intervals)."""
        x = np.asarray(x)
        return ((x >= self.x1) & (x <= self.x2)) | ((x >= self.x5) & (x <= self.x6))

    def feature_mask(self, x):
        """Boolean mask of samples inside the feature domain (closed interval)."""
        x = np.asarray(x)
        return (x >= self.x3) & (x <= self.x4)

    def shifted(self, offset):
        """Return a copy with all positions moved by offset."""
        return Boundaries(
            x1=self.x1 + offset, x2=self.x2 + offset,
            x3=self.x3 + offset, x4=self.x4 + offset,
            x5=self.x5 + offset, x6=self.x6 + offset,
            feature_width=self.feature_width,
            wall_width=self.wall_width,
            left_edge=self.left_edge + offset,
            right_edge=self.right_edge + offset,
        )


class FitBoundaries:
    """
    Generator for the evaluation domain boundaries.

    Parameters
    ----------
    length_e : float
        Normalized overall evaluation length, nominally 3
    length_a : float
        Normalized length of a single reference domain, nominally 2/3
    length_c : float
        Normalized length of the feature domain, nominally 1/3
    """

    def __init__(self, length_e=DEFAULT_LENGTH_E, length_a=DEFAULT_LENGTH_A,
                 length_c=DEFAULT_LENGTH_C):
        self.length_e = float(length_e)
        self.length_a = float(length_a)
        self.length_c = float(length_c)

    def __repr__(self):
        return (f"FitBoundaries(length_e={self.length_e}, length_a={self.length_a}, "
                f"length_c={self.length_c})")

    def generate(self, left_edge, right_edge, left_wall=None, right_wall=None):
        """
        Generate the six boundary points.

        Parameters
        ----------
        left_edge, right_edge : float
            Positions of the feature edges (any order)
        left_wall, right_wall : float, optional
            Positions of the outer wall ends of a trapezoidal feature.
            Default to the edge positions (rectangular feature).

        Returns
        -------
        Boundaries
            Ordered boundaries. For coinciding edges all points collapse
            to a single position.
        """
        if left_wall is None:
            left_wall = left_edge
        if right_wall is None:
            right_wall = right_edge

        left_edge, right_edge = sorted((float(left_edge), float(right_edge)))
        left_wall, right_wall = sorted((float(left_wall), float(right_wall)))
        # the wall domain must enclose the edge domain
        if left_wall > left_edge:
            left_wall = left_edge
        if right_wall < right_edge:
            right_wall = right_edge

        feature_width = right_edge - left_edge  # unit for the relative domain lengths
        wall_width = right_wall - left_wall
        length_e = self.length_e * feature_width
        length_a = self.length_a * feature_width
        length_c = self.length_c * feature_width
        length_ref = (length_e - feature_width) / 2.0

        x1 = left_wall - length_ref
        x6 = right_wall + length_ref
        x2 = x1 + length_a
        x5 = x6 - length_a
        x3 = left_edge + (feature_width - length_c) / 2.0
        x4 = x3 + length_c

        return Boundaries(
            x1=x1, x2=x2, x3=x3, x4=x4, x5=x5, x6=x6,
            feature_width=feature_width,
            wall_width=wall_width,
            left_edge=left_edge,
            right_edge=right_edge,
        )


def generate_boundaries(left_edge, right_edge, left_wall=None, right_wall=None,
                        length_e=DEFAULT_LENGTH_E, length_a=DEFAULT_LENGTH_A,
                        length_c=DEFAULT_LENGTH_C):
    """Convenience wrapper around :meth:`FitBoundaries.generate`."""
    return FitBoundaries(length_e, length_a, length_c).generate(
        left_edge, right_edge, left_wall, right_wall)
