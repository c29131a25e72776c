"""
Feature types of vertical calibration standards (ISO 5436-1) and fit status codes.
"""

from enum import Enum


class FeatureFamily(Enum):
    """Fit algorithm family a feature type belongs to."""
    FLAT_TOPPED = 'flat_topped'
    CYLINDRICAL = 'cylindrical'
    SINGLE_EDGE = 'single_edge'
    UNDEFINED = 'undefined'


class FitStatus(Enum):
    """Outcome of a single profile fit."""
    UNKNOWN = 'Unknown'
    SUCCESS = 'Success'
    BAD_EDGE_POSITION = 'BadEdgePosition'
    NO_DATA = 'NoData'
    NOT_SUPPORTED = 'NotSupported'

    def __str__(self):
        return self.value


class FeatureType(Enum):
    """
    Feature type to be fitted.

    Each member carries the fit family, the fit sign (+1 for groove-like,
    -1 for ridge-like, 0 for undefined) and a human readable designation.
    """
    NONE = ('None', FeatureFamily.UNDEFINED, 0, 'undefined feature')
    A1_GROOVE = ('A1Groove', FeatureFamily.FLAT_TOPPED, +1,
                 'ISO 5436-1 Type A1 (rectangular groove)')
    A2_GROOVE = ('A2Groove', FeatureFamily.CYLINDRICAL, +1,
                 'ISO 5436-1 Type A2 (cylindrical groove)')
    A1_RIDGE = ('A1Ridge', FeatureFamily.FLAT_TOPPED, -1,
                'Inverted ISO 5436-1 Type A1 (rectangular ridge)')
    A2_RIDGE = ('A2Ridge', FeatureFamily.CYLINDRICAL, -1,
                'Inverted ISO 5436-1 Type A2 (cylindrical ridge)')
    A1_TRAPEZOIDAL_GROOVE = ('A1TrapezoidalGroove', FeatureFamily.FLAT_TOPPED, +1,
                             'ISO 5436-1 Type A1 (trapezoidal groove)')
    A1_TRAPEZOIDAL_RIDGE = ('A1TrapezoidalRidge', FeatureFamily.FLAT_TOPPED, -1,
                            'Inverted ISO 5436-1 Type A1 (trapezoidal ridge)')
    RISING_EDGE = ('RisingEdge', FeatureFamily.SINGLE_EDGE, -1, 'Single edge (low->high)')
    FALLING_EDGE = ('FallingEdge', FeatureFamily.SINGLE_EDGE, +1, 'Single edge (high->low)')

    def __init__(self, label, family, sign, designation):
        self.label = label
        self.family = family
        self.sign = sign
        self.designation = designation

    def __str__(self):
        return self.label

    @property
    def is_cylindrical(self):
        return self.family is FeatureFamily.CYLINDRICAL


# Integer codes accepted by the batch program's --type option
FEATURE_TYPE_INDEX = {
    1: FeatureType.A1_RIDGE,
    2: FeatureType.A2_GROOVE,
    3: FeatureType.A1_GROOVE,
    4: FeatureType.A2_RIDGE,
    5: FeatureType.RISING_EDGE,
    6: FeatureType.FALLING_EDGE,
    7: FeatureType.A1_TRAPEZOIDAL_GROOVE,
    8: FeatureType.A1_TRAPEZOIDAL_RIDGE,
}


def get_feature_type(index):
    """
    Get feature type for a batch program type index.

    Parameters
    ----------
    index : int
        Type index (1-8)

    Returns
    -------
    FeatureType
        Matching feature type, ``FeatureType.NONE`` for unknown indices
    """
    return FEATURE_TYPE_INDEX.get(index, FeatureType.NONE)


def get_feature_type_by_label(label):
    """Look up a feature type by its label, e.g. 'A2Groove'."""
    for feature_type in FeatureType:
        if feature_type.label.lower() == str(label).lower():
            return feature_type
    raise KeyError(f"Feature type '{label}' not found. Available: {list_feature_types()}")


def list_feature_types():
    """List all feature type labels."""
    return [feature_type.label for feature_type in FeatureType]


__all__ = [
    'FeatureFamily',
    'FeatureType',
    'FitStatus',
    'FEATURE_TYPE_INDEX',
    'get_feature_type',
    'get_feature_type_by_label',
    'list_feature_types',
]
