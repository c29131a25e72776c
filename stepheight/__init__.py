"""Step height and groove depth evaluation of vertical calibration standards."""

__version__ = '1.0.0'

from . import feature_types
from . import fitting
from . import data_import
from . import data_preprocessing

__all__ = ['feature_types', 'fitting', 'data_import', 'data_preprocessing', '__version__']
