"""
Calibration package - joint Newton-Raphson calibration of curve groups.

Provides:
- CurveCalibrator: Solves all curves of a group together
- CalibrationMeasures: Par spread and gradient per instrument type
- ParameterLayout: Position of each curve in the parameter vector
"""

from .measures import CalibrationMeasure, CalibrationMeasures, ParameterLayout
from .calibrator import CurveCalibrator

__all__ = [
    "CalibrationMeasure",
    "CalibrationMeasures",
    "ParameterLayout",
    "CurveCalibrator",
]
