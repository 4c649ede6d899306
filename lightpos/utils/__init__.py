"""
Utility functions and decorators.
"""

from .logging_utils import StructuredLogger, log_operation
from .time_measurer import measure_time

__all__ = ["StructuredLogger", "log_operation", "measure_time"]
