"""
Service layer: store construction and the data access facade.
"""

from .data_factory import DataFactory
from .data_manager import DataManager

__all__ = ["DataFactory", "DataManager"]
