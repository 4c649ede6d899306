"""
Startup step timing.

Wraps a block of code and logs how long it took. Used to diagnose slow
application starts (building the mapping, opening the store).
"""

import logging
import time
from contextlib import contextmanager
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@contextmanager
def measure_time(label: str, timings: Optional[Dict[str, float]] = None):
    """
    Measure the wall-clock time of the wrapped block.

    Args:
        label: Name of the measured step, used in the log message
        timings: Optional dict receiving ``label -> elapsed milliseconds``

    Example:
        with measure_time("DataFactory.create()", self.startup_timings):
            factory.create()
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        if timings is not None:
            timings[label] = elapsed_ms
        logger.info(f"⏱️  {label} took {elapsed_ms:.1f} ms")
