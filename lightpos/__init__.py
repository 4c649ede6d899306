"""
LightPOS back end.

Persistence layer of the point-of-sale application: the SQLite store,
its cached mapping configuration and the data access facade used by the UI.
"""

__version__ = "1.0.0"
