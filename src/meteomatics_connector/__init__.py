"""Python client for the Meteomatics weather API.

Available modules:
- api: query builders, response decoders and the APIClient facade
- config: credentials and client settings from the environment or .env
"""

from . import api
from .api import APIClient, BBox, CalendarStep, CalendarUnit, FixedStep, Instant, Point

__version__ = "0.3.0"

__all__ = [
    "api",
    "APIClient",
    "BBox",
    "CalendarStep",
    "CalendarUnit",
    "FixedStep",
    "Instant",
    "Point",
    "__version__",
]
