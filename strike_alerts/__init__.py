"""Lightning strike proximity alerts.

Tracks user locations, matches incoming lightning strikes against them,
and delivers one alert per (user, strike).
"""

__version__ = "0.1.0"
