"""Safety module - robots.txt parsing and politeness delays."""

from .robots_parser import RobotsParser
from .rate_limiter import FixedDelayLimiter

__all__ = ["RobotsParser", "FixedDelayLimiter"]
