"""
Burst Proration & Pacing Engine

Normalizes media plan burst schedules, prorates them day by day, matches
them against platform delivery rows and reports actual vs expected pacing
per line item and per channel container, plus monthly billing schedules.
"""

__version__ = "0.1.0"
