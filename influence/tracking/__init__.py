"""
Tracking — Per-character influence bookkeeping
"""

from .tally import InfluenceTally, tally, influence_given, influence_held

__all__ = ["InfluenceTally", "tally", "influence_given", "influence_held"]
