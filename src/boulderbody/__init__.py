"""
boulderbody: volume and training session tracker for climbers.

Tracks bouldering volume sessions and structured strength sessions,
and recommends the difficulty/weights for the next session.
"""

__version__ = "0.3.0"
