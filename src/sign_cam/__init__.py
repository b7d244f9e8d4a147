"""
Sign Camera

Real-time hand-landmark sign recognition: a rule-based classifier over the
21-point hand skeleton, a rate-limited detection loop and a bounded history
of recognized letters.

Author: CV-ASL Team
"""

__version__ = "0.2.0"
