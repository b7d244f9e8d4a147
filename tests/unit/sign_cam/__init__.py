"""
Sign Camera Unit Tests

Landmarks, feature extraction, classification, history, scheduling,
capture, rendering, configuration and the live application shell.
"""
