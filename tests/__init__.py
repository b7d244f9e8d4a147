"""
Sign Camera Test Suite

- unit/: Unit tests for individual components
- integration/: The detection loop driving the real extractor, classifier and history
"""
