"""
Small helpers shared by the live application.
"""
