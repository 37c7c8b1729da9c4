"""
learnsync: learning-session synchronizer for the coding-course IDE.

Keeps one authoritative progress record per (student, course), tracks study
time, and saves code local-first with a remote sync on top.
"""

__version__ = "1.0.0"
