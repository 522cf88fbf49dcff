"""
Sahha Insights backend package

Deterministic profile synthesis, Sahha webhook storage and workplace
wellbeing reporting.
"""

__version__ = "0.1.0"
