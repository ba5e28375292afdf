"""
Fantasy Scoring & Squad Engine

Computes per-player gameweek points from match statistics, aggregates
squad totals with captain multipliers, and validates squad edits against
budget, composition and gameweek-lock rules.
"""

__version__ = "1.0.0"
