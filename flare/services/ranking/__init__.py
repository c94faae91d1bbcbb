"""Personalized feed ranking."""

from .ranker import MULTIPLIER_FLOOR, PersonalizedRanker

__all__ = ["MULTIPLIER_FLOOR", "PersonalizedRanker"]
