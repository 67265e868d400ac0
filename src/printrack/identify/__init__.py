"""Identification of unlabeled files against the print corpus."""

from .matcher import Matcher, record_matches
from .models import Guess, IdentificationResult, RankedAnswer, rank_guesses

__all__ = [
    "Guess",
    "IdentificationResult",
    "Matcher",
    "RankedAnswer",
    "rank_guesses",
    "record_matches",
]
