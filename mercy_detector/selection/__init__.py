"""Candidate selection and temporal label smoothing package."""

from .aggregator import TemporalAggregator
from .base import BaseLabelSolution
from .candidates import Candidate, CandidateSet, ScoreDirection
from .per_frame import PerFrameSolution
from .selector import select_best
from .temporal import TemporalVotingSolution

__all__ = [
    "BaseLabelSolution",
    "Candidate",
    "CandidateSet",
    "PerFrameSolution",
    "ScoreDirection",
    "TemporalAggregator",
    "TemporalVotingSolution",
    "select_best",
]
