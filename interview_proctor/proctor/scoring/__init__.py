"""Scoring modules"""

from .integrity_scorer import IntegrityScorer, compute_integrity_score, deduction_for
from .report_generator import Recommendation, Report, ReportGenerator

__all__ = [
    "IntegrityScorer",
    "compute_integrity_score",
    "deduction_for",
    "Recommendation",
    "Report",
    "ReportGenerator"
]
