"""Result synthesis, scoring and reporting."""

from .synthesis import ResultSynthesizer, average_confidence
from .scoring import QualityScorer
from .report import REPORT_FORMATS, ReportGenerator

__all__ = [
    "ResultSynthesizer",
    "average_confidence",
    "QualityScorer",
    "REPORT_FORMATS",
    "ReportGenerator",
]
