from .analyzer import BehavioralAnalyzer, BehavioralSnapshot
from .consistency import DailyConsistency, analyze_consistency
from .outliers import OutlierAnalysis, analyze_outliers
from .revenge import RevengeAnalysis, RevengeDetector, RevengeIncident
from .streaks import StreakRun, StreakSummary, analyze_streaks
from .volt_score import VoltComponents, VoltScore, compute_volt_score, score_label

__all__ = [
    "BehavioralAnalyzer",
    "BehavioralSnapshot",
    "DailyConsistency",
    "OutlierAnalysis",
    "RevengeAnalysis",
    "RevengeDetector",
    "RevengeIncident",
    "StreakRun",
    "StreakSummary",
    "VoltComponents",
    "VoltScore",
    "analyze_consistency",
    "analyze_outliers",
    "analyze_streaks",
    "compute_volt_score",
    "score_label",
]
