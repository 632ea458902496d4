"""
Evaluation Layer - 评估框架

Modules:
    evaluator: 评估器和智能体
    analysis: 局面分析
    metrics: 评估指标与累计战绩
"""
from .evaluator import (
    EvalResult,
    Agent,
    RandomAgent,
    HintAgent,
    Evaluator,
)
from .analysis import (
    Analysis,
    analyze,
)
from .metrics import (
    GameRecord,
    GameStatistics,
    RunningStats,
)

__all__ = [
    # evaluator
    "EvalResult",
    "Agent",
    "RandomAgent",
    "HintAgent",
    "Evaluator",
    # analysis
    "Analysis",
    "analyze",
    # metrics
    "GameRecord",
    "GameStatistics",
    "RunningStats",
]
