"""
局面分析

基于规则的启发式分析: 胜率估计、被压住的暗牌数、策略提示和推荐移动
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from core.board import Board
from core.config import GameConfig
from core.moves import Move, MoveGenerator
from core.scoring import foundation_progress

from .evaluator import HintAgent


# 暗牌超过此数视为局面受阻
BLOCKED_THRESHOLD = 10

# 基础堆进度低于此值时提示先翻牌
EARLY_PROGRESS = 0.2


@dataclass
class Analysis:
    """
    局面分析结果

    Attributes:
        win_probability: 胜率估计 (基础堆完成度)
        confidence: 估计的可信度
        blocked_cards: 牌列中的暗牌数
        legal_move_count: 当前合法移动数
        best_move: 推荐移动
        insights: 策略提示
        recommendation: 一句话建议
    """
    win_probability: float
    confidence: float
    blocked_cards: int
    legal_move_count: int
    best_move: Optional[Move] = None
    insights: List[str] = field(default_factory=list)
    recommendation: str = ""

    def to_dict(self) -> Dict:
        return {
            "win_probability": self.win_probability,
            "confidence": self.confidence,
            "blocked_cards": self.blocked_cards,
            "legal_move_count": self.legal_move_count,
            "best_move": self.best_move.to_dict() if self.best_move else None,
            "insights": list(self.insights),
            "recommendation": self.recommendation,
        }


def _confidence(win_probability: float) -> float:
    """离 0.5 越远越可信，限制在 [0.3, 0.95]"""
    return max(0.3, min(0.95, 1 - (win_probability - 0.5) ** 2))


def _insights(progress: float, blocked: int, stock_only: bool) -> List[str]:
    insights = []
    if stock_only:
        insights.append("Only stock moves are available - draw to uncover new plays")
    if progress < EARLY_PROGRESS:
        insights.append("Focus on revealing cards in the tableau to find foundation opportunities")
    if blocked > BLOCKED_THRESHOLD:
        insights.append("Many cards are blocked - prioritize creating empty tableau columns")
    insights.append("Look for sequences that can be moved between tableau columns")
    return insights


def _recommendation(board: Board, best_move: Optional[Move], progress: float) -> str:
    if board.won:
        return "Game complete"
    if best_move is None:
        return "No productive moves left - consider undoing or starting a new game"
    if progress > 0.7:
        return f"Nearly there - play {best_move}"
    return f"Suggested move: {best_move}"


def analyze(board: Board, config: Optional[GameConfig] = None) -> Analysis:
    """
    分析局面 (只读)

    Args:
        board: 牌局
        config: 牌局配置

    Returns:
        Analysis
    """
    generator = MoveGenerator(board, config)
    legal_moves = generator.generate_all()
    stock_only = bool(legal_moves) and not generator.has_progress_move()
    progress = foundation_progress(board)
    blocked = board.hidden_count()
    best_move = HintAgent().act(board, legal_moves)

    return Analysis(
        win_probability=progress,
        confidence=_confidence(progress),
        blocked_cards=blocked,
        legal_move_count=len(legal_moves),
        best_move=best_move,
        insights=_insights(progress, blocked, stock_only),
        recommendation=_recommendation(board, best_move, progress),
    )
