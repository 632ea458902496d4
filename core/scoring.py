"""
计分与胜负判定
"""
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .cards import NUM_PER_SUIT
from .moves import MoveKind

if TYPE_CHECKING:
    from .board import Board


@dataclass
class ScoringConfig:
    """
    计分表

    Attributes:
        foundation: 放上基础堆
        reveal: 翻开暗牌
        waste_to_tableau: 废牌堆到牌列
        tableau_per_card: 牌列之间移动，每张牌
        draw: 翻牌
        recycle_penalty: 废牌堆回收到牌库 (扣分为负数)
        foundation_to_tableau: 从基础堆取回 (扣分为负数)
    """
    foundation: int = 10
    reveal: int = 5
    waste_to_tableau: int = 5
    tableau_per_card: int = 1
    draw: int = 0
    recycle_penalty: int = 0
    foundation_to_tableau: int = -10

    @classmethod
    def from_dict(cls, d: dict) -> 'ScoringConfig':
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)


class ScoreEvaluator:
    """
    根据移动类型计算分数变化

    翻牌奖励单独计算，由执行器在真正翻开暗牌时调用 reveal_bonus
    """

    def __init__(self, config: ScoringConfig = None):
        self.config = config or ScoringConfig()

    def move_delta(self, kind: MoveKind, num_cards: int = 1) -> int:
        """
        移动本身的分数变化 (不含翻牌奖励)

        Args:
            kind: 移动类型
            num_cards: 移动的牌数 (牌列之间移动时为整段长度)
        """
        c = self.config
        if kind in (MoveKind.WASTE_TO_FOUNDATION, MoveKind.TABLEAU_TO_FOUNDATION):
            return c.foundation
        if kind == MoveKind.WASTE_TO_TABLEAU:
            return c.waste_to_tableau
        if kind == MoveKind.TABLEAU_TO_TABLEAU:
            return c.tableau_per_card * num_cards
        if kind == MoveKind.FOUNDATION_TO_TABLEAU:
            return c.foundation_to_tableau
        if kind == MoveKind.DRAW:
            return c.draw
        if kind == MoveKind.RECYCLE:
            return c.recycle_penalty
        return 0

    def reveal_bonus(self) -> int:
        return self.config.reveal


def is_won(board: 'Board') -> bool:
    """四个基础堆都满 13 张即获胜"""
    return all(len(pile) == NUM_PER_SUIT for pile in board.foundations)


def foundation_progress(board: 'Board') -> float:
    """基础堆完成度 [0, 1]"""
    return sum(len(pile) for pile in board.foundations) / (NUM_PER_SUIT * len(board.foundations))
