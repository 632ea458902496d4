"""
移动执行器

只执行已经由 RuleEngine.check 验证过的移动，不做合法性判断
"""
from dataclasses import dataclass, field
from typing import List, Optional
import logging

from .board import Board
from .cards import Card
from .moves import MoveKind, PileType
from .rules import MovePlan
from .scoring import ScoreEvaluator

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """
    一次移动的执行结果

    Attributes:
        kind: 移动类型
        cards_moved: 被移动的牌 id (按放置顺序)
        revealed: 因本次移动而翻开的暗牌 id
        score_delta: 分数变化 (含翻牌奖励)
    """
    kind: MoveKind
    cards_moved: List[str] = field(default_factory=list)
    revealed: Optional[str] = None
    score_delta: int = 0


class MoveExecutor:
    """
    移动执行器

    原地修改牌局: 移牌、翻开新露出的暗牌、累加移动数和分数
    """

    def __init__(self, scorer: Optional[ScoreEvaluator] = None):
        self.scorer = scorer or ScoreEvaluator()

    def execute(self, board: Board, plan: MovePlan) -> ExecutionResult:
        """
        执行移动

        Args:
            board: 牌局 (原地修改)
            plan: RuleEngine.check 返回的执行计划

        Returns:
            ExecutionResult
        """
        kind = plan.kind
        if kind == MoveKind.DRAW:
            moved = self._draw(board, plan.num_cards)
        elif kind == MoveKind.RECYCLE:
            moved = self._recycle(board)
        else:
            moved = self._transfer(board, plan)

        result = ExecutionResult(kind=kind, cards_moved=[c.id for c in moved])
        result.score_delta = self.scorer.move_delta(kind, len(moved))

        if plan.move.source_pile == PileType.TABLEAU:
            column = board.tableau[plan.source_index]
            if column and not column[-1].face_up:
                column[-1].face_up = True
                result.revealed = column[-1].id
                result.score_delta += self.scorer.reveal_bonus()

        board.moves += 1
        board.score += result.score_delta
        logger.debug(f"Executed {plan.move} (score {result.score_delta:+d})")
        return result

    @staticmethod
    def _draw(board: Board, num_cards: int) -> List[Card]:
        """从牌库逐张翻到废牌堆"""
        drawn = []
        for _ in range(num_cards):
            card = board.stock.pop()
            card.face_up = True
            board.waste.append(card)
            drawn.append(card)
        return drawn

    @staticmethod
    def _recycle(board: Board) -> List[Card]:
        """废牌堆整体翻回牌库，原先最早翻出的牌重新位于牌库顶"""
        cards = list(reversed(board.waste))
        for card in cards:
            card.face_up = False
        board.stock = cards
        board.waste = []
        return cards

    @staticmethod
    def _transfer(board: Board, plan: MovePlan) -> List[Card]:
        move = plan.move
        if move.source_pile == PileType.WASTE:
            source = board.waste
        elif move.source_pile == PileType.TABLEAU:
            source = board.tableau[plan.source_index]
        else:
            source = board.foundations[plan.source_index]

        if move.target_pile == PileType.FOUNDATION:
            target = board.foundations[plan.target_index]
        else:
            target = board.tableau[plan.target_index]

        cards = source[plan.position:]
        del source[plan.position:]
        target.extend(cards)
        return cards
