"""
规则引擎 - 牌段检测、放置规则、移动合法性验证

所有方法都是纯函数，无状态，不修改牌局
"""
from dataclasses import dataclass
from numbers import Integral
from typing import Callable, Dict, List, Optional, Sequence

from .board import Board, Phase
from .cards import Card, Rank, SUITS
from .config import GameConfig
from .errors import (
    EmptySource,
    GameFinished,
    InvalidMove,
    MoveError,
    RuleViolation,
)
from .moves import Move, MoveKind, PileType


@dataclass(frozen=True)
class MovePlan:
    """
    验证通过的移动，已解析出具体位置，供执行器使用

    Attributes:
        move: 原始移动
        source_index: 源牌列 / 基础堆索引 (牌库和废牌堆为 None)
        position: 被移动的第一张牌在源牌堆中的位置
        target_index: 目标牌列 / 基础堆索引
        num_cards: 移动的牌数
    """
    move: Move
    source_index: Optional[int]
    position: int
    target_index: Optional[int]
    num_cards: int

    @property
    def kind(self) -> MoveKind:
        return self.move.kind


class RuleEngine:
    """
    Klondike 规则引擎

    check() 完整验证一次移动并给出 MovePlan，失败时抛出具体的 MoveError；
    is_legal() 是其布尔形式
    """

    @staticmethod
    def is_valid_run(cards: Sequence[Card]) -> bool:
        """
        检查牌段是否可整体移动

        条件: 全部正面朝上，点数逐张减 1，颜色交替
        """
        if not cards:
            return False
        for i, card in enumerate(cards):
            if not card.face_up:
                return False
            if i > 0:
                below = cards[i - 1]
                if below.value != card.value + 1 or not below.is_opposite_color(card):
                    return False
        return True

    @staticmethod
    def movable_run_starts(column: Sequence[Card]) -> List[int]:
        """牌列中可作为整段移动起点的位置 (从底到顶)"""
        starts = []
        for i in range(len(column) - 1, -1, -1):
            if not RuleEngine.is_valid_run(column[i:]):
                break
            starts.append(i)
        return list(reversed(starts))

    @staticmethod
    def can_place_on_tableau(card: Card, column: Sequence[Card]) -> bool:
        """
        牌 (或以它为首的牌段) 能否放到牌列上

        空列只接受 K；否则列顶必须明牌、颜色相反、点数大 1
        """
        if not column:
            return card.rank == Rank.KING
        top = column[-1]
        if not top.face_up:
            return False
        return card.is_opposite_color(top) and card.value == top.value - 1

    @staticmethod
    def can_place_on_foundation(
        card: Card,
        pile: Sequence[Card],
        foundation_index: Optional[int] = None,
    ) -> bool:
        """
        牌能否放到基础堆上

        空基础堆只接受 A；否则同花色且点数大 1
        """
        if foundation_index is not None and SUITS[foundation_index] != card.suit:
            return False
        if not pile:
            return card.rank == Rank.ACE
        top = pile[-1]
        return card.suit == top.suit and card.value == top.value + 1

    @staticmethod
    def accepts_moves(board: Board) -> bool:
        return board.phase == Phase.PLAYING

    @staticmethod
    def reverse_moves_allowed(config: Optional[GameConfig]) -> bool:
        return config is None or config.allow_foundation_to_tableau

    @staticmethod
    def check(board: Board, move: Move, config: Optional[GameConfig] = None) -> MovePlan:
        """
        完整验证一次移动

        Args:
            board: 牌局
            move: 待验证的移动
            config: 牌局配置 (决定是否允许基础堆取回)

        Returns:
            MovePlan

        Raises:
            GameFinished: 牌局已获胜
            InvalidMove / EmptySource / RuleViolation / CardNotFound
        """
        if not RuleEngine.accepts_moves(board):
            if board.phase == Phase.WON:
                raise GameFinished("Game is already won", move)
            raise RuleViolation(f"Board is not in play ({board.phase.value})", move)

        if not isinstance(move, Move):
            raise InvalidMove(f"Not a move: {move!r}")
        try:
            kind = MoveKind(move.kind)
        except ValueError:
            raise InvalidMove(f"Unknown move kind: {move.kind!r}", move) from None
        if kind is not move.kind:
            move = Move(kind, move.card_id, move.source_index, move.target_index)

        return _CHECKERS[kind](board, move, config)

    @staticmethod
    def is_legal(board: Board, move: Move, config: Optional[GameConfig] = None) -> bool:
        try:
            RuleEngine.check(board, move, config)
        except MoveError:
            return False
        return True


def _require_card_id(move: Move) -> str:
    if not move.card_id:
        raise InvalidMove(f"{move.kind.name} requires a card_id", move)
    return move.card_id


def _require_index(index, move: Move, what: str) -> int:
    """索引必须是整数 (bool 除外)"""
    if isinstance(index, bool) or not isinstance(index, Integral):
        raise InvalidMove(f"{what.capitalize()} index must be an int, got {index!r}", move)
    return index


def _check_column_index(board: Board, index: Optional[int], move: Move, what: str) -> int:
    if index is None:
        raise InvalidMove(f"{move.kind.name} requires a {what} column", move)
    _require_index(index, move, what)
    if not 0 <= index < len(board.tableau):
        raise InvalidMove(f"{what.capitalize()} column {index} out of range", move)
    return index


def _foundation_target(board: Board, card: Card, move: Move) -> int:
    """解析并验证基础堆目标"""
    target = move.target_index
    if target is None:
        target = card.suit.index
    elif not 0 <= _require_index(target, move, "target") < len(board.foundations):
        raise InvalidMove(f"Foundation {target} out of range", move)
    if not RuleEngine.can_place_on_foundation(card, board.foundations[target], target):
        if SUITS[target] != card.suit:
            raise RuleViolation(f"{card.id} does not belong on the {SUITS[target].value} foundation", move)
        raise RuleViolation(f"{card.id} is not next in sequence on its foundation", move)
    return target


def _tableau_target(board: Board, card: Card, move: Move) -> int:
    """解析并验证牌列目标"""
    target = _check_column_index(board, move.target_index, move, "target")
    column = board.tableau[target]
    if not RuleEngine.can_place_on_tableau(card, column):
        if not column:
            raise RuleViolation(f"Only a King can go on empty column {target}", move)
        raise RuleViolation(f"{card.id} cannot be placed on {column[-1]}", move)
    return target


def _check_draw(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    if not board.stock:
        raise EmptySource("Stock is empty", move)
    if move.card_id is not None and move.card_id != board.stock[-1].id:
        raise InvalidMove(f"{move.card_id} is not the top of the stock", move)
    num_cards = min(board.draw_mode, len(board.stock))
    return MovePlan(move, None, len(board.stock) - num_cards, None, num_cards)


def _check_recycle(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    if board.stock:
        raise RuleViolation("Stock must be empty before recycling the waste", move)
    if not board.waste:
        raise EmptySource("Waste is empty", move)
    return MovePlan(move, None, 0, None, len(board.waste))


def _waste_top(board: Board, move: Move) -> Card:
    card_id = _require_card_id(move)
    board.find_card(card_id)
    if not board.waste:
        raise EmptySource("Waste is empty", move)
    card = board.waste[-1]
    if card.id != card_id:
        raise InvalidMove(f"{card_id} is not the top of the waste", move)
    return card


def _check_waste_to_tableau(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    card = _waste_top(board, move)
    target = _tableau_target(board, card, move)
    return MovePlan(move, None, len(board.waste) - 1, target, 1)


def _check_waste_to_foundation(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    card = _waste_top(board, move)
    target = _foundation_target(board, card, move)
    return MovePlan(move, None, len(board.waste) - 1, target, 1)


def _locate_in_tableau(board: Board, move: Move) -> tuple:
    """返回 (列索引, 位置, 牌)"""
    card_id = _require_card_id(move)
    if move.source_index is not None:
        _check_column_index(board, move.source_index, move, "source")
        if not board.tableau[move.source_index]:
            raise EmptySource(f"Column {move.source_index} is empty", move)
    pile, col, pos = board.find_card(card_id)
    if pile != PileType.TABLEAU:
        raise InvalidMove(f"{card_id} is not in the tableau", move)
    if move.source_index is not None and move.source_index != col:
        raise InvalidMove(f"{card_id} is not in column {move.source_index}", move)
    card = board.tableau[col][pos]
    if not card.face_up:
        raise RuleViolation(f"{card_id} is face down", move)
    return col, pos, card


def _check_tableau_to_tableau(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    col, pos, card = _locate_in_tableau(board, move)
    run = board.tableau[col][pos:]
    if not RuleEngine.is_valid_run(run):
        raise RuleViolation(f"Cards above {card.id} do not form a run", move)
    if move.target_index == col:
        raise InvalidMove("Source and target column are the same", move)
    target = _tableau_target(board, card, move)
    return MovePlan(move, col, pos, target, len(run))


def _check_tableau_to_foundation(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    col, pos, card = _locate_in_tableau(board, move)
    if pos != len(board.tableau[col]) - 1:
        raise RuleViolation(f"Only the top card of column {col} can go to a foundation", move)
    target = _foundation_target(board, card, move)
    return MovePlan(move, col, pos, target, 1)


def _check_foundation_to_tableau(board: Board, move: Move, config: Optional[GameConfig]) -> MovePlan:
    if not RuleEngine.reverse_moves_allowed(config):
        raise RuleViolation("Moving cards off the foundations is disabled", move)
    card_id = _require_card_id(move)
    if move.source_index is not None:
        if not 0 <= _require_index(move.source_index, move, "source") < len(board.foundations):
            raise InvalidMove(f"Foundation {move.source_index} out of range", move)
        if not board.foundations[move.source_index]:
            raise EmptySource(f"Foundation {move.source_index} is empty", move)
    pile, idx, pos = board.find_card(card_id)
    if pile != PileType.FOUNDATION:
        raise InvalidMove(f"{card_id} is not on a foundation", move)
    if move.source_index is not None and move.source_index != idx:
        raise InvalidMove(f"{card_id} is not on foundation {move.source_index}", move)
    if pos != len(board.foundations[idx]) - 1:
        raise RuleViolation(f"{card_id} is not the top of its foundation", move)
    card = board.foundations[idx][pos]
    target = _tableau_target(board, card, move)
    return MovePlan(move, idx, pos, target, 1)


_CHECKERS: Dict[MoveKind, Callable[[Board, Move, Optional[GameConfig]], MovePlan]] = {
    MoveKind.DRAW: _check_draw,
    MoveKind.RECYCLE: _check_recycle,
    MoveKind.WASTE_TO_TABLEAU: _check_waste_to_tableau,
    MoveKind.WASTE_TO_FOUNDATION: _check_waste_to_foundation,
    MoveKind.TABLEAU_TO_TABLEAU: _check_tableau_to_tableau,
    MoveKind.TABLEAU_TO_FOUNDATION: _check_tableau_to_foundation,
    MoveKind.FOUNDATION_TO_TABLEAU: _check_foundation_to_tableau,
}
