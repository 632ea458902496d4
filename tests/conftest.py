"""测试公共夹具: 按描述搭建任意合法牌局"""
from typing import Dict, List, Optional, Sequence

import pytest

from core.board import Board, Phase
from core.cards import Card, Rank, Suit, new_deck, str_to_card
from core.scoring import is_won


def _card(s: str, face_up: bool) -> Card:
    card = str_to_card(s)
    card.face_up = face_up
    return card


def build_board(
    tableau: Optional[Sequence[Sequence[str]]] = None,
    waste: Sequence[str] = (),
    stock: Sequence[str] = (),
    foundations: Optional[Dict[str, int]] = None,
    rest: str = "stock",
    draw_mode: int = 1,
) -> Board:
    """
    搭建牌局

    Args:
        tableau: 各牌列 (从底到顶)，"#" 前缀表示暗牌
        waste: 废牌堆 (末尾为顶)
        stock: 牌库 (末尾为顶)
        foundations: {花色符号: 张数}，从 A 连续放置
        rest: 其余牌放在 "stock" 还是 "waste" 底部
        draw_mode: 翻牌张数
    """
    board = Board(draw_mode=draw_mode)

    for symbol, count in (foundations or {}).items():
        suit = Suit(symbol)
        board.foundations[suit.index] = [Card(suit, Rank(v), True) for v in range(1, count + 1)]

    for col, spec in enumerate(tableau or []):
        board.tableau[col] = [_card(s.lstrip("#"), not s.startswith("#")) for s in spec]

    board.waste = [_card(s, True) for s in waste]
    board.stock = [_card(s, False) for s in stock]

    used = {c.id for c in board.all_cards()}
    leftover: List[Card] = [c for c in new_deck() if c.id not in used]
    if rest == "stock":
        board.stock = leftover + board.stock
    else:
        for card in leftover:
            card.face_up = True
        board.waste = leftover + board.waste

    board.phase = Phase.WON if is_won(board) else Phase.PLAYING
    board.verify()
    return board


@pytest.fixture
def make_board():
    return build_board
