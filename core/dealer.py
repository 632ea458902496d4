"""
洗牌与发牌
"""
from datetime import date
from typing import List, Optional, Union
import logging
import random

from .board import Board, Phase, NUM_COLUMNS
from .cards import Card, new_deck
from .config import DRAW_MODES
from .scoring import is_won

logger = logging.getLogger(__name__)

Seed = Union[int, str]


def shuffle_deck(deck: List[Card], seed: Optional[Seed] = None) -> List[Card]:
    """
    Fisher-Yates 洗牌 (返回新列表，不修改入参)

    Args:
        deck: 待洗的牌
        seed: 随机种子，相同种子得到相同顺序；None 表示使用系统熵
    """
    rng = random.Random(seed)
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def deal(seed: Optional[Seed] = None, draw_mode: int = 1) -> Board:
    """
    发一局新牌

    第 i 列得到 i+1 张牌，只有最后发到的一张正面朝上；
    剩余 24 张背面朝上放入牌库

    Args:
        seed: 随机种子
        draw_mode: 每次翻牌张数

    Returns:
        处于 PLAYING 阶段的新牌局

    Raises:
        DeckIntegrityError: 发出的牌不是完整的 52 张
    """
    if draw_mode not in DRAW_MODES:
        raise ValueError(f"draw_mode must be one of {DRAW_MODES}, got {draw_mode}")

    deck = shuffle_deck(new_deck(), seed)
    board = Board(draw_mode=draw_mode)

    idx = 0
    for row in range(NUM_COLUMNS):
        for col in range(row, NUM_COLUMNS):
            card = deck[idx]
            card.face_up = col == row
            board.tableau[col].append(card)
            idx += 1

    for card in deck[idx:]:
        card.face_up = False
        board.stock.append(card)

    board.verify()
    board.phase = Phase.WON if is_won(board) else Phase.PLAYING

    logger.debug(f"Dealt board with seed={seed!r}, draw_mode={draw_mode}")
    return board


def daily_seed(day: Optional[date] = None) -> int:
    """每日挑战种子: 同一天得到同一局牌 (YYYYMMDD)"""
    day = day or date.today()
    return int(day.strftime("%Y%m%d"))
