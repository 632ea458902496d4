"""
Core Layer - 纯牌局逻辑 (无 ML 依赖)

Modules:
    cards: 牌定义与编码
    moves: 移动类型与合法移动生成
    board: 牌局状态
    dealer: 洗牌与发牌
    rules: 规则引擎
    executor: 移动执行
    history: 撤销 / 重做
    scoring: 计分与胜负判定
    config: 牌局配置
    errors: 错误类型
    game: 牌局入口
"""
from .cards import (
    Suit,
    Rank,
    Card,
    SUITS,
    RANKS,
    DECK_SIZE,
    NUM_PER_SUIT,
    new_deck,
    card_from_index,
    str_to_card,
    cards_to_str,
    cards_to_array,
    array_to_cards,
)

from .errors import (
    KlondikeError,
    MoveError,
    InvalidMove,
    EmptySource,
    RuleViolation,
    GameFinished,
    CardNotFound,
    UndoError,
    NoHistory,
    DeckIntegrityError,
)

from .moves import (
    PileType,
    MoveKind,
    Move,
    MoveGenerator,
)

from .board import (
    Phase,
    Board,
    NUM_COLUMNS,
    NUM_FOUNDATIONS,
)

from .scoring import (
    ScoringConfig,
    ScoreEvaluator,
    is_won,
    foundation_progress,
)

from .config import GameConfig, DRAW_MODES

from .dealer import deal, shuffle_deck, daily_seed

from .rules import RuleEngine, MovePlan

from .executor import ExecutionResult, MoveExecutor

from .history import History

from .game import (
    MoveResult,
    KlondikeGame,
    new_game,
    apply_move,
    legal_moves,
    is_legal,
)

__all__ = [
    # cards
    "Suit",
    "Rank",
    "Card",
    "SUITS",
    "RANKS",
    "DECK_SIZE",
    "NUM_PER_SUIT",
    "new_deck",
    "card_from_index",
    "str_to_card",
    "cards_to_str",
    "cards_to_array",
    "array_to_cards",
    # errors
    "KlondikeError",
    "MoveError",
    "InvalidMove",
    "EmptySource",
    "RuleViolation",
    "GameFinished",
    "CardNotFound",
    "UndoError",
    "NoHistory",
    "DeckIntegrityError",
    # moves
    "PileType",
    "MoveKind",
    "Move",
    "MoveGenerator",
    # board
    "Phase",
    "Board",
    "NUM_COLUMNS",
    "NUM_FOUNDATIONS",
    # scoring
    "ScoringConfig",
    "ScoreEvaluator",
    "is_won",
    "foundation_progress",
    # config
    "GameConfig",
    "DRAW_MODES",
    # dealer
    "deal",
    "shuffle_deck",
    "daily_seed",
    # rules
    "RuleEngine",
    "MovePlan",
    # executor
    "ExecutionResult",
    "MoveExecutor",
    # history
    "History",
    # game
    "MoveResult",
    "KlondikeGame",
    "new_game",
    "apply_move",
    "legal_moves",
    "is_legal",
]
