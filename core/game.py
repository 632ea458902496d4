"""
牌局入口

KlondikeGame 持有当前牌局、撤销历史和配置，是界面、提示 / 分析模块和存档
的唯一调用点。所有入口返回 MoveResult，失败时牌局保持不变。
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
import logging

from .board import Board, Phase
from .config import GameConfig
from .dealer import Seed, deal
from .errors import KlondikeError, MoveError, UndoError
from .executor import ExecutionResult, MoveExecutor
from .history import History
from .moves import Move, MoveGenerator
from .rules import RuleEngine
from .scoring import ScoreEvaluator, is_won

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    """
    入口调用结果

    Attributes:
        ok: 是否成功
        board: 调用后的牌局 (失败时为未改动的原牌局)
        error: 失败原因
        execution: 移动的执行细节 (撤销 / 重做时为 None)
    """
    ok: bool
    board: Board
    error: Optional[KlondikeError] = None
    execution: Optional[ExecutionResult] = None

    def unwrap(self) -> Board:
        """成功时返回牌局，失败时抛出携带的错误"""
        if self.error is not None:
            raise self.error
        return self.board


def _update_phase(board: Board) -> None:
    board.phase = Phase.WON if is_won(board) else Phase.PLAYING


def apply_move(board: Board, move: Move, config: Optional[GameConfig] = None) -> MoveResult:
    """
    在牌局上直接执行一次移动 (不记录历史)

    需要撤销时使用 KlondikeGame.apply_move
    """
    config = config or GameConfig(draw_mode=board.draw_mode)
    try:
        plan = RuleEngine.check(board, move, config)
    except MoveError as e:
        return MoveResult(ok=False, board=board, error=e)
    execution = MoveExecutor(ScoreEvaluator(config.scoring)).execute(board, plan)
    _update_phase(board)
    return MoveResult(ok=True, board=board, execution=execution)


class KlondikeGame:
    """
    一局 Klondike 的会话

    Usage:
        game = KlondikeGame()
        game.new_game(seed=42)
        for move in game.legal_moves():
            ...
        result = game.apply_move(move)
    """

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config or GameConfig()
        self.executor = MoveExecutor(ScoreEvaluator(self.config.scoring))
        self.history = History()
        self.board: Optional[Board] = None
        self.seed: Optional[Seed] = None

    def new_game(self, seed: Optional[Seed] = None) -> Board:
        """发新牌，丢弃旧牌局和全部历史"""
        self.board = deal(seed, self.config.draw_mode)
        self.seed = seed
        self.history.clear()
        logger.info(f"New game (seed={seed!r}, draw_mode={self.config.draw_mode})")
        return self.board

    def _require_board(self) -> Board:
        if self.board is None:
            raise RuntimeError("No game in progress, call new_game() first")
        return self.board

    def apply_move(self, move: Move) -> MoveResult:
        """
        验证并执行移动

        验证完全通过后才压入快照并修改牌局；失败时牌局和历史都不变
        """
        board = self._require_board()
        try:
            plan = RuleEngine.check(board, move, self.config)
        except MoveError as e:
            logger.debug(f"Rejected {move}: {e}")
            return MoveResult(ok=False, board=board, error=e)

        self.history.push(board)
        execution = self.executor.execute(board, plan)
        _update_phase(board)
        if board.won:
            logger.info(f"Game won in {board.moves} moves with score {board.score}")
        return MoveResult(ok=True, board=board, execution=execution)

    def undo(self) -> MoveResult:
        board = self._require_board()
        try:
            self.history.undo(board)
        except UndoError as e:
            return MoveResult(ok=False, board=board, error=e)
        _update_phase(board)
        logger.debug(f"Undo -> moves={board.moves}, score={board.score}")
        return MoveResult(ok=True, board=board)

    def redo(self) -> MoveResult:
        board = self._require_board()
        try:
            self.history.redo(board)
        except UndoError as e:
            return MoveResult(ok=False, board=board, error=e)
        _update_phase(board)
        logger.debug(f"Redo -> moves={board.moves}, score={board.score}")
        return MoveResult(ok=True, board=board)

    def legal_moves(self) -> List[Move]:
        return MoveGenerator(self._require_board(), self.config).generate_all()

    def is_legal(self, move: Move) -> bool:
        return RuleEngine.is_legal(self._require_board(), move, self.config)

    def is_won(self) -> bool:
        return self.board is not None and is_won(self.board)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def to_dict(self) -> Dict:
        """牌局与历史一起序列化 (可直接 json.dumps)"""
        return {
            "config": self.config.to_dict(),
            "seed": self.seed,
            "board": self.board.to_dict() if self.board is not None else None,
            "history": self.history.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: Dict) -> 'KlondikeGame':
        game = cls(GameConfig.from_dict(d.get("config", {})))
        game.seed = d.get("seed")
        if d.get("board") is not None:
            game.board = Board.from_dict(d["board"])
        game.history = History.from_dict(d.get("history", {}))
        return game


def new_game(seed: Optional[Seed] = None, config: Optional[GameConfig] = None) -> KlondikeGame:
    """创建会话并发牌"""
    game = KlondikeGame(config)
    game.new_game(seed)
    return game


def legal_moves(board: Board, config: Optional[GameConfig] = None) -> List[Move]:
    """枚举所有合法移动 (只读)"""
    return MoveGenerator(board, config).generate_all()


def is_legal(board: Board, move: Move, config: Optional[GameConfig] = None) -> bool:
    return RuleEngine.is_legal(board, move, config)
