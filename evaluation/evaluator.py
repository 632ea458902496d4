"""
评估器

在多局牌上评估智能体的表现
"""
from typing import Dict, List, Optional, Callable, Sequence
from dataclasses import dataclass, field
import numpy as np
import logging

from core.board import Board
from core.cards import Rank
from core.moves import Move, MoveKind
from env.klondike_env import KlondikeEnv

from .metrics import GameStatistics, RunningStats

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    win_rate: float
    avg_score: float
    avg_moves: float
    avg_foundation_cards: float
    games_played: int
    avg_reward: float = 0.0
    extra_stats: Dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        return (
            f"EvalResult(win_rate={self.win_rate:.2%}, "
            f"avg_score={self.avg_score:.1f}, "
            f"avg_foundation_cards={self.avg_foundation_cards:.1f}, "
            f"games={self.games_played})"
        )


class Agent:
    """
    智能体基类

    act 返回 None 表示认输
    """

    def __init__(self, name: str = "agent"):
        self.name = name

    def act(self, board: Board, legal_moves: List[Move]) -> Optional[Move]:
        """选择动作"""
        raise NotImplementedError

    def reset(self):
        """重置状态"""
        pass


class RandomAgent(Agent):
    """随机智能体"""

    def __init__(self, name: str = "random", seed: Optional[int] = None):
        super().__init__(name)
        self._rng = np.random.default_rng(seed)

    def act(self, board: Board, legal_moves: List[Move]) -> Optional[Move]:
        if not legal_moves:
            return None
        return legal_moves[int(self._rng.integers(len(legal_moves)))]


class HintAgent(Agent):
    """
    规则提示智能体

    按优先级给合法移动打分:
    上基础堆 > 翻开暗牌 > 腾空牌列 > 打出废牌 > 翻牌 / 回收。
    不改善局面的牌列移动和基础堆取回不考虑，只剩这些时返回 None
    """

    FOUNDATION = 100
    REVEAL = 80
    EMPTY_COLUMN = 60
    WASTE_PLAY = 50
    STOCK = 10

    def __init__(self, name: str = "hint"):
        super().__init__(name)

    def score_move(self, board: Board, move: Move) -> int:
        """移动优先级，负数表示无意义"""
        kind = move.kind
        if move.to_foundation:
            return self.FOUNDATION
        if kind == MoveKind.WASTE_TO_TABLEAU:
            return self.WASTE_PLAY
        if move.is_stock_action:
            return self.STOCK
        if kind != MoveKind.TABLEAU_TO_TABLEAU:
            return -1

        _, col, pos = board.find_card(move.card_id)
        column = board.tableau[col]
        if pos > 0 and not column[pos - 1].face_up:
            # 暗牌越多越优先
            hidden = sum(1 for c in column[:pos] if not c.face_up)
            return self.REVEAL + hidden
        if pos == 0 and column[0].rank != Rank.KING:
            return self.EMPTY_COLUMN
        return -1

    def act(self, board: Board, legal_moves: List[Move]) -> Optional[Move]:
        best, best_score = None, -1
        for move in legal_moves:
            score = self.score_move(board, move)
            if score > best_score:
                best, best_score = move, score
        return best


class Evaluator:
    """
    评估器

    评估智能体在环境中的表现
    """

    def __init__(
        self,
        env_fn: Optional[Callable[[], KlondikeEnv]] = None,
        max_steps: int = 1000,
    ):
        """
        Args:
            env_fn: 环境工厂 (默认 KlondikeEnv)
            max_steps: 每局最大步数，超过后按失败记录
        """
        self.env_fn = env_fn or KlondikeEnv
        self.max_steps = max_steps
        self.statistics = GameStatistics()

    def play_game(self, agent: Agent, env: KlondikeEnv, seed: Optional[int] = None) -> Dict:
        """
        完整进行一局

        Returns:
            包含 won / score / moves / foundation_cards / reward / steps 的字典
        """
        agent.reset()
        obs, info = env.reset(seed=seed)
        board = env.unwrapped.board
        total_reward = 0.0
        steps = 0
        done = False

        while not done and steps < self.max_steps:
            move = agent.act(board, info["legal_moves"])
            if move is None:
                break
            obs, reward, terminated, truncated, info = env.step(move)
            total_reward += reward
            steps += 1
            done = terminated or truncated

        return {
            "won": board.won,
            "score": board.score,
            "moves": board.moves,
            "foundation_cards": board.foundation_count(),
            "reward": total_reward,
            "steps": steps,
        }

    def evaluate(
        self,
        agent: Agent,
        n_games: int = 100,
        seeds: Optional[Sequence[int]] = None,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agent: 待评估智能体
            n_games: 局数 (给出 seeds 时以 seeds 长度为准)
            seeds: 每局的发牌种子
            verbose: 是否输出详情

        Returns:
            评估结果
        """
        if seeds is None:
            seeds = list(range(n_games))
        n_games = len(seeds)

        env = self.env_fn()
        score_stats = RunningStats()
        moves_stats = RunningStats()
        foundation_stats = RunningStats()
        reward_stats = RunningStats()
        wins = 0

        for game_idx, seed in enumerate(seeds):
            result = self.play_game(agent, env, seed)
            self.statistics.record_game(
                result["won"], result["score"], result["moves"],
                result["foundation_cards"], seed,
            )
            wins += int(result["won"])
            score_stats.update(result["score"])
            moves_stats.update(result["moves"])
            foundation_stats.update(result["foundation_cards"])
            reward_stats.update(result["reward"])

            if verbose and (game_idx + 1) % 10 == 0:
                logger.info(f"Game {game_idx + 1}/{n_games}, Win rate: {wins/(game_idx+1):.2%}")

        env.close()

        return EvalResult(
            win_rate=wins / n_games if n_games > 0 else 0.0,
            avg_score=score_stats.mean,
            avg_moves=moves_stats.mean,
            avg_foundation_cards=foundation_stats.mean,
            games_played=n_games,
            avg_reward=reward_stats.mean,
            extra_stats={
                "score_std": score_stats.std,
                "best_score": score_stats.max_val if score_stats.n > 0 else 0.0,
            },
        )

    def compare(
        self,
        agent1: Agent,
        agent2: Agent,
        n_games: int = 100,
        seeds: Optional[Sequence[int]] = None,
    ) -> Dict[str, float]:
        """
        在相同的牌上对比两个智能体

        Returns:
            对比结果
        """
        if seeds is None:
            seeds = list(range(n_games))
        result1 = self.evaluate(agent1, seeds=seeds)
        result2 = self.evaluate(agent2, seeds=seeds)
        return {
            "agent1_win_rate": result1.win_rate,
            "agent2_win_rate": result2.win_rate,
            "agent1_avg_score": result1.avg_score,
            "agent2_avg_score": result2.avg_score,
        }
