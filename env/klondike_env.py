"""
Klondike Gymnasium 环境

遵循标准 Gymnasium API，供提示 / 分析等外部模块驱动牌局
"""
from typing import Dict, Any, Tuple, Optional, List, Union
import numpy as np

import gymnasium as gym
from gymnasium import spaces

from core.board import Board, NUM_COLUMNS, NUM_FOUNDATIONS
from core.cards import DECK_SIZE
from core.config import GameConfig
from core.game import KlondikeGame
from core.moves import Move

from .observation import ObservationBuilder, get_move_encoder
from .reward import RewardCalculator, RewardConfig, RewardType


class KlondikeEnv(gym.Env):
    """
    Klondike Gymnasium 环境

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info

    非法动作给予惩罚，牌局保持不变
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "Klondike-v1",
    }

    def __init__(
        self,
        render_mode: Optional[str] = None,
        reward_type: str = "shaped",
        draw_mode: int = 1,
        seed: Optional[int] = None,
        config: Optional[GameConfig] = None,
        reward_config: Optional[RewardConfig] = None,
    ):
        """
        Args:
            render_mode: 渲染模式 ("human", "ansi", None)
            reward_type: 奖励类型 ("sparse", "shaped")
            draw_mode: 每次翻牌张数 (1 或 3)
            seed: 随机种子
            config: 牌局配置 (给出时忽略 draw_mode)
            reward_config: 奖励配置 (给出时忽略 reward_type)
        """
        super().__init__()

        self.render_mode = render_mode
        self._seed = seed

        self._config = config or GameConfig(draw_mode=draw_mode)
        self._game = KlondikeGame(self._config)

        # 观测构建器
        self._obs_builder = ObservationBuilder(self._config)

        # 奖励计算器
        self._reward_calculator = RewardCalculator(
            reward_config or RewardConfig(reward_type=RewardType(reward_type))
        )

        # 动作编码器
        self._move_encoder = get_move_encoder()

        self._define_spaces()

    def _define_spaces(self):
        """定义观测和动作空间"""
        self.action_space = spaces.Discrete(self._move_encoder.num_actions)

        self.observation_space = spaces.Dict({
            "tableau": spaces.Box(0, 1, shape=(NUM_COLUMNS, DECK_SIZE), dtype=np.float32),
            "hidden": spaces.Box(0, 1, shape=(NUM_COLUMNS,), dtype=np.float32),
            "foundations": spaces.Box(0, 1, shape=(NUM_FOUNDATIONS,), dtype=np.float32),
            "waste_top": spaces.Box(0, 1, shape=(DECK_SIZE,), dtype=np.float32),
            "piles": spaces.Box(0, 1, shape=(2,), dtype=np.float32),
        })

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """
        重置环境

        Args:
            seed: 随机种子
            options: 额外选项

        Returns:
            (observation, info) 元组
        """
        super().reset(seed=seed)

        game_seed = seed if seed is not None else self._seed
        if game_seed is None:
            game_seed = int(self.np_random.integers(0, 2**31 - 1))

        self._game.new_game(game_seed)

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def step(
        self,
        action: Union[int, Move],
    ) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict[str, Any]]:
        """
        执行动作

        Args:
            action: 动作索引或 Move 对象

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._game.board is None:
            raise RuntimeError("Environment not reset. Call reset() first.")

        board = self._game.board
        prev_score = board.score
        move = self._decode_action(action)

        result = self._game.apply_move(move) if move is not None else None
        if result is None or not result.ok:
            # 非法动作：给予惩罚并保持状态
            obs = self._build_observation()
            info = self._build_info()
            info["error"] = str(result.error) if result is not None else "Invalid action"
            return obs, self._reward_calculator.illegal_penalty, False, False, info

        obs = self._build_observation()
        reward = self._reward_calculator.compute(board, prev_score)

        terminated = board.won or not self._game.legal_moves()
        truncated = False

        info = self._build_info()
        info["execution"] = result.execution

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def _decode_action(self, action: Union[int, Move]) -> Optional[Move]:
        """解码动作"""
        if isinstance(action, Move):
            return action
        elif isinstance(action, (int, np.integer)):
            if not 0 <= action < self._move_encoder.num_actions:
                raise ValueError(
                    f"Invalid action index: {action}. "
                    f"Valid range: 0-{self._move_encoder.num_actions - 1}"
                )
            return self._move_encoder.decode(int(action), self._game.board)
        else:
            raise ValueError(f"Invalid action type: {type(action)}")

    def _build_observation(self) -> Dict[str, np.ndarray]:
        return self._obs_builder.build(self._game.board).to_dict()

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        board = self._game.board
        legal_moves = self._game.legal_moves()

        info = {
            "phase": board.phase.value,
            "legal_moves": legal_moves,
            "legal_action_mask": self._move_encoder.build_legal_mask(legal_moves, board),
            "legal_action_indices": self._move_encoder.get_legal_action_indices(legal_moves, board),
            "moves": board.moves,
            "score": board.score,
            "foundation_cards": board.foundation_count(),
            "won": board.won,
        }
        return info

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode == "ansi" or self.render_mode == "human":
            return self._render_text()
        return None

    def _render_text(self) -> str:
        lines = ["=" * 50, f"Phase: {self._game.board.phase.value}", self._game.board.pretty(), "=" * 50]
        output = "\n".join(lines)
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        pass

    @property
    def board(self) -> Optional[Board]:
        """获取当前牌局 (用于调试)"""
        return self._game.board

    @property
    def game(self) -> KlondikeGame:
        return self._game

    def get_legal_actions(self) -> List[Move]:
        """获取当前合法移动"""
        if self._game.board is None:
            return []
        return self._game.legal_moves()

    def sample_action(self) -> int:
        """随机采样一个合法动作索引"""
        indices = self._move_encoder.get_legal_action_indices(
            self.get_legal_actions(), self._game.board
        )
        if not indices:
            return 0
        return int(self.np_random.choice(indices))


def make_env(env_id: str = "Klondike-v1", **kwargs) -> KlondikeEnv:
    """
    工厂函数：创建环境

    Args:
        env_id: 环境 ID
        **kwargs: 环境参数
    """
    return KlondikeEnv(**kwargs)
