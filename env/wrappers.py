"""
环境包装器

提供常用的环境增强功能
"""
from typing import Dict, Tuple, Optional
import numpy as np

import gymnasium as gym
from gymnasium import Wrapper

from core.moves import MoveKind


class FlattenObservationWrapper(Wrapper):
    """
    将字典观测展平为单一向量

    用于不支持字典观测的算法
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)

        flat_dim = sum(
            int(np.prod(space.shape)) for space in env.observation_space.spaces.values()
        )

        self.observation_space = gym.spaces.Box(
            low=0.0,
            high=1.0,
            shape=(flat_dim,),
            dtype=np.float32,
        )

    def observation(self, obs: Dict[str, np.ndarray]) -> np.ndarray:
        """展平观测 (按观测空间的键顺序)"""
        return np.concatenate([
            obs[key].flatten() for key in self.env.observation_space.spaces
        ]).astype(np.float32)

    def reset(self, **kwargs) -> Tuple[np.ndarray, Dict]:
        obs, info = self.env.reset(**kwargs)
        return self.observation(obs), info

    def step(self, action) -> Tuple[np.ndarray, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return self.observation(obs), reward, terminated, truncated, info


class LegalActionMaskWrapper(Wrapper):
    """
    在 info 中添加合法动作掩码

    用于支持 action masking 的算法
    """

    def reset(self, **kwargs) -> Tuple[Dict, Dict]:
        obs, info = self.env.reset(**kwargs)
        info["action_mask"] = self._get_action_mask(info)
        return obs, info

    def step(self, action) -> Tuple[Dict, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        if not terminated:
            info["action_mask"] = self._get_action_mask(info)
        return obs, reward, terminated, truncated, info

    def _get_action_mask(self, info: Dict) -> np.ndarray:
        if "legal_action_mask" in info:
            return info["legal_action_mask"]
        return np.ones(self.action_space.n, dtype=np.float32)


class RewardScaleWrapper(Wrapper):
    """
    奖励缩放包装器
    """

    def __init__(self, env: gym.Env, scale: float = 1.0):
        super().__init__(env)
        self.scale = scale

    def step(self, action) -> Tuple[Dict, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return obs, reward * self.scale, terminated, truncated, info


class TimeLimit(Wrapper):
    """
    步数与停滞限制包装器

    Klondike 可以在牌库里无限循环，两种情况下截断:
    - "max_steps": 达到最大步数
    - "stalled": 连续 max_idle_recycles 次回收废牌堆期间基础堆没有增加

    截断时在 info["truncation"] 中给出原因
    """

    def __init__(self, env: gym.Env, max_steps: int = 500, max_idle_recycles: Optional[int] = None):
        super().__init__(env)
        self.max_steps = max_steps
        self.max_idle_recycles = max_idle_recycles
        self._step_count = 0
        self._idle_recycles = 0
        self._foundation_cards = 0

    def reset(self, **kwargs) -> Tuple[Dict, Dict]:
        self._step_count = 0
        self._idle_recycles = 0
        obs, info = self.env.reset(**kwargs)
        self._foundation_cards = info.get("foundation_cards", 0)
        return obs, info

    def step(self, action) -> Tuple[Dict, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._step_count += 1
        self._track_progress(info)

        if terminated:
            return obs, reward, terminated, truncated, info
        if self._step_count >= self.max_steps:
            truncated = True
            info["truncation"] = "max_steps"
        elif self.max_idle_recycles is not None and self._idle_recycles >= self.max_idle_recycles:
            truncated = True
            info["truncation"] = "stalled"

        return obs, reward, terminated, truncated, info

    def _track_progress(self, info: Dict):
        foundation_cards = info.get("foundation_cards", self._foundation_cards)
        if foundation_cards > self._foundation_cards:
            self._idle_recycles = 0
        else:
            execution = info.get("execution")
            if execution is not None and execution.kind == MoveKind.RECYCLE:
                self._idle_recycles += 1
        self._foundation_cards = foundation_cards


class RecordEpisodeStatistics(Wrapper):
    """
    记录回合统计信息
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        self._episode_reward = 0.0
        self._episode_length = 0

    def reset(self, **kwargs) -> Tuple[Dict, Dict]:
        obs, info = self.env.reset(**kwargs)
        self._episode_reward = 0.0
        self._episode_length = 0
        return obs, info

    def step(self, action) -> Tuple[Dict, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)

        self._episode_reward += reward
        self._episode_length += 1

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "won": info.get("won", False),
                "score": info.get("score", 0),
                "foundation_cards": info.get("foundation_cards", 0),
            }

        return obs, reward, terminated, truncated, info


def wrap_env(
    env: gym.Env,
    flatten_obs: bool = False,
    action_mask: bool = True,
    record_stats: bool = True,
    time_limit: Optional[int] = None,
    max_idle_recycles: Optional[int] = None,
    reward_scale: float = 1.0,
) -> gym.Env:
    """
    应用常用包装器组合

    Args:
        env: 基础环境
        flatten_obs: 是否展平观测
        action_mask: 是否添加动作掩码
        record_stats: 是否记录统计
        time_limit: 时间限制
        max_idle_recycles: 无进展回收次数上限 (需要 time_limit)
        reward_scale: 奖励缩放

    Returns:
        包装后的环境
    """
    if time_limit is not None:
        env = TimeLimit(env, max_steps=time_limit, max_idle_recycles=max_idle_recycles)

    if record_stats:
        env = RecordEpisodeStatistics(env)

    if reward_scale != 1.0:
        env = RewardScaleWrapper(env, scale=reward_scale)

    if action_mask:
        env = LegalActionMaskWrapper(env)

    if flatten_obs:
        env = FlattenObservationWrapper(env)

    return env
