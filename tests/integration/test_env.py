"""环境层测试"""
import pytest
import numpy as np

from core.dealer import deal
from core.game import legal_moves
from core.moves import Move, MoveKind


class TestObservationBuilder:
    """ObservationBuilder 测试"""

    def test_build_fresh_deal(self):
        from env.observation import ObservationBuilder

        obs = ObservationBuilder().build(deal(seed=42))

        assert obs.tableau.shape == (7, 52)
        # 每列只有顶牌是明牌
        assert obs.tableau.sum() == 7
        assert obs.hidden.shape == (7,)
        assert obs.hidden[0] == 0.0
        assert obs.hidden[6] == pytest.approx(1.0)
        assert obs.foundations.sum() == 0
        assert obs.waste_top.sum() == 0
        assert obs.piles[0] == pytest.approx(1.0)
        assert len(obs.legal_moves) > 0

    def test_waste_top_and_foundations(self, make_board):
        from core.cards import str_to_card
        from env.observation import ObservationBuilder

        board = make_board(foundations={"♣": 13}, waste=["7♦"])
        obs = ObservationBuilder().build(board)
        assert obs.waste_top[str_to_card("7♦").index] == 1
        assert obs.waste_top.sum() == 1
        assert obs.foundations[3] == pytest.approx(1.0)

    def test_hidden_cards_not_encoded(self, make_board):
        from core.cards import str_to_card
        from env.observation import ObservationBuilder

        board = make_board(tableau=[["#Q♥", "3♠"]])
        obs = ObservationBuilder().build(board)
        assert obs.tableau[0, str_to_card("Q♥").index] == 0
        assert obs.tableau[0, str_to_card("3♠").index] == 1

    def test_to_dict(self):
        from env.observation import ObservationBuilder

        obs_dict = ObservationBuilder().build(deal(seed=1)).to_dict()
        assert set(obs_dict) == {"tableau", "hidden", "foundations", "waste_top", "piles"}

    def test_to_flat_array(self):
        from env.observation import ObservationBuilder

        flat = ObservationBuilder().build(deal(seed=1)).to_flat_array()
        assert isinstance(flat, np.ndarray)
        assert flat.shape == (ObservationBuilder.FLAT_DIM,)
        assert ObservationBuilder.FLAT_DIM == 429


class TestMoveEncoder:
    """MoveEncoder 测试"""

    def test_num_actions(self):
        from env.observation import MoveEncoder

        assert MoveEncoder().num_actions == 591

    def test_encode_stock_actions(self):
        from env.observation import MoveEncoder

        encoder = MoveEncoder()
        board = deal(seed=1)
        assert encoder.encode(Move.draw(), board) == 0
        assert encoder.encode(Move.recycle(), board) == 1

    def test_encode_run_by_length(self, make_board):
        from env.observation import MoveEncoder

        encoder = MoveEncoder()
        board = make_board(tableau=[["#2♣", "9♠", "8♥"], ["10♥"]])
        idx = encoder.encode(Move(MoveKind.TABLEAU_TO_TABLEAU, "9♠", 0, 1), board)
        decoded = encoder.decode(idx, board)
        assert decoded == Move(MoveKind.TABLEAU_TO_TABLEAU, "9♠", 0, 1)

    def test_unknown_card(self):
        from env.observation import MoveEncoder

        encoder = MoveEncoder()
        assert encoder.encode(Move(MoveKind.TABLEAU_TO_TABLEAU, "Z♠", 0, 1), deal(seed=1)) == -1

    def test_decode_invalid_index(self):
        from env.observation import MoveEncoder

        assert MoveEncoder().decode(10_000, deal(seed=1)) is None

    def test_decode_missing_card(self, make_board):
        from env.observation import MoveEncoder

        encoder = MoveEncoder()
        board = make_board()
        idx = encoder.encode(Move(MoveKind.WASTE_TO_FOUNDATION, "A♠"), board)
        assert encoder.decode(idx, board) is None

    @pytest.mark.parametrize("seed", range(5))
    def test_legal_moves_round_trip(self, seed):
        from core.rules import RuleEngine
        from env.observation import MoveEncoder

        encoder = MoveEncoder()
        board = deal(seed=seed)
        legal = legal_moves(board)
        indices = encoder.get_legal_action_indices(legal, board)
        assert len(indices) == len(legal)
        assert len(set(indices)) == len(indices)

        for move, idx in zip(legal, indices):
            decoded = encoder.decode(idx, board)
            assert decoded.kind == move.kind
            assert decoded.card_id == move.card_id
            assert RuleEngine.is_legal(board, decoded)

    def test_legal_mask(self):
        from env.observation import MoveEncoder

        encoder = MoveEncoder()
        board = deal(seed=3)
        legal = legal_moves(board)
        mask = encoder.build_legal_mask(legal, board)
        assert mask.shape == (591,)
        assert mask.sum() == len(legal)

    def test_singleton(self):
        from env.observation import get_move_encoder

        assert get_move_encoder() is get_move_encoder()


class TestRewardCalculator:
    """RewardCalculator 测试"""

    def test_sparse_reward_not_won(self):
        from env.reward import create_reward_calculator

        calc = create_reward_calculator("sparse")
        assert calc.compute(deal(seed=1), 0) == 0.0

    def test_sparse_reward_won(self, make_board):
        from env.reward import create_reward_calculator

        calc = create_reward_calculator("sparse")
        board = make_board(foundations={"♠": 13, "♥": 13, "♦": 13, "♣": 13})
        assert calc.compute(board) == 1.0

    def test_shaped_reward(self, make_board):
        from env.reward import RewardCalculator, RewardConfig

        calc = RewardCalculator(RewardConfig(score_scale=0.1, step_penalty=-0.01))
        board = make_board()
        board.score = 15
        assert calc.compute(board, prev_score=5) == pytest.approx(1.0 - 0.01)

    def test_config_from_dict(self):
        from env.reward import RewardConfig, RewardType

        config = RewardConfig.from_dict({"reward_type": "sparse", "win_reward": 5.0, "bogus": 1})
        assert config.reward_type == RewardType.SPARSE
        assert config.win_reward == 5.0


class TestKlondikeEnv:
    """KlondikeEnv 测试"""

    def test_reset(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        obs, info = env.reset(seed=42)

        assert set(obs) == {"tableau", "hidden", "foundations", "waste_top", "piles"}
        assert env.observation_space.contains(obs)
        assert info["phase"] == "playing"
        assert info["moves"] == 0
        assert info["legal_action_mask"].sum() == len(info["legal_moves"])

    def test_reset_reproducible(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=7)
        first = env.board.snapshot()
        env.reset(seed=7)
        assert env.board == first

    def test_step_index(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        obs, info = env.reset(seed=42)
        action = info["legal_action_indices"][0]
        obs, reward, terminated, truncated, info = env.step(action)

        assert info["moves"] == 1
        assert not truncated
        assert "execution" in info

    def test_step_move(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=42)
        stock = len(env.board.stock)
        _, _, _, _, info = env.step(Move.draw())
        assert len(env.board.stock) == stock - 1
        assert info["execution"].cards_moved == [env.board.waste[-1].id]

    def test_illegal_move_penalty(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=42)
        before = env.board.snapshot()
        _, reward, terminated, truncated, info = env.step(Move.recycle())

        assert reward == -1.0
        assert not terminated and not truncated
        assert "error" in info
        assert env.board == before

    def test_undecodable_index_penalty(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=42)
        before = env.board.snapshot()
        # 开局废牌堆为空，废牌 -> 基础堆无法解码
        _, reward, _, _, info = env.step(9)
        assert reward == -1.0
        assert info["error"] == "Invalid action"
        assert env.board == before

    def test_out_of_range_action(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=1)
        with pytest.raises(ValueError):
            env.step(591)

    def test_step_before_reset(self):
        from env import KlondikeEnv

        with pytest.raises(RuntimeError):
            KlondikeEnv().step(0)

    def test_win_terminates(self, make_board):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=1)
        env.game.board = make_board(foundations={"♠": 13, "♥": 13, "♦": 13, "♣": 12}, tableau=[["K♣"]])
        _, reward, terminated, _, info = env.step(Move(MoveKind.TABLEAU_TO_FOUNDATION, "K♣", 0))

        assert terminated
        assert info["won"]
        assert info["phase"] == "won"
        assert reward == pytest.approx(1.0 + 0.1)
        assert info["legal_moves"] == []

    def test_draw_three(self):
        from env import KlondikeEnv

        env = KlondikeEnv(draw_mode=3)
        env.reset(seed=2)
        env.step(Move.draw())
        assert len(env.board.waste) == 3

    def test_random_play(self):
        from env import KlondikeEnv

        env = KlondikeEnv()
        env.reset(seed=11)
        for _ in range(100):
            _, reward, terminated, truncated, info = env.step(env.sample_action())
            assert reward != -1.0
            env.board.verify()
            if terminated:
                break

    def test_render_ansi(self):
        from env import KlondikeEnv

        env = KlondikeEnv(render_mode="ansi")
        env.reset(seed=42)
        output = env.render()
        assert "Phase: playing" in output
        assert "Stock [24]" in output

    def test_make_env(self):
        from env import make_env, KlondikeEnv

        assert isinstance(make_env(draw_mode=3), KlondikeEnv)


class TestWrappers:
    """包装器测试"""

    def test_flatten_observation_wrapper(self):
        from env import KlondikeEnv, FlattenObservationWrapper

        env = FlattenObservationWrapper(KlondikeEnv())
        obs, _ = env.reset(seed=42)
        assert obs.shape == (429,)
        assert obs.dtype == np.float32
        assert env.observation_space.shape == (429,)

    def test_legal_action_mask_wrapper(self):
        from env import KlondikeEnv, LegalActionMaskWrapper

        env = LegalActionMaskWrapper(KlondikeEnv())
        _, info = env.reset(seed=42)
        assert info["action_mask"].shape == (591,)
        assert np.array_equal(info["action_mask"], info["legal_action_mask"])

    def test_record_episode_statistics(self):
        from env import KlondikeEnv, RecordEpisodeStatistics, TimeLimit

        env = RecordEpisodeStatistics(TimeLimit(KlondikeEnv(), max_steps=5))
        env.reset(seed=3)
        info = {}
        for _ in range(5):
            _, _, terminated, truncated, info = env.step(env.unwrapped.sample_action())
            if terminated or truncated:
                break

        assert "episode" in info
        assert info["episode"]["l"] == 5
        assert "won" in info["episode"]

    def test_time_limit(self):
        from env import KlondikeEnv, TimeLimit

        env = TimeLimit(KlondikeEnv(), max_steps=3)
        env.reset(seed=4)
        truncated = False
        steps = 0
        info = {}
        while not truncated:
            _, _, _, truncated, info = env.step(Move.draw())
            steps += 1
        assert steps == 3
        assert info["truncation"] == "max_steps"

    def test_time_limit_stalled(self, make_board):
        from env import KlondikeEnv, TimeLimit

        env = TimeLimit(KlondikeEnv(), max_steps=500, max_idle_recycles=2)
        env.reset(seed=1)
        env.unwrapped.game.board = make_board(tableau=[["3♠"], ["5♠"], ["7♠"], ["9♠"], ["J♠"], ["3♣"], ["5♣"]])

        # 只翻牌和回收，基础堆永远不会增加
        truncated = False
        recycles = 0
        info = {}
        while not truncated:
            move = next(m for m in env.unwrapped.get_legal_actions() if m.is_stock_action)
            recycles += move.kind == MoveKind.RECYCLE
            _, _, _, truncated, info = env.step(move)
        assert recycles == 2
        assert info["truncation"] == "stalled"

    def test_foundation_progress_resets_stall(self, make_board):
        from env import KlondikeEnv, TimeLimit

        env = TimeLimit(KlondikeEnv(), max_steps=500, max_idle_recycles=2)
        env.reset(seed=1)
        env.unwrapped.game.board = make_board(tableau=[["A♠"], ["K♥"]], rest="waste")

        _, _, _, truncated, _ = env.step(Move.recycle())
        assert not truncated
        env.step(Move(MoveKind.TABLEAU_TO_FOUNDATION, "A♠", 0))
        while env.unwrapped.board.stock:
            env.step(Move.draw())
        _, _, _, truncated, info = env.step(Move.recycle())
        assert not truncated
        assert "truncation" not in info

    def test_reward_scale(self):
        from env import KlondikeEnv, RewardScaleWrapper

        env = RewardScaleWrapper(KlondikeEnv(), scale=2.0)
        env.reset(seed=42)
        _, reward, _, _, _ = env.step(Move.recycle())
        assert reward == -2.0

    def test_wrap_env(self):
        from env import KlondikeEnv, wrap_env

        env = wrap_env(KlondikeEnv(), flatten_obs=True, time_limit=10)
        obs, info = env.reset(seed=5)
        assert obs.shape == (429,)
        assert "action_mask" in info

    def test_wrap_env_records_truncated_episode(self):
        from env import KlondikeEnv, wrap_env

        env = wrap_env(KlondikeEnv(), time_limit=4)
        env.reset(seed=5)
        info = {}
        for _ in range(4):
            _, _, _, truncated, info = env.step(Move.draw())
        assert truncated
        assert info["truncation"] == "max_steps"
        assert info["episode"]["l"] == 4
