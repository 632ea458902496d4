"""随机对局下的引擎性质测试"""
import random

import pytest

from core.board import Phase
from core.cards import DECK_SIZE
from core.errors import GameFinished, MoveError
from core.game import KlondikeGame
from core.moves import Move, MoveKind
from core.rules import RuleEngine


def random_walk(seed, steps=150):
    """按种子随机走 steps 步，逐步产出 (game, 走之前的快照, move)"""
    rng = random.Random(seed)
    game = KlondikeGame()
    game.new_game(seed=seed)
    for _ in range(steps):
        legal = game.legal_moves()
        if not legal:
            break
        move = rng.choice(legal)
        before = game.board.snapshot()
        assert game.apply_move(move).ok
        yield game, before, move


def assert_conservation(board):
    ids = [c.id for c in board.all_cards()]
    assert len(ids) == DECK_SIZE
    assert len(set(ids)) == DECK_SIZE


class TestConservation:
    """52 张牌守恒"""

    @pytest.mark.parametrize("seed", range(8))
    def test_every_step(self, seed):
        for game, _, _ in random_walk(seed):
            assert_conservation(game.board)
            game.board.verify()

    @pytest.mark.parametrize("seed", range(4))
    def test_foundations_ordered(self, seed):
        for game, _, _ in random_walk(seed):
            for f_idx, pile in enumerate(game.board.foundations):
                assert [c.value for c in pile] == list(range(1, len(pile) + 1))
                assert all(c.suit.index == f_idx for c in pile)


class TestSoundness:
    """枚举出的移动都合法"""

    @pytest.mark.parametrize("seed", range(6))
    def test_enumerated_moves_legal(self, seed):
        for game, _, _ in random_walk(seed, steps=60):
            board = game.board
            for move in game.legal_moves():
                assert RuleEngine.is_legal(board, move), str(move)

    @pytest.mark.parametrize("seed", range(3))
    def test_enumerator_read_only(self, seed):
        for game, _, _ in random_walk(seed, steps=40):
            before = game.board.snapshot()
            game.legal_moves()
            assert game.board == before


class TestUndo:
    """撤销还原性质"""

    @pytest.mark.parametrize("seed", range(6))
    def test_undo_restores_previous(self, seed):
        for game, before, _ in random_walk(seed, steps=80):
            after = game.board.snapshot()
            assert game.undo().ok
            assert game.board == before
            assert game.redo().ok
            assert game.board == after

    def test_undo_to_deal(self):
        game = KlondikeGame()
        initial = game.new_game(seed=17).snapshot()
        rng = random.Random(17)
        count = 0
        for _ in range(50):
            legal = game.legal_moves()
            if not legal:
                break
            game.apply_move(rng.choice(legal))
            count += 1

        for _ in range(count):
            assert game.undo().ok
        assert game.board == initial
        assert not game.can_undo


class TestRejection:
    """非法移动不改变牌局"""

    ILLEGAL = [
        Move(MoveKind.WASTE_TO_FOUNDATION, "A♠"),
        Move(MoveKind.TABLEAU_TO_TABLEAU, "K♠", 0, 0),
        Move(MoveKind.FOUNDATION_TO_TABLEAU, "A♥", 1, 0),
        Move(MoveKind.TABLEAU_TO_FOUNDATION, "Z♣", 0),
    ]

    @pytest.mark.parametrize("seed", range(4))
    def test_rejections_idempotent(self, seed):
        for game, _, _ in random_walk(seed, steps=40):
            for move in self.ILLEGAL:
                if game.is_legal(move):
                    continue
                before = game.board.snapshot()
                depth = len(game.history)
                first = game.apply_move(move)
                second = game.apply_move(move)
                assert not first.ok and not second.ok
                assert isinstance(first.error, MoveError)
                assert type(first.error) is type(second.error)
                assert game.board == before
                assert len(game.history) == depth


class TestTerminal:
    """胜局终止性质"""

    def test_won_board_accepts_nothing(self, make_board):
        game = KlondikeGame()
        game.board = make_board(foundations={"♠": 13, "♥": 13, "♦": 13, "♣": 13})
        assert game.board.phase == Phase.WON
        assert game.legal_moves() == []

        for f_idx, symbol in enumerate("♠♥♦♣"):
            result = game.apply_move(Move(MoveKind.FOUNDATION_TO_TABLEAU, f"K{symbol}", f_idx, 0))
            assert isinstance(result.error, GameFinished)
        assert isinstance(game.apply_move(Move.draw()).error, GameFinished)
