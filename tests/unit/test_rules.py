"""规则引擎测试"""
import numpy as np
import pytest

from core.board import Phase
from core.cards import str_to_card
from core.config import GameConfig
from core.errors import (
    CardNotFound,
    EmptySource,
    GameFinished,
    InvalidMove,
    RuleViolation,
)
from core.game import KlondikeGame
from core.moves import Move, MoveKind
from core.rules import RuleEngine


def up(*ids):
    cards = [str_to_card(i) for i in ids]
    for c in cards:
        c.face_up = True
    return cards


class TestIsValidRun:
    """牌段检测测试"""

    def test_single_card(self):
        assert RuleEngine.is_valid_run(up("7♣"))

    def test_alternating_descending(self):
        assert RuleEngine.is_valid_run(up("K♠", "Q♥", "J♣", "10♦"))

    def test_same_color_breaks(self):
        assert not RuleEngine.is_valid_run(up("9♠", "8♣"))

    def test_gap_breaks(self):
        assert not RuleEngine.is_valid_run(up("9♠", "7♥"))

    def test_face_down_breaks(self):
        cards = up("9♠", "8♥")
        cards[0].face_up = False
        assert not RuleEngine.is_valid_run(cards)

    def test_empty(self):
        assert not RuleEngine.is_valid_run([])

    def test_movable_run_starts(self):
        column = [str_to_card("2♦")] + up("6♠", "9♠", "8♥", "7♣")
        assert RuleEngine.movable_run_starts(column) == [2, 3, 4]


class TestPlacement:
    """放置规则测试"""

    def test_empty_column_accepts_king(self):
        assert RuleEngine.can_place_on_tableau(up("K♥")[0], [])

    def test_empty_column_rejects_queen(self):
        assert not RuleEngine.can_place_on_tableau(up("Q♥")[0], [])

    def test_opposite_color_one_lower(self):
        assert RuleEngine.can_place_on_tableau(up("6♥")[0], up("7♣"))

    def test_same_color_rejected(self):
        assert not RuleEngine.can_place_on_tableau(up("6♦")[0], up("7♥"))

    def test_face_down_top_rejected(self):
        column = [str_to_card("7♣")]
        assert not RuleEngine.can_place_on_tableau(up("6♥")[0], column)

    def test_empty_foundation_accepts_ace(self):
        assert RuleEngine.can_place_on_foundation(up("A♦")[0], [], 2)

    def test_empty_foundation_rejects_two(self):
        assert not RuleEngine.can_place_on_foundation(up("2♦")[0], [], 2)

    def test_foundation_wrong_suit_index(self):
        assert not RuleEngine.can_place_on_foundation(up("A♦")[0], [], 0)

    def test_foundation_sequence(self):
        pile = up("A♣", "2♣")
        assert RuleEngine.can_place_on_foundation(up("3♣")[0], pile, 3)
        assert not RuleEngine.can_place_on_foundation(up("4♣")[0], pile, 3)


class TestCheck:
    """RuleEngine.check 测试"""

    def test_draw_from_empty_stock(self, make_board):
        board = make_board(rest="waste")
        with pytest.raises(EmptySource):
            RuleEngine.check(board, Move.draw())

    def test_draw_plan_respects_draw_mode(self, make_board):
        board = make_board(stock=["2♠", "3♠"], rest="waste", draw_mode=3)
        plan = RuleEngine.check(board, Move.draw())
        assert plan.num_cards == 2

    def test_draw_wrong_card_id(self, make_board):
        board = make_board(stock=["5♥"])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.DRAW, "6♥"))

    def test_recycle_needs_empty_stock(self, make_board):
        board = make_board(waste=["4♦"])
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, Move.recycle())

    def test_recycle_needs_waste(self, make_board):
        board = make_board(foundations={"♠": 13, "♥": 13, "♦": 13, "♣": 12}, tableau=[["K♣"]])
        with pytest.raises(EmptySource):
            RuleEngine.check(board, Move.recycle())

    def test_waste_card_missing_id(self, make_board):
        board = make_board(waste=["A♠"])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_FOUNDATION))

    def test_waste_not_top(self, make_board):
        board = make_board(waste=["A♠", "5♦"])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_FOUNDATION, "A♠"))

    def test_waste_empty(self, make_board):
        board = make_board(tableau=[["A♠"]])
        with pytest.raises(EmptySource):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_FOUNDATION, "A♠"))

    def test_unknown_card(self, make_board):
        board = make_board(waste=["A♠"])
        with pytest.raises(CardNotFound):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_FOUNDATION, "Z♠"))

    def test_waste_to_foundation_resolves_target(self, make_board):
        board = make_board(waste=["A♥"])
        plan = RuleEngine.check(board, Move(MoveKind.WASTE_TO_FOUNDATION, "A♥"))
        assert plan.target_index == 1

    def test_waste_to_wrong_foundation(self, make_board):
        board = make_board(waste=["A♥"])
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_FOUNDATION, "A♥", None, 0))

    def test_waste_to_tableau_needs_target(self, make_board):
        board = make_board(waste=["K♥"])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_TABLEAU, "K♥"))

    def test_target_out_of_range(self, make_board):
        board = make_board(waste=["K♥"])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.WASTE_TO_TABLEAU, "K♥", None, 7))

    def test_king_onto_non_empty_column(self, make_board):
        board = make_board(tableau=[["5♣"], ["K♥"]])
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "K♥", 1, 0))

    def test_face_down_card_cannot_move(self, make_board):
        board = make_board(tableau=[["#Q♥", "3♠"], ["K♣"]])
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "Q♥", 0, 1))

    def test_same_column(self, make_board):
        board = make_board(tableau=[["K♣", "Q♥"]])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "Q♥", 0, 0))

    def test_wrong_source_column(self, make_board):
        board = make_board(tableau=[["9♠"], ["10♥"], ["8♦"]])
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "9♠", 2, 1))

    def test_empty_source_column(self, make_board):
        board = make_board(tableau=[[], ["10♥"]])
        with pytest.raises(EmptySource):
            RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "9♠", 0, 1))

    def test_run_plan(self, make_board):
        board = make_board(tableau=[["#2♣", "9♠", "8♥"], ["10♥"]])
        plan = RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "9♠", 0, 1))
        assert plan.position == 1
        assert plan.num_cards == 2

    def test_tableau_to_foundation_only_top(self, make_board):
        board = make_board(tableau=[["2♠", "A♥"]], foundations={"♠": 1})
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, Move(MoveKind.TABLEAU_TO_FOUNDATION, "2♠", 0))

    def test_foundation_to_tableau_disabled(self, make_board):
        board = make_board(foundations={"♥": 7}, tableau=[["8♠"]])
        config = GameConfig(allow_foundation_to_tableau=False)
        move = Move(MoveKind.FOUNDATION_TO_TABLEAU, "7♥", 1, 0)
        assert RuleEngine.is_legal(board, move)
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, move, config)

    def test_foundation_to_tableau_not_top(self, make_board):
        board = make_board(foundations={"♥": 7}, tableau=[["7♠"]])
        with pytest.raises(RuleViolation):
            RuleEngine.check(board, Move(MoveKind.FOUNDATION_TO_TABLEAU, "6♥", 1, 0))

    def test_won_board_rejects(self, make_board):
        board = make_board(foundations={"♠": 13, "♥": 13, "♦": 13, "♣": 13})
        assert board.phase == Phase.WON
        with pytest.raises(GameFinished):
            RuleEngine.check(board, Move.draw())

    def test_game_finished_is_rule_violation(self):
        assert issubclass(GameFinished, RuleViolation)

    def test_int_kind_accepted(self, make_board):
        board = make_board(waste=["A♥"])
        move = Move(int(MoveKind.WASTE_TO_FOUNDATION), "A♥")
        assert RuleEngine.is_legal(board, move)

    def test_unknown_kind(self, make_board):
        board = make_board()
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, Move(99))

    def test_check_does_not_mutate(self, make_board):
        board = make_board(tableau=[["5♣"], ["K♥"]], waste=["A♠"])
        before = board.snapshot()
        RuleEngine.is_legal(board, Move(MoveKind.TABLEAU_TO_TABLEAU, "K♥", 1, 0))
        RuleEngine.is_legal(board, Move(MoveKind.WASTE_TO_FOUNDATION, "A♠"))
        assert board == before


class TestIndexType:
    """索引类型检查"""

    MALFORMED = [
        Move(MoveKind.WASTE_TO_TABLEAU, "A♠", None, "0"),
        Move(MoveKind.TABLEAU_TO_TABLEAU, "Q♥", "0", 1),
        Move(MoveKind.FOUNDATION_TO_TABLEAU, "A♦", "2", 0),
        Move(MoveKind.WASTE_TO_FOUNDATION, "A♠", None, 0.0),
        Move(MoveKind.TABLEAU_TO_FOUNDATION, "Q♥", 0, 1.0),
        Move(MoveKind.TABLEAU_TO_TABLEAU, "Q♥", 0, True),
    ]

    @pytest.fixture
    def board(self, make_board):
        return make_board(tableau=[["K♣", "Q♥"], ["5♠"]], waste=["A♠"], foundations={"♦": 1})

    @pytest.mark.parametrize("move", MALFORMED)
    def test_check_rejects(self, board, move):
        with pytest.raises(InvalidMove):
            RuleEngine.check(board, move)

    @pytest.mark.parametrize("move", MALFORMED)
    def test_game_reports_error(self, board, move):
        game = KlondikeGame()
        game.board = board
        before = board.snapshot()
        result = game.apply_move(move)
        assert not result.ok
        assert isinstance(result.error, InvalidMove)
        assert game.board == before

    def test_numpy_integer_accepted(self, board):
        move = Move(MoveKind.WASTE_TO_FOUNDATION, "A♠", None, np.int64(0))
        assert RuleEngine.is_legal(board, move)
