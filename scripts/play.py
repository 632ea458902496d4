#!/usr/bin/env python3
"""
文本模式对局脚本

Usage:
    python scripts/play.py                    # 随机发牌
    python scripts/play.py --seed 42 --draw 3 # 指定种子，翻三张
    python scripts/play.py --daily            # 每日挑战
    python scripts/play.py --watch --games 5  # 观看提示智能体自动对局
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional
import time

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from core import GameConfig, KlondikeGame, Move, MoveKind, daily_seed
from evaluation import GameStatistics, HintAgent, analyze

logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
)
logger = logging.getLogger(__name__)

HELP = "Commands: <n> play move n, d draw/recycle, u undo, r redo, h hint, a analysis, q quit"


def parse_args():
    parser = argparse.ArgumentParser(description="Klondike Play")

    parser.add_argument("--seed", type=int, default=None, help="Deal seed")
    parser.add_argument("--daily", action="store_true", help="Play today's daily challenge")
    parser.add_argument("--draw", type=int, default=1, choices=[1, 3], help="Cards per draw")
    parser.add_argument("--watch", action="store_true", help="Let the hint agent play")
    parser.add_argument("--games", type=int, default=1, help="Number of games")
    parser.add_argument("--delay", type=float, default=0.2, help="Delay between moves when watching")
    parser.add_argument("--max-steps", type=int, default=1000, help="Step limit when watching")
    parser.add_argument("--config", type=str, help="JSON game config")
    parser.add_argument("--stats", type=str, help="JSON file to load/save statistics")

    return parser.parse_args()


def load_config(args) -> GameConfig:
    if args.config:
        with open(args.config) as f:
            config = GameConfig.from_dict(json.load(f))
    else:
        config = GameConfig(draw_mode=args.draw)
    return config


def load_stats(path: Optional[str]) -> GameStatistics:
    if path and Path(path).exists():
        with open(path) as f:
            return GameStatistics.from_dict(json.load(f))
    return GameStatistics()


def save_stats(stats: GameStatistics, path: Optional[str]):
    if path:
        with open(path, "w") as f:
            json.dump(stats.to_dict(), f, indent=2)


def print_moves(moves: List[Move]):
    """打印合法移动 (牌库操作用 d 执行)"""
    for i, move in enumerate(moves):
        if not move.is_stock_action:
            print(f"  {i:2d}: {move}")


def find_stock_move(moves: List[Move]) -> Optional[Move]:
    for move in moves:
        if move.kind in (MoveKind.DRAW, MoveKind.RECYCLE):
            return move
    return None


def watch_game(game: KlondikeGame, args) -> bool:
    """提示智能体自动对局"""
    agent = HintAgent()
    steps = 0
    while not game.is_won() and steps < args.max_steps:
        move = agent.act(game.board, game.legal_moves())
        if move is None:
            print("No productive moves left.")
            break
        game.apply_move(move).unwrap()
        steps += 1
        print(f"\n{agent.name}: {move}")
        print(game.board.pretty())
        time.sleep(args.delay)
    return game.is_won()


def play_interactive(game: KlondikeGame) -> Optional[bool]:
    """
    交互对局

    Returns:
        是否获胜；中途退出返回 None
    """
    hint = HintAgent()
    print(HELP)

    while not game.is_won():
        print("\n" + game.board.pretty())
        moves = game.legal_moves()
        print_moves(moves)

        choice = input("\n> ").strip().lower()
        if choice == "q":
            return None
        if choice == "d":
            move = find_stock_move(moves)
            if move is None:
                print("Stock and waste are both empty")
                continue
        elif choice == "u":
            result = game.undo()
            if not result.ok:
                print(result.error)
            continue
        elif choice == "r":
            result = game.redo()
            if not result.ok:
                print(result.error)
            continue
        elif choice == "h":
            print(f"Hint: {hint.act(game.board, moves) or 'none'}")
            continue
        elif choice == "a":
            analysis = analyze(game.board, game.config)
            print(f"Win probability: {analysis.win_probability:.0%}  Blocked cards: {analysis.blocked_cards}")
            for insight in analysis.insights:
                print(f"  - {insight}")
            print(analysis.recommendation)
            continue
        else:
            try:
                move = moves[int(choice)]
            except (ValueError, IndexError):
                print(HELP)
                continue

        result = game.apply_move(move)
        if not result.ok:
            print(f"Rejected: {result.error}")
        elif result.execution.revealed:
            print(f"Revealed {result.execution.revealed}")

    print("\n" + game.board.pretty())
    return True


def main():
    args = parse_args()
    config = load_config(args)
    stats = load_stats(args.stats)
    game = KlondikeGame(config)

    print("=" * 50)
    print(f"Klondike (draw {config.draw_mode})")
    print("=" * 50)

    for game_idx in range(args.games):
        if args.daily:
            seed = daily_seed()
        elif args.seed is not None:
            seed = args.seed + game_idx
        else:
            seed = None
        game.new_game(seed)

        if args.watch:
            print(game.board.pretty())
            won = watch_game(game, args)
        else:
            won = play_interactive(game)
            if won is None:
                print("Quit")
                break

        board = game.board
        stats.record_game(won, board.score, board.moves, board.foundation_count(), seed)
        print("\n" + "=" * 50)
        print("You won!" if won else "Game over")
        print(f"Score: {board.score}  Moves: {board.moves}")
        print(f"Played: {stats.games_played}  Win rate: {stats.win_rate:.0%}  "
              f"Streak: {stats.current_streak} (best {stats.best_streak})")
        print("=" * 50)

    save_stats(stats, args.stats)


if __name__ == "__main__":
    main()
