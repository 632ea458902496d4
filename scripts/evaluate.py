#!/usr/bin/env python3
"""
评估脚本

Usage:
    python scripts/evaluate.py --agent hint --games 100
    python scripts/evaluate.py --compare --games 200 --draw 3
    python scripts/evaluate.py --agent random --seed-start 1000 --output results.json
"""
import argparse
import logging
import sys
from pathlib import Path
from dataclasses import asdict
import json

# 添加项目根目录到路径
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

from env import KlondikeEnv, TimeLimit
from evaluation import Evaluator, HintAgent, RandomAgent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args():
    parser = argparse.ArgumentParser(description="Klondike Evaluation")

    parser.add_argument("--compare", action="store_true", help="Compare hint and random agents")
    parser.add_argument(
        "--agent",
        type=str,
        default="hint",
        choices=["hint", "random"],
        help="Agent to evaluate",
    )

    parser.add_argument("--games", type=int, default=100, help="Number of games")
    parser.add_argument("--seed-start", type=int, default=0, help="First deal seed")
    parser.add_argument("--draw", type=int, default=1, choices=[1, 3], help="Cards per draw")
    parser.add_argument("--max-steps", type=int, default=1000, help="Step limit per game")
    parser.add_argument(
        "--max-idle-recycles",
        type=int,
        default=3,
        help="Stop a game after this many waste recycles without foundation progress",
    )

    parser.add_argument("--output", type=str, help="Output file for results")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")

    return parser.parse_args()


def make_agent(name: str, seed: int):
    if name == "random":
        return RandomAgent("random", seed=seed)
    return HintAgent("hint")


def build_evaluator(args) -> Evaluator:
    def env_fn():
        return TimeLimit(
            KlondikeEnv(draw_mode=args.draw),
            max_steps=args.max_steps,
            max_idle_recycles=args.max_idle_recycles,
        )
    return Evaluator(env_fn=env_fn, max_steps=args.max_steps)


def evaluate_single(args):
    """评估单个智能体"""
    logger.info(f"Evaluating agent: {args.agent} (draw {args.draw})")

    agent = make_agent(args.agent, args.seed_start)
    evaluator = build_evaluator(args)
    seeds = list(range(args.seed_start, args.seed_start + args.games))
    result = evaluator.evaluate(agent, seeds=seeds, verbose=args.verbose)
    stats = evaluator.statistics

    logger.info("=" * 50)
    logger.info("Evaluation Results")
    logger.info("=" * 50)
    logger.info(f"Win Rate: {result.win_rate:.2%}")
    logger.info(f"Average Score: {result.avg_score:.1f}")
    logger.info(f"Average Moves: {result.avg_moves:.1f}")
    logger.info(f"Average Foundation Cards: {result.avg_foundation_cards:.1f}")
    logger.info(f"Best Streak: {stats.best_streak}")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump({"result": asdict(result), "statistics": stats.to_dict()}, f, indent=2)
        logger.info(f"Results saved to {args.output}")

    return result


def compare_agents(args):
    """在相同的牌上比较提示智能体和随机智能体"""
    logger.info(f"Comparing hint vs random over {args.games} deals")

    evaluator = build_evaluator(args)
    seeds = list(range(args.seed_start, args.seed_start + args.games))
    result = evaluator.compare(
        HintAgent("hint"), RandomAgent("random", seed=args.seed_start), seeds=seeds,
    )

    logger.info("=" * 50)
    logger.info("Comparison Results")
    logger.info("=" * 50)
    logger.info(f"Hint win rate: {result['agent1_win_rate']:.2%} (avg score {result['agent1_avg_score']:.1f})")
    logger.info(f"Random win rate: {result['agent2_win_rate']:.2%} (avg score {result['agent2_avg_score']:.1f})")
    logger.info("=" * 50)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result, f, indent=2)

    return result


def main():
    args = parse_args()

    if args.compare:
        compare_agents(args)
    else:
        evaluate_single(args)


if __name__ == "__main__":
    main()
