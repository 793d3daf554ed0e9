"""
Approval CLI - Command-line interface for the engine.

Usage:
    approval validate [content_file]        Validate a content bundle
    approval stages [content_file]          List stages and unlock requirements
    approval simulate --stage stage_1       Auto-play a stage with a bot policy
    approval serve --port 8000              Run the HTTP API
"""

import argparse
import logging
import sys

from .content import ContentBundle, ContentValidationError, load_content, validate_content
from .games.starter import create_starter_content


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Approval - Rules engine for Approval Monster",
        prog="approval",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a content bundle")
    validate_parser.add_argument("content_file", nargs="?", help="JSON content (default: starter pack)")

    # Stages command
    stages_parser = subparsers.add_parser("stages", help="List stages")
    stages_parser.add_argument("content_file", nargs="?", help="JSON content (default: starter pack)")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Auto-play a stage")
    simulate_parser.add_argument("--content", dest="content_file", help="JSON content (default: starter pack)")
    simulate_parser.add_argument("--stage", default="stage_1", help="Stage id")
    simulate_parser.add_argument("--seed", type=int, default=None, help="RNG seed for the first game")
    simulate_parser.add_argument("--games", type=int, default=1, help="Number of games")
    simulate_parser.add_argument(
        "--policy",
        default="greedy",
        choices=["random", "first", "greedy"],
        help="Bot policy",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    args = parser.parse_args()
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        cmd_validate(args)
    elif args.command == "stages":
        cmd_stages(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def _load(content_file: str | None) -> ContentBundle:
    if not content_file:
        return create_starter_content()
    try:
        return load_content(content_file)
    except ContentValidationError as e:
        print(f"Invalid content: {content_file}")
        for error in e.errors:
            print(f"  - {error}")
        sys.exit(1)


def cmd_validate(args):
    """Validate a content bundle."""
    bundle = _load(args.content_file)
    result = validate_content(bundle)

    print(f"Cards: {len(bundle.cards)}")
    print(f"Stages: {len(bundle.stages)}")

    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        sys.exit(1)

    print("\nContent is valid")


def cmd_stages(args):
    """List stages in authoring order."""
    bundle = _load(args.content_file)
    for stage in bundle.stages:
        goal = "score attack" if stage.is_score_attack else f"target {stage.clear_condition.target_score}"
        requires = ", ".join(stage.required_stage_ids) or "-"
        print(f"{stage.id:<16} {stage.name:<20} {stage.max_turns:>3} turns  {goal:<16} requires: {requires}")


def cmd_simulate(args):
    """Auto-play a stage and print the outcomes."""
    from .bots import POLICIES, run_to_completion
    from .engine_core import GameContext
    from .session import GameLoop

    bundle = _load(args.content_file)
    if bundle.get_stage(args.stage) is None:
        print(f"Error: Unknown stage: {args.stage}")
        sys.exit(1)

    cleared = 0
    scores = []
    for game in range(args.games):
        seed = None if args.seed is None else args.seed + game
        policy_cls = POLICIES[args.policy]
        policy = policy_cls(seed=seed) if args.policy == "random" else policy_cls()

        loop = GameLoop(GameContext.create(bundle, args.stage, seed=seed))
        loop.start()
        result, trace = run_to_completion(loop, policy)

        if result is None:
            print(f"Game {game + 1}: did not finish after {trace.commands} commands")
            continue

        scores.append(result.score)
        cleared += int(result.cleared)
        outcome = "CLEARED" if result.cleared else ("GAME OVER" if result.game_over else "failed")
        print(
            f"Game {game + 1}: {outcome:<9} score={result.score:<8} "
            f"turns={result.turns_played} played={len(trace.cards_played)} "
            f"drafted={len(trace.drafts_taken)}"
        )

    if scores:
        print(f"\n{cleared}/{len(scores)} cleared, best {max(scores)}, average {sum(scores) // len(scores)}")


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "approval.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    main()
