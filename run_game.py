"""
Main game runner for hex conquest.

Builds a game from a scenario file and plays it with automated actors
until a player wins or the turn cap is reached.
"""

import asyncio
import json
import logging
import random
from dataclasses import asdict
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from openai import OpenAIError

from conquest import (
    BoardShape, ConfigurationError, Game, GameState, Player, UnitCatalog,
    apply_env_overrides, generate_board, load_layout, load_options,
)
from actors import ActorContext, LlmActorConfig, create_actor

logger = logging.getLogger(__name__)


class ConquestSimulation:
    """Main simulation orchestrator."""

    def __init__(
        self,
        data_path: str = "data",
        scenario: str = "default",
        log_dir: str = "logs",
        max_turns: Optional[int] = None,
        llm_client: Any = None,
    ):
        self.data_path = Path(data_path)
        self.scenario_name = scenario
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Loading scenario: {scenario}")
        self.options = apply_env_overrides(load_options(self.data_path / "scenarios" / f"{scenario}.yaml"))
        if max_turns is not None:
            self.options.max_turns = max_turns
            self.options.validate()
        self.rng = random.Random(self.options.seed)

        logger.info("Initializing unit catalog...")
        self.catalog = UnitCatalog.load(self._resolve(self.options.catalog_path))

        logger.info("Initializing board...")
        self.players = [Player(id=i, name=p.name) for i, p in enumerate(self.options.players)]
        player_ids = [p.id for p in self.players]
        layout = None
        if self.options.shape == BoardShape.LOAD:
            layout = load_layout(self._resolve(self.options.layout_path), len(self.players))
        board = generate_board(
            self.options.columns,
            self.options.rows,
            player_ids,
            shape=self.options.shape,
            picker=self.options.picker,
            rng=self.rng,
            layout=layout,
            radius=self.options.radius,
        )

        state = GameState.create(board, self.players, self.catalog)
        self.game = Game(
            state,
            win_percentage=self.options.win_percentage,
            on_win=self._handle_win,
            turn_limit=self.options.max_turns,
        )

        logger.info("Initializing actors...")
        llm_config = LlmActorConfig(model=self.options.llm_model)
        for player, player_options in zip(self.players, self.options.players):
            actor = create_actor(
                player_options.actor,
                seed=self.rng.randrange(2**32),
                llm_config=llm_config,
                llm_client=llm_client,
            )
            player.actor = actor
            actor.init(ActorContext(
                player=player,
                game=self.game,
                update_panel=partial(self.game.update_panel, player),
            ))
            if not actor.is_automated:
                logger.warning(f"{player.name} is not automated; the runner stops when their turn comes")

        # Game log
        self.game_log: list[dict] = []
        self.start_time: Optional[datetime] = None

    def _resolve(self, path: str) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.data_path / path

    def _handle_win(self, player: Player):
        logger.info(f"{player.name} conquered more than {self.options.win_percentage}% of the board")

    def initialize(self):
        """Log the starting position."""
        self.start_time = datetime.now()
        stats = self.game.get_stats()
        self._log_event("game_start", {
            "scenario": self.scenario_name,
            "board": stats["board"],
            "players": stats["players"],
        })

        logger.info("Game initialized")
        for name, player_stats in stats["players"].items():
            logger.info(f"  {name}: {player_stats['cells']} cells, {player_stats['territories']} territories")

    def save_layout(self, path: str) -> list[int]:
        return self.game.save_layout(path)

    def run_game(self) -> dict:
        """Run the full game."""
        self.initialize()
        asyncio.run(self.game.start())

        if not self.game.game_over and not self.game.turn_limit_reached():
            logger.warning(f"Stopped on turn {self.game.turns.turn}: {self.game.player.name} needs input")

        for turn_state in self.game.turns.turn_history:
            self._log_event("turn", asdict(turn_state))

        results = self._compile_results()
        self._log_event("game_end", results)
        self._save_game_log()
        return results

    def _compile_results(self) -> dict:
        """Compile final game results."""
        stats = self.game.get_stats()
        return {
            "turns_played": stats["turn"],
            "winner": stats["winner"],
            "players": stats["players"],
            "units": stats["units"],
            "integrity_problems": self.game.check_integrity(),
            "duration": str(datetime.now() - self.start_time) if self.start_time else None,
        }

    def _log_event(self, event_type: str, data: dict):
        """Log a game event."""
        self.game_log.append({
            "timestamp": datetime.now().isoformat(),
            "event": event_type,
            "data": data,
        })

    def _save_game_log(self) -> Path:
        """Save game log to file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_path = self.log_dir / f"game_{timestamp}.json"

        with open(log_path, "w") as f:
            json.dump(self.game_log, f, indent=2, default=str)

        logger.info(f"Game log saved to: {log_path}")
        return log_path


def main():
    """Run a hex conquest game."""
    import argparse

    parser = argparse.ArgumentParser(description="Hex Conquest Simulation")
    parser.add_argument("--scenario", default="default", help="Scenario name")
    parser.add_argument("--turns", type=int, default=None, help="Max turns (default: scenario defined)")
    parser.add_argument("--data", default="data", help="Data directory path")
    parser.add_argument("--logs", default="logs", help="Log directory path")
    parser.add_argument("--layout-out", default=None, help="Write the starting layout to this JSON file")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])

    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=getattr(logging, args.log_level))

    try:
        sim = ConquestSimulation(
            data_path=args.data,
            scenario=args.scenario,
            log_dir=args.logs,
            max_turns=args.turns,
        )
    except (ConfigurationError, OpenAIError) as e:
        parser.error(str(e))

    if args.layout_out:
        sim.save_layout(args.layout_out)

    results = sim.run_game()

    print("\n" + "="*60)
    print("FINAL RESULTS")
    print("="*60)
    print(f"Turns played: {results['turns_played']}")
    print(f"Winner: {results['winner'] or 'none'}")
    for name, player_stats in results["players"].items():
        status = "eliminated" if player_stats["eliminated"] else f"{player_stats['cell_share']}% of the board"
        print(f"  {name}: {player_stats['cells']} cells, {player_stats['money']} money, {status}")
    print(f"Duration: {results['duration']}")


if __name__ == "__main__":
    main()
