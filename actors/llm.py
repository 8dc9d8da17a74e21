"""
LLM-driven actor using OpenAI structured outputs.

Each turn the model receives a situation report listing the player's
territories, movable units, purchasable types and attackable cells with
their defending strength, and answers with a JSON list of orders that are
replayed through the engine. Orders the engine rejects are skipped.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from conquest.config import ActorKind
from conquest.territory import Territory

from .base import AutomatedActor

logger = logging.getLogger(__name__)


@dataclass
class LlmActorConfig:
    """Configuration for an LLM actor."""
    model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 2048
    max_orders: int = 20
    history_turns: int = 5  # past turns kept in the conversation


SYSTEM_PROMPT = """You are playing a territorial conquest game on a hexagonal board.

Rules:
- Each territory is a connected group of your cells with its own treasury.
- Every turn a territory earns one coin per cell and pays its units' salaries.
  A territory whose treasury goes negative loses all of its units except the capital.
- A unit can move freely inside its territory. Stepping onto a neighboring
  cell outside it ends that unit's movement for the turn.
- A unit captures an enemy cell only if its strength is strictly greater than
  the cell's defending strength.
- Capturing an enemy capital wipes that territory's treasury.
- Buying a unit places it immediately on a cell of the territory or one of its neighbors.
- Moving a unit onto one of your own units merges them if a type with the combined cost exists.
- You win by owning more than the winning share of the board.

Use only ids, coordinates and unit type names given in the report."""


class LlmActor(AutomatedActor):
    """Automated player whose moves come from a chat completion."""

    kind = ActorKind.LLM

    def __init__(self, config: Optional[LlmActorConfig] = None, client: Any = None):
        super().__init__()
        self.config = config or LlmActorConfig()
        self.client = client or OpenAI()  # Uses OPENAI_API_KEY env var
        self.conversation_history: list[dict] = []
        self.turn_count = 0
        self.last_results: list[str] = []

    @property
    def orders_schema(self) -> dict:
        """JSON schema for structured orders output."""
        return {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "reasoning": {
                    "type": "string",
                    "description": "Brief explanation of the plan for this turn"
                },
                "orders": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "additionalProperties": False,
                        "properties": {
                            "action": {"type": "string", "enum": ["move", "buy"]},
                            "unit_id": {"type": "integer", "description": "Unit to move, -1 for buy"},
                            "unit_type": {"type": "string", "description": "Type to buy, empty for move"},
                            "territory_id": {"type": "integer", "description": "Paying territory, -1 for move"},
                            "x": {"type": "integer"},
                            "y": {"type": "integer"}
                        },
                        "required": ["action", "unit_id", "unit_type", "territory_id", "x", "y"]
                    }
                }
            },
            "required": ["reasoning", "orders"]
        }

    async def do_turn(self):
        self.turn_count += 1
        prompt = self._build_situation_prompt()
        try:
            orders_dict = await asyncio.to_thread(self.generate_orders, prompt)
        except (OpenAIError, json.JSONDecodeError) as e:
            logger.error(f"{self.player.name} could not get orders, passing the turn: {e}")
            self.last_results = [f"Orders failed: {e}"]
            return

        self.last_results = []
        for order in orders_dict.get("orders", [])[:self.config.max_orders]:
            self.last_results.append(self._execute(order))

    def generate_orders(self, situation_prompt: str) -> dict:
        """Ask the model for this turn's orders."""
        self.conversation_history.append({
            "role": "user",
            "content": situation_prompt
        })

        response = self.client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                *self.conversation_history
            ],
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "conquest_orders",
                    "schema": self.orders_schema,
                    "strict": True
                }
            },
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

        response_text = response.choices[0].message.content
        orders_dict = json.loads(response_text)

        self.conversation_history.append({
            "role": "assistant",
            "content": response_text
        })
        # Two messages per turn
        self.conversation_history = self.conversation_history[-2 * self.config.history_turns:]
        return orders_dict

    def _execute(self, order: dict) -> str:
        """Replay one order through the engine and describe the outcome."""
        game = self.game
        state = game.state
        cell = state.board.get_cell(order.get("x", -1), order.get("y", -1))
        if cell is None:
            return f"{order}: no such cell"

        if order.get("action") == "buy":
            unit_type = state.catalog.get(order.get("unit_type", ""))
            territory = state.territories.get(order.get("territory_id"))
            if unit_type is None:
                return f"buy {order.get('unit_type')!r}: unknown unit type"
            if territory is None or territory.owner != self.player.id:
                return f"buy {unit_type.name}: territory {order.get('territory_id')} is not yours"
            unit = game.buy_unit(unit_type, cell, territory)
            return f"buy {unit_type.name} at {cell.coords}: {'ok' if unit else 'rejected'}"

        unit = state.units.get_unit(order.get("unit_id"))
        if unit is None:
            return f"move unit {order.get('unit_id')}: no such unit"
        report = game.move(unit, cell)
        if report:
            return f"move unit {unit.id} to {cell.coords}: ok"
        return f"move unit {unit.id} to {cell.coords}: rejected ({report.reason})"

    def _build_situation_prompt(self) -> str:
        """Build situation briefing prompt for the model."""
        game = self.game
        state = game.state
        player = self.player

        prompt = f"""
## SITUATION REPORT - TURN {game.turns.turn}
Player: {player.name}
Board: {state.board.columns}x{state.board.rows}, you own {state.player_cell_count(player)} of {state.board.size()} cells.
Winning share: more than {game.turns.win_percentage}% of the board.

### UNIT TYPES
"""
        for unit_type in state.catalog.types:
            if unit_type.is_buildable:
                prompt += (f"  - {unit_type.name}: strength {unit_type.strength}, cost {unit_type.cost}, "
                           f"salary {unit_type.salary}, {'movable' if unit_type.is_movable else 'static'}\n")

        prompt += "\n### YOUR TERRITORIES (USE EXACT IDs IN ORDERS)\n"
        for territory in state.controllable_territories(player):
            prompt += self._describe_territory(territory)

        if self.last_results:
            prompt += "\n### PREVIOUS TURN RESULTS\n"
            for result in self.last_results[-10:]:
                prompt += f"- {result}\n"

        prompt += "\n### ORDERS REQUIRED\n"
        prompt += f"Issue up to {self.config.max_orders} orders. They are executed in order.\n"
        return prompt

    def _describe_territory(self, territory: Territory) -> str:
        state = self.game.state
        movement = self.game.movement
        income = territory.income()
        upkeep = state.upkeep_of(territory)
        text = (f"\n**Territory {territory.id}**: {territory.size()} cells, money {territory.money}, "
                f"income {income}, upkeep {upkeep}\n")

        units = [u for u in state.units_in(territory) if u.type.is_movable]
        for unit in units:
            cell = state.cell_of(unit)
            status = "ready" if unit.can_move else "spent"
            text += f"  - Unit ID: `{unit.id}` | {unit.type.name} | strength {unit.strength} | at {cell.coords} | {status}\n"

        targets = [c for c in state.territories.neighbors(territory) if c.owner != self.player.id]
        if targets:
            text += "  Attackable cells:\n"
            for cell in targets:
                occupant = state.unit_at(cell)
                text += (f"    - ({cell.x}, {cell.y}) defending strength {movement.get_field_defending_strength(cell)}"
                         f"{', ' + occupant.type.name if occupant else ''}\n")
        return text

    def get_reasoning(self) -> Optional[str]:
        """Get the last reasoning from the model."""
        if self.conversation_history:
            last = self.conversation_history[-1]
            if last['role'] == 'assistant':
                try:
                    return json.loads(last['content']).get('reasoning')
                except json.JSONDecodeError:
                    return None
        return None

    def reset(self):
        """Reset actor state for a new game."""
        self.conversation_history = []
        self.turn_count = 0
        self.last_results = []
