"""Collaborators the strategy engine talks to, plus in-memory implementations."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Optional, Protocol, Sequence

from railbot.ai.audit import StrategyAudit
from railbot.models.board import TrackSegment
from railbot.models.snapshot import WorldSnapshot
from railbot.models.trains import TrainType

logger = logging.getLogger(__name__)

TURN_START_EVENT = "bot:turn-start"
TURN_COMPLETE_EVENT = "bot:turn-complete"


class SnapshotCaptureError(RuntimeError):
    """The world state for a bot turn could not be captured."""


class SnapshotProvider(Protocol):
    async def capture(self, game_id: str, bot_player_id: str, bot_user_id: str) -> WorldSnapshot: ...


class GameStore(Protocol):
    """Mutations of the authoritative game state, as used for human players."""

    async def move_train(self, game_id: str, user_id: str, row: int, col: int, movement_cost: int = 1) -> None: ...

    async def deliver_load(
        self, game_id: str, user_id: str, city: str, load_type: str, demand_card_id: int
    ) -> None: ...

    async def pickup_load(self, game_id: str, user_id: str, city: str, load_type: str, dropped: bool) -> None: ...

    async def return_load(self, game_id: str, city: str, load_type: str) -> None: ...

    async def build_track(
        self, game_id: str, player_id: str, user_id: str, segments: Sequence[TrackSegment], total_cost: int
    ) -> None: ...

    async def purchase_train(self, game_id: str, user_id: str, kind: str, train_type: TrainType) -> None: ...

    async def update_position(self, game_id: str, player_id: str, row: int, col: int, x: float, y: float) -> None: ...


class AuditStore(Protocol):
    async def save_turn_audit(self, game_id: str, player_id: str, audit: StrategyAudit) -> None: ...

    async def get_latest_audit(self, game_id: str, player_id: str) -> Optional[StrategyAudit]: ...


class Notifier(Protocol):
    def emit(self, game_id: str, event: str, payload: dict[str, Any]) -> None: ...


class InMemoryAuditStore:
    """Audit store kept in process memory, keyed by (game, player)."""

    def __init__(self):
        self._audits: dict[tuple[str, str], list[StrategyAudit]] = defaultdict(list)

    async def save_turn_audit(self, game_id: str, player_id: str, audit: StrategyAudit) -> None:
        self._audits[(game_id, player_id)].append(audit)

    async def get_latest_audit(self, game_id: str, player_id: str) -> Optional[StrategyAudit]:
        audits = self._audits.get((game_id, player_id))
        if not audits:
            return None
        # Highest turn number; the most recently saved wins ties
        return max(reversed(audits), key=lambda a: a.turn_number)

    async def list_audits(self, game_id: str, player_id: str) -> list[StrategyAudit]:
        """All audits for a bot, oldest first."""
        return list(self._audits.get((game_id, player_id), ()))


class RecordingNotifier:
    """Notifier that logs and keeps every emitted event."""

    def __init__(self):
        self.events: list[tuple[str, str, dict[str, Any]]] = []

    def emit(self, game_id: str, event: str, payload: dict[str, Any]) -> None:
        logger.debug("emit %s to game %s", event, game_id)
        self.events.append((game_id, event, payload))

    def named(self, event: str) -> list[dict[str, Any]]:
        """Payloads of every emitted event with the given name."""
        return [payload for _, name, payload in self.events if name == event]
