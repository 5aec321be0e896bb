"""Logging helpers that tag bot log lines with their game and player."""

from __future__ import annotations

import logging
from typing import Any, MutableMapping, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class BotLogAdapter(logging.LoggerAdapter):
    """
    Prefix messages with `[game:xxxxxxxx] [bot:xxxxxxxx]`.

    Structured details can be passed as `data={...}` and are appended as
    `key=value` pairs.
    """

    def __init__(self, logger: logging.Logger, game_id: Optional[str] = None, bot_player_id: Optional[str] = None):
        super().__init__(logger, {"game_id": game_id, "bot_player_id": bot_player_id})
        self.game_id = game_id
        self.bot_player_id = bot_player_id

    def _prefix(self) -> str:
        parts = []
        if self.game_id:
            parts.append(f"[game:{self.game_id[:8]}]")
        if self.bot_player_id:
            parts.append(f"[bot:{self.bot_player_id[:8]}]")
        return " ".join(parts)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        data = kwargs.pop("data", None)
        prefix = self._prefix()
        text = f"{prefix} {msg}" if prefix else str(msg)
        if data:
            text += " " + " ".join(f"{k}={v}" for k, v in data.items())
        return text, kwargs


def bot_logger(name: str, game_id: Optional[str] = None, bot_player_id: Optional[str] = None) -> BotLogAdapter:
    """Return an adapter over `logging.getLogger(name)` bound to a game and bot."""
    return BotLogAdapter(logging.getLogger(name), game_id, bot_player_id)


def configure_logging(level: str | int = "INFO") -> None:
    """Configure root logging with the project format."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logging.basicConfig(level=level, format=LOG_FORMAT)
