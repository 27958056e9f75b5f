"""Session configuration shared by the host, the client and the CLI."""
from __future__ import annotations

from dataclasses import dataclass

MIN_PLAYERS = 2
MAX_PLAYERS = 8


@dataclass
class SessionConfig:
    """
    Timing and addressing for one session.

    pause_seconds: how long a finished trick stays on the table before the
        host applies it. Has no effect on the rules, only on what people see.
    bot_think_seconds: delay before a bot's card is submitted.
    """

    pause_seconds: float = 3.0
    bot_think_seconds: float = 0.6
    host: str = "127.0.0.1"
    port: int = 8765
    min_players: int = MIN_PLAYERS
    max_players: int = MAX_PLAYERS

    def validate_player_count(self, count: int) -> int:
        if not self.min_players <= count <= self.max_players:
            raise ValueError(
                f"Kazhutha needs {self.min_players}-{self.max_players} players, got {count}"
            )
        return count


__all__ = ["SessionConfig", "MIN_PLAYERS", "MAX_PLAYERS"]
