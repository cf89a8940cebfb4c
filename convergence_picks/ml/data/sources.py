"""Interfaces the engine consumes from the ingestion layer.

Ingestion (rating providers, odds feeds, schedule scrapers, team-name
reconciliation) lives outside this package. The engine only needs the
read operations below. ``InMemoryGameSource`` backs them with
plain lists for backtests, tests and the CLI.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import date

from convergence_picks.ml.data.schema import (
    GameContext,
    GameRecord,
    PlayerGameLog,
    Sport,
    TeamRatingSnapshot,
    as_date,
)
from convergence_picks.ml.data.snapshots import SnapshotStore


class GameSource(ABC):
    """Read-only access to prefetched games, ratings and player logs."""

    @abstractmethod
    def get_completed_games(
        self,
        sport: Sport,
        seasons: tuple[int, int] | None = None,
    ) -> list[GameRecord]:
        """Completed games in chronological order with settled outcomes.

        Args:
            sport: Sport to load
            seasons: Inclusive (first, last) season range, or None for all
        """

    @abstractmethod
    def get_upcoming_games(self, sport: Sport, game_date: date) -> list[GameContext]:
        """Games on ``game_date`` that need picks."""

    @abstractmethod
    def snapshot_store(self, sport: Sport) -> SnapshotStore:
        """Point-in-time rating history for ``sport``."""

    def get_snapshot(
        self, sport: Sport, team: str, as_of: date
    ) -> TeamRatingSnapshot | None:
        """Latest rating snapshot for ``team`` published on or before ``as_of``."""
        return self.snapshot_store(sport).lookup(team, as_of)

    def get_player_logs(self, sport: Sport) -> list[PlayerGameLog]:
        """Player box scores for prop signals (empty when not provided)."""
        return []


class InMemoryGameSource(GameSource):
    """GameSource over in-memory lists.

    Snapshots and player logs are keyed by sport, so one source can back
    several leagues without mixing them.

    Example:
        >>> source = InMemoryGameSource(games=history, upcoming=slate)
        >>> source.get_completed_games(Sport.NFL, seasons=(2022, 2024))
    """

    def __init__(
        self,
        games: Iterable[GameRecord] = (),
        upcoming: Iterable[GameContext] = (),
        snapshots: dict[Sport, Iterable[TeamRatingSnapshot]] | None = None,
        player_logs: dict[Sport, Iterable[PlayerGameLog]] | None = None,
        strict_lookahead: bool = True,
    ) -> None:
        self._games = sorted(
            (g.settled() for g in games), key=lambda g: (g.game_date, g.game_id)
        )
        self._upcoming = list(upcoming)
        self._stores = {
            Sport(sport): SnapshotStore(snaps, strict=strict_lookahead)
            for sport, snaps in (snapshots or {}).items()
        }
        self._player_logs = {
            Sport(sport): list(logs) for sport, logs in (player_logs or {}).items()
        }
        self._strict = strict_lookahead

    def get_completed_games(
        self,
        sport: Sport,
        seasons: tuple[int, int] | None = None,
    ) -> list[GameRecord]:
        games = [g for g in self._games if g.sport == sport and g.is_final]
        if seasons is not None:
            first, last = seasons
            games = [g for g in games if first <= g.season <= last]
        return games

    def get_upcoming_games(self, sport: Sport, game_date: date) -> list[GameContext]:
        day = as_date(game_date)
        return [g for g in self._upcoming if g.sport == sport and g.game_date == day]

    def snapshot_store(self, sport: Sport) -> SnapshotStore:
        if sport not in self._stores:
            self._stores[sport] = SnapshotStore(strict=self._strict)
        return self._stores[sport]

    def get_player_logs(self, sport: Sport) -> list[PlayerGameLog]:
        return list(self._player_logs.get(sport, ()))
