"""Point-in-time rating snapshot store.

Wraps externally supplied rating history and answers "what did we know
about this team as of date D?". This is the single place where look-ahead
bias can creep into a backtest, so every lookup result is checked against
the requested date before it is returned.

Example:
    >>> store = SnapshotStore(snapshots)
    >>> snap = store.lookup("Duke", date(2025, 1, 14))
    >>> snap.as_of_date <= date(2025, 1, 14)
    True
"""

from bisect import bisect_right
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from convergence_picks.exceptions import LookaheadViolation
from convergence_picks.ml.data.schema import TeamRatingSnapshot, as_date


class SnapshotStore:
    """Read-only, point-in-time view over team rating snapshots.

    Snapshots are grouped per team and kept sorted by ``as_of_date``.
    Lookups never write and never raise for missing data: an unknown team
    or a date before the first snapshot returns None.

    Attributes:
        strict: Re-check every result against the requested date and raise
            LookaheadViolation on failure. The sorted index already rules
            this out, so the check only fires on a corrupted store.
    """

    def __init__(
        self,
        snapshots: Iterable[TeamRatingSnapshot] = (),
        strict: bool = True,
    ) -> None:
        """Build the store.

        Args:
            snapshots: Rating history, in any order
            strict: Assert point-in-time correctness on every lookup

        Raises:
            ValueError: If a team has two snapshots for the same date
                (published snapshots are never revised)
        """
        self.strict = strict
        by_team: dict[str, list[TeamRatingSnapshot]] = defaultdict(list)
        for snap in snapshots:
            by_team[snap.team].append(snap)

        self._snapshots: dict[str, list[TeamRatingSnapshot]] = {}
        self._dates: dict[str, list[date]] = {}
        for team, chain in by_team.items():
            chain.sort(key=lambda s: s.as_of_date)
            dates = [s.as_of_date for s in chain]
            for earlier, later in zip(dates, dates[1:]):
                if earlier == later:
                    raise ValueError(
                        f"Duplicate snapshot for {team} on {later}: "
                        "published snapshots cannot be revised."
                    )
            self._snapshots[team] = chain
            self._dates[team] = dates

    def __len__(self) -> int:
        return sum(len(chain) for chain in self._snapshots.values())

    def __contains__(self, team: object) -> bool:
        return team in self._snapshots

    @property
    def teams(self) -> list[str]:
        return sorted(self._snapshots)

    def lookup(self, team: str, as_of: date | datetime) -> TeamRatingSnapshot | None:
        """Return the latest snapshot for ``team`` dated on or before ``as_of``.

        Args:
            team: Canonical team name
            as_of: Point in time to look up

        Returns:
            The snapshot, or None when nothing was published by then

        Raises:
            LookaheadViolation: (strict mode) if the chosen snapshot is dated
                after ``as_of``
        """
        as_of = as_date(as_of)
        dates = self._dates.get(team)
        if not dates:
            return None

        idx = bisect_right(dates, as_of)
        if idx == 0:
            return None

        snap = self._snapshots[team][idx - 1]
        # Invariant guard: the sorted date index makes this unreachable
        # unless the store itself is corrupted.
        if self.strict and snap.as_of_date > as_of:
            raise LookaheadViolation(team, as_of, snap.as_of_date)
        return snap

    get_snapshot = lookup

    def lookup_pregame(
        self, team: str, game_date: date | datetime
    ) -> TeamRatingSnapshot | None:
        """Snapshot usable for a game on ``game_date``.

        Ratings dated on game day may already include that day's results,
        so pre-game lookups use the day before.
        """
        return self.lookup(team, as_date(game_date) - timedelta(days=1))

    def history(self, team: str, as_of: date | datetime) -> list[TeamRatingSnapshot]:
        """All snapshots for ``team`` published on or before ``as_of``."""
        as_of = as_date(as_of)
        dates = self._dates.get(team, [])
        return list(self._snapshots.get(team, [])[: bisect_right(dates, as_of)])
