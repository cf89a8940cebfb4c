"""CSV loaders for the CLI.

Column names match the record fields (``game_id``, ``sport``, ``season``,
``game_date``, ``home_team``, ...). Empty cells become None.
"""

from pathlib import Path

import pandas as pd

from convergence_picks.exceptions import InvalidInput
from convergence_picks.ml.data.schema import GameContext, GameRecord, TeamRatingSnapshot

_GAME_REQUIRED = ["game_id", "sport", "season", "game_date", "home_team", "away_team"]
_GAME_OPTIONAL = [
    "home_score",
    "away_score",
    "spread",
    "total",
    "home_moneyline",
    "away_moneyline",
    "neutral_site",
    "conference_game",
]
_INT_COLUMNS = {"season", "home_score", "away_score", "home_moneyline", "away_moneyline", "rank"}
_BOOL_COLUMNS = {"neutral_site", "conference_game", "tournament"}


def _read(path: str | Path, required: list[str], date_column: str) -> pd.DataFrame:
    frame = pd.read_csv(path)
    missing = [c for c in required if c not in frame.columns]
    if missing:
        raise InvalidInput(f"{path}: missing columns {missing}")
    frame[date_column] = pd.to_datetime(frame[date_column])
    for column in ("game_id", "team", "home_team", "away_team"):
        if column in frame.columns:
            frame[column] = frame[column].astype(str)
    return frame


def _rows(frame: pd.DataFrame, columns: list[str]) -> list[dict]:
    rows = []
    present = [c for c in columns if c in frame.columns]
    for record in frame[present].to_dict(orient="records"):
        row = {}
        for key, value in record.items():
            if pd.isna(value):
                continue
            if key in _INT_COLUMNS:
                value = int(value)
            elif key in _BOOL_COLUMNS:
                value = str(value).strip().lower() in ("1", "true", "yes")
            row[key] = value
        rows.append(row)
    return rows


def load_games(path: str | Path) -> list[GameRecord]:
    """Completed (or scheduled) games from CSV."""
    frame = _read(path, _GAME_REQUIRED, "game_date")
    return [
        GameRecord(**row).settled()
        for row in _rows(frame, _GAME_REQUIRED + _GAME_OPTIONAL)
    ]


def load_upcoming(path: str | Path) -> list[GameContext]:
    """Upcoming games needing picks from CSV (scores ignored)."""
    frame = _read(path, _GAME_REQUIRED, "game_date")
    columns = _GAME_REQUIRED + [
        "spread",
        "total",
        "home_moneyline",
        "away_moneyline",
        "neutral_site",
        "conference_game",
        "tournament",
    ]
    return [GameContext(**row) for row in _rows(frame, columns)]


def load_snapshots(path: str | Path) -> list[TeamRatingSnapshot]:
    """Rating snapshots from CSV (``team, as_of_date, adj_oe, adj_de, adj_tempo[, rank]``)."""
    required = ["team", "as_of_date", "adj_oe", "adj_de", "adj_tempo"]
    frame = _read(path, required, "as_of_date")
    return [TeamRatingSnapshot(**row) for row in _rows(frame, required + ["rank"])]
