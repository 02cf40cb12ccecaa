# scorer_api/roster.py
from __future__ import annotations

from io import StringIO
from typing import Dict, List, Optional

import pandas as pd

from scorer_api.models import TournamentState
from scorer_api.tournament import add_player, add_team


class RosterImportError(Exception):
    """Raised when a roster CSV cannot be read or lacks the expected columns."""
    pass


_COLUMN_ALIASES = {
    "team": "team",
    "team name": "team",
    "group": "group",
    "grp": "group",
    "player": "player",
    "player name": "player",
    "name": "player",
}


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    cols: List[str] = []
    for c in df.columns:
        key = str(c).strip().lower()
        cols.append(_COLUMN_ALIASES.get(key, key))
    df.columns = cols
    return df


def parse_roster_csv(text: str) -> Dict[str, dict]:
    """
    Parse a roster CSV with one row per player:

        team,group,player
        Tech Titans,A,Arjun Mehta
        Tech Titans,A,Ravi Shah

    Returns {team name: {"group": "A", "players": [...]}} in file order.
    """
    if not text or not text.strip():
        raise RosterImportError("Roster CSV is empty")

    try:
        df = pd.read_csv(StringIO(text), dtype=str, skipinitialspace=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise RosterImportError(f"Unreadable roster CSV: {e}") from e

    df = _normalize_columns(df)
    missing = [c for c in ("team", "group", "player") if c not in df.columns]
    if missing:
        raise RosterImportError(f"Roster CSV missing columns: {', '.join(missing)}")

    df = df.dropna(subset=["team"])
    df["team"] = df["team"].str.strip()
    df["group"] = df["group"].fillna("").str.strip().str.upper()
    df["player"] = df["player"].fillna("").str.strip()

    teams: Dict[str, dict] = {}
    for row in df.itertuples(index=False):
        if row.group not in ("A", "B"):
            raise RosterImportError(f"Invalid group {row.group!r} for team {row.team}")
        entry = teams.setdefault(row.team, {"group": row.group, "players": []})
        if entry["group"] != row.group:
            raise RosterImportError(f"Team {row.team} listed in more than one group")
        if row.player:
            entry["players"].append(row.player)
    return teams


def import_roster_csv(state: TournamentState, text: str, *, merge: bool = True) -> List[str]:
    """
    Adds the teams/players from a roster CSV to the tournament.
    With merge=True, players for an existing team (same name) are appended to it.
    Returns the ids of the teams that were created or extended.
    """
    parsed = parse_roster_csv(text)
    touched: List[str] = []
    for name, entry in parsed.items():
        existing: Optional[str] = next((t.id for t in state.teams if t.name.lower() == name.lower()), None)
        if existing is not None and merge:
            for pname in entry["players"]:
                add_player(state, existing, pname)
            touched.append(existing)
            continue
        team = add_team(state, name, entry["group"], entry["players"])
        touched.append(team.id)
    return touched
