# scorer_api/store.py
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import TypeAdapter

from scorer_api.models import Match, Team, TournamentState

logger = logging.getLogger(__name__)

_STATE_ADAPTER = TypeAdapter(TournamentState)

PathLike = Union[str, Path]


def state_to_dict(state: TournamentState) -> Dict[str, Any]:
    """JSON-ready dict of the whole tournament (teams, matches, ball histories)."""
    return _STATE_ADAPTER.dump_python(state, mode="json")


def state_from_dict(data: Dict[str, Any]) -> TournamentState:
    """Validates a snapshot dict; raises pydantic.ValidationError on bad shapes."""
    return _STATE_ADAPTER.validate_python(data)


def load_state(path: PathLike) -> TournamentState:
    """
    Hydrates the tournament from a JSON snapshot. A missing file is an empty tournament.
    """
    p = Path(path)
    if not p.exists():
        logger.info("No snapshot at %s, starting empty", p)
        return TournamentState()

    with p.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    state = state_from_dict(data)
    logger.info("Loaded snapshot %s: %d teams, %d matches", p, len(state.teams), len(state.matches))
    return state


def save_state(state: TournamentState, path: PathLike) -> None:
    """Writes the snapshot atomically (temp file + rename)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    with tmp.open("w", encoding="utf-8") as fh:
        json.dump(state_to_dict(state), fh, indent=2)
    os.replace(tmp, p)


_MATCH_ADAPTER = TypeAdapter(Match)
_TEAM_ADAPTER = TypeAdapter(Team)


def match_to_dict(match: Match) -> Dict[str, Any]:
    return _MATCH_ADAPTER.dump_python(match, mode="json")


def team_to_dict(team: Team) -> Dict[str, Any]:
    return _TEAM_ADAPTER.dump_python(team, mode="json")
