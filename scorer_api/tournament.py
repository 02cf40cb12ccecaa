# scorer_api/tournament.py
from __future__ import annotations

import logging
from typing import List, Optional

from scorer_api.config import KNOCKOUT_TOTAL_OVERS
from scorer_api.errors import InvalidTransitionError, NotFoundError
from scorer_api.match_engine import MatchEvent, Outcome, get_team
from scorer_api.models import Match, Player, PlayerStats, Team, TournamentState, new_id
from scorer_api.points_table import compute_sorted_table, recompute_standings

logger = logging.getLogger(__name__)

UNFINISHED = ("scheduled", "toss", "live", "innings_break")


def _in_unfinished_match(state: TournamentState, team_id: str) -> bool:
    return any(
        m.status in UNFINISHED and team_id in (m.team_a_id, m.team_b_id)
        for m in state.matches
    )


def add_team(state: TournamentState, name: str, group: str, player_names: Optional[List[str]] = None) -> Team:
    name = (name or "").strip()
    if not name:
        raise InvalidTransitionError("Team name cannot be empty")
    if group not in ("A", "B"):
        raise InvalidTransitionError(f"Invalid group: {group}")
    if any(t.name.lower() == name.lower() for t in state.teams):
        raise InvalidTransitionError(f"Team already exists: {name}")

    team = Team(id=new_id(), name=name, group=group)
    for pname in player_names or []:
        if pname and pname.strip():
            team.players.append(Player(id=new_id(), name=pname.strip(), team_id=team.id))
    state.teams.append(team)
    logger.info("Team %s (%s) added to group %s with %d players", team.name, team.id, group, len(team.players))
    return team


def add_player(state: TournamentState, team_id: str, name: str) -> Player:
    team = get_team(state, team_id)
    name = (name or "").strip()
    if not name:
        raise InvalidTransitionError("Player name cannot be empty")
    player = Player(id=new_id(), name=name, team_id=team.id)
    team.players.append(player)
    return player


def remove_team(state: TournamentState, team_id: str) -> None:
    get_team(state, team_id)
    if _in_unfinished_match(state, team_id):
        raise InvalidTransitionError("Team is playing an unfinished match")
    state.teams = [t for t in state.teams if t.id != team_id]


def remove_player(state: TournamentState, team_id: str, player_id: str) -> None:
    team = get_team(state, team_id)
    if team.find_player(player_id) is None:
        raise NotFoundError(f"Unknown player: {player_id}")
    if _in_unfinished_match(state, team_id):
        raise InvalidTransitionError("Players cannot be removed while their team has an unfinished match")
    team.players = [p for p in team.players if p.id != player_id]


def standings(state: TournamentState, group: Optional[str] = None) -> List[dict]:
    return compute_sorted_table(state.teams, group)


def generate_knockouts(state: TournamentState) -> Outcome:
    """
    Semi-finals from the group tables: A1 v B2 and B1 v A2.
    """
    table_a = standings(state, "A")
    table_b = standings(state, "B")
    if len(table_a) < 2 or len(table_b) < 2:
        raise InvalidTransitionError("Each group needs at least two teams for knockouts")
    if any(m.knockout_stage in ("SF1", "SF2") for m in state.matches):
        raise InvalidTransitionError("Semi-finals already generated")

    sf1 = Match(
        team_a_id=table_a[0]["team_id"],
        team_b_id=table_b[1]["team_id"],
        total_overs=KNOCKOUT_TOTAL_OVERS,
        group_stage=False,
        knockout_stage="SF1",
        status="scheduled",
    )
    sf2 = Match(
        team_a_id=table_b[0]["team_id"],
        team_b_id=table_a[1]["team_id"],
        total_overs=KNOCKOUT_TOTAL_OVERS,
        group_stage=False,
        knockout_stage="SF2",
        status="scheduled",
    )
    state.matches.extend([sf1, sf2])
    logger.info("Semi-finals generated: %s, %s", sf1.id, sf2.id)
    return Outcome(None, [
        MatchEvent("match_created", sf1.id, {"knockout_stage": "SF1"}),
        MatchEvent("match_created", sf2.id, {"knockout_stage": "SF2"}),
    ])


def reset_tournament(state: TournamentState) -> Outcome:
    """Drops every match and zeroes team and player figures; rosters stay."""
    state.matches = []
    for t in state.teams:
        for p in t.players:
            p.stats = PlayerStats()
    recompute_standings(state.teams, state.matches)
    return Outcome(None, [MatchEvent("tournament_reset"), MatchEvent("standings_updated")])
