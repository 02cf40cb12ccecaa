# scorer_api/models.py
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Literal, Optional

from scorer_api import nrr_math
from scorer_api.overs import BALLS_PER_OVER, overs_to_balls


# -----------------------------
# Enumerations (wire values)
# -----------------------------
Group = Literal["A", "B"]
ExtraType = Literal["wide", "no-ball", "bye", "leg-bye"]
WicketType = Literal["bowled", "caught", "run-out", "lbw", "stumped", "retired"]
MatchStatus = Literal["scheduled", "toss", "live", "innings_break", "completed", "abandoned"]
PlayStatus = Literal["active", "waiting_for_bowler"]
KnockoutStage = Literal["SF1", "SF2", "FINAL"]
TossChoice = Literal["bat", "bowl"]


def new_id() -> str:
    return uuid.uuid4().hex[:9]


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


# -----------------------------
# Players & teams
# -----------------------------
@dataclass
class PlayerStats:
    """
    Cumulative tournament figures for one player.
    overs_bowled uses overs notation (4.3 = 4 overs + 3 balls).
    """
    runs: int = 0
    balls: int = 0
    wickets: int = 0
    overs_bowled: float = 0.0
    runs_conceded: int = 0
    fours: int = 0
    sixes: int = 0


@dataclass
class Player:
    id: str
    name: str
    team_id: str
    stats: PlayerStats = field(default_factory=PlayerStats)


@dataclass
class TeamStats:
    played: int = 0
    won: int = 0
    lost: int = 0
    tied: int = 0
    no_result: int = 0
    points: int = 0
    nrr: float = 0.0
    total_runs_scored: int = 0
    total_overs_faced: float = 0.0
    total_runs_conceded: int = 0
    total_overs_bowled: float = 0.0


@dataclass
class Team:
    id: str
    name: str
    group: Group
    players: List[Player] = field(default_factory=list)
    stats: TeamStats = field(default_factory=TeamStats)

    def find_player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.id == player_id:
                return p
        return None


# -----------------------------
# Ball-by-ball
# -----------------------------
@dataclass
class Partnership:
    batter1_id: str
    batter2_id: str
    runs: int = 0
    balls: int = 0


@dataclass
class FallOfWicket:
    score: int
    wicket_count: int
    over: float
    batter_id: str


@dataclass(frozen=True)
class BallEvent:
    """
    One delivery as stored in an innings history.

    over_number is 0-indexed, ball_in_over is 1-indexed for legal balls
    (a wide or no-ball repeats the count of legal balls already bowled).

    free_hit, incoming_batter_id and partnership_before are filled in by the
    innings engine when the ball is stored; they are what undo needs to put
    the innings back exactly as it was.
    """
    bowler_id: str
    batter_id: str
    runs_scored: int = 0
    extras: int = 0
    extra_type: Optional[ExtraType] = None
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None
    wicket_player_id: Optional[str] = None
    is_valid_ball: bool = True
    id: str = field(default_factory=new_id)
    over_number: int = 0
    ball_in_over: int = 0
    commentary: str = ""

    free_hit: bool = False
    incoming_batter_id: Optional[str] = None
    partnership_before: Optional[Partnership] = None

    @property
    def total_runs(self) -> int:
        return self.runs_scored + self.extras

    @property
    def is_boundary_four(self) -> bool:
        return self.runs_scored == 4

    @property
    def is_boundary_six(self) -> bool:
        return self.runs_scored == 6

    @property
    def faced_by_batter(self) -> bool:
        return self.extra_type != "wide"

    @property
    def bowler_runs(self) -> int:
        # byes and leg-byes are not charged to the bowler
        if self.extra_type in ("wide", "no-ball"):
            return self.runs_scored + self.extras
        return self.runs_scored

    @property
    def bowler_wicket(self) -> bool:
        return self.is_wicket and self.wicket_type != "run-out"


@dataclass
class InningsState:
    batting_team_id: str
    bowling_team_id: str
    striker_id: str
    non_striker_id: str
    current_bowler_id: str
    total_runs: int = 0
    wickets: int = 0
    overs: float = 0.0
    history: List[BallEvent] = field(default_factory=list)
    batting_order: List[str] = field(default_factory=list)
    players_out: List[str] = field(default_factory=list)
    is_free_hit: bool = False
    current_partnership: Optional[Partnership] = None
    fow: List[FallOfWicket] = field(default_factory=list)

    @property
    def legal_balls(self) -> int:
        return overs_to_balls(self.overs)

    @property
    def current_over(self) -> List[BallEvent]:
        """Deliveries of the over in progress (empty right after an over ends)."""
        over_no = self.legal_balls // BALLS_PER_OVER
        return [b for b in self.history if b.over_number == over_no]

    @property
    def run_rate(self) -> float:
        return nrr_math.run_rate(self.total_runs, self.overs)

    @property
    def awaiting_batter(self) -> bool:
        """A dismissed batter is still in a crease slot (no replacement seated yet)."""
        return self.striker_id in self.players_out or self.non_striker_id in self.players_out

    @property
    def score_line(self) -> str:
        return f"{self.total_runs}/{self.wickets}"


@dataclass
class Toss:
    winner_id: str
    choice: TossChoice


@dataclass
class Match:
    team_a_id: str
    team_b_id: str
    total_overs: int
    id: str = field(default_factory=new_id)
    date: str = field(default_factory=utc_now_iso)
    group_stage: bool = True
    knockout_stage: Optional[KnockoutStage] = None
    status: MatchStatus = "toss"
    play_status: PlayStatus = "active"
    toss: Optional[Toss] = None
    innings1: Optional[InningsState] = None
    innings2: Optional[InningsState] = None
    winner_id: Optional[str] = None
    result_message: Optional[str] = None
    man_of_the_match_id: Optional[str] = None

    @property
    def current_innings(self) -> Optional[InningsState]:
        return self.innings2 or self.innings1

    @property
    def target(self) -> Optional[int]:
        if self.innings1 is None:
            return None
        return self.innings1.total_runs + 1


@dataclass
class TournamentState:
    teams: List[Team] = field(default_factory=list)
    matches: List[Match] = field(default_factory=list)

    def find_team(self, team_id: str) -> Optional[Team]:
        for t in self.teams:
            if t.id == team_id:
                return t
        return None

    def find_match(self, match_id: str) -> Optional[Match]:
        for m in self.matches:
            if m.id == match_id:
                return m
        return None

    def find_player(self, player_id: str) -> Optional[Player]:
        for t in self.teams:
            p = t.find_player(player_id)
            if p is not None:
                return p
        return None

    def team_name(self, team_id: Optional[str]) -> str:
        team = self.find_team(team_id) if team_id else None
        return team.name if team is not None else "Unknown"
