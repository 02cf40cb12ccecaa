# main.py (live cricket scorer)
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Literal, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from scorer_api.config import LOG_LEVEL, validate_config
from scorer_api.errors import InvalidTransitionError, NotFoundError, ScoringError
from scorer_api.match_engine import Outcome
from scorer_api.models import BallEvent
from scorer_api.roster import RosterImportError
from scorer_api.session import ScoringSession
from scorer_api.store import match_to_dict, team_to_dict

logger = logging.getLogger(__name__)

# -----------------------
# App
# -----------------------
app = FastAPI(
    title="Live Cricket Scorer API",
    version="0.1.0",
    description="Ball-by-ball scoring, one-ball undo, match results and tournament standings",
)

_session: Optional[ScoringSession] = None


def get_session() -> ScoringSession:
    global _session
    if _session is None:
        _session = ScoringSession.from_config()
    return _session


@app.on_event("startup")
def on_startup():
    validate_config()
    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


@app.get("/health")
def health_check():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


# -----------------------
# Helpers
# -----------------------
def _http_error(e: ScoringError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, InvalidTransitionError):
        return HTTPException(status_code=409, detail=str(e))
    # InvalidBallError and anything else the caller got wrong
    return HTTPException(status_code=400, detail=str(e))


def _guard(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    try:
        return fn(*args, **kwargs)
    except ScoringError as e:
        raise _http_error(e)


def _outcome(outcome: Outcome) -> Dict[str, Any]:
    return {
        "match": match_to_dict(outcome.match) if outcome.match is not None else None,
        "events": [{"kind": ev.kind, "match_id": ev.match_id, "data": ev.data} for ev in outcome.events],
    }


# -----------------------
# Teams & standings
# -----------------------
class TeamIn(BaseModel):
    name: str = Field(..., min_length=1)
    group: Literal["A", "B"]
    players: List[str] = Field(default_factory=list, description="Player names")


class PlayerIn(BaseModel):
    name: str = Field(..., min_length=1)


@app.get("/api/teams")
def list_teams(session: ScoringSession = Depends(get_session)):
    return {"teams": [team_to_dict(t) for t in session.state.teams]}


@app.post("/api/teams", status_code=201)
def create_team(req: TeamIn, session: ScoringSession = Depends(get_session)):
    team = _guard(session.add_team, req.name, req.group, req.players)
    return team_to_dict(team)


@app.post("/api/teams/import", status_code=201)
async def import_teams(request: Request, session: ScoringSession = Depends(get_session)):
    csv_text = (await request.body()).decode("utf-8-sig")
    try:
        team_ids = _guard(session.import_roster, csv_text)
    except RosterImportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"team_ids": team_ids}


@app.post("/api/teams/{team_id}/players", status_code=201)
def create_player(team_id: str, req: PlayerIn, session: ScoringSession = Depends(get_session)):
    player = _guard(session.add_player, team_id, req.name)
    return {"id": player.id, "name": player.name, "team_id": player.team_id}


@app.delete("/api/teams/{team_id}")
def delete_team(team_id: str, session: ScoringSession = Depends(get_session)):
    _guard(session.remove_team, team_id)
    return {"deleted": team_id}


@app.delete("/api/teams/{team_id}/players/{player_id}")
def delete_player(team_id: str, player_id: str, session: ScoringSession = Depends(get_session)):
    _guard(session.remove_player, team_id, player_id)
    return {"deleted": player_id}


@app.get("/api/standings")
def get_standings(group: Optional[Literal["A", "B"]] = None, session: ScoringSession = Depends(get_session)):
    return {"group": group, "table": session.standings(group)}


@app.get("/api/stats")
def get_stats(team_id: Optional[str] = None, session: ScoringSession = Depends(get_session)):
    return _guard(session.leaderboards, team_id)


# -----------------------
# Matches
# -----------------------
class MatchIn(BaseModel):
    team_a_id: str
    team_b_id: str
    total_overs: Optional[int] = Field(None, ge=1, le=50)
    knockout_stage: Optional[Literal["SF1", "SF2", "FINAL"]] = None


class TossIn(BaseModel):
    winner_id: str
    choice: Literal["bat", "bowl"]


class InningsIn(BaseModel):
    striker_id: str
    non_striker_id: str
    bowler_id: str


class BowlerIn(BaseModel):
    bowler_id: str


class BatterIn(BaseModel):
    batter_id: str


class BallIn(BaseModel):
    batter_id: str = Field(..., min_length=1, description="Batter on strike")
    bowler_id: str = Field(..., min_length=1, description="Current bowler")
    runs_scored: int = Field(0, ge=0, le=7)
    extras: int = Field(0, ge=0)
    extra_type: Optional[Literal["wide", "no-ball", "bye", "leg-bye", "none"]] = None
    is_wicket: bool = False
    wicket_type: Optional[Literal["bowled", "caught", "run-out", "lbw", "stumped", "retired"]] = None
    wicket_player_id: Optional[str] = None
    is_valid_ball: Optional[bool] = Field(None, description="Defaults to False for wides/no-balls, True otherwise")
    next_batter_id: Optional[str] = None

    def to_ball(self) -> BallEvent:
        extra_type = None if self.extra_type == "none" else self.extra_type
        valid = self.is_valid_ball
        if valid is None:
            valid = extra_type not in ("wide", "no-ball")
        return BallEvent(
            bowler_id=self.bowler_id,
            batter_id=self.batter_id,
            runs_scored=self.runs_scored,
            extras=self.extras,
            extra_type=extra_type,
            is_wicket=self.is_wicket,
            wicket_type=self.wicket_type,
            wicket_player_id=self.wicket_player_id,
            is_valid_ball=valid,
        )


@app.get("/api/matches")
def list_matches(session: ScoringSession = Depends(get_session)):
    active = session.active_match()
    return {
        "active_match_id": active.id if active is not None else None,
        "matches": [match_to_dict(m) for m in session.state.matches],
    }


@app.post("/api/matches", status_code=201)
def create_match(req: MatchIn, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.create_match, req.team_a_id, req.team_b_id, req.total_overs, req.knockout_stage))


@app.get("/api/matches/{match_id}")
def get_match(match_id: str, session: ScoringSession = Depends(get_session)):
    return match_to_dict(_guard(session.get_match, match_id))


@app.get("/api/matches/{match_id}/analytics")
def get_match_analytics(match_id: str, session: ScoringSession = Depends(get_session)):
    return _guard(session.match_analytics, match_id)


@app.post("/api/matches/{match_id}/toss")
def post_toss(match_id: str, req: TossIn, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.record_toss, match_id, req.winner_id, req.choice))


@app.post("/api/matches/{match_id}/innings")
def post_innings(match_id: str, req: InningsIn, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.start_innings, match_id, req.striker_id, req.non_striker_id, req.bowler_id))


@app.post("/api/matches/{match_id}/bowler")
def post_bowler(match_id: str, req: BowlerIn, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.set_next_bowler, match_id, req.bowler_id))


@app.post("/api/matches/{match_id}/batter")
def post_batter(match_id: str, req: BatterIn, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.seat_next_batter, match_id, req.batter_id))


@app.post("/api/matches/{match_id}/swap-strike")
def post_swap_strike(match_id: str, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.swap_strike, match_id))


@app.post("/api/matches/{match_id}/balls")
def post_ball(match_id: str, req: BallIn, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.record_ball, match_id, req.to_ball(), req.next_batter_id))


@app.delete("/api/matches/{match_id}/balls/last")
def delete_last_ball(match_id: str, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.undo_last_ball, match_id))


@app.post("/api/matches/{match_id}/end")
def post_end(match_id: str, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.end_match, match_id))


@app.post("/api/matches/{match_id}/abandon")
def post_abandon(match_id: str, session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.abandon_match, match_id))


# -----------------------
# Tournament
# -----------------------
@app.post("/api/knockouts/generate")
def post_generate_knockouts(session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.generate_knockouts))


@app.post("/api/reset")
def post_reset(session: ScoringSession = Depends(get_session)):
    return _outcome(_guard(session.reset_tournament))


# -----------------------
# Incoming remote snapshot (sync channel)
# -----------------------
class SnapshotIn(BaseModel):
    snapshot: Dict[str, Any]


@app.post("/api/sync/snapshot")
def post_snapshot(req: SnapshotIn, session: ScoringSession = Depends(get_session)):
    try:
        applied = session.accept_remote_snapshot(req.snapshot)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid snapshot: {e.errors()}")
    return {"applied": applied}
