# scorer_api/session.py
from __future__ import annotations

import logging
import queue
import threading
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from scorer_api import analytics, cache, match_engine, tournament
from scorer_api.config import SNAPSHOT_ENABLED, SNAPSHOT_PATH, SYNC_SUPPRESS_SECONDS
from scorer_api.match_engine import MatchEvent, Outcome
from scorer_api.models import BallEvent, Match, Player, Team, TournamentState
from scorer_api.roster import import_roster_csv
from scorer_api.store import load_state, save_state, state_from_dict, state_to_dict
from scorer_api.sync_client import SnapshotPublisher, SyncError

logger = logging.getLogger(__name__)

Pending = Tuple[Dict[str, Any], List[Dict[str, Any]]]


class ScoringSession:
    """
    Owns one tournament's state for a scorer process.

    Every mutation runs under a lock against the state and saves the new
    snapshot locally. Publishing to the remote store happens on a background
    thread from a copy taken under the lock, so scoring never waits on the
    network. Remote snapshots arriving shortly after a local write are ignored
    so they cannot overwrite it.
    """

    def __init__(
        self,
        state: Optional[TournamentState] = None,
        *,
        snapshot_path: Optional[str] = None,
        publisher: Optional[SnapshotPublisher] = None,
        suppress_seconds: Optional[float] = None,
    ) -> None:
        self.snapshot_path = snapshot_path
        if state is None:
            state = load_state(snapshot_path) if snapshot_path else TournamentState()
        self.state = state
        self.publisher = publisher
        self.suppress_seconds = SYNC_SUPPRESS_SECONDS if suppress_seconds is None else suppress_seconds
        self._lock = threading.RLock()
        self._outbox: "queue.Queue[Pending]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls) -> "ScoringSession":
        return cls(
            snapshot_path=SNAPSHOT_PATH if SNAPSHOT_ENABLED else None,
            publisher=SnapshotPublisher(),
        )

    # -----------------------
    # Plumbing
    # -----------------------
    def _after_write(self, events: List[MatchEvent]) -> None:
        cache.mark_local_write(self.suppress_seconds)

        if self.snapshot_path:
            save_state(self.state, self.snapshot_path)

        if self.publisher is not None:
            self._outbox.put((state_to_dict(self.state), [asdict(e) for e in events]))
            self._ensure_worker()

    def _ensure_worker(self) -> None:
        if self._worker is None or not self._worker.is_alive():
            self._worker = threading.Thread(target=self._publish_loop, name="snapshot-sync", daemon=True)
            self._worker.start()

    def _publish_loop(self) -> None:
        while True:
            snapshot, events = self._outbox.get()
            try:
                self.publisher.publish(snapshot, events)
            except SyncError as e:
                logger.warning("Snapshot sync failed (local state kept): %s", e)
            finally:
                self._outbox.task_done()

    def wait_for_sync(self) -> None:
        """Blocks until every queued snapshot has been handed to the publisher."""
        self._outbox.join()

    def _run(self, op: Callable[..., Outcome], *args: Any, **kwargs: Any) -> Outcome:
        with self._lock:
            outcome = op(self.state, *args, **kwargs)
            if outcome.changed:
                self._after_write(outcome.events)
            return outcome

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return state_to_dict(self.state)

    def accept_remote_snapshot(self, data: Dict[str, Any]) -> bool:
        """
        Replaces local state with a remote snapshot unless a local write happened
        within the suppression window. Returns True when the snapshot was applied.
        """
        with self._lock:
            if cache.recent_local_write():
                logger.info("Remote snapshot ignored: local write window open for %.1fs", cache.seconds_remaining())
                return False
            self.state = state_from_dict(data)
            if self.snapshot_path:
                save_state(self.state, self.snapshot_path)
            return True

    # -----------------------
    # Reads
    # -----------------------
    def get_match(self, match_id: str) -> Match:
        return match_engine.get_match(self.state, match_id)

    def active_match(self) -> Optional[Match]:
        for m in self.state.matches:
            if m.status in ("live", "toss", "innings_break"):
                return m
        return None

    def standings(self, group: Optional[str] = None) -> List[dict]:
        return tournament.standings(self.state, group)

    def leaderboards(self, team_id: Optional[str] = None) -> Dict[str, Any]:
        with self._lock:
            if team_id is not None:
                match_engine.get_team(self.state, team_id)
            return analytics.leaderboards(self.state, team_id)

    def match_analytics(self, match_id: str) -> Dict[str, Any]:
        with self._lock:
            return analytics.match_analytics(match_engine.get_match(self.state, match_id))

    # -----------------------
    # Match operations
    # -----------------------
    def create_match(self, team_a_id: str, team_b_id: str, total_overs: Optional[int] = None,
                     knockout_stage: Optional[str] = None) -> Outcome:
        return self._run(match_engine.create_match, team_a_id, team_b_id, total_overs, knockout_stage)

    def record_toss(self, match_id: str, winner_id: str, choice: str) -> Outcome:
        return self._run(match_engine.record_toss, match_id, winner_id, choice)

    def start_innings(self, match_id: str, striker_id: str, non_striker_id: str, bowler_id: str) -> Outcome:
        return self._run(match_engine.start_innings, match_id, striker_id, non_striker_id, bowler_id)

    def set_next_bowler(self, match_id: str, bowler_id: str) -> Outcome:
        return self._run(match_engine.set_next_bowler, match_id, bowler_id)

    def seat_next_batter(self, match_id: str, batter_id: str) -> Outcome:
        return self._run(match_engine.seat_next_batter, match_id, batter_id)

    def swap_strike(self, match_id: str) -> Outcome:
        return self._run(match_engine.swap_strike, match_id)

    def record_ball(self, match_id: str, ball: BallEvent, next_batter_id: Optional[str] = None) -> Outcome:
        return self._run(match_engine.record_ball, match_id, ball, next_batter_id)

    def undo_last_ball(self, match_id: str) -> Outcome:
        return self._run(match_engine.undo_last_ball, match_id)

    def end_match(self, match_id: str) -> Outcome:
        return self._run(match_engine.end_match, match_id)

    def abandon_match(self, match_id: str) -> Outcome:
        return self._run(match_engine.abandon_match, match_id)

    # -----------------------
    # Tournament administration
    # -----------------------
    def add_team(self, name: str, group: str, player_names: Optional[List[str]] = None) -> Team:
        with self._lock:
            team = tournament.add_team(self.state, name, group, player_names)
            self._after_write([MatchEvent("team_added", None, {"team_id": team.id})])
            return team

    def add_player(self, team_id: str, name: str) -> Player:
        with self._lock:
            player = tournament.add_player(self.state, team_id, name)
            self._after_write([MatchEvent("player_added", None, {"team_id": team_id, "player_id": player.id})])
            return player

    def remove_team(self, team_id: str) -> None:
        with self._lock:
            tournament.remove_team(self.state, team_id)
            self._after_write([MatchEvent("team_removed", None, {"team_id": team_id})])

    def remove_player(self, team_id: str, player_id: str) -> None:
        with self._lock:
            tournament.remove_player(self.state, team_id, player_id)
            self._after_write([MatchEvent("player_removed", None, {"team_id": team_id, "player_id": player_id})])

    def import_roster(self, csv_text: str) -> List[str]:
        with self._lock:
            team_ids = import_roster_csv(self.state, csv_text)
            self._after_write([MatchEvent("roster_imported", None, {"team_ids": team_ids})])
            return team_ids

    def generate_knockouts(self) -> Outcome:
        return self._run(tournament.generate_knockouts)

    def reset_tournament(self) -> Outcome:
        return self._run(tournament.reset_tournament)
