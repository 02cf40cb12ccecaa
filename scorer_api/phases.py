# scorer_api/phases.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from scorer_api.models import InningsState, Match, Toss


@dataclass(frozen=True)
class AwaitingToss:
    pass


@dataclass(frozen=True)
class ReadyToStart:
    toss: Toss


@dataclass(frozen=True)
class FirstInnings:
    innings: InningsState


@dataclass(frozen=True)
class InningsBreak:
    innings1: InningsState


@dataclass(frozen=True)
class SecondInnings:
    innings1: InningsState
    innings2: InningsState

    @property
    def target(self) -> int:
        return self.innings1.total_runs + 1


@dataclass(frozen=True)
class Completed:
    innings1: Optional[InningsState]
    innings2: Optional[InningsState]
    winner_id: Optional[str]
    result_message: Optional[str]


@dataclass(frozen=True)
class Abandoned:
    result_message: Optional[str] = None


Phase = Union[AwaitingToss, ReadyToStart, FirstInnings, InningsBreak, SecondInnings, Completed, Abandoned]

# Phases in which deliveries can be bowled
PLAYING_PHASES = (FirstInnings, SecondInnings)


def match_phase(match: Match) -> Phase:
    """
    Reads the stored status/innings fields as one explicit phase, each carrying
    only the data that is valid in it.
    """
    if match.status == "abandoned":
        return Abandoned(match.result_message)
    if match.status == "completed":
        return Completed(match.innings1, match.innings2, match.winner_id, match.result_message)
    if match.status == "toss" or match.toss is None:
        return AwaitingToss()
    if match.innings1 is None:
        return ReadyToStart(match.toss)
    if match.status == "innings_break":
        return InningsBreak(match.innings1)
    if match.innings2 is None:
        return FirstInnings(match.innings1)
    return SecondInnings(match.innings1, match.innings2)


def phase_name(phase: Phase) -> str:
    return type(phase).__name__
