"""
MockV3Aggregator — price feed stand-in for development chains.

Mirrors the aggregator read interface that price consumers use
(`decimals`, `latest_round_data`, `get_round_data`) and lets tests push
new answers. Every `update_answer` opens a new round stamped with the
current block timestamp.
"""
from collections import namedtuple
from typing import Dict

from chain.contract import Contract, external, view

# ── Contract Metadata ──────────────────────────────────────────────
CONTRACT_NAME = "MockV3Aggregator"
CONTRACT_DESCRIPTION = "Settable price feed returning aggregator-style round data."
CONTRACT_VERSION = "0.6.0"
CONTRACT_METHODS = [
    "decimals", "latest_answer", "latest_timestamp", "latest_round",
    "get_answer", "get_timestamp", "update_answer", "update_round_data",
    "get_round_data", "latest_round_data", "description", "version",
]

RoundData = namedtuple(
    "RoundData", ["round_id", "answer", "started_at", "updated_at", "answered_in_round"]
)


class MockV3Aggregator(Contract):
    EVENTS = {
        "AnswerUpdated": ("current", "roundId", "updatedAt"),
        "NewRound": ("roundId", "startedBy", "startedAt"),
    }

    def __init__(self, decimals: int, initial_answer: int):
        self._decimals = int(decimals)
        self._latest_answer = 0
        self._latest_timestamp = 0
        self._latest_round = 0
        self._answers: Dict[int, int] = {}
        self._timestamps: Dict[int, int] = {}
        self._started_at: Dict[int, int] = {}
        self._update_answer(int(initial_answer))

    @view
    def decimals(self) -> int:
        return self._decimals

    @view
    def description(self) -> str:
        return "v0.6/tests/MockV3Aggregator.sol"

    @view
    def version(self) -> int:
        return 0

    @view
    def latest_answer(self) -> int:
        return self._latest_answer

    @view
    def latest_timestamp(self) -> int:
        return self._latest_timestamp

    @view
    def latest_round(self) -> int:
        return self._latest_round

    @view
    def get_answer(self, round_id: int) -> int:
        return self._answers.get(round_id, 0)

    @view
    def get_timestamp(self, round_id: int) -> int:
        return self._timestamps.get(round_id, 0)

    @view
    def get_round_data(self, round_id: int) -> RoundData:
        return RoundData(
            round_id=round_id,
            answer=self._answers.get(round_id, 0),
            started_at=self._started_at.get(round_id, 0),
            updated_at=self._timestamps.get(round_id, 0),
            answered_in_round=round_id,
        )

    @view
    def latest_round_data(self) -> RoundData:
        return self.get_round_data(self._latest_round)

    @external
    def update_answer(self, answer: int) -> None:
        self._update_answer(int(answer))

    @external
    def update_round_data(self, round_id: int, answer: int, timestamp: int, started_at: int) -> None:
        self._latest_round = round_id
        self._latest_answer = answer
        self._latest_timestamp = timestamp
        self._answers[round_id] = answer
        self._timestamps[round_id] = timestamp
        self._started_at[round_id] = started_at

    def _update_answer(self, answer: int) -> None:
        now = self.block_timestamp
        self._latest_answer = answer
        self._latest_timestamp = now
        self._latest_round += 1
        self._answers[self._latest_round] = answer
        self._timestamps[self._latest_round] = now
        self._started_at[self._latest_round] = now
        self.emit("AnswerUpdated", answer, self._latest_round, now)
        self.emit("NewRound", self._latest_round, self.msg.sender, now)
