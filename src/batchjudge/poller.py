"""
Batched status polling for asynchronous submissions.

Polling runs in rounds. Each round fetches the status of every pending
token, split into chunks of at most ``max_batch_size`` tokens fetched
concurrently, and only ends once every chunk request has settled or the
deadline has passed. Between rounds the poller sleeps with a capped
multiplicative backoff until all jobs are terminal or the wall-clock
deadline elapses.
"""

from __future__ import annotations

import asyncio
import time
import typing as t
from dataclasses import dataclass

import structlog

from batchjudge.client import Judge0Client
from batchjudge.dispatcher import chunked
from batchjudge.models import RawResult
from batchjudge.status import JobState

log = structlog.get_logger(__name__)


@dataclass
class TrackedJob:
    """
    Polling state of one token.

    ``state`` only moves forward: ``QUEUED -> PROCESSING -> TERMINAL``.
    ``result`` is set exactly when the job becomes terminal.
    """

    index: int
    token: str
    state: JobState = JobState.QUEUED
    result: RawResult | None = None

    @property
    def pending(self) -> bool:
        return self.state is not JobState.TERMINAL

    def advance(self, *, result: RawResult) -> None:
        """
        Apply a status observation to the job.

        Parameters
        ----------
        result : RawResult
            Latest result reported for this token.
        """
        if not self.pending:
            return
        new_state = JobState.from_status_id(status_id=result.status.id)
        if new_state is JobState.TERMINAL:
            self.state = JobState.TERMINAL
            self.result = result
        elif new_state is JobState.PROCESSING:
            self.state = JobState.PROCESSING


class Poller:
    """
    Drive asynchronous submissions to a terminal state.

    Parameters
    ----------
    client : Judge0Client
        Backend client used for status requests. Its configuration supplies
        the deadline, the backoff parameters and the chunk size.
    """

    def __init__(self, *, client: Judge0Client) -> None:
        self._client = client
        config = client.config
        self._timeout = config.timeout
        self._initial_interval = config.initial_poll_interval
        self._max_interval = config.max_poll_interval
        self._backoff_factor = config.poll_backoff_factor
        self._chunk_size = config.max_batch_size
        self._sleep: t.Callable[[float], t.Awaitable[None]] = asyncio.sleep
        self._clock: t.Callable[[], float] = time.monotonic

    def next_interval(self, *, interval: float) -> float:
        """Return the sleep following ``interval``, capped at the maximum."""
        return min(interval * self._backoff_factor, self._max_interval)

    async def poll(self, *, tokens: t.Sequence[str]) -> list[RawResult]:
        """
        Poll ``tokens`` until all are terminal or the deadline elapses.

        Parameters
        ----------
        tokens : typing.Sequence[str]
            Tokens returned by the batch submission.

        Returns
        -------
        list[RawResult]
            One result per token, in the order of ``tokens``. Tokens still
            pending at the deadline get a synthetic time-limit result.
        """
        jobs = [TrackedJob(index=index, token=token) for index, token in enumerate(tokens)]
        if not jobs:
            return []

        jobs_by_token: dict[str, list[TrackedJob]] = {}
        for job in jobs:
            jobs_by_token.setdefault(job.token, []).append(job)

        deadline = self._clock() + self._timeout
        interval = self._initial_interval
        round_number = 0
        log.info(event="Polling submissions", token_count=len(jobs), timeout_seconds=self._timeout)

        while True:
            pending = [job for job in jobs if job.pending]
            if not pending or self._clock() >= deadline:
                break

            round_number += 1
            await self._poll_round(
                pending=pending,
                jobs_by_token=jobs_by_token,
                timeout=deadline - self._clock(),
            )

            remaining = sum(1 for job in jobs if job.pending)
            log.debug(
                event="Poll round finished",
                round=round_number,
                completed=len(jobs) - remaining,
                pending=remaining,
                total=len(jobs),
            )
            if remaining and self._clock() < deadline:
                await self._sleep(interval)
                interval = self.next_interval(interval=interval)

        unresolved = [job for job in jobs if job.pending]
        if unresolved:
            log.warning(
                event="Polling deadline reached",
                unresolved_count=len(unresolved),
                timeout_seconds=self._timeout,
            )
        return [
            job.result if job.result is not None else RawResult.polling_timeout(token=job.token)
            for job in jobs
        ]

    async def poll_one(self, *, token: str) -> RawResult:
        """Poll a single token with the same rounds, backoff and deadline."""
        results = await self.poll(tokens=[token])
        return results[0]

    async def _poll_round(
        self,
        *,
        pending: list[TrackedJob],
        jobs_by_token: dict[str, list[TrackedJob]],
        timeout: float,
    ) -> None:
        """
        Fetch every pending token once and apply the observations.

        A failed chunk request resolves nothing for its tokens; they are
        fetched again on the next round. Chunk requests still in flight after
        ``timeout`` seconds are cancelled, keeping the results of the others.
        """
        pending_tokens = list(dict.fromkeys(job.token for job in pending))
        chunks = chunked(items=pending_tokens, size=self._chunk_size)
        tasks = [
            asyncio.create_task(self._client.get_submissions(tokens=chunk)) for chunk in chunks
        ]
        try:
            _, unfinished = await asyncio.wait(tasks, timeout=max(timeout, 0.0))
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
        if unfinished:
            await asyncio.gather(*unfinished, return_exceptions=True)
            log.warning(event="Status poll cut off by deadline", chunk_count=len(unfinished))

        for chunk, task in zip(chunks, tasks):
            if task.cancelled():
                continue
            outcome = task.exception() or task.result()
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                log.warning(
                    event="Status poll failed",
                    chunk_size=len(chunk),
                    error=str(object=outcome),
                )
                continue
            for result in outcome:
                if result.token is None:
                    continue
                for job in jobs_by_token.get(result.token, []):
                    job.advance(result=result)
