"""
Submission dispatcher.

Turns one program and its test inputs into backend submissions, either as
parallel submit-and-wait requests or as chunked asynchronous batches.
"""

from __future__ import annotations

import asyncio
import typing as t

import structlog

from batchjudge import codec
from batchjudge.client import Judge0Client
from batchjudge.models import RawResult, TestInput
from batchjudge.status import ExecutionMode

log = structlog.get_logger(__name__)

T = t.TypeVar("T")


def chunked(items: t.Sequence[T], size: int) -> list[list[T]]:
    """
    Split a sequence into ordered chunks of at most ``size`` items.

    Parameters
    ----------
    items : typing.Sequence[T]
        Items to split.
    size : int
        Maximum chunk length.

    Returns
    -------
    list[list[T]]
        Chunks whose concatenation equals ``items``.
    """
    if size < 1:
        raise ValueError("Chunk size must be positive")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


class SubmissionDispatcher:
    """
    Submit a program against many stdin inputs.

    Parameters
    ----------
    client : Judge0Client
        Backend client used for every submission.
    """

    def __init__(self, *, client: Judge0Client) -> None:
        self._client = client

    async def dispatch(
        self,
        *,
        source_code: str,
        tests: t.Sequence[TestInput],
        mode: ExecutionMode,
    ) -> list[RawResult] | list[str]:
        """
        Submit ``tests`` using the requested strategy.

        Parameters
        ----------
        source_code : str
            Program to run.
        tests : typing.Sequence[TestInput]
            Test inputs, in the order results must follow.
        mode : ExecutionMode
            ``SYNC`` returns raw results, ``BATCH`` returns tokens to poll.

        Returns
        -------
        list[RawResult] | list[str]
            One entry per test, ``result[i]`` matching ``tests[i]``.
        """
        stdin_inputs = [test.input for test in tests]
        if mode is ExecutionMode.SYNC:
            return await self.execute_with_wait(source_code=source_code, stdin_inputs=stdin_inputs)
        if mode is ExecutionMode.BATCH:
            return await self.submit_batch(source_code=source_code, stdin_inputs=stdin_inputs)
        raise ValueError(f"Dispatch mode must be resolved before dispatching, got {mode!r}")

    async def execute_with_wait(
        self,
        *,
        source_code: str,
        stdin_inputs: t.Sequence[str],
    ) -> list[RawResult]:
        """
        Run every input with one submit-and-wait request, all in parallel.

        Any request failing after retries fails the whole call.
        """
        if not stdin_inputs:
            return []

        encoded_source = codec.encode(text=source_code)
        log.info(event="Executing tests with wait", test_count=len(stdin_inputs))
        results = await asyncio.gather(
            *(
                self._client.run_submission(
                    submission=self._client.build_submission(
                        encoded_source=encoded_source,
                        stdin=stdin,
                    )
                )
                for stdin in stdin_inputs
            )
        )
        return list(results)

    async def submit_batch(
        self,
        *,
        source_code: str,
        stdin_inputs: t.Sequence[str],
    ) -> list[str]:
        """
        Submit every input through the batch endpoint.

        Inputs are split into chunks of at most ``max_batch_size`` items and
        all chunks are submitted concurrently.

        Returns
        -------
        list[str]
            Tokens, ``tokens[i]`` belonging to ``stdin_inputs[i]``.
        """
        if not stdin_inputs:
            return []

        encoded_source = codec.encode(text=source_code)
        submissions = [
            self._client.build_submission(encoded_source=encoded_source, stdin=stdin)
            for stdin in stdin_inputs
        ]
        chunks = chunked(items=submissions, size=self._client.config.max_batch_size)
        log.info(
            event="Submitting batch",
            test_count=len(submissions),
            chunk_count=len(chunks),
            auth_mode=self._client.config.auth_mode.value,
        )
        token_chunks = await asyncio.gather(
            *(
                self._submit_chunk(chunk=chunk, chunk_index=index, chunk_count=len(chunks))
                for index, chunk in enumerate(chunks)
            )
        )
        tokens = [token for token_chunk in token_chunks for token in token_chunk]
        log.info(event="Batch submitted", token_count=len(tokens))
        return tokens

    async def _submit_chunk(
        self,
        *,
        chunk: list[dict[str, t.Any]],
        chunk_index: int,
        chunk_count: int,
    ) -> list[str]:
        log.debug(
            event="Submitting chunk",
            chunk=f"{chunk_index + 1}/{chunk_count}",
            chunk_size=len(chunk),
        )
        return await self._client.create_batch(submissions=chunk)
