"""
HTTP transport for the Judge0 REST API.

Every request goes through ``Judge0Client._request`` which applies the
configured authentication headers, the retry policy and error
classification. Callers only see decoded ``RawResult`` objects, tokens, or
``batchjudge.exceptions`` errors.
"""

from __future__ import annotations

import asyncio
import contextlib
import typing as t

import httpx
import structlog
from pydantic import ValidationError

from batchjudge import codec
from batchjudge.config import Judge0Config
from batchjudge.exceptions import SubmissionRejectedError, TransportError
from batchjudge.models import RawResult

log = structlog.get_logger(__name__)

SUBMISSIONS_PATH = "/submissions"
BATCH_PATH = "/submissions/batch"
RETRYABLE_STATUS_CODES = frozenset({429})


class Judge0Client:
    """
    Thin async client over the submission endpoints.

    Parameters
    ----------
    config : Judge0Config
        Backend configuration.
    """

    def __init__(self, *, config: Judge0Config) -> None:
        self._config = config
        self._client_factory: t.Callable[[], httpx.AsyncClient] = lambda: httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.auth_headers(),
            timeout=config.request_timeout,
        )
        self._sleep: t.Callable[[float], t.Awaitable[None]] = asyncio.sleep
        self._semaphore: asyncio.Semaphore | None = (
            asyncio.Semaphore(value=config.max_concurrent_requests)
            if config.max_concurrent_requests is not None
            else None
        )

    @property
    def config(self) -> Judge0Config:
        return self._config

    def build_submission(self, *, encoded_source: str, stdin: str) -> dict[str, t.Any]:
        """
        Build one submission body.

        Parameters
        ----------
        encoded_source : str
            Source code, already base64 encoded so it is encoded once per run.
        stdin : str
            Plain text standard input.

        Returns
        -------
        dict[str, typing.Any]
            Submission object accepted by the create endpoints.
        """
        return {
            "source_code": encoded_source,
            "language_id": self._config.language_id,
            "stdin": codec.encode(text=stdin),
        }

    async def run_submission(self, *, submission: dict[str, t.Any]) -> RawResult:
        """
        Create a submission and wait for its result in the same request.
        """
        response = await self._request(
            method="POST",
            path=SUBMISSIONS_PATH,
            params={"base64_encoded": "true", "wait": "true", "fields": "*"},
            json_body=submission,
            retries=self._config.max_retries,
        )
        return self._result(response=response, payload=self._json(response=response))

    async def create_submission(self, *, submission: dict[str, t.Any]) -> str:
        """
        Create a submission without waiting and return its token.
        """
        response = await self._request(
            method="POST",
            path=SUBMISSIONS_PATH,
            params={"base64_encoded": "true", "wait": "false", "fields": "*"},
            json_body=submission,
            retries=self._config.max_retries,
        )
        payload = self._json(response=response)
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token:
            raise SubmissionRejectedError(
                "Submission response did not contain a token",
                status_code=response.status_code,
                body=response.text,
            )
        return token

    async def create_batch(self, *, submissions: list[dict[str, t.Any]]) -> list[str]:
        """
        Create up to ``max_batch_size`` submissions in one request.

        Parameters
        ----------
        submissions : list[dict[str, typing.Any]]
            Submission bodies, in order.

        Returns
        -------
        list[str]
            Tokens in the same order as ``submissions``.

        Raises
        ------
        SubmissionRejectedError
            If the backend refused the batch or any item of it.
        TransportError
            If the request kept failing after retries.
        """
        if len(submissions) > self._config.max_batch_size:
            raise ValueError(
                f"Batch of {len(submissions)} exceeds max_batch_size={self._config.max_batch_size}"
            )
        response = await self._request(
            method="POST",
            path=BATCH_PATH,
            params={"base64_encoded": "true"},
            json_body={"submissions": submissions},
            retries=self._config.max_retries,
        )
        payload = self._json(response=response)
        if not isinstance(payload, list) or len(payload) != len(submissions):
            raise SubmissionRejectedError(
                "Batch response does not match the submitted items",
                status_code=response.status_code,
                body=response.text,
            )
        tokens: list[str] = []
        for index, item in enumerate(payload):
            token = item.get("token") if isinstance(item, dict) else None
            if not token:
                raise SubmissionRejectedError(
                    f"Batch item {index} was rejected: {item}",
                    status_code=response.status_code,
                    body=response.text,
                )
            tokens.append(token)
        return tokens

    async def get_submissions(self, *, tokens: list[str], retries: int = 0) -> list[RawResult]:
        """
        Fetch the current state of up to ``max_batch_size`` submissions.

        Parameters
        ----------
        tokens : list[str]
            Tokens to look up.
        retries : int, optional
            Transport retries for this request. Polling relies on its own
            rounds, so the default is none.

        Returns
        -------
        list[RawResult]
            Decoded results. The backend may omit or reorder entries.
        """
        response = await self._request(
            method="GET",
            path=BATCH_PATH,
            params={"tokens": ",".join(tokens), "base64_encoded": "true", "fields": "*"},
            retries=retries,
        )
        payload = self._json(response=response)
        submissions = payload.get("submissions", []) if isinstance(payload, dict) else payload
        return [
            self._result(response=response, payload=item)
            for item in submissions
            if isinstance(item, dict)
        ]

    async def get_submission(self, *, token: str, retries: int = 0) -> RawResult:
        response = await self._request(
            method="GET",
            path=f"{SUBMISSIONS_PATH}/{token}",
            params={"base64_encoded": "true", "fields": "*"},
            retries=retries,
        )
        return self._result(response=response, payload=self._json(response=response))

    @staticmethod
    def _result(*, response: httpx.Response, payload: t.Any) -> RawResult:
        try:
            return RawResult.from_wire(payload=payload)
        except (TypeError, ValueError, ValidationError) as error:
            raise SubmissionRejectedError(
                f"Backend returned a malformed submission: {error}",
                status_code=response.status_code,
                body=response.text,
            ) from error

    @staticmethod
    def _json(*, response: httpx.Response) -> t.Any:
        try:
            return response.json()
        except ValueError as error:
            raise SubmissionRejectedError(
                "Backend returned a non-JSON response",
                status_code=response.status_code,
                body=response.text,
            ) from error

    async def _request(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, str],
        retries: int,
        json_body: t.Any = None,
    ) -> httpx.Response:
        """
        Execute a request with bounded retries on transport failures.

        Network errors, 5xx and 429 responses are retried up to ``retries``
        times, the n-th retry waiting ``n * retry_delay`` seconds. Other 4xx
        responses are rejections and are raised at once.

        Returns
        -------
        httpx.Response
            Successful response.
        """
        last_error: str = ""
        last_status: int | None = None
        for attempt in range(retries + 1):
            try:
                async with self._semaphore or contextlib.nullcontext():
                    async with self._client_factory() as client:
                        response = await client.request(
                            method=method,
                            url=path,
                            params=params,
                            json=json_body,
                        )
            except httpx.TransportError as error:
                last_error = f"{type(error).__name__}: {error}"
                last_status = None
            else:
                status_code = response.status_code
                if response.is_success:
                    return response
                if status_code < 500 and status_code not in RETRYABLE_STATUS_CODES:
                    log.error(
                        event="Judge0 rejected request",
                        method=method,
                        path=path,
                        status_code=status_code,
                    )
                    raise SubmissionRejectedError(
                        f"Judge0 request failed: {status_code} - {response.text}",
                        status_code=status_code,
                        body=response.text,
                    )
                last_error = f"{status_code} - {response.text}"
                last_status = status_code

            if attempt < retries:
                delay = self._config.retry_delay * (attempt + 1)
                log.warning(
                    event="Judge0 request failed, retrying",
                    method=method,
                    path=path,
                    attempt=attempt + 1,
                    retries=retries,
                    delay_seconds=delay,
                    error=last_error,
                )
                await self._sleep(delay)

        raise TransportError(
            f"Judge0 {method} {path} failed after {retries + 1} attempt(s): {last_error}",
            status_code=last_status,
        )
