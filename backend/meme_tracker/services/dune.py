from __future__ import annotations
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional, Union
from datetime import datetime

import httpx

from meme_tracker.config import Settings, get_settings
from meme_tracker.errors import (
    AuthError,
    ConfigError,
    InvalidParameterError,
    NotFoundError,
    QueryFailedError,
    QueryTimeoutError,
    ServiceError,
)
from meme_tracker.services.buyers import (
    DEFAULT_END_TIME,
    DEFAULT_START_TIME,
    MappedRows,
    format_query_datetime,
    map_rows,
    normalize_eth_address,
)

logger = logging.getLogger(__name__)

COMPLETED = "COMPLETED"
FAILED = "FAILED"
TERMINAL_STATES = {COMPLETED, FAILED, "CANCELLED", "EXPIRED"}


def clean_parameters(parameters: Optional[dict]) -> dict[str, str]:
    """Strip values and drop blank ones. Every value must be a string."""
    cleaned: dict[str, str] = {}
    for key, value in (parameters or {}).items():
        if value is None:
            continue
        if not isinstance(value, str):
            raise InvalidParameterError(
                f"Query parameter {key!r} must be a string, got {type(value).__name__}"
            )
        if value.strip():
            cleaned[key] = value.strip()
    return cleaned


def _state_name(raw: Optional[str]) -> str:
    state = (raw or "").upper()
    return state[len("QUERY_STATE_"):] if state.startswith("QUERY_STATE_") else state


def _is_transient(error: ServiceError) -> bool:
    """Errors worth another poll: 5xx, 429 and malformed 2xx bodies."""
    return error.status >= 500 or error.status == 429 or error.status < 400


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return error.get("message") or str(error)
    return error or "Unknown error"


class DuneClient:
    """Triggers a saved Dune query by id and polls it to completion.

    The schedule is a long initial wait (Dune rarely finishes a query in under
    a minute) followed by fixed-interval status checks until ``max_wait``.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.dune_api_url.rstrip("/")
        self.initial_wait = self.settings.dune_initial_wait_seconds
        self.poll_interval = self.settings.dune_poll_interval_seconds
        self.max_wait = self.settings.dune_max_wait_seconds
        self._transport = transport
        self._sleep = sleep
        self._clock = clock

    # ── low-level helpers ──────────────────────────────────────────

    def _headers(self) -> dict:
        if not self.settings.dune_configured:
            raise ConfigError("Dune API key not configured. Please set DUNE_API_KEY")
        return {"X-Dune-API-Key": self.settings.dune_api_key}

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        headers = self._headers()
        async with httpx.AsyncClient(timeout=30, transport=self._transport) as client:
            resp = await client.request(method, f"{self.base_url}{path}", headers=headers, json=json)
        if resp.status_code == 401:
            raise AuthError("Dune", 401, resp.text)
        if resp.status_code == 404:
            raise NotFoundError("Dune", 404, resp.text)
        if resp.is_error:
            raise ServiceError("Dune", resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError:
            raise ServiceError("Dune", resp.status_code, f"Malformed response body: {resp.text[:200]}")

    # ── query execution ────────────────────────────────────────────

    async def submit(self, query_id: int, parameters: Optional[dict] = None) -> str:
        """Start an execution of an existing query and return its execution id."""
        cleaned = clean_parameters(parameters)
        body = {"query_parameters": cleaned} if cleaned else {}
        logger.info(f"Dune: executing query {query_id} with parameters {cleaned}")

        data = await self._request("POST", f"/query/{query_id}/execute", json=body)
        execution_id = data.get("execution_id")
        if not execution_id:
            raise ServiceError("Dune", 200, f"Unexpected execute response: {data}")
        logger.info(f"Dune: execution started, id={execution_id}")
        return execution_id

    async def get_execution_result(self, execution_id: str) -> dict:
        return await self._request("GET", f"/execution/{execution_id}/results")

    async def await_result(self, execution_id: str, max_wait: Optional[float] = None) -> list[dict]:
        """Poll an execution until it finishes.

        Returns the result rows on COMPLETED. Raises ``QueryFailedError`` on a
        failed execution and ``QueryTimeoutError`` once ``max_wait`` seconds
        have passed. Network and 5xx errors while polling are retried inside
        the same budget.
        """
        max_wait = self.max_wait if max_wait is None else max_wait
        started = self._clock()
        check = 0

        logger.info(f"Dune: waiting {self.initial_wait:g}s before first status check of {execution_id}")
        await self._sleep(self.initial_wait)

        while self._clock() - started < max_wait:
            check += 1
            try:
                result = await self.get_execution_result(execution_id)
            except (httpx.TransportError, ServiceError) as e:
                if isinstance(e, ServiceError) and not _is_transient(e):
                    raise
                logger.warning(f"Dune: check #{check} of {execution_id} failed, will retry: {e}")
            else:
                state = _state_name(result.get("state"))
                finished = result.get("is_execution_finished")
                if finished is None:
                    finished = state in TERMINAL_STATES
                elapsed = self._clock() - started
                logger.info(f"Dune: check #{check} after {elapsed:.0f}s - state {state}")

                if finished:
                    if state == COMPLETED:
                        rows = (result.get("result") or {}).get("rows") or []
                        logger.info(f"Dune: query completed, {len(rows)} rows")
                        return rows
                    if state == FAILED:
                        message = _error_message(result.get("error"))
                        logger.error(f"Dune: execution {execution_id} failed: {message}")
                        raise QueryFailedError(message)
                    raise QueryFailedError(f"execution finished in unexpected state {state}")

            if self._clock() - started + self.poll_interval >= max_wait:
                break
            await self._sleep(self.poll_interval)

        raise QueryTimeoutError(max_wait)

    async def execute_and_wait(
        self, query_id: int, parameters: Optional[dict] = None, max_wait: Optional[float] = None
    ) -> list[dict]:
        execution_id = await self.submit(query_id, parameters)
        return await self.await_result(execution_id, max_wait=max_wait)

    # ── buyer lookup ───────────────────────────────────────────────

    async def get_token_buyers(
        self,
        token_address: str,
        start_time: Union[str, datetime, None] = None,
        end_time: Union[str, datetime, None] = None,
    ) -> MappedRows:
        """Fetch first-purchase rows for an Ethereum token inside a window."""
        parameters = {
            "token_address": normalize_eth_address(token_address),
            "start_time": format_query_datetime(start_time, default=DEFAULT_START_TIME),
            "end_time": format_query_datetime(end_time, default=DEFAULT_END_TIME),
        }
        rows = await self.execute_and_wait(self.settings.token_buyers_query_id, parameters)
        mapped = map_rows(rows)
        logger.info(
            f"Dune: {len(mapped.buyers)} buyers for {token_address[:10]} "
            f"({mapped.skipped} rows skipped)"
        )
        return mapped
