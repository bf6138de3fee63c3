# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Reachability checks for links embedded in a Check's free text.

URLs are extracted from ``description`` and ``remediation`` and checked
concurrently, up to a bounded fan-out. Each link runs through a small state
machine::

    PENDING -> RETRYING(n) -> RESOLVED | FAILED

Every attempt issues a HEAD request (falling back to GET when the server
rejects HEAD) under a per-attempt timeout. Failed attempts are retried with
exponential backoff until the retry budget is spent. A link that becomes
reachable within the budget produces no diagnostic.

The network primitive is a :class:`LinkProbe`, so an embedding host can
route requests through its own transport while keeping the same timeout and
retry behaviour.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import enum
import logging
import re
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from checklint.compiler.index import ExpressionIndex
from checklint.compiler.resolver import Resolver
from checklint.config.settings import LinkSettings
from checklint.model.check import Check
from checklint.model.diagnostic import Diagnostic
from checklint.validation.rule import Rule, make_diagnostic

logger = logging.getLogger(__name__)

# ###############
# Public Interface
# ###############

LINK_VALIDITY = "link-validity"

Sleep = Callable[[float], Awaitable[None]]


class LinkProbeError(Exception):
    """Raised by a probe when a request fails for a reason other than a timeout."""


class LinkProbe(Protocol):
    """Issues one HTTP request and returns the final status code.

    Implementations raise :class:`LinkProbeError`, :class:`OSError`, or an
    :class:`httpx.HTTPError` when no response is obtained, and
    :class:`httpx.InvalidURL` or :class:`ValueError` for a malformed URL.
    """

    async def __call__(self, method: str, url: str, timeout: float) -> int: ...


class HttpxProbe:
    """Default probe backed by :class:`httpx.AsyncClient`.

    Args:
        max_redirects: Redirects followed before giving up.
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`.
    """

    def __init__(self, max_redirects: int = 5, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._max_redirects = max_redirects
        self._transport = transport

    async def __call__(self, method: str, url: str, timeout: float) -> int:
        async with httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=self._max_redirects,
            timeout=timeout,
            transport=self._transport,
        ) as client:
            response = await client.request(method, url)
            return response.status_code


class LinkState(enum.Enum):
    """Progress of a single link check."""

    PENDING = "pending"
    RETRYING = "retrying"
    RESOLVED = "resolved"
    FAILED = "failed"


@dataclass
class LinkCheck:
    """Mutable state of one link while it is being checked.

    Attributes:
        url: The link being checked.
        max_attempts: Total attempts allowed (first try plus retries).
        state: Current state.
        attempts: Attempts made so far.
        status: Last HTTP status received, if any.
        reason: Why the last attempt failed, if it did.
    """

    url: str
    max_attempts: int
    state: LinkState = LinkState.PENDING
    attempts: int = 0
    status: int | None = None
    reason: str | None = None

    @property
    def done(self) -> bool:
        return self.state in (LinkState.RESOLVED, LinkState.FAILED)

    def succeed(self, status: int) -> None:
        self._begin_attempt()
        self.status = status
        self.reason = None
        self.state = LinkState.RESOLVED

    def fail(self, reason: str, status: int | None = None) -> None:
        """Record a failed attempt and move to RETRYING or, once the budget is spent, FAILED."""
        self._begin_attempt()
        self.status = status
        self.reason = reason
        self.state = LinkState.FAILED if self.attempts >= self.max_attempts else LinkState.RETRYING

    def _begin_attempt(self) -> None:
        if self.done:
            raise RuntimeError(f"Link check for {self.url} already finished ({self.state.value})")
        self.attempts += 1


@dataclass
class LinkReport:
    """Outcome of checking a batch of links.

    Attributes:
        checks: One entry per distinct URL, in input order.
        truncated: True if the deadline passed or cancellation was requested
            before every link finished.
    """

    checks: list[LinkCheck] = field(default_factory=list)
    truncated: bool = False

    @property
    def failed(self) -> list[LinkCheck]:
        return [c for c in self.checks if c.state == LinkState.FAILED]

    @property
    def unfinished(self) -> list[LinkCheck]:
        return [c for c in self.checks if not c.done]


def extract_links(text: str) -> list[str]:
    """Return the distinct http(s) URLs in *text*, in order of appearance.

    Both bare URLs and markdown links (``[label](url)``) are recognised.
    Trailing sentence punctuation and an unbalanced closing parenthesis are
    not part of a URL.
    """
    links: list[str] = []
    for match in _URL_PATTERN.finditer(text):
        url = match.group(0).rstrip(_TRAILING_PUNCTUATION)
        if url not in links:
            links.append(url)
    return links


class LinkValidator:
    """Checks links concurrently with per-link timeouts and bounded retries.

    Args:
        settings: Timeout, retry, redirect, and fan-out limits.
        probe: Network primitive; an :class:`HttpxProbe` when None.
        sleep: Coroutine function awaited between attempts.
    """

    def __init__(
        self,
        settings: LinkSettings | None = None,
        *,
        probe: LinkProbe | None = None,
        sleep: Sleep | None = None,
    ) -> None:
        self._settings = settings or LinkSettings()
        self._probe = probe or HttpxProbe(max_redirects=self._settings.max_redirects)
        self._sleep = sleep or asyncio.sleep

    @property
    def settings(self) -> LinkSettings:
        return self._settings

    def check(
        self,
        urls: list[str],
        *,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> LinkReport:
        """Synchronous wrapper around :meth:`check_all`.

        When called from a thread that is already running an event loop, the
        batch runs on its own loop in a worker thread and this call blocks
        until it finishes.
        """
        batch = self.check_all(urls, deadline=deadline, cancel=cancel)
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return asyncio.run(batch)
        logger.debug("Event loop already running; checking links on a worker thread")
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
            return executor.submit(asyncio.run, batch).result()

    async def check_all(
        self,
        urls: list[str],
        *,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> LinkReport:
        """Check every URL and return the per-link outcome.

        Args:
            urls: Links to check; duplicates are checked once.
            deadline: Seconds allowed for the whole batch, or None for no limit.
            cancel: Event that, once set, stops the batch.

        Returns:
            A :class:`LinkReport`. When the batch is stopped early, links that
            had not finished stay PENDING or RETRYING and ``truncated`` is set.
        """
        checks = [LinkCheck(url=url, max_attempts=self._settings.retries + 1) for url in dict.fromkeys(urls)]
        report = LinkReport(checks=checks)
        if not checks:
            return report
        if cancel is not None and cancel.is_set():
            report.truncated = True
            return report

        stop = asyncio.Event()
        semaphore = asyncio.Semaphore(self._settings.concurrency)
        tasks = [asyncio.create_task(self._run_guarded(link, semaphore, stop)) for link in checks]
        gathered = asyncio.gather(*tasks)
        waiters: set[asyncio.Future] = {gathered}
        watcher = None
        if cancel is not None:
            watcher = asyncio.create_task(_wait_for_event(cancel))
            waiters.add(watcher)

        done, _ = await asyncio.wait(waiters, timeout=deadline, return_when=asyncio.FIRST_COMPLETED)
        if gathered not in done:
            report.truncated = True
            stop.set()
            gathered.cancel()
            await asyncio.wait(tasks)
            logger.info("Link check stopped early; %d link(s) unfinished", len(report.unfinished))
        else:
            gathered.result()
        if watcher is not None and not watcher.done():
            watcher.cancel()
        return report

    async def run_check(self, link: LinkCheck) -> LinkCheck:
        """Drive one link through its state machine until RESOLVED or FAILED."""
        while not link.done:
            if link.state == LinkState.RETRYING:
                delay = self._settings.backoff * 2 ** (link.attempts - 1)
                logger.debug("Retrying %s in %.2fs (attempt %d)", link.url, delay, link.attempts + 1)
                await self._sleep(delay)
            await self._attempt(link)
        if link.state == LinkState.FAILED:
            logger.info("Link %s unreachable after %d attempt(s): %s", link.url, link.attempts, link.reason)
        return link

    # ------------------------------------------------------------------
    # Attempt helpers
    # ------------------------------------------------------------------

    async def _run_guarded(self, link: LinkCheck, semaphore: asyncio.Semaphore, stop: asyncio.Event) -> None:
        async with semaphore:
            if stop.is_set():
                return
            await self.run_check(link)

    async def _attempt(self, link: LinkCheck) -> None:
        """Make one attempt and record its outcome on *link*."""
        timeout = self._settings.timeout
        started = time.monotonic()
        try:
            status = await self._request("HEAD", link.url, timeout)
            if status in _HEAD_REJECTED:
                logger.debug("HEAD rejected by %s (%d), falling back to GET", link.url, status)
                status = await self._request("GET", link.url, timeout)
        except asyncio.TimeoutError:
            link.fail(f"timed out after {timeout:g}s")
        except httpx.TooManyRedirects:
            link.fail(f"more than {self._settings.max_redirects} redirects")
        except httpx.TimeoutException:
            link.fail(f"timed out after {timeout:g}s")
        except httpx.ConnectError as exc:
            link.fail(f"connection failed: {exc}")
        except (httpx.InvalidURL, ValueError) as exc:
            link.fail(f"invalid URL: {exc}")
        except (httpx.HTTPError, LinkProbeError, OSError) as exc:
            link.fail(str(exc) or type(exc).__name__)
        else:
            if 200 <= status < 400:
                link.succeed(status)
            else:
                link.fail(f"HTTP status {status}", status)
        logger.debug(
            "Attempt %d for %s: %s (%.2fs)",
            link.attempts,
            link.url,
            link.state.value,
            time.monotonic() - started,
        )

    async def _request(self, method: str, url: str, timeout: float) -> int:
        return await asyncio.wait_for(self._probe(method, url, timeout), timeout)


class LinkRule:
    """The ``link-validity`` rule: every link in the free-text fields is reachable.

    Emits one error per unreachable link, attributed to the first field that
    contains it, plus one error at ``links`` when the run was stopped before
    every link was checked.
    """

    def __init__(self, validator: LinkValidator) -> None:
        self._validator = validator

    def __call__(
        self,
        check: Check,
        index: ExpressionIndex,
        resolver: Resolver,
        *,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
    ) -> list[Diagnostic]:
        locations: dict[str, str] = {}
        for field_path, text in (("description", check.description), ("remediation", check.remediation)):
            for url in extract_links(text):
                locations.setdefault(url, field_path)
        if not locations:
            return []

        if deadline is None:
            deadline = self._validator.settings.deadline
        report = self._validator.check(list(locations), deadline=deadline, cancel=cancel)

        diagnostics = [
            make_diagnostic(
                check,
                LINK_VALIDITY,
                locations[link.url],
                f"Invalid link ({link.url}): {link.reason}",
            )
            for link in report.failed
        ]
        if report.truncated:
            unfinished = report.unfinished
            diagnostics.append(
                make_diagnostic(
                    check,
                    LINK_VALIDITY,
                    "links",
                    f"Link check truncated: {len(unfinished)} of {len(report.checks)} link(s) not checked",
                )
            )
        return diagnostics


def link_rule(settings: LinkSettings, *, probe: LinkProbe | None = None, sleep: Sleep | None = None) -> Rule:
    """Build the ``link-validity`` rule."""
    validator = LinkValidator(settings, probe=probe, sleep=sleep)
    return Rule(
        LINK_VALIDITY,
        "Links in description and remediation are reachable (network)",
        LinkRule(validator),
        cancellable=True,
    )


# ################
# Implementation
# ################

# Parentheses are part of a URL only when balanced, e.g. ``/wiki/Corosync_(software)``.
_URL_PATTERN = re.compile(r"https?://(?:[^\s<>\"'`()\[\]{}]|\([^\s<>\"'`()\[\]{}]*\))+")
_TRAILING_PUNCTUATION = ".,;:!?*"

# Status codes with which servers refuse HEAD but may still serve GET.
_HEAD_REJECTED = frozenset({405, 501})

_CANCEL_POLL_INTERVAL = 0.05


async def _wait_for_event(event: threading.Event) -> None:
    """Return once *event* is set; the event may be set from another thread."""
    while not event.is_set():
        await asyncio.sleep(_CANCEL_POLL_INTERVAL)
