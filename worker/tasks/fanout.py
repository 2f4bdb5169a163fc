"""Fault-isolating join over provider calls."""

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class OutcomeKind(StrEnum):
    PRESENT = "present"
    FAILED = "failed"
    EMPTY = "empty"


@dataclass(frozen=True)
class ProviderSuccess:
    name: str
    result: Any


@dataclass(frozen=True)
class ProviderFailure:
    name: str
    error: str


ProviderOutcome = ProviderSuccess | ProviderFailure


async def gather_outcomes(calls: Mapping[str, Awaitable[Any]]) -> dict[str, ProviderOutcome]:
    """Await every call concurrently and collect each outcome by name.

    One call failing or timing out never cancels or delays the others.
    """
    names = list(calls)
    results = await asyncio.gather(*calls.values(), return_exceptions=True)

    outcomes: dict[str, ProviderOutcome] = {}
    for name, result in zip(names, results, strict=True):
        if isinstance(result, Exception):
            outcomes[name] = ProviderFailure(name=name, error=str(result) or type(result).__name__)
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes[name] = ProviderSuccess(name=name, result=result)
    return outcomes


def classify(outcome: ProviderOutcome) -> OutcomeKind:
    """PRESENT only when the result passes its provider's content predicate."""
    if isinstance(outcome, ProviderFailure):
        logger.warning("provider_failed", provider=outcome.name, error=outcome.error)
        return OutcomeKind.FAILED
    if getattr(outcome.result, "has_real_content", False):
        return OutcomeKind.PRESENT
    logger.info("provider_empty", provider=outcome.name)
    return OutcomeKind.EMPTY
