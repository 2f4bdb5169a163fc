"""Sanitize and merge editor recap patches."""

from collections.abc import Mapping
from typing import Any

from api.models.audit import RECAP_TABS, RecapTab

MAX_SUMMARY_LENGTH = 1500
MAX_OPPORTUNITY_LENGTH = 1000
MAX_RISK_LENGTH = 300
MAX_RISKS = 8


def _text(value: Any, limit: int) -> str:
    if value is None:
        return ""
    return str(value).strip()[:limit]


def _risks(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = value.splitlines()
    elif isinstance(value, list | tuple):
        items = value
    else:
        items = [value]
    risks = [_text(item, MAX_RISK_LENGTH) for item in items if item is not None]
    return [r for r in risks if r][:MAX_RISKS]


def sanitize_recap(raw: Mapping[str, Any]) -> dict[str, RecapTab]:
    """Keep known tabs with object values, with every field coerced and capped."""
    sanitized: dict[str, RecapTab] = {}
    for tab in RECAP_TABS:
        value = raw.get(tab)
        if not isinstance(value, Mapping):
            continue
        sanitized[tab] = RecapTab(
            summary=_text(value.get("summary"), MAX_SUMMARY_LENGTH),
            risks=_risks(value.get("risks")),
            opportunity=_text(value.get("opportunity"), MAX_OPPORTUNITY_LENGTH),
        )
    return sanitized


def merge_recap(
    current: Mapping[str, RecapTab], patch: Mapping[str, RecapTab]
) -> dict[str, RecapTab]:
    """Shallow merge by tab: supplied tabs replace stored ones, others stay."""
    merged = dict(current)
    merged.update(patch)
    return merged
