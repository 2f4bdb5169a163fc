"""Tests for recap sanitizing and merging."""

from api.models.audit import RecapTab
from worker.tasks.recap import (
    MAX_RISK_LENGTH,
    MAX_RISKS,
    MAX_SUMMARY_LENGTH,
    merge_recap,
    sanitize_recap,
)


class TestSanitizeRecap:
    """Tests for sanitize_recap."""

    def test_known_tabs_only(self):
        result = sanitize_recap(
            {
                "website": {"summary": "Slow homepage"},
                "billing": {"summary": "not a tab"},
            }
        )
        assert list(result) == ["website"]
        assert result["website"] == RecapTab(summary="Slow homepage")

    def test_non_object_tab_values_dropped(self):
        result = sanitize_recap({"seo": "just a string", "local": ["x"], "content": None})
        assert result == {}

    def test_fields_coerced_and_trimmed(self):
        result = sanitize_recap(
            {"social": {"summary": "  Weak previews  ", "opportunity": 42, "extra": "ignored"}}
        )
        assert result["social"] == RecapTab(summary="Weak previews", risks=[], opportunity="42")

    def test_risks_from_text_block(self):
        result = sanitize_recap({"seo": {"risks": "Thin content\n\nNo backlinks\n"}})
        assert result["seo"].risks == ["Thin content", "No backlinks"]

    def test_risks_from_list(self):
        result = sanitize_recap({"seo": {"risks": ["  A ", "", None, 7]}})
        assert result["seo"].risks == ["A", "7"]

    def test_caps(self):
        result = sanitize_recap(
            {
                "website": {
                    "summary": "s" * (MAX_SUMMARY_LENGTH + 50),
                    "risks": ["r" * (MAX_RISK_LENGTH + 10)] * (MAX_RISKS + 4),
                }
            }
        )
        assert len(result["website"].summary) == MAX_SUMMARY_LENGTH
        assert len(result["website"].risks) == MAX_RISKS
        assert all(len(r) == MAX_RISK_LENGTH for r in result["website"].risks)


class TestMergeRecap:
    """Tests for merge_recap."""

    def test_supplied_tabs_replace_others_stay(self):
        current = {
            "website": RecapTab(summary="old website"),
            "seo": RecapTab(summary="old seo", risks=["a"]),
        }
        patch = {"seo": RecapTab(summary="new seo")}

        merged = merge_recap(current, patch)

        assert merged["website"].summary == "old website"
        assert merged["seo"] == RecapTab(summary="new seo")
        assert current["seo"].summary == "old seo"

    def test_empty_patch(self):
        current = {"local": RecapTab(summary="kept")}
        assert merge_recap(current, {}) == current
