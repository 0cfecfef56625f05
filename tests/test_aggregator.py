"""Tests for weakness aggregation."""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import make_event
from typing_insights.aggregator import (
    WeaknessAggregator,
    compute_profile,
    fatigue_buckets,
    finger_latency,
    flatten_events,
    weak_bigrams,
    weak_keys,
)
from typing_insights.config import Settings
from typing_insights.schemas import FATIGUE_BUCKETS
from typing_insights.storage import InMemoryProfileStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def q_events():
    return [make_event("q", True)] * 3 + [make_event("q", False)] * 2


class TestWeakKeys:
    def test_error_rate_and_attempts(self):
        [weak] = weak_keys(q_events())
        assert weak.key == "q"
        assert weak.error_rate == 40.0
        assert weak.total_attempts == 5

    def test_expected_is_lower_cased(self):
        events = [make_event("Q", False), make_event("q", True)]
        [weak] = weak_keys(events)
        assert weak.key == "q"
        assert weak.total_attempts == 2

    def test_non_printing_keys_are_skipped(self):
        events = [make_event(None, None, key="Shift"), make_event("", None), make_event("a", True)]
        assert [k.key for k in weak_keys(events)] == ["a"]

    def test_sorted_worst_first_and_capped(self):
        events = []
        for index, char in enumerate("abcdefghijklmnopqrstuvwxy"):
            events += [make_event(char, False)] * (index % 4)
            events += [make_event(char, True)] * 3
        ranked = weak_keys(events)
        assert len(ranked) == 20
        rates = [k.error_rate for k in ranked]
        assert rates == sorted(rates, reverse=True)

    def test_ties_keep_first_seen_order(self):
        events = [make_event("b", False), make_event("a", False)]
        assert [k.key for k in weak_keys(events)] == ["b", "a"]


class TestWeakBigrams:
    def test_second_key_wrong_fails_bigram(self):
        events = [make_event("t", True), make_event("h", False)]
        [bigram] = weak_bigrams(events)
        assert bigram.bigram == "th"
        assert bigram.error_rate == 100.0

    def test_both_correct(self):
        events = [make_event("t", True), make_event("h", True)]
        assert weak_bigrams(events)[0].error_rate == 0.0

    def test_pair_broken_by_non_printing_key(self):
        events = [make_event("t", True), make_event(None, None), make_event("h", True)]
        assert weak_bigrams(events) == []

    def test_bigram_spans_batch_boundary(self, keystroke_store):
        keystroke_store.append_batch("s1", "u1", [make_event("t", True)], received_at=NOW)
        keystroke_store.append_batch(
            "s1", "u1", [make_event("h", False)], received_at=NOW + timedelta(seconds=2)
        )
        batches = keystroke_store.recent_batches_for_user("u1", NOW - timedelta(days=1), 100)
        assert [b.bigram for b in weak_bigrams(flatten_events(batches))] == ["th"]


class TestFatigueBuckets:
    def test_defaults_to_full_accuracy(self):
        assert fatigue_buckets([]) == {bucket: 100.0 for bucket in FATIGUE_BUCKETS}

    def test_bucketed_by_elapsed_time(self):
        events = [
            make_event("a", True, timestamp=1000),
            make_event("a", False, timestamp=14999),
            make_event("a", False, timestamp=15000),
            make_event("a", True, timestamp=44999),
            make_event("a", False, timestamp=90000),
        ]
        assert fatigue_buckets(events) == {
            "0-15s": 50.0,
            "15-30s": 0.0,
            "30-60s": 100.0,
            "60s+": 0.0,
        }

    def test_epoch_timestamps_land_in_last_bucket(self, caplog):
        events = [make_event("a", False, timestamp=1_700_000_000_000)]
        buckets = fatigue_buckets(events)
        assert buckets["60s+"] == 0.0
        assert "absolute timestamps" in caplog.text


class TestFingerLatency:
    def test_averages_positive_latencies(self):
        events = [
            make_event("f", True, latency=100),
            make_event("g", True, latency=151),
            make_event("j", True, latency=0),
            make_event(" ", True, latency=80),
        ]
        assert finger_latency(events) == {"left_index": 126, "thumb": 80}

    def test_unknown_keys_grouped_as_other(self):
        assert finger_latency([make_event("!", True, latency=90)]) == {"other": 90}


class TestComputeProfile:
    def test_deterministic(self):
        events = q_events() + [make_event("t", True), make_event("h", False)]
        first = compute_profile(events)
        second = compute_profile(list(events))
        assert first.model_dump_json() == second.model_dump_json()


class TestWeaknessAggregator:
    def make(self, keystroke_store, profile_store, **settings):
        return WeaknessAggregator(
            keystroke_store, profile_store, Settings(**settings), clock=lambda: NOW
        )

    def test_run_builds_profile(self, keystroke_store, profile_store):
        keystroke_store.append_batch("s1", "u1", q_events(), received_at=NOW)
        result = self.make(keystroke_store, profile_store).run()
        assert (result.users_found, result.processed_users, result.failed_users) == (1, 1, 0)
        assert result.message == "Processed weakness profiles for 1 users"
        assert profile_store.get("u1").weak_keys[0].error_rate == 40.0

    def test_rerun_is_idempotent(self, keystroke_store, profile_store):
        keystroke_store.append_batch("s1", "u1", q_events(), received_at=NOW)
        aggregator = self.make(keystroke_store, profile_store)
        aggregator.run()
        first = profile_store.get("u1").model_dump_json()
        aggregator.run()
        assert profile_store.get("u1").model_dump_json() == first

    def test_anonymous_batches_are_ignored(self, keystroke_store, profile_store):
        keystroke_store.append_batch("s1", None, q_events(), received_at=NOW)
        result = self.make(keystroke_store, profile_store).run()
        assert result.users_found == 0
        assert len(profile_store) == 0

    def test_batches_outside_window_are_ignored(self, keystroke_store, profile_store):
        keystroke_store.append_batch("s1", "u1", q_events(), received_at=NOW - timedelta(days=31))
        result = self.make(keystroke_store, profile_store).run()
        assert result.users_found == 0
        assert profile_store.get("u1") is None

    def test_only_most_recent_batches_are_used(self, keystroke_store, profile_store):
        keystroke_store.append_batch("s1", "u1", [make_event("z", False)], received_at=NOW)
        for second in range(1, 3):
            keystroke_store.append_batch(
                "s1", "u1", [make_event("a", True)], received_at=NOW + timedelta(seconds=second)
            )
        self.make(keystroke_store, profile_store, max_batches_per_user=2).run(
            now=NOW + timedelta(minutes=1)
        )
        assert [k.key for k in profile_store.get("u1").weak_keys] == ["a"]

    def test_duplicate_batches_are_counted_twice(self, keystroke_store, profile_store):
        for _ in range(2):
            keystroke_store.append_batch("s1", "u1", q_events(), received_at=NOW)
        self.make(keystroke_store, profile_store).run()
        weak = profile_store.get("u1").weak_keys[0]
        assert weak.total_attempts == 10
        assert weak.error_rate == 40.0

    @pytest.mark.parametrize("workers", [1, 4])
    def test_failure_isolated_per_user(self, keystroke_store, workers):
        class FlakyProfileStore(InMemoryProfileStore):
            def replace(self, user_id, profile):
                if user_id == "bad":
                    raise RuntimeError("write failed")
                return super().replace(user_id, profile)

        profiles = FlakyProfileStore()
        for user_id in ("u1", "bad", "u2"):
            keystroke_store.append_batch("s-" + user_id, user_id, q_events(), received_at=NOW)

        result = self.make(keystroke_store, profiles, aggregator_workers=workers).run()
        assert (result.users_found, result.processed_users, result.failed_users) == (3, 2, 1)
        assert profiles.get("u1") is not None
        assert profiles.get("u2") is not None
        assert profiles.get("bad") is None
