import uuid

import pytest

from deckbuddy.singleinstance import SingleInstanceGuard


@pytest.fixture
def key():
    return f"test_instance_{uuid.uuid4().hex}"


def test_first_instance_runs(key):
    with SingleInstanceGuard(key) as guard:
        assert guard.is_another_running() is False
        assert guard.try_to_run() is True
        assert guard.is_another_running() is False


def test_second_instance_is_blocked(key):
    with SingleInstanceGuard(key) as first, SingleInstanceGuard(key) as second:
        assert first.try_to_run() is True
        assert second.is_another_running() is True
        assert second.try_to_run() is False


def test_release_lets_other_instance_run(key):
    with SingleInstanceGuard(key) as first, SingleInstanceGuard(key) as second:
        assert first.try_to_run() is True
        first.release()
        assert second.is_another_running() is False
        assert second.try_to_run() is True
        assert first.is_another_running() is True


def test_different_keys_are_independent(key):
    with SingleInstanceGuard(key) as first, SingleInstanceGuard(key + "_other") as second:
        assert first.try_to_run() is True
        assert second.try_to_run() is True


def test_context_exit_releases(key):
    with SingleInstanceGuard(key) as first:
        assert first.try_to_run() is True
    with SingleInstanceGuard(key) as second:
        assert second.try_to_run() is True


def test_second_try_to_run_on_same_guard_releases(key):
    with SingleInstanceGuard(key) as guard, SingleInstanceGuard(key) as other:
        assert guard.try_to_run() is True
        assert guard.try_to_run() is False
        assert other.is_another_running() is False