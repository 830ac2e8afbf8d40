import pytest

from scoreboard.reconciliation.single_flight import SingleFlight


def test_first_entry_wins_until_released():
    guard = SingleFlight()

    with guard.enter("P") as first:
        assert first
        assert guard.is_active("P")
        with guard.enter("P") as second:
            assert not second
        # A rejected entry must not release the winner's key.
        assert guard.is_active("P")

    assert not guard.is_active("P")


def test_keys_are_independent():
    guard = SingleFlight()

    with guard.enter("P") as p, guard.enter("Q") as q:
        assert p
        assert q


def test_released_on_exception():
    guard = SingleFlight()

    with pytest.raises(RuntimeError), guard.enter("P"):
        raise RuntimeError("boom")

    assert not guard.is_active("P")
    with guard.enter("P") as entered:
        assert entered
