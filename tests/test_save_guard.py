import pytest

from backend.app.services.exceptions import SaveInProgressError
from backend.app.services.save_guard import SaveGuard


def test_second_save_for_same_key_is_rejected():
    guard = SaveGuard()
    with guard.hold(1):
        assert guard.is_busy(1)
        with pytest.raises(SaveInProgressError):
            with guard.hold(1):
                pass
    assert not guard.is_busy(1)


def test_different_keys_do_not_block_each_other():
    guard = SaveGuard()
    with guard.hold(1):
        with guard.hold(2):
            assert guard.is_busy(1) and guard.is_busy(2)


def test_key_is_released_after_failure():
    guard = SaveGuard()
    with pytest.raises(RuntimeError):
        with guard.hold("lead-1"):
            raise RuntimeError("write failed")
    with guard.hold("lead-1"):
        pass
