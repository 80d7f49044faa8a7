"""Tests for common module (CallContext, UpdateResult)."""

import sys
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from common import (
    APPLIED,
    FAILED,
    SKIPPED,
    UNCHANGED,
    CallContext,
    OperationCancelledError,
    OperationTimeoutError,
    UpdateResult,
)


class TestCallContext:
    """Tests for CallContext."""

    def test_no_deadline(self):
        ctx = CallContext()
        assert ctx.deadline is None
        assert ctx.remaining() is None
        ctx.check()

    def test_deadline_set_from_timeout(self):
        ctx = CallContext(timeout=60)
        assert ctx.deadline is not None
        assert 0 < ctx.remaining() <= 60

    def test_expired_deadline_raises(self):
        ctx = CallContext(timeout=0)
        with pytest.raises(OperationTimeoutError):
            ctx.check()

    def test_cancel(self):
        ctx = CallContext()
        ctx.cancel()
        assert ctx.cancelled
        with pytest.raises(OperationCancelledError):
            ctx.check()

    def test_sleep_wakes_on_cancel(self):
        ctx = CallContext()
        ctx.cancel()
        start = time.monotonic()
        with pytest.raises(OperationCancelledError):
            ctx.sleep(10)
        assert time.monotonic() - start < 1

    def test_sleep_capped_by_deadline(self):
        ctx = CallContext(timeout=0.05)
        start = time.monotonic()
        with pytest.raises(OperationTimeoutError):
            ctx.sleep(10)
        assert time.monotonic() - start < 1


class TestUpdateResult:
    """Tests for UpdateResult."""

    def test_defaults(self):
        result = UpdateResult()
        assert result.name == UNCHANGED
        assert result.parent == UNCHANGED
        assert result.complete
        assert result.applied_fields == []

    def test_partial(self):
        result = UpdateResult(name=APPLIED, parent=FAILED)
        assert result.applied_fields == ['name']
        assert result.pending_fields == ['parent']
        assert not result.complete

    def test_skipped_is_pending(self):
        result = UpdateResult(name=FAILED, parent=SKIPPED)
        assert result.pending_fields == ['name', 'parent']

    def test_to_dict(self):
        assert UpdateResult(absent=True).to_dict() == {
            'name': UNCHANGED,
            'parent': UNCHANGED,
            'absent': True,
        }
