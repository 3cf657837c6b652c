"""Tests for per-step failure handling."""
import pytest

from zfsvol.core.errors import ZFSError
from zfsvol.core.failure_policy import FailurePolicy, policy_for, run_step


def boom():
    raise ZFSError("pool unavailable")


def test_policy_table():
    assert policy_for('get', 'creation') == FailurePolicy.LOG_AND_OMIT
    assert policy_for('remove', 'cleanup_mountpoint') == FailurePolicy.LOG_AND_CONTINUE
    assert policy_for('remove', 'destroy') == FailurePolicy.PROPAGATE
    assert policy_for('unknown', 'step') == FailurePolicy.PROPAGATE


def test_propagate():
    with pytest.raises(ZFSError):
        run_step('create', 'pool_create', boom)


def test_tolerated_failure_logged(caplog):
    assert run_step('get', 'creation', boom, context='data') is None
    assert 'get: creation unavailable (data): pool unavailable' in caplog.text


def test_result_passed_through():
    assert run_step('list', 'volume', lambda a, b: a + b, 1, 2) == 3
