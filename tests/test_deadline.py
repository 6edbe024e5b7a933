import pytest

from ton_gateway.deadline import Deadline, effective_timeout
from ton_gateway.errors import NetworkError


def test_timeout_capped_by_remaining_time():
    deadline = Deadline.after(2.0)
    assert effective_timeout(deadline, 10.0) <= 2.0
    assert effective_timeout(Deadline.after(60.0), 10.0) == 10.0


def test_no_deadline_uses_default():
    assert effective_timeout(None, 7.5) == 7.5


def test_expired_deadline_raises():
    with pytest.raises(NetworkError) as excinfo:
        Deadline.after(-1.0).timeout_for(10.0)
    assert excinfo.value.code == "DEADLINE_EXCEEDED"
