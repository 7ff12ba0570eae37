import pytest

from musicmotion_seq.clock import SequencerClock
from musicmotion_seq.session import SequencerSession

from helpers import FakeTime, RecordingSink


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def clock(fake_time) -> SequencerClock:
    return SequencerClock(bpm=120, lookahead_s=0.1, time_fn=fake_time)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def session(sink, clock) -> SequencerSession:
    return SequencerSession(sink, clock=clock)
