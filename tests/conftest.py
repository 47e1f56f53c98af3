import pytest

from engine.clock import ManualClock
from engine.document_engine import DocumentEngine
from engine.playback_scheduler import PlaybackScheduler
from models.animation import AnimationMeta
from models.document import SpriteDocument
from models.frame import SpriteFrame
from services.event_bus import EventBus


def make_frames(count, prefix="f", width=16):
    """Distinct frames laid out in one row: f0 at x=0, f1 at x=16, ..."""
    return tuple(
        SpriteFrame(id=f"{prefix}{i}", x=i * width, y=0, w=width, h=width)
        for i in range(count)
    )


@pytest.fixture
def frame_factory():
    return make_frames


@pytest.fixture
def frames():
    return make_frames(4)


@pytest.fixture
def document(frames):
    """4 frames, 'walk' over all of them, 'idle' over the first two."""
    return SpriteDocument(
        frames=frames,
        animations={"walk": (0, 1, 2, 3), "idle": (0, 1)},
        animations_meta={"walk": AnimationMeta(fps=10)},
    )


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def engine(document, bus):
    return DocumentEngine(initial=document, event_bus=bus)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def recorder():
    """Callable collecting every event it is given."""
    class Recorder:
        def __init__(self):
            self.events = []

        def __call__(self, event):
            self.events.append(event)

        def of(self, event_type):
            return [e for e in self.events if e.type == event_type]

    return Recorder()


@pytest.fixture
def one_shot_document():
    """Two 50ms frames, animation 'once' without looping."""
    return SpriteDocument(
        frames=(
            SpriteFrame(id="a", x=0, w=8, h=8, duration=50),
            SpriteFrame(id="b", x=8, w=8, h=8, duration=50),
        ),
        animations={"once": (0, 1)},
        animations_meta={"once": AnimationMeta(loop=False)},
    )


@pytest.fixture
def scheduler(document, clock):
    s = PlaybackScheduler(document, clock, animation="walk")
    yield s
    s.dispose()
