"""Abstract frame source with start/stop/new-sample notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, TypeVar, Union

from utils.logger import Logger, LoggerType
from vision.frames import FrameSet, StreamProfile, VideoFrame

Frame = Union[VideoFrame, FrameSet]
Handler = TypeVar("Handler", bound=Callable[..., Any])


class Event(Generic[Handler]):
    """Multicast notification; subscribe with ``+=``, leave with ``-=``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: List[Handler] = []

    def __iadd__(self, handler: Handler) -> "Event[Handler]":
        self._handlers.append(handler)
        return self

    def __isub__(self, handler: Handler) -> "Event[Handler]":
        # Bound methods compare equal per instance, so ``-=`` works with them.
        if handler in self._handlers:
            self._handlers.remove(handler)
        return self

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, handler: object) -> bool:
        return handler in self._handlers

    def invoke(self, *args: Any) -> None:
        for handler in list(self._handlers):
            handler(*args)


@dataclass
class ActiveProfile:
    """Streams a source is actually delivering after ``start``."""

    streams: List[StreamProfile] = field(default_factory=list)
    device: str = ""

    def get_stream(self, stream, index: int = 0) -> StreamProfile | None:
        for p in self.streams:
            if p.stream == stream and p.index == index:
                return p
        return None


class FrameSource(ABC):
    """
    Base class for anything that pushes frames to subscribers.

    ``on_new_sample`` handlers run on whatever thread produced the frame.
    """

    def __init__(self, logger: LoggerType | None = None) -> None:
        self.logger = logger or Logger.get_logger("vision.source")
        self.on_start: Event[Callable[[ActiveProfile], None]] = Event("on_start")
        self.on_stop: Event[Callable[[], None]] = Event("on_stop")
        self.on_new_sample: Event[Callable[[Frame], None]] = Event("on_new_sample")
        self.active_profile: ActiveProfile | None = None
        self.streaming = False

    @abstractmethod
    def start(self) -> ActiveProfile:
        """Start streaming and fire ``on_start``."""

    @abstractmethod
    def stop(self) -> None:
        """Stop streaming and fire ``on_stop``."""

    def _started(self, profile: ActiveProfile) -> ActiveProfile:
        self.active_profile = profile
        self.streaming = True
        self.logger.info(
            f"Streaming {[f'{p.stream.value}/{p.format.value}#{p.index}' for p in profile.streams]}"
        )
        self.on_start.invoke(profile)
        return profile

    def _stopped(self) -> None:
        self.streaming = False
        self.on_stop.invoke()
        self.logger.info("Streaming stopped")

    def emit(self, frame: Frame) -> None:
        """Deliver ``frame`` to every ``on_new_sample`` subscriber."""
        self.on_new_sample.invoke(frame)

    def __enter__(self) -> "FrameSource":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
