"""Ambient audio played before a call starts.

A fixed playlist plays one clip at a time with a fixed silence gap between
clips, looping until stopped.  Starting or stopping the call (or opening
the lead form) stops the loop.

Only one gap timer and one `ended` listener may exist at any moment.  Both
`start()` and `stop()` clear them first, so rapid start/stop sequences never
leave a stale timer that would start a second track.
"""

import logging
from collections import deque
from typing import Callable, Protocol

from voicelead.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)

AUDIO_SOURCES = [
    "/shubh_tts_audio_second.mp3",
    "/shubh_tts_audio_second.mp3",
    "/shubh_tts_audio_second.mp3",
]
GAP_SECONDS = 10.0


class AudioTrack(Protocol):
    source: str

    def play(self) -> None: ...

    def stop(self) -> None:
        """Pause and rewind to the start."""

    def add_ended_listener(self, callback: Callable[[], None]) -> None: ...

    def remove_ended_listener(self, callback: Callable[[], None]) -> None: ...


class TimedClip:
    """A clip that "plays" for a fixed duration and then fires `ended`.

    Used where there is no audio device (server-side rendering, tests) and as
    the reference implementation of AudioTrack.
    """

    def __init__(self, source: str, duration: float, scheduler: Scheduler):
        self.source = source
        self.duration = duration
        self.playing = False
        self.play_count = 0
        self._scheduler = scheduler
        self._listeners: list[Callable[[], None]] = []
        self._timer: TimerHandle | None = None

    def play(self) -> None:
        if self.playing:
            return
        self.playing = True
        self.play_count += 1
        self._timer = self._scheduler.call_later(self.duration, self._finish)

    def stop(self) -> None:
        self.playing = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _finish(self) -> None:
        self._timer = None
        self.playing = False
        # Listeners may detach themselves while we iterate.
        for callback in list(self._listeners):
            callback()

    def add_ended_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def remove_ended_listener(self, callback: Callable[[], None]) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)


class BackgroundAudioLooper:
    def __init__(
        self,
        tracks: list[AudioTrack],
        scheduler: Scheduler,
        gap_seconds: float = GAP_SECONDS,
    ):
        if not tracks:
            raise ValueError("BackgroundAudioLooper needs at least one track")
        self.tracks = tracks
        self.gap_seconds = gap_seconds
        self._scheduler = scheduler
        self._active = False
        self._gap_timer: TimerHandle | None = None
        self._ended_handler: Callable[[], None] | None = None
        self._ended_track: AudioTrack | None = None
        self.current_index: int | None = None
        self.started: deque[int] = deque(maxlen=64)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def has_pending_timer(self) -> bool:
        return self._gap_timer is not None

    def start(self) -> None:
        """Start from track 0. Safe to call while already running."""
        self._active = True
        self._clear_gap_timer()
        self._play_track_at(0)

    def stop(self) -> None:
        self._active = False
        self._clear_gap_timer()
        self._stop_all_tracks()

    def _clear_gap_timer(self) -> None:
        if self._gap_timer is not None:
            self._gap_timer.cancel()
            self._gap_timer = None

    def _stop_all_tracks(self) -> None:
        if self._ended_handler is not None and self._ended_track is not None:
            self._ended_track.remove_ended_listener(self._ended_handler)
        self._ended_handler = None
        self._ended_track = None
        for track in self.tracks:
            track.stop()
        self.current_index = None

    def _play_track_at(self, idx: int) -> None:
        if not self._active:
            return
        self._stop_all_tracks()
        track = self.tracks[idx]

        def handle_ended():
            track.remove_ended_listener(handle_ended)
            if self._ended_handler is handle_ended:
                self._ended_handler = None
                self._ended_track = None
            if not self._active:
                return
            self._run_gap((idx + 1) % len(self.tracks))

        self._ended_handler = handle_ended
        self._ended_track = track
        track.add_ended_listener(handle_ended)
        self.current_index = idx
        self.started.append(idx)
        try:
            track.play()
        except Exception as e:
            logger.warning("Audio playback blocked for %s: %s", track.source, e)

    def _run_gap(self, next_idx: int) -> None:
        self._clear_gap_timer()

        def gap_done():
            self._gap_timer = None
            self._play_track_at(next_idx)

        self._gap_timer = self._scheduler.call_later(self.gap_seconds, gap_done)


def build_timed_looper(
    scheduler: Scheduler,
    clip_duration: float,
    sources: list[str] | None = None,
    gap_seconds: float = GAP_SECONDS,
) -> BackgroundAudioLooper:
    tracks = [TimedClip(src, clip_duration, scheduler) for src in (sources or AUDIO_SOURCES)]
    return BackgroundAudioLooper(tracks, scheduler, gap_seconds=gap_seconds)
