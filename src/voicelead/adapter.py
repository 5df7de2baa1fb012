"""Wrapper around the third-party voice session.

The session object follows the Ultravox client SDK surface: a pyee-style
emitter (`on` / `remove_listener`) raising argument-less "status" and
"transcripts" events, with the current values read from `session.status`
and `session.transcripts`, plus async `join_call(url)` / `leave_call()`.
"""

import logging
from typing import Any, Callable, Protocol

from voicelead.state_machine import CallStateMachine, Transition
from voicelead.transcript import Transcript

logger = logging.getLogger(__name__)


class VoiceSession(Protocol):
    status: Any
    transcripts: list

    def on(self, event: str, f: Callable) -> Any: ...

    def remove_listener(self, event: str, f: Callable) -> None: ...

    async def join_call(self, join_url: str) -> None: ...

    async def leave_call(self) -> None: ...


class CallSessionAdapter:
    def __init__(
        self,
        session: VoiceSession,
        machine: CallStateMachine | None = None,
        on_transition: Callable[[Transition], None] | None = None,
        on_transcripts: Callable[[list[Transcript]], None] | None = None,
    ):
        self.session = session
        self.machine = machine or CallStateMachine()
        self._on_transition = on_transition
        self._on_transcripts = on_transcripts
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.session.on("status", self._handle_status)
        self.session.on("transcripts", self._handle_transcripts)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self.session.remove_listener("status", self._handle_status)
        self.session.remove_listener("transcripts", self._handle_transcripts)
        self._attached = False

    @property
    def transcripts(self) -> list[Transcript]:
        return [Transcript.from_sdk(t) for t in (self.session.transcripts or [])]

    def _handle_status(self, *args) -> None:
        status = args[0] if args else self.session.status
        transition = self.machine.apply(status)
        if transition is not None and self._on_transition is not None:
            self._on_transition(transition)

    def _handle_transcripts(self, *args) -> None:
        if self._on_transcripts is not None:
            self._on_transcripts(self.transcripts)

    async def join(self, join_url: str) -> None:
        logger.info("Joining call")
        await self.session.join_call(join_url)

    async def leave(self) -> None:
        await self.session.leave_call()

    def set_mic_muted(self, muted: bool) -> None:
        if hasattr(self.session, "mic_muted"):
            self.session.mic_muted = muted
        else:
            logger.debug("Session does not support muting")
