import logging

from voicelead.adapter import CallSessionAdapter, VoiceSession
from voicelead.api_client import ApiError, LeadCaptureClient
from voicelead.audio_loop import BackgroundAudioLooper
from voicelead.extraction import LeadExtractor
from voicelead.lead_form import LeadForm
from voicelead.scheduler import Repeater, Scheduler
from voicelead.session import CallStats, WidgetSession
from voicelead.state_machine import IDLE_GREETING, CallStateMachine, Transition
from voicelead.states import CallState
from voicelead.transcript import Transcript, count_exchanges, latest_agent_text, to_plain_text
from voicelead.waveform import Waveform, WaveFrame

logger = logging.getLogger(__name__)


class CallController:
    """Sequences the widget through a call.

    State changes come only from session status events (via the adapter's
    transition table) plus the local moves: `connecting` when a call is
    requested, and `idle` when the request fails or End is pressed before the
    session reports a disconnect.

    Lead-capture trigger: the form opens at the same moment the call starts,
    so the visitor can fill it in while talking.
    """

    def __init__(
        self,
        session: VoiceSession,
        api: LeadCaptureClient,
        scheduler: Scheduler,
        looper: BackgroundAudioLooper | None = None,
        extractor: LeadExtractor | None = None,
    ):
        self.api = api
        self.scheduler = scheduler
        self.looper = looper
        self.extractor = extractor
        self.state = WidgetSession()
        self.machine = CallStateMachine()
        self.adapter = CallSessionAdapter(
            session,
            machine=self.machine,
            on_transition=self._on_transition,
            on_transcripts=self._on_transcripts,
        )
        self.form = LeadForm(api, scheduler, on_closed=self._on_form_closed)
        self.waveform = Waveform()
        self._duration_timer: Repeater | None = None
        # Bumped on every start and end; a start that sees a newer value was ended.
        self._call_generation = 0

    # -- lifecycle ---------------------------------------------------------

    def mount(self) -> None:
        self.adapter.attach()
        if self.looper is not None:
            self.looper.start()

    async def unmount(self) -> None:
        self._stop_audio()
        self.adapter.detach()
        await self.adapter.leave()
        self._stop_duration_timer()

    # -- call controls -----------------------------------------------------

    async def toggle_call(self) -> None:
        if self.state.is_active:
            await self.end_call()
            return
        self._stop_audio()
        self.form.open()
        await self.start_call()

    async def start_call(self) -> None:
        self._call_generation += 1
        generation = self._call_generation
        self.state.error = None
        self._set_state(CallState.CONNECTING, "Connecting...")
        try:
            data = await self.api.create_call()
            if generation != self._call_generation:
                logger.info("Call ended before it was created, not joining")
                return
            await self.adapter.join(data["joinUrl"])
        except ApiError as e:
            if generation == self._call_generation:
                self._start_failed(e.message)
            return
        except Exception as e:
            logger.error("Failed to start call: %s", e)
            if generation == self._call_generation:
                self._start_failed(str(e) or "Failed to create call")
            return
        if generation != self._call_generation:
            logger.info("Call ended while joining, leaving")
            await self.adapter.leave()
            return
        if self.state.is_active:
            self._start_duration_timer()

    async def end_call(self) -> None:
        """Hang up and return to idle, even if the session never connected."""
        self._call_generation += 1
        await self.adapter.leave()
        self._cleanup()
        if self.state.is_active:
            # No disconnect event arrives for a call that was never joined.
            self._set_state(CallState.IDLE, IDLE_GREETING)
            if not self.form.is_open:
                self._start_audio()

    def toggle_mute(self) -> None:
        self.state.is_muted = not self.state.is_muted
        self.adapter.set_mic_muted(self.state.is_muted)

    def toggle_transcript(self) -> None:
        self.state.show_transcript = not self.state.show_transcript

    def waveform_frame(self, width: float, height: float) -> list[WaveFrame]:
        return self.waveform.frame(width, height, self.state.is_agent_speaking)

    # -- session events ----------------------------------------------------

    def _on_transition(self, transition: Transition) -> None:
        message = transition.message
        if transition.state == CallState.SPEAKING:
            message = latest_agent_text(self.state.transcripts)
        was_active = self.state.is_active
        self.state.call_state = transition.state
        self.state.status_message = message

        if transition.state == CallState.IDLE and was_active:
            self._cleanup()
            if not self.form.is_open:
                self._start_audio()

    def _on_transcripts(self, transcripts: list[Transcript]) -> None:
        self.state.transcripts = transcripts
        self.state.stats = CallStats(
            exchanges=count_exchanges(transcripts),
            rag_queries=self.state.stats.rag_queries,
        )
        last_agent = latest_agent_text(transcripts)
        if last_agent:
            self.state.status_message = last_agent
        if self.extractor is not None and self.form.is_open:
            self.form.autofill(transcripts, self.extractor)

    def _on_form_closed(self) -> None:
        self.state.error = None
        if self.state.call_state == CallState.IDLE:
            self._start_audio()

    # -- helpers -----------------------------------------------------------

    def _set_state(self, state: CallState, message: str) -> None:
        self.machine.force(state)
        self.state.call_state = state
        self.state.status_message = message

    def _start_failed(self, message: str) -> None:
        self.state.error = message
        self._set_state(CallState.IDLE, IDLE_GREETING)
        if not self.form.is_open:
            self._start_audio()

    def _start_audio(self) -> None:
        if self.looper is not None:
            self.looper.start()

    def _stop_audio(self) -> None:
        if self.looper is not None:
            self.looper.stop()

    def _start_duration_timer(self) -> None:
        self._stop_duration_timer()
        self.state.start_time = self.scheduler.time()
        self._duration_timer = Repeater(self.scheduler, 1.0, self._tick)

    def _tick(self) -> None:
        self.state.duration_seconds = int(self.scheduler.time() - self.state.start_time)

    def _stop_duration_timer(self) -> None:
        if self._duration_timer is not None:
            self._duration_timer.cancel()
            self._duration_timer = None

    def _cleanup(self) -> None:
        self._stop_duration_timer()
        if self.state.transcripts:
            logger.debug("Call transcript:\n%s", to_plain_text(self.state.transcripts))
        self.state.reset_call_data()
