from dataclasses import dataclass, field

from voicelead.state_machine import IDLE_GREETING
from voicelead.states import CallState
from voicelead.transcript import Transcript


@dataclass
class CallStats:
    exchanges: int = 0
    rag_queries: int = 0


@dataclass
class WidgetSession:
    """Everything the voice widget renders. Lives for one browser session."""

    call_state: CallState = CallState.IDLE
    status_message: str = IDLE_GREETING
    transcripts: list[Transcript] = field(default_factory=list)
    error: str | None = None

    # Call metadata
    duration_seconds: int = 0
    start_time: float = 0.0
    stats: CallStats = field(default_factory=CallStats)

    is_muted: bool = False
    show_transcript: bool = False

    @property
    def is_active(self) -> bool:
        return self.call_state.is_active

    @property
    def is_agent_speaking(self) -> bool:
        return self.call_state == CallState.SPEAKING

    def reset_call_data(self) -> None:
        self.duration_seconds = 0
        self.start_time = 0.0
        self.transcripts = []
        self.stats = CallStats()


def format_duration(seconds: int) -> str:
    mins, secs = divmod(max(int(seconds), 0), 60)
    return f"{mins}:{secs:02d}"
