import logging
from dataclasses import dataclass

from voicelead.states import CallState, SessionStatus

logger = logging.getLogger(__name__)

IDLE_GREETING = (
    "Have a conversation with a Transmonk voice agent. Ask anything about HVAC "
    "systems, and leave your info if you'd like the team to follow up."
)


@dataclass(frozen=True)
class Transition:
    state: CallState
    message: str


# DISCONNECTING has no entry; the state holds until DISCONNECTED arrives.
TRANSITIONS = {
    SessionStatus.DISCONNECTED: Transition(CallState.IDLE, IDLE_GREETING),
    SessionStatus.CONNECTING: Transition(CallState.CONNECTING, "Connecting..."),
    SessionStatus.IDLE: Transition(CallState.LISTENING, "Ready! Start speaking..."),
    SessionStatus.LISTENING: Transition(CallState.LISTENING, "Listening..."),
    SessionStatus.THINKING: Transition(CallState.PROCESSING, "Thinking..."),
    SessionStatus.SPEAKING: Transition(CallState.SPEAKING, ""),
}


class CallStateMachine:
    """Maps external session statuses onto local call states.

    Holds only the current state; there are no timeouts or retries. If the
    session never reports DISCONNECTED the machine stays where it is.
    """

    def __init__(self, initial: CallState = CallState.IDLE):
        self.state = initial

    def transition_for(self, status) -> Transition | None:
        parsed = SessionStatus.parse(status)
        if parsed is None:
            logger.debug("Ignoring unknown session status %r", status)
            return None
        return TRANSITIONS.get(parsed)

    def apply(self, status) -> Transition | None:
        """Apply an external status. Returns the transition taken, or None."""
        transition = self.transition_for(status)
        if transition is None:
            return None
        if transition.state != self.state:
            logger.info("Call state %s -> %s", self.state.value, transition.state.value)
        self.state = transition.state
        return transition

    def force(self, state: CallState) -> None:
        """Set the state directly (start-call and start-failure paths)."""
        self.state = state

    def run(self, statuses) -> list[CallState]:
        """Feed a sequence of statuses; return the resulting state per accepted status."""
        states = []
        for status in statuses:
            if self.apply(status) is not None:
                states.append(self.state)
        return states
