from enum import Enum

ACTIVE_STATES = {"connecting", "listening", "speaking", "processing"}


class CallState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    LISTENING = "listening"
    SPEAKING = "speaking"
    PROCESSING = "processing"

    @property
    def is_active(self) -> bool:
        return self.value in ACTIVE_STATES


class SessionStatus(Enum):
    """Statuses reported by the Ultravox client session."""

    DISCONNECTED = "disconnected"
    DISCONNECTING = "disconnecting"
    CONNECTING = "connecting"
    IDLE = "idle"
    LISTENING = "listening"
    THINKING = "thinking"
    SPEAKING = "speaking"

    @classmethod
    def parse(cls, raw) -> "SessionStatus | None":
        """Accept an enum member from any SDK or its string value."""
        if isinstance(raw, cls):
            return raw
        value = getattr(raw, "value", raw)
        if not isinstance(value, str):
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None
