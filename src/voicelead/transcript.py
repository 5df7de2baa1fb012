from dataclasses import dataclass

USER = "user"
AGENT = "agent"


@dataclass(frozen=True)
class Transcript:
    speaker: str
    text: str
    is_final: bool = True

    @classmethod
    def from_sdk(cls, raw) -> "Transcript":
        """Build from an SDK transcript object or a plain dict."""
        if isinstance(raw, dict):
            return cls(
                speaker=str(raw.get("speaker", "")),
                text=raw.get("text", ""),
                is_final=raw.get("is_final", raw.get("isFinal", True)),
            )
        speaker = getattr(raw, "speaker", "")
        return cls(
            speaker=getattr(speaker, "value", speaker),
            text=getattr(raw, "text", ""),
            is_final=getattr(raw, "is_final", True),
        )


def latest_agent_text(transcripts: list[Transcript]) -> str:
    """Most recent agent line, or empty string if the agent hasn't spoken."""
    for t in reversed(transcripts):
        if t.speaker == AGENT:
            return t.text
    return ""


def count_exchanges(transcripts: list[Transcript]) -> int:
    return sum(1 for t in transcripts if t.speaker == USER)


def to_plain_text(transcripts: list[Transcript]) -> str:
    """Agent lines prefixed with "Agent:", visitor lines with "Visitor:"."""
    if not transcripts:
        return ""

    lines = []
    for t in transcripts:
        if t.speaker == AGENT:
            lines.append(f"Agent: {t.text}")
        elif t.speaker == USER:
            lines.append(f"Visitor: {t.text}")
    return "\n".join(lines)
