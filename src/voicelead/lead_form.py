import logging
from dataclasses import asdict, dataclass, fields
from typing import Callable

from voicelead.api_client import ApiError, LeadCaptureClient
from voicelead.extraction import LeadExtractor
from voicelead.scheduler import Scheduler, TimerHandle
from voicelead.transcript import Transcript

logger = logging.getLogger(__name__)

SUCCESS_PANEL_SECONDS = 2.0
REQUIRED_FIELDS = ("name", "email")


@dataclass
class UserInfo:
    name: str = ""
    phone: str = ""
    email: str = ""
    organization: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    def missing_required(self) -> list[str]:
        return [f for f in REQUIRED_FIELDS if not getattr(self, f).strip()]


FIELD_NAMES = {f.name for f in fields(UserInfo)}


class LeadForm:
    """Contact form shown alongside the call.

    Submit stays disabled until name and email are filled in, and again
    while the success panel is showing.  A successful submit shows the
    success panel for two seconds and then closes; a failed submit keeps the form open with the error shown inline.
    """

    def __init__(
        self,
        api: LeadCaptureClient,
        scheduler: Scheduler,
        on_closed: Callable[[], None] | None = None,
    ):
        self.api = api
        self._scheduler = scheduler
        self._on_closed = on_closed
        self._close_timer: TimerHandle | None = None
        self.user_info = UserInfo()
        self.is_open = False
        self.is_submitting = False
        self.submit_success = False
        self.error: str | None = None

    @property
    def can_submit(self) -> bool:
        return (
            self.is_open
            and not self.submit_success
            and not self.is_submitting
            and not self.user_info.missing_required()
        )

    def open(self) -> None:
        self.is_open = True

    def set_field(self, name: str, value: str) -> None:
        if name not in FIELD_NAMES:
            raise KeyError(f"Unknown form field: {name}")
        setattr(self.user_info, name, value)

    def autofill(self, transcripts: list[Transcript], extractor: LeadExtractor) -> dict[str, str]:
        """Fill empty fields from the transcript. Never overwrites typed input."""
        filled = {}
        for name, value in extractor.extract(transcripts).items():
            if name in FIELD_NAMES and value and not getattr(self.user_info, name):
                setattr(self.user_info, name, value)
                filled[name] = value
        return filled

    def _reset(self) -> None:
        self.user_info = UserInfo()
        self.submit_success = False

    def _close(self) -> None:
        self._close_timer = None
        self.is_open = False
        self._reset()
        if self._on_closed is not None:
            self._on_closed()

    def cancel(self) -> None:
        if self._close_timer is not None:
            self._close_timer.cancel()
        self.error = None
        self._close()

    async def submit(self) -> bool:
        """Post the form. Returns True once the confirmation was accepted."""
        if not self.can_submit:
            logger.debug(
                "Submit ignored (open=%s, success=%s, missing=%s)",
                self.is_open,
                self.submit_success,
                self.user_info.missing_required(),
            )
            return False

        self.is_submitting = True
        self.error = None
        try:
            await self.api.send_confirmation(self.user_info.to_dict())
        except ApiError as e:
            self.error = e.message
            return False
        except Exception as e:
            logger.error("send-confirmation request failed: %s", e)
            self.error = str(e) or "Failed to send confirmation"
            return False
        finally:
            self.is_submitting = False

        self.submit_success = True
        if self._close_timer is not None:
            self._close_timer.cancel()
        self._close_timer = self._scheduler.call_later(SUCCESS_PANEL_SECONDS, self._close)
        return True
