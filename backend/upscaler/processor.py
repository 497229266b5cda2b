import asyncio
import logging
import os
from typing import Awaitable, Callable, Optional

from .client import PredictionClient, PredictionError
from .config import settings
from .events import PROCESS_COMPLETE, EventBus, bus
from .imaging import decode_image
from .models import MAX_SCALE, PredictionInput, ProcessComplete, UIStatus, User
from .utils import allowed_file, guess_content_type, to_data_url

logger = logging.getLogger(__name__)

UPSCALE_SERVICE = "upscale"


def _log_notify(message: str) -> None:
    logger.warning(message)


class ImageProcessor:
    """Submit one image for upscaling and follow the job to completion.

    Status changes are reported through ``on_status_change(status, message)``
    and the finished output URL is published as ``processComplete`` on
    ``events``. Without an ``events`` argument that is the module-level
    ``upscaler.events.bus``, which is shared by the whole process; pass a
    dedicated :class:`EventBus` to keep listeners scoped to one front end.
    ``notify`` shows short-lived user messages.

    Each call to :meth:`process` runs its own poll loop. Calling it again while
    a previous loop is still going does not stop the earlier one; both write
    ``status`` and ``status_message`` and the last write wins.
    """

    def __init__(
        self,
        client: PredictionClient,
        user: Optional[User] = None,
        service_id: str = UPSCALE_SERVICE,
        model: Optional[str] = None,
        poll_interval: Optional[float] = None,
        events: Optional[EventBus] = None,
        notify: Callable[[str], None] = _log_notify,
        on_status_change: Optional[Callable[[UIStatus, str], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.client = client
        self.user = user
        self.service_id = service_id
        self.model = model or settings.UPSCALE_MODEL
        self.poll_interval = settings.POLL_INTERVAL if poll_interval is None else poll_interval
        self.events = events or bus
        self.notify = notify
        self.on_status_change = on_status_change
        self._sleep = sleep

        self.scale = settings.DEFAULT_SCALE
        self.enhance_face = False
        self.selected_file: Optional[str] = None
        self.preview_url: Optional[str] = None
        self.status = UIStatus.idle
        self.status_message = ""

    # -- input selection

    def select_file(self, path: str) -> str:
        if not allowed_file(path):
            raise ValueError("Unsupported file type")
        with open(path, "rb") as f:
            data = f.read()
        decode_image(data)
        self.selected_file = path
        self.preview_url = to_data_url(data, guess_content_type(path))
        logger.debug("Selected %s (%d bytes)", os.path.basename(path), len(data))
        return self.preview_url

    def remove_file(self) -> None:
        self.selected_file = None
        self.preview_url = None

    # -- controls

    @property
    def controls_visible(self) -> bool:
        return self.service_id == UPSCALE_SERVICE

    def set_scale(self, scale: int) -> None:
        if not 1 <= scale <= MAX_SCALE:
            raise ValueError(f"Scale must be between 1 and {MAX_SCALE}")
        self.scale = scale

    def set_enhance_face(self, enabled: bool) -> None:
        self.enhance_face = bool(enabled)

    @property
    def can_process(self) -> bool:
        return bool(self.selected_file) and self.status not in (UIStatus.uploading, UIStatus.processing)

    @property
    def button_label(self) -> str:
        return "Process Image" if self.status == UIStatus.idle else "Processing..."

    # -- workflow

    def _set_status(self, status: UIStatus, message: Optional[str] = None) -> None:
        self.status = status
        if message is not None:
            self.status_message = message
        if self.on_status_change:
            self.on_status_change(status, self.status_message)

    def _set_message(self, message: str) -> None:
        self.status_message = message
        if self.on_status_change:
            self.on_status_change(self.status, message)

    async def process(self) -> Optional[str]:
        """Run the submit-and-poll workflow; return the output URL on success."""
        if not self.user:
            self.notify("Please log in to continue")
            return None

        if not self.selected_file or not self.preview_url:
            return None

        try:
            self._set_status(UIStatus.uploading, "Starting image processing...")
            prediction = await self.client.create_prediction(
                self.model,
                PredictionInput(image=self.preview_url, scale=self.scale, face_enhance=self.enhance_face),
            )
            if not prediction.id:
                raise PredictionError("Prediction response is missing an id")
            prediction_id = prediction.id
            self._set_status(UIStatus.processing)

            while not prediction.is_terminal:
                await self._sleep(self.poll_interval)
                prediction = await self.client.get_prediction(prediction_id)
                self._set_message(f"Processing: {prediction.status}")

            if prediction.status == "failed":
                raise PredictionError(prediction.error or "Processing failed")

            output_url = prediction.output_url()
            self._set_status(UIStatus.complete, "Processing complete!")
            self.events.emit(PROCESS_COMPLETE, ProcessComplete(output_url=output_url))
            return output_url
        except Exception as e:
            logger.exception("Processing failed")
            self._set_status(UIStatus.error, str(e) or "Failed to process image")
            self.notify("Processing failed. Please try again.")
            return None
