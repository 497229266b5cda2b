import logging
import os
from typing import Optional, Tuple

import httpx

from .config import settings
from .imaging import image_size
from .models import Prediction, PredictionInput, PredictionRequest

logger = logging.getLogger(__name__)


class PredictionError(RuntimeError):
    pass


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if not isinstance(body, dict):
        return default
    message = body.get("error") or body.get("detail")
    return message if isinstance(message, str) and message else default


class PredictionClient:
    """Talks to the app's prediction endpoints.

    ``POST /api/replicate`` creates a job and ``GET /api/predictions/{id}``
    reports on it. Pass ``transport`` to route requests somewhere other than
    the network.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def create_prediction(self, model: str, input: PredictionInput) -> Prediction:
        body = PredictionRequest(model=model, input=input)
        response = await self._http.post("/api/replicate", json=body.model_dump())
        if not response.is_success:
            raise PredictionError(_error_message(response, "Failed to process image"))
        prediction = Prediction.model_validate(response.json())
        logger.info("Created prediction %s (%s)", prediction.id, prediction.status)
        return prediction

    async def get_prediction(self, prediction_id: str) -> Prediction:
        response = await self._http.get(f"/api/predictions/{prediction_id}")
        if not response.is_success:
            raise PredictionError("Failed to check prediction status")
        return Prediction.model_validate(response.json())

    async def download(self, url: str, dest: str) -> Tuple[int, int]:
        """Save the image at ``url`` to ``dest`` and return its (width, height)."""
        response = await self._http.get(url, follow_redirects=True)
        response.raise_for_status()
        data = response.content
        size = image_size(data)
        dirname = os.path.dirname(dest)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        with open(dest, "wb") as f:
            f.write(data)
        logger.info("Saved %dx%d result to %s", size[0], size[1], dest)
        return size
