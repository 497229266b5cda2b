import logging

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .imaging import is_image
from .models import PredictionRequest
from .utils import is_remote_url, parse_data_url

logger = logging.getLogger(__name__)

app = FastAPI(title="Image Upscaler Service")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def startup_event():
    app.state.replicate = httpx.AsyncClient(
        base_url=settings.REPLICATE_API_URL,
        timeout=settings.HTTP_TIMEOUT,
    )


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.replicate.aclose()


def get_replicate_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.replicate


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _auth_headers() -> dict:
    return {"Authorization": f"Bearer {settings.REPLICATE_API_TOKEN}"}


def _upstream_error(resp: httpx.Response, default: str) -> JSONResponse:
    try:
        body = resp.json()
        message = body.get("detail") or body.get("error") or default
    except (ValueError, AttributeError):
        message = default
    if not isinstance(message, str):
        message = default
    logger.warning("Replicate returned %s: %s", resp.status_code, message)
    return error_response(resp.status_code, message)


def check_image(image: str) -> str | None:
    """Return a reason the image cannot be submitted, or None."""
    if is_remote_url(image):
        return None
    try:
        mime, payload = parse_data_url(image)
    except ValueError:
        return "Image must be a data URL or an http(s) URL"
    size_mb = len(payload) / (1024 * 1024)
    if size_mb > settings.MAX_UPLOAD_MB:
        return f"File too large ({size_mb:.2f} MB). Max {settings.MAX_UPLOAD_MB} MB"
    if not mime.startswith("image/") or not is_image(payload):
        return "Unsupported image"
    return None


@app.post("/api/replicate", status_code=201)
async def create_prediction(
    body: PredictionRequest,
    client: httpx.AsyncClient = Depends(get_replicate_client),
):
    if not settings.REPLICATE_API_TOKEN:
        return error_response(500, "REPLICATE_API_TOKEN is not set")

    problem = check_image(body.input.image)
    if problem:
        return error_response(400, problem)

    inputs = body.input.model_dump()
    if ":" in body.model:
        version = body.model.split(":", 1)[1]
        path, payload = "/predictions", {"version": version, "input": inputs}
    else:
        path, payload = f"/models/{body.model}/predictions", {"input": inputs}

    try:
        resp = await client.post(path, json=payload, headers=_auth_headers())
    except httpx.HTTPError as e:
        logger.exception("Replicate request failed")
        return error_response(502, f"Upstream request failed: {e}")
    if not resp.is_success:
        return _upstream_error(resp, "Failed to create prediction")

    try:
        prediction = resp.json()
    except ValueError:
        logger.warning("Replicate returned a non-JSON body for %s", body.model)
        return error_response(502, "Invalid response from Replicate")
    logger.info("Started prediction %s for %s", prediction.get("id"), body.model)
    return JSONResponse(prediction, status_code=201)


@app.get("/api/predictions/{prediction_id}")
async def get_prediction(
    prediction_id: str,
    client: httpx.AsyncClient = Depends(get_replicate_client),
):
    if not settings.REPLICATE_API_TOKEN:
        return error_response(500, "REPLICATE_API_TOKEN is not set")

    try:
        resp = await client.get(f"/predictions/{prediction_id}", headers=_auth_headers())
    except httpx.HTTPError as e:
        logger.exception("Replicate request failed")
        return error_response(502, f"Upstream request failed: {e}")
    if not resp.is_success:
        return _upstream_error(resp, "Failed to fetch prediction")
    try:
        return resp.json()
    except ValueError:
        logger.warning("Replicate returned a non-JSON body for prediction %s", prediction_id)
        return error_response(502, "Invalid response from Replicate")
