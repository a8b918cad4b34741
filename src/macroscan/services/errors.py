"""User-facing messages for failed scans."""

import httpx

from macroscan.services.retry import (
    HTTP_SERVER_ERROR,
    HTTP_TOO_MANY_REQUESTS,
    status_code_from_exception,
)
from macroscan.services.vision import VisionResponseError

HTTP_UNAUTHORIZED = 401
HTTP_FORBIDDEN = 403

TIMEOUT_MESSAGE = "The request timed out. Check your internet connection."
NETWORK_MESSAGE = (
    "There is a problem with the network connection. Check your internet connection."
)
AUTH_MESSAGE = (
    "Authentication with the analysis service failed. Contact the administrator."
)
RATE_LIMIT_MESSAGE = "Too many requests. Please try again in a moment."
SERVER_MESSAGE = "The analysis service had an error. Please try again in a moment."
PARSE_MESSAGE = (
    "The analysis result could not be processed. Please take the photo again."
)
IMAGE_QUALITY_MESSAGE = (
    "The photo quality is too low. Take a clear photo of the label in good light."
)
DEFAULT_MESSAGE = (
    "Photo analysis failed. Try again with a photo that shows the nutrition label."
)


def format_user_message(exc: BaseException) -> str:
    """Map an exception from the scan workflow to a short message for the user."""
    if isinstance(exc, TimeoutError | httpx.TimeoutException):
        return TIMEOUT_MESSAGE
    if isinstance(exc, ConnectionError | httpx.NetworkError):
        return NETWORK_MESSAGE
    if isinstance(exc, VisionResponseError):
        return PARSE_MESSAGE

    status = status_code_from_exception(exc)
    if status in {HTTP_UNAUTHORIZED, HTTP_FORBIDDEN}:
        return AUTH_MESSAGE
    if status == HTTP_TOO_MANY_REQUESTS:
        return RATE_LIMIT_MESSAGE
    if status is not None and status >= HTTP_SERVER_ERROR:
        return SERVER_MESSAGE

    text = str(exc).lower()
    if "image quality" in text or "low quality" in text:
        return IMAGE_QUALITY_MESSAGE
    if "timeout" in text or "timed out" in text:
        return TIMEOUT_MESSAGE
    if "network" in text or "connection" in text:
        return NETWORK_MESSAGE
    if "unauthorized" in text:
        return AUTH_MESSAGE
    if "rate limit" in text:
        return RATE_LIMIT_MESSAGE
    if "server error" in text:
        return SERVER_MESSAGE
    if "invalid" in text or "parse" in text:
        return PARSE_MESSAGE
    return DEFAULT_MESSAGE
