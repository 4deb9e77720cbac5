"""Retrieval of chart logo images from data urls or remote locations."""

import base64
import binascii
import logging
from urllib.parse import unquote, unquote_to_bytes

from chart_tracker.errors import InvalidDataURLError, UnexpectedStatusError
from chart_tracker.http_client import HTTPGetter

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = "data:"


def decode_data_url(ref: str) -> bytes:
    """Decode the payload of a ``data:[<mediatype>][;base64],<data>`` url.

    Raises:
        InvalidDataURLError: If the url is malformed
    """
    if not ref.startswith(DATA_URL_PREFIX):
        raise InvalidDataURLError("not a data url")

    header, sep, payload = ref[len(DATA_URL_PREFIX):].partition(",")
    if not sep:
        raise InvalidDataURLError("missing comma in data url")

    if header.split(";")[-1].strip().lower() == "base64":
        try:
            return base64.b64decode("".join(unquote(payload).split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise InvalidDataURLError(f"invalid base64 data url: {e}") from e

    return unquote_to_bytes(payload)


def resolve_image(ref: str, http_getter: HTTPGetter) -> bytes:
    """Get the image located at ``ref``.

    Data urls are decoded in place without any network access. Anything else
    is downloaded.

    Args:
        ref: Data url or remote url of the image
        http_getter: Client used to download remote images

    Returns:
        Raw image bytes

    Raises:
        InvalidDataURLError: If a data url cannot be decoded
        UnexpectedStatusError: If the download does not answer 200
        requests.RequestException: If the request fails
    """
    if ref.startswith(DATA_URL_PREFIX):
        return decode_data_url(ref)

    response = http_getter.get(ref)
    try:
        if response.status_code != 200:
            raise UnexpectedStatusError(ref, response.status_code)
        logger.debug(f"Downloaded image {ref} ({len(response.content)} bytes)")
        return response.content
    finally:
        response.close()
