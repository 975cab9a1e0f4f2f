"""Matrix room notification."""

import logging
import os
import re
import uuid
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

SEND_PATH = "/_matrix/client/v3/rooms/{room}/send/m.room.message/{txn_id}"
TAG_RE = re.compile(r"<[^>]+>")


def send_matrix_message(message: str) -> bool:
    """
    Post an HTML message to a Matrix room.

    Requires MATRIX_SERVER, MATRIX_TOKEN and MATRIX_ROOM.
    """
    server = os.environ.get("MATRIX_SERVER")
    token = os.environ.get("MATRIX_TOKEN")
    room = os.environ.get("MATRIX_ROOM")

    if not server or not token or not room:
        logger.warning("Matrix: MATRIX_SERVER, MATRIX_TOKEN or MATRIX_ROOM not set")
        return False

    url = server.rstrip("/") + SEND_PATH.format(
        room=quote(room, safe=""), txn_id=uuid.uuid4().hex
    )
    payload = {
        "msgtype": "m.text",
        "format": "org.matrix.custom.html",
        "body": TAG_RE.sub("", message),
        "formatted_body": message,
    }

    try:
        resp = requests.put(
            url,
            json=payload,
            headers={"Authorization": f"Bearer {token}"},
            timeout=10,
        )
        if resp.status_code != 200:
            logger.error("Matrix API error (status %d): %s", resp.status_code, resp.text)
        resp.raise_for_status()
        logger.info("Matrix: message sent")
        return True
    except requests.exceptions.RequestException as e:
        logger.error("Matrix request failed: %s", e)
        return False
