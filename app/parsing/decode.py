from __future__ import annotations

import base64
import binascii

from app.analysis.errors import DecodeError

BASE64_MARKER = "base64,"


def decode_transport_payload(payload: str) -> bytes:
    """Decode a data-URI or bare base64 upload into raw bytes.

    Only the part after the first ``base64,`` marker is decoded when the
    marker is present (``data:application/pdf;base64,JVBERi0...``).
    """
    if not isinstance(payload, str):
        raise DecodeError()
    if BASE64_MARKER in payload:
        payload = payload.split(BASE64_MARKER, 1)[1]
    encoded = "".join(payload.split())
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError() from exc
