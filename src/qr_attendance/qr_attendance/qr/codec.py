from __future__ import annotations

import io
import json
from datetime import datetime

import qrcode

from ..common.datetime_utils import to_iso, utc_now
from ..core.exceptions import MalformedPayload, MissingSessionId
from ..sessions.model import Session
from .model import QRPayload


class TokenCodec:
    """Encode sessions into the scannable QR payload and back.

    The payload is self-describing JSON so a scanner learns the session
    identity without a network round trip. The embedded expiry is for the
    countdown only; decode never accepts or rejects on it.
    """

    def encode(self, session: Session, *, now: datetime | None = None) -> str:
        generated_at = now or utc_now()
        payload = {
            "sessionId": session.session_id,
            "name": session.name,
            "date": session.date,
            "time": session.time,
            "duration": session.duration_minutes,
            "generatedAt": to_iso(generated_at),
            "expiresAt": to_iso(session.expires_at),
        }
        return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

    def decode(self, raw: str | bytes) -> QRPayload:
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MalformedPayload("QR payload is not UTF-8 text") from exc

        if not isinstance(raw, str) or not raw.strip():
            raise MalformedPayload("QR payload is empty")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedPayload("QR payload is not valid JSON") from exc

        if not isinstance(data, dict):
            raise MalformedPayload("QR payload must be a JSON object")

        session_id = data.get("sessionId")
        if not isinstance(session_id, str) or not session_id.strip():
            raise MissingSessionId("QR payload has no sessionId")

        duration = data.get("duration")
        return QRPayload(
            session_id=session_id.strip(),
            name=_optional_str(data.get("name")),
            date=_optional_str(data.get("date")),
            time=_optional_str(data.get("time")),
            duration=duration if isinstance(duration, int) and not isinstance(duration, bool) else None,
            generated_at=_optional_str(data.get("generatedAt")),
            expires_at=_optional_str(data.get("expiresAt")),
        )

    def render_png(self, raw: str) -> bytes:
        """Render a payload string as a PNG QR symbol."""

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=2,
        )
        qr.add_data(raw)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) else None
