"""Inbound SMS webhook: driver replies to farmout offers."""

import logging
from urllib.parse import parse_qs
from xml.sax.saxutils import escape

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import Response

from farmout_dispatch.api.dependencies import get_use_cases
from farmout_dispatch.application.messages import REPLY_ERROR
from farmout_dispatch.infrastructure.db.retry import retry_on_deadlock

logger = logging.getLogger(__name__)

router = APIRouter()

TWIML_MEDIA_TYPE = "text/xml"


def twiml_message(text: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<Response><Message>{escape(text)}</Message></Response>"
    )


def _form_value(form: dict[str, list[str]], key: str) -> str | None:
    values = form.get(key)
    return values[0] if values else None


@router.post("/webhooks/sms", status_code=status.HTTP_200_OK)
async def sms_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> Response:
    """
    Twilio inbound message webhook.

    Always answers with TwiML so the driver gets a reply. A decline triggers
    the next dispatch for the reservation before responding.
    """
    try:
        raw_body = await request.body()
        form = parse_qs(raw_body.decode("utf-8"), keep_blank_values=True)
        from_phone = _form_value(form, "From")
        body = _form_value(form, "Body")

        outcome = await retry_on_deadlock(
            lambda: use_cases["interpret_reply"].execute(from_phone, body)
        )
    except Exception as exc:
        logger.error(
            "SMS webhook failed",
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return Response(
            content=twiml_message(REPLY_ERROR),
            media_type=TWIML_MEDIA_TYPE,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if outcome.requeue_required and outcome.reservation_id is not None:
        try:
            await retry_on_deadlock(
                lambda: use_cases["requeue_farmout"].execute(outcome.reservation_id)
            )
        except Exception:
            # The decline is committed; the requeue worker picks the reservation up.
            logger.exception(
                "Requeue after decline failed",
                extra={"reservation_id": outcome.reservation_id},
            )

    return Response(content=twiml_message(outcome.message), media_type=TWIML_MEDIA_TYPE)
