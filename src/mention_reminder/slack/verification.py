"""Slack request signature verification as FastAPI dependencies."""

import json
from urllib.parse import parse_qs

from fastapi import HTTPException, Request
from slack_sdk.signature import SignatureVerifier

from mention_reminder.config import get_settings


async def verify_slack_signature(request: Request) -> bytes:
    """Verify the Slack signature headers and return the raw body.

    Reads the raw body FIRST (before any parsing) so verification uses the
    exact bytes Slack signed. Raises HTTPException(403) if invalid or older
    than five minutes.
    """
    settings = get_settings()
    body = await request.body()

    timestamp = request.headers.get("X-Slack-Request-Timestamp", "")
    signature = request.headers.get("X-Slack-Signature", "")

    verifier = SignatureVerifier(signing_secret=settings.slack_signing_secret)

    if not verifier.is_valid(body=body.decode("utf-8"), timestamp=timestamp, signature=signature):
        raise HTTPException(status_code=403, detail="Invalid Slack signature")

    return body


async def verify_slack_request(request: Request) -> dict:
    """Verified JSON payload of an Events API request."""
    body = await verify_slack_signature(request)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise HTTPException(status_code=400, detail="Malformed JSON body") from exc


async def verify_slack_form(request: Request) -> dict[str, str]:
    """Verified form fields of a slash command request (first value per key)."""
    body = await verify_slack_signature(request)
    fields = parse_qs(body.decode("utf-8"), keep_blank_values=True)
    return {key: values[0] for key, values in fields.items()}
