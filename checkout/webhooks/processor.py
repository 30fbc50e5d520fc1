"""
pawaPay webhook verification and parsing.

pawaPay calls back with a JSON body and an ``x-pawapay-signature`` header
holding the hex HMAC-SHA256 of the raw body under the shared secret. The
signature is checked against the exact bytes received, before the body is
parsed.

Nothing is persisted here; the caller decides what to do with the result.
Delivery is at-least-once and may be out of order, so callers must
tolerate duplicates.
"""

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Optional, Union

from checkout.engine.retry import PawaPayError, SignatureError, ValidationError
from checkout.engine.status import parse_deposit_state, to_session_status
from checkout.models.enums import DepositState, SessionStatus

logger = logging.getLogger("checkout.webhooks")


@dataclass(frozen=True)
class WebhookResult:
    deposit_id: str
    status: DepositState
    session_status: SessionStatus


def compute_signature(payload: Union[bytes, str], secret: str) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: Union[bytes, str], signature: str, secret: str) -> bool:
    """
    Check a webhook signature in constant time.

    Never raises: malformed input of any kind verifies as False.
    """
    try:
        expected = compute_signature(payload, secret)
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("ascii"))
    except (TypeError, ValueError, AttributeError):
        logger.warning("Webhook signature verification failed")
        return False


def process_webhook(
    payload: bytes,
    signature: Optional[str] = None,
    secret: Optional[str] = None,
    require_signature: bool = False,
) -> WebhookResult:
    """
    Verify and parse one webhook delivery.

    Args:
        payload: Raw request body.
        signature: Value of the ``x-pawapay-signature`` header, if sent.
        secret: Shared webhook secret; verification is skipped when unset.
        require_signature: Reject unsigned deliveries when a secret is set.

    Returns:
        WebhookResult with the deposit ID and its provider status.

    Raises:
        SignatureError: Signature missing (when required) or invalid.
        ValidationError: Body is not JSON or lacks depositId/status.
    """
    if secret:
        if signature:
            if not verify_signature(payload, signature, secret):
                raise SignatureError()
        elif require_signature:
            raise SignatureError("Missing webhook signature")

    try:
        body = json.loads(payload)
    except (TypeError, ValueError):
        raise ValidationError("Webhook payload is not valid JSON") from None

    if not isinstance(body, dict):
        raise ValidationError("Missing required fields in webhook payload")

    deposit_id = body.get("depositId")
    raw_status = body.get("status")
    if not deposit_id or not raw_status:
        raise ValidationError("Missing required fields in webhook payload")

    try:
        status = parse_deposit_state(raw_status)
    except PawaPayError as e:
        raise ValidationError(e.message, code="UNKNOWN_DEPOSIT_STATUS") from None

    return WebhookResult(
        deposit_id=str(deposit_id),
        status=status,
        session_status=to_session_status(status),
    )
