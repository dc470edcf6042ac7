"""
Web Push gateway.

Wraps pywebpush: serializes a logical notification, encrypts and signs it
with the server's VAPID key, and classifies the push service's answer.

Error codes returned by notify():
    ENDPOINT_GONE: The push service reports the subscription no longer
        exists (HTTP 404/410). The caller must deregister the endpoint.
    PAYLOAD_TOO_LARGE: Payload exceeds PUSH_MAX_PAYLOAD_BYTES or the push
        service answered 413. A contract violation: log and drop.
    TRANSIENT: Network failure, timeout, throttling or server error. The
        caller may retry a bounded number of times with backoff.
    NOT_CONFIGURED: No VAPID private key is configured.

Usage:
    from notifications.gateway import WebPushGateway

    result = WebPushGateway().notify(subscription.as_subscription_info(), payload)
    if not result.success and result.error_code == PushErrorCode.ENDPOINT_GONE:
        PushSubscriptionService.unregister_push(user.id)
"""

from __future__ import annotations

import json
import logging

import requests
from django.conf import settings
from pywebpush import WebPushException, webpush

from core.exceptions import ExternalServiceError
from core.services import ServiceResult

logger = logging.getLogger(__name__)


class PushErrorCode:
    """Error codes produced by WebPushGateway.notify()."""

    ENDPOINT_GONE = "ENDPOINT_GONE"
    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    TRANSIENT = "TRANSIENT"
    NOT_CONFIGURED = "NOT_CONFIGURED"


GONE_STATUSES = frozenset({404, 410})
TOO_LARGE_STATUS = 413


class PushError(ExternalServiceError):
    """Base class for push delivery failures raised by callers of the gateway."""

    default_error_code = "PUSH_ERROR"

    @classmethod
    def from_result(cls, result: ServiceResult) -> PushError:
        """Build the exception matching a failed notify() result."""
        error_class = {
            PushErrorCode.ENDPOINT_GONE: EndpointGoneError,
            PushErrorCode.PAYLOAD_TOO_LARGE: PayloadTooLargeError,
            PushErrorCode.TRANSIENT: TransientPushError,
        }.get(result.error_code, cls)
        return error_class(result.error or "Push failed", error_code=result.error_code)


class EndpointGoneError(PushError):
    default_error_code = PushErrorCode.ENDPOINT_GONE


class TransientPushError(PushError):
    """Retryable push failure. Celery retries the push task on this error."""

    default_error_code = PushErrorCode.TRANSIENT


class PayloadTooLargeError(PushError):
    default_error_code = PushErrorCode.PAYLOAD_TOO_LARGE


class WebPushGateway:
    """
    Sends one notification to one Web Push endpoint.

    Args:
        vapid_private_key: VAPID private key (defaults to settings.VAPID_PRIVATE_KEY)
        vapid_subject: "mailto:" or https URL identifying the sender
        ttl: Seconds the push service keeps an undelivered notification
        timeout: HTTP timeout in seconds
        max_payload_bytes: Largest serialized payload accepted
    """

    def __init__(
        self,
        vapid_private_key: str | None = None,
        vapid_subject: str | None = None,
        ttl: int | None = None,
        timeout: float | None = None,
        max_payload_bytes: int | None = None,
    ):
        self.vapid_private_key = vapid_private_key or settings.VAPID_PRIVATE_KEY
        self.vapid_subject = vapid_subject or settings.VAPID_SUBJECT
        self.ttl = settings.PUSH_TTL if ttl is None else ttl
        self.timeout = settings.PUSH_TIMEOUT if timeout is None else timeout
        self.max_payload_bytes = max_payload_bytes or settings.PUSH_MAX_PAYLOAD_BYTES

    @property
    def is_configured(self) -> bool:
        return bool(self.vapid_private_key)

    def notify(self, subscription_info: dict, payload: dict) -> ServiceResult[None]:
        """
        Deliver a payload to an endpoint.

        Args:
            subscription_info: {"endpoint": url, "keys": {"p256dh": ..., "auth": ...}}
            payload: JSON-serializable notification (title, body, data, ...)

        Returns:
            ServiceResult[None]; on failure error_code is a PushErrorCode
        """
        endpoint = subscription_info.get("endpoint", "")

        if not self.is_configured:
            return ServiceResult.failure(
                "VAPID private key is not configured",
                error_code=PushErrorCode.NOT_CONFIGURED,
            )

        data = json.dumps(payload, separators=(",", ":"))
        size = len(data.encode("utf-8"))
        if size > self.max_payload_bytes:
            return ServiceResult.failure(
                f"Payload is {size} bytes (limit {self.max_payload_bytes})",
                error_code=PushErrorCode.PAYLOAD_TOO_LARGE,
            )

        try:
            webpush(
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject},
                ttl=self.ttl,
                timeout=self.timeout,
            )
        except WebPushException as e:
            return self._classify(endpoint, e)
        except requests.RequestException as e:
            logger.warning(f"Push to {_host(endpoint)} failed on network: {e}")
            return ServiceResult.failure(str(e), error_code=PushErrorCode.TRANSIENT)

        logger.debug(f"Push accepted by {_host(endpoint)}")
        return ServiceResult.success(None)

    def _classify(self, endpoint: str, exc: WebPushException) -> ServiceResult[None]:
        status_code = exc.response.status_code if exc.response is not None else None

        if status_code in GONE_STATUSES:
            code = PushErrorCode.ENDPOINT_GONE
        elif status_code == TOO_LARGE_STATUS:
            code = PushErrorCode.PAYLOAD_TOO_LARGE
        else:
            code = PushErrorCode.TRANSIENT

        logger.warning(
            f"Push to {_host(endpoint)} rejected with status {status_code}: {code}"
        )
        return ServiceResult.failure(str(exc), error_code=code)


def _host(endpoint: str) -> str:
    """Push service host, for logs (endpoint paths identify a device)."""
    return endpoint.split("/")[2] if endpoint.count("/") >= 2 else endpoint
