from __future__ import annotations

from typing import TYPE_CHECKING

from auth.models import (
    STRICT_POLICY,
    CallbackOutcome,
    CallbackPolicy,
    CallbackResolution,
    ClientRecord,
)
from auth.urls import is_absolute_uri

if TYPE_CHECKING:
    from auth.client_registry import ClientRegistry


def resolve_callback(
    record: ClientRecord,
    requested: str | None,
    *,
    policy: CallbackPolicy = STRICT_POLICY,
) -> CallbackResolution:
    """Decide where the authorization result for ``record`` may be sent.

    Runs before the client has proven its identity, so every ambiguous case
    is a rejection. ``requested`` is the raw ``redirect_uri`` from the
    request, or ``None`` when the parameter was omitted. An empty string is
    a present-but-malformed URI, not an omission.

    Raises ClientRecordIntegrityError when the stored default callback is
    not absolute.
    """
    record.check_default_callback()

    if requested is None:
        if record.default_callback is None:
            return CallbackResolution(CallbackOutcome.REJECTED_NO_CALLBACK)
        return CallbackResolution(CallbackOutcome.ACCEPTED_DEFAULT, record.default_callback)

    if not is_absolute_uri(requested):
        return CallbackResolution(CallbackOutcome.REJECTED_INVALID_URI)

    if record.is_callback_allowed(requested, policy):
        return CallbackResolution(CallbackOutcome.ACCEPTED_EXPLICIT, requested)

    return CallbackResolution(CallbackOutcome.REJECTED_NOT_REGISTERED)


def error_redirect_target(
    record: ClientRecord | None,
    resolution: CallbackResolution,
    policy: CallbackPolicy = STRICT_POLICY,
) -> str | None:
    """Return where a rejection may be reported by redirect, if anywhere.

    Only an unregistered callback on a known client with a default callback
    qualifies, and only when the policy opts in. The requested URI is never
    a target.
    """
    if record is None or not policy.redirect_errors_to_default:
        return None
    if resolution.outcome is not CallbackOutcome.REJECTED_NOT_REGISTERED:
        return None
    return record.default_callback


async def evaluate_authorization_request(
    registry: "ClientRegistry",
    client_id: str,
    requested: str | None,
    *,
    policy: CallbackPolicy = STRICT_POLICY,
) -> tuple[ClientRecord | None, CallbackResolution]:
    record = await registry.lookup(client_id)
    if record is None:
        return None, CallbackResolution(CallbackOutcome.REJECTED_UNKNOWN_CLIENT)
    return record, resolve_callback(record, requested, policy=policy)
