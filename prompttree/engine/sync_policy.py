"""Failure posture of each class of remote call.

No call is retried: structural failures leave the graph as it was and
are reported to the user, position failures are only logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, TypeVar

from prompttree.errors import PromptTreeError, RemoteStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallClass(str, Enum):
    """Kinds of remote calls the engine makes."""

    read = "read"
    create = "create"
    reparent = "reparent"
    detach = "detach"
    position = "position"


@dataclass(frozen=True)
class CallPolicy:
    max_attempts: int = 1
    log_level: int = logging.ERROR
    user_visible: bool = True


POLICIES: dict[CallClass, CallPolicy] = {
    CallClass.read: CallPolicy(),
    CallClass.create: CallPolicy(),
    CallClass.reparent: CallPolicy(),
    CallClass.detach: CallPolicy(),
    CallClass.position: CallPolicy(
        log_level=logging.WARNING,
        user_visible=False,
    ),
}


@dataclass
class Outcome(Generic[T]):
    """Result of a remote call run under its policy."""

    ok: bool
    value: T | None = None
    error: PromptTreeError | None = None
    user_visible: bool = False


async def run_remote(
    call_class: CallClass,
    call: Callable[[], Awaitable[T]],
    context: dict[str, Any],
    policies: dict[CallClass, CallPolicy] = POLICIES,
) -> Outcome[T]:
    """Run *call* under the policy of *call_class*.

    Only :class:`RemoteStoreError` is caught. Failures are logged with
    *context* (node identity, attempted payload) so they can be diagnosed.
    """
    policy = policies[call_class]
    error: RemoteStoreError | None = None
    for attempt in range(1, policy.max_attempts + 1):
        try:
            value = await call()
        except RemoteStoreError as e:
            error = e
            logger.log(
                policy.log_level,
                "%s call failed (attempt %d/%d) %s: %s",
                call_class.value,
                attempt,
                policy.max_attempts,
                context,
                e,
            )
            continue
        return Outcome(ok=True, value=value)
    return Outcome(ok=False, error=error, user_visible=policy.user_visible)
