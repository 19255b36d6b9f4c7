"""Outcome of a back-office mutation, shown as a toast"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from shop_api.errors import ApiError, AuthError, ValidationError, user_message

logger = logging.getLogger(__name__)


@dataclass
class ActionResult:
    ok: bool
    message: str
    data: Any = None
    field_errors: Optional[dict[str, str]] = None

    def to_dict(self) -> dict[str, Any]:
        body = {"ok": self.ok, "message": self.message, "data": self.data}
        if self.field_errors:
            body["fieldErrors"] = self.field_errors
        return body


async def run_action(
    name: str,
    call: Callable[[], Awaitable[Any]],
    success: str,
    failure: str,
    refetch: Optional[Callable[[], Awaitable[Any]]] = None,
) -> ActionResult:
    """
    Run a mutation and re-fetch the affected data when it succeeded.

    Failures become a failed result with the server's message, or `failure`
    when it sent none. Lost authentication is raised so the caller can send
    the operator to the login screen.
    """
    try:
        data = await call()
    except AuthError:
        raise
    except ValidationError as e:
        return ActionResult(ok=False, message=e.message, field_errors=e.field_errors)
    except ApiError as e:
        logger.error(f"{name} failed: {e.kind.value}: {e.message}")
        return ActionResult(ok=False, message=user_message(e, failure))

    logger.info(f"{name} succeeded")
    if refetch is not None:
        try:
            data = await refetch()
        except AuthError:
            raise
        except ApiError as e:
            logger.warning(f"Refetch after {name} failed: {e.message}")
    return ActionResult(ok=True, message=success, data=data)
