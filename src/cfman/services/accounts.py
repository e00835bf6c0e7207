"""AccountService: credential verification for cloud accounts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cfman.domain.records import AccountRecord
from cfman.domain.types import AccountStatus
from cfman.infrastructure.cloud import CloudApiError
from cfman.plugins.events import AccountVerified, EventKind
from cfman.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from cfman.infrastructure.cloud import CloudApi
    from cfman.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class AccountService:
    """Checks an account's API and reports the outcome as ``account:verified``."""

    def __init__(self, event_bus: EventBus) -> None:
        self._bus = event_bus

    async def verify(self, account: AccountRecord, api: CloudApi) -> ServiceResult:
        """Check that *api* can reach the account, and record its subdomain.

        The returned data carries the account with an updated status. A
        :class:`CloudApiError` is reported as ``API_ERROR``; any other failure
        of the client as ``VERIFY_FAILED``.
        """
        try:
            await api.list_workers()
            subdomain = await api.get_subdomain()
        except Exception as exc:
            code = "API_ERROR" if isinstance(exc, CloudApiError) else "VERIFY_FAILED"
            message = str(exc) or type(exc).__name__
            logger.info("Account %s failed verification: %s", account.id, exc, exc_info=True)
            self._bus.emit(
                EventKind.ACCOUNT_VERIFIED,
                AccountVerified(account_id=account.id, success=False, error=message),
            )
            invalid = account.model_copy(update={"status": AccountStatus.INVALID})
            return ServiceResult(
                ok=False,
                op="verify_account",
                data={"account": invalid.model_dump(mode="json")},
                error=ServiceError(code=code, message=message),
            )

        verified = account.model_copy(
            update={"status": AccountStatus.ACTIVE, "subdomain": subdomain}
        )
        self._bus.emit(
            EventKind.ACCOUNT_VERIFIED, AccountVerified(account_id=account.id, success=True)
        )
        return ServiceResult.success("verify_account", account=verified.model_dump(mode="json"))
