"""Device identity resolution: vendor device id -> owning account code."""
import logging
from dataclasses import dataclass
from typing import Optional

from alarmhub.domain.common.errors import (
    ConfigurationError,
    DeviceNotRegisteredError,
    NoAccountsAvailableError,
)
from alarmhub.domain.ingestion.repositories import AccountRepository, DeviceRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    account_code: str
    adopted: bool = False


class DeviceIdentityResolver:
    """Maps a device to its account, adopting orphans under an explicit policy.

    Adoption target, in order: `default_account_code` when configured (it must exist),
    otherwise the oldest account. With `auto_adopt=False` orphans are rejected.
    """

    def __init__(
        self,
        device_repo: DeviceRepository,
        account_repo: AccountRepository,
        auto_adopt: bool = True,
        default_account_code: Optional[str] = None,
    ):
        self.device_repo = device_repo
        self.account_repo = account_repo
        self.auto_adopt = auto_adopt
        self.default_account_code = default_account_code

    async def resolve(self, device_id: str) -> Resolution:
        owner = await self.device_repo.get_owner(device_id)
        if owner is not None:
            return Resolution(account_code=owner)

        if not self.auto_adopt:
            logger.info("Rejecting unregistered device %s (auto-adoption disabled)", device_id)
            raise DeviceNotRegisteredError(device_id)

        target = await self._adoption_target()
        owner, created = await self.device_repo.bind(device_id, target)
        if created:
            logger.warning("Auto-adopted unregistered device %s into account %s", device_id, owner)
        return Resolution(account_code=owner, adopted=created)

    async def _adoption_target(self) -> str:
        if self.default_account_code:
            if not await self.account_repo.exists(self.default_account_code):
                logger.error(
                    "DEFAULT_ACCOUNT_CODE=%s does not exist; cannot adopt devices",
                    self.default_account_code,
                )
                raise ConfigurationError(
                    f"Default account {self.default_account_code} does not exist"
                )
            return self.default_account_code
        code = await self.account_repo.first_available()
        if code is None:
            logger.error("No accounts exist; unregistered devices cannot be adopted")
            raise NoAccountsAvailableError()
        return code
