"""
StartTrialHandler.

Handler for StartTrialCommand.
"""
import logging

from core.domain.exceptions import AlreadyLicensedError
from core.domain.value_objects import LicenseState
from core.infrastructure.events import event_bus
from core.metrics import license_transitions_total
from licenses.application.commands.start_trial import StartTrialCommand
from licenses.application.dto.license_dto import LicenseDTO
from licenses.domain.events import TrialStarted
from licenses.domain.license import License
from licenses.domain.services import LicenseStateResolver
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

DEFAULT_TRIAL_DAYS = 14

TRIAL_ELIGIBLE_STATES = (LicenseState.NO_LICENSE, LicenseState.EXPIRED)


class StartTrialHandler:
    """Handler for StartTrialCommand."""

    def __init__(self, license_repository: LicenseRepository, trial_days: int = DEFAULT_TRIAL_DAYS):
        """Initialize handler with repository."""
        self.license_repository = license_repository
        self.trial_days = trial_days

    async def handle(self, command: StartTrialCommand) -> LicenseDTO:
        """
        Handle start trial command.

        Args:
            command: StartTrialCommand

        Returns:
            LicenseDTO of the new trial

        Raises:
            AlreadyLicensedError: If the user already holds an active license
        """

        async def work() -> License:
            licenses = await self.license_repository.find_by_user(command.user_id)
            state = LicenseStateResolver.resolve(licenses)
            if state not in TRIAL_ELIGIBLE_STATES:
                raise AlreadyLicensedError(f"User already has a license ({state.value})")

            trial = License.start_trial(command.user_id, self.trial_days)
            return await self.license_repository.upsert_license(trial)

        trial = await self.license_repository.run_serialized(command.user_id, work)
        license_transitions_total.labels(
            transition="trial_started", license_type=trial.license_type.value
        ).inc()
        logger.info(
            "Free trial %s started for user %s",
            trial.id,
            trial.user_id,
            extra={"license_id": str(trial.id), "user_id": trial.user_id},
        )

        await event_bus.publish(
            TrialStarted(
                license_id=trial.id,
                user_id=trial.user_id,
                expires_at=trial.expiration_date,
            )
        )

        return LicenseDTO.from_entity(trial)
