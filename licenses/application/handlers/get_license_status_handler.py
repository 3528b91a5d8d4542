"""
GetLicenseStatusHandler.

Handler for GetLicenseStatusQuery.
"""
from licenses.application.dto.license_dto import LicenseDTO, LicenseStatusDTO
from licenses.application.queries.get_license_status import GetLicenseStatusQuery
from licenses.domain.license import utcnow
from licenses.domain.services import ActiveLicenseSelector, LicenseStateResolver
from licenses.ports.license_repository import LicenseRepository


class GetLicenseStatusHandler:
    """Handler for GetLicenseStatusQuery."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    async def handle(self, query: GetLicenseStatusQuery) -> LicenseStatusDTO:
        """
        Handle get license status query.

        Args:
            query: GetLicenseStatusQuery

        Returns:
            LicenseStatusDTO with the derived state and the active license, if any
        """
        licenses = await self.license_repository.find_by_user(query.user_id)
        now = utcnow()

        state = LicenseStateResolver.resolve(licenses, now)
        active = ActiveLicenseSelector.select(licenses, now)

        return LicenseStatusDTO(
            user_id=query.user_id,
            state=state.value,
            active_license=LicenseDTO.from_entity(active) if active else None,
            license_count=len(licenses),
        )
