"""
GetActiveLicenseHandler.

Handler for GetActiveLicenseQuery, served from cache when possible.
"""
from core.domain.exceptions import NoActiveLicenseError
from licenses.application.dto.license_dto import LicenseDTO
from licenses.application.queries.get_active_license import GetActiveLicenseQuery
from licenses.application.services.license_cache_service import LicenseCacheService
from licenses.domain.license import utcnow
from licenses.ports.license_repository import LicenseRepository


class GetActiveLicenseHandler:
    """Handler for GetActiveLicenseQuery."""

    def __init__(self, license_repository: LicenseRepository):
        """Initialize handler with repository."""
        self.license_repository = license_repository

    async def handle(self, query: GetActiveLicenseQuery) -> LicenseDTO:
        """
        Handle get active license query.

        Args:
            query: GetActiveLicenseQuery

        Returns:
            LicenseDTO of the active license

        Raises:
            NoActiveLicenseError: If the user holds no active license
        """
        cached = await LicenseCacheService.get_active_license(query.user_id)
        if cached is not None:
            if cached.expiration_date is None or cached.expiration_date > utcnow():
                return cached
            await LicenseCacheService.invalidate_active_license(query.user_id)

        license = await self.license_repository.find_active_license_by_user(query.user_id)
        if license is None:
            raise NoActiveLicenseError()

        dto = LicenseDTO.from_entity(license)
        await LicenseCacheService.set_active_license(query.user_id, dto)
        return dto
