"""Authority Resolver - Find the officer who receives an escalation"""
from typing import Optional

from ..domain.models import Officer
from ..repositories.officer_repo import OfficerRepository
from ..utils.logger import get_logger

logger = get_logger(__name__)


class AuthorityResolver:
    """
    Resolve the next-level authority for a department+location.

    Two tiers: an active officer whose employee code carries the target
    level, then any active officer in the same department+location. Finding
    nobody is not an error; the executor decides what to do with that.
    """

    def __init__(self, officer_repo: Optional[OfficerRepository] = None):
        self.officer_repo = officer_repo or OfficerRepository()

    def resolve_officer(
        self,
        department_id: int,
        location_id: int,
        current_level: int
    ) -> Optional[Officer]:
        """
        Find the officer for the level above ``current_level``

        Args:
            department_id: Target department
            location_id: Target location
            current_level: Level the complaint is escalating from

        Returns:
            Officer, or None if no active officer exists there
        """
        target_level = current_level + 1

        officer = self.officer_repo.find_active_by_level_pattern(department_id, location_id, target_level)
        if officer:
            logger.debug(
                f"Authority matched level pattern L{target_level}",
                extra={"officer_id": officer.officer_id, "department_id": department_id, "target_level": target_level}
            )
            return officer

        # Pilot fallback: officer data is incomplete, accept any active officer
        officer = self.officer_repo.find_any_active(department_id, location_id)
        if officer:
            logger.info(
                f"No L{target_level} officer found; falling back to any active officer",
                extra={"officer_id": officer.officer_id, "department_id": department_id, "location_id": location_id}
            )
            return officer

        logger.info(
            "No active officer found",
            extra={"department_id": department_id, "location_id": location_id, "target_level": target_level}
        )
        return None

    def resolve(self, department_id: int, location_id: int, current_level: int) -> Optional[int]:
        """Officer ID for the level above ``current_level``, or None"""
        officer = self.resolve_officer(department_id, location_id, current_level)
        return officer.officer_id if officer else None
