"""Officer Repository - Read access to the authority directory"""
import re
from typing import Optional
from pymongo.collection import Collection
from pymongo import ASCENDING

from .mongo_client import get_collection, to_document, OFFICERS
from ..domain.models import Officer
from ..utils.logger import get_logger

logger = get_logger(__name__)


def level_pattern(level: int) -> str:
    """Regex for employee codes of a seniority level: ``-L2-`` inside or ``-L2`` at the end"""
    return rf"-L{int(level)}(-|$)"


class OfficerRepository:
    """Repository for officer lookups"""

    def __init__(self, collection: Optional[Collection] = None):
        self._officers: Collection = collection if collection is not None else get_collection(OFFICERS)

    def find_active_by_level_pattern(
        self,
        department_id: int,
        location_id: int,
        level: int
    ) -> Optional[Officer]:
        """Find an active officer in department+location whose employee code carries ``level``"""
        doc = self._officers.find_one(
            {
                "department_id": department_id,
                "location_id": location_id,
                "is_active": True,
                "employee_id": {"$regex": level_pattern(level)},
            },
            sort=[("officer_id", ASCENDING)]
        )
        return self._to_officer(doc)

    def find_any_active(self, department_id: int, location_id: int) -> Optional[Officer]:
        """Find any active officer in department+location"""
        doc = self._officers.find_one(
            {
                "department_id": department_id,
                "location_id": location_id,
                "is_active": True,
            },
            sort=[("officer_id", ASCENDING)]
        )
        return self._to_officer(doc)

    def get_officer(self, officer_id: int) -> Optional[Officer]:
        """Get officer by ID"""
        return self._to_officer(self._officers.find_one({"officer_id": officer_id}))

    def create_officer(self, officer: Officer) -> Officer:
        """Create an officer (seed support)"""
        self._officers.insert_one(to_document(officer, officer.officer_id))
        logger.info(
            f"Created officer {officer.employee_id}",
            extra={"officer_id": officer.officer_id, "department_id": officer.department_id}
        )
        return officer

    @staticmethod
    def _to_officer(doc) -> Optional[Officer]:
        if not doc:
            return None
        doc.pop("_id", None)
        return Officer.model_validate(doc)


def matches_level(employee_id: str, level: int) -> bool:
    """Python-side twin of the level pattern query"""
    return re.search(level_pattern(level), employee_id) is not None
