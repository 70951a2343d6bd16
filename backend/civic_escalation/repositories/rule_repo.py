"""Rule Repository - Data access for escalation rules"""
from typing import List, Optional
from pydantic import ValidationError as PydanticValidationError
from pymongo.collection import Collection
from pymongo import ASCENDING
from pymongo.errors import PyMongoError

from .mongo_client import get_collection, to_document, ESCALATION_RULES
from ..domain.models import EscalationRule
from ..domain.errors import ConditionParseError, RuleLoadError, RuleNotFoundError
from ..utils.logger import get_logger
from ..utils.time import utc_now

logger = get_logger(__name__)


class RuleRepository:
    """Repository for escalation rules (read-only to the engine)"""

    def __init__(self, collection: Optional[Collection] = None):
        self._rules: Collection = collection if collection is not None else get_collection(ESCALATION_RULES)

    def list_active_rules(self) -> List[EscalationRule]:
        """
        Get all active rules ordered by escalation level, then age.

        Rules whose condition block cannot be parsed are logged and left out.

        Raises:
            RuleLoadError: If the rule store is unreachable
        """
        try:
            cursor = self._rules.find({"is_active": True}).sort([
                ("escalation_level", ASCENDING),
                ("created_at", ASCENDING),
            ])
            docs = list(cursor)
        except PyMongoError as e:
            raise RuleLoadError(
                "Failed to load escalation rules",
                details={"error": str(e)}
            ) from e

        rules = []
        for doc in docs:
            doc.pop("_id", None)
            try:
                rules.append(EscalationRule.model_validate(doc))
            except PydanticValidationError as e:
                fields = sorted({".".join(str(part) for part in err["loc"]) or "<root>" for err in e.errors()})
                logger.error(
                    f"Skipping malformed escalation rule: invalid {', '.join(fields)}",
                    extra={"rule_id": doc.get("rule_id"), "fields": fields, "error": str(e)}
                )
        return rules

    def get_rule(self, rule_id: str) -> Optional[EscalationRule]:
        """
        Get a rule by ID

        Raises:
            ConditionParseError: If the stored rule cannot be parsed
        """
        doc = self._rules.find_one({"rule_id": rule_id})
        if not doc:
            return None
        doc.pop("_id", None)
        try:
            return EscalationRule.model_validate(doc)
        except PydanticValidationError as e:
            raise ConditionParseError(
                f"Escalation rule {rule_id} is malformed",
                details={"rule_id": rule_id, "error": str(e)}
            ) from e

    def create_rule(self, rule: EscalationRule) -> EscalationRule:
        """Create a rule"""
        self._rules.insert_one(to_document(rule, rule.rule_id))
        logger.info(
            f"Created escalation rule at level {rule.escalation_level}",
            extra={"rule_id": rule.rule_id, "escalation_level": rule.escalation_level}
        )
        return rule

    def deactivate_rule(self, rule_id: str) -> EscalationRule:
        """Deactivate a rule so future cycles ignore it"""
        result = self._rules.find_one_and_update(
            {"rule_id": rule_id},
            {"$set": {"is_active": False, "updated_at": utc_now()}},
            return_document=True
        )
        if not result:
            raise RuleNotFoundError(f"Escalation rule {rule_id} not found")
        result.pop("_id", None)
        logger.info("Deactivated escalation rule", extra={"rule_id": rule_id})
        return EscalationRule.model_validate(result)
