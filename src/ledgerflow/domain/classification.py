"""Rule-based transaction classification and rule management."""

import re
from decimal import Decimal
from typing import Optional, Sequence

from ledgerflow.database.base import Database
from ledgerflow.domain.entities import (
    BankTransaction,
    BankTransactionDraft,
    ClassificationFeedback,
    ClassificationResult,
    ClassificationRule,
    MatchKind,
)
from ledgerflow.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    rule_not_found,
)
from ledgerflow.logger import get_logger

logger = get_logger(__name__)

MATCH_CONFIDENCE = Decimal("1.0")
NO_MATCH_CONFIDENCE = Decimal("0")
NO_MATCH_REASON = "No matching rule found"


def matched_reason(rule: ClassificationRule) -> str:
    """Return the classification reason for a matched rule."""
    return f'Matched rule: "{rule.name}"'


class ClassificationEngine:
    """Suggests ledger accounts for bank transactions.

    Active rules are evaluated in descending priority (ties by ascending ID)
    and the first match wins. Anything that matches no rule is left
    unassigned for human review.
    """

    def __init__(self, db: Database):
        """Initialize classification engine.

        Args:
            db: Database instance
        """
        self.db = db

    def load_rules(self, organization_id: int) -> list[ClassificationRule]:
        """Return the active rules of an organization in evaluation order."""
        return self.db.list_classification_rules(organization_id, active_only=True)

    def classify_transaction(
        self,
        transaction: BankTransaction | BankTransactionDraft,
        organization_id: int,
        rules: Optional[Sequence[ClassificationRule]] = None,
    ) -> ClassificationResult:
        """Classify one transaction.

        Args:
            transaction: Stored transaction or draft to classify
            organization_id: Organization whose rules apply
            rules: Pre-loaded rule snapshot; loaded from the database if omitted

        Returns:
            ClassificationResult with confidence 1.0 and the rule's target
            account on a match, confidence 0 and no account otherwise
        """
        if rules is None:
            rules = self.load_rules(organization_id)

        description = transaction.description or ""
        for rule in rules:
            if not rule.is_active or rule.organization_id != organization_id:
                continue
            if self.matches(rule, description):
                return ClassificationResult(
                    confidence=MATCH_CONFIDENCE,
                    reason=matched_reason(rule),
                    account_id=rule.target_account_id,
                    rule_id=rule.id,
                )

        return ClassificationResult(confidence=NO_MATCH_CONFIDENCE, reason=NO_MATCH_REASON)

    def matches(self, rule: ClassificationRule, description: str) -> bool:
        """Test a rule against a description, case-insensitively.

        A regex rule with a malformed pattern never matches.
        """
        if rule.match_kind == MatchKind.EXACT:
            return description.lower() == rule.pattern.lower()

        if rule.match_kind == MatchKind.REGEX:
            try:
                pattern = re.compile(rule.pattern, re.IGNORECASE)
            except re.error as e:
                logger.warning(
                    "invalid regex in rule",
                    rule_id=rule.id,
                    pattern=rule.pattern,
                    error=str(e),
                )
                return False
            return pattern.search(description) is not None

        return rule.pattern.lower() in description.lower()

    def learn_from_feedback(
        self, organization_id: int, description: str, correct_account_id: int
    ) -> int:
        """Record a manual correction for later rule curation.

        The rule table is left untouched; a single correction is not enough
        evidence to create a rule.

        Returns:
            Feedback ID
        """
        feedback_id = self.db.record_feedback(
            organization_id=organization_id,
            transaction_description=description,
            correct_account_id=correct_account_id,
            user_correction=True,
        )
        logger.info(
            "feedback recorded",
            organization_id=organization_id,
            feedback_id=feedback_id,
            correct_account_id=correct_account_id,
        )
        return feedback_id

    def list_feedback(self, organization_id: int) -> list[ClassificationFeedback]:
        """List recorded corrections, newest first."""
        return self.db.list_feedback(organization_id)


class RuleService:
    """Service for managing classification rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_rule(
        self,
        organization_id: int,
        name: str,
        pattern: str,
        target_account_id: int,
        match_kind: MatchKind = MatchKind.CONTAINS,
        priority: int = 0,
    ) -> int:
        """Create a classification rule.

        Args:
            organization_id: Owning organization
            name: Rule name, quoted in classification reasons
            pattern: Text, exact description or regular expression
            target_account_id: Account suggested on a match
            match_kind: How the pattern is compared
            priority: Higher priorities are evaluated first

        Returns:
            Rule ID

        Raises:
            ValidationError: If name or pattern is empty, or a regex doesn't compile
            NotFoundError: If the target account isn't in the organization
        """
        if not name or not name.strip():
            raise ValidationError("Rule name cannot be empty")
        if not pattern:
            raise ValidationError("Rule pattern cannot be empty")

        if match_kind == MatchKind.REGEX:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as e:
                raise ValidationError(f"Invalid regular expression '{pattern}': {e}") from e

        if self.db.get_account(target_account_id, organization_id) is None:
            raise NotFoundError(account_not_found(target_account_id))

        rule_id = self.db.create_classification_rule(
            organization_id=organization_id,
            name=name.strip(),
            pattern=pattern,
            match_kind=match_kind,
            target_account_id=target_account_id,
            priority=priority,
        )
        logger.info("rule created", rule_id=rule_id, match_kind=match_kind.value, priority=priority)
        return rule_id

    def get_rule(self, organization_id: int, rule_id: int) -> Optional[ClassificationRule]:
        """Get rule by ID."""
        return self.db.get_classification_rule(rule_id, organization_id)

    def list_rules(self, organization_id: int, active_only: bool = False) -> list[ClassificationRule]:
        """List rules in evaluation order."""
        return self.db.list_classification_rules(organization_id, active_only=active_only)

    def set_active(self, rule_id: int, organization_id: int, is_active: bool) -> None:
        """Enable or disable a rule.

        Raises:
            NotFoundError: If the rule isn't in the organization
        """
        if self.db.get_classification_rule(rule_id, organization_id) is None:
            raise NotFoundError(rule_not_found(rule_id))
        self.db.set_classification_rule_active(rule_id, organization_id, is_active)
