"""Re-run the hard check over already stored articles.

Catches articles saved before a policy change (or with the hard check
skipped) whose rewrite drifted from the source. Records with issues can
be moved back to needs_review.
"""

from typing import Optional

from pydantic import BaseModel, Field

from newsdesk.data_management.repository import ContentRepository
from newsdesk.data_management.schemas import ContentRecord, ContentStatus
from newsdesk.utils.logging import get_structured_logger
from newsdesk.verification.hard_check import perform_hard_check
from newsdesk.verification.schemas import HardCheckResult, SeverityPolicy

REVERIFY_REASON = "Hard check failed - date/number mismatch detected"


class RecordIssue(BaseModel):
    """Hard check findings for one stored record."""

    id: str
    title: Optional[str] = None
    source_url: str
    status: ContentStatus
    passed: bool
    score: int
    critical_issues: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    date_mismatches: int = 0
    number_mismatches: int = 0

    @classmethod
    def from_check(cls, record: ContentRecord, check: HardCheckResult) -> "RecordIssue":
        return cls(
            id=record.id,
            title=record.title,
            source_url=record.source_url,
            status=record.status,
            passed=check.passed,
            score=check.score,
            critical_issues=check.critical_issues,
            warnings=check.warnings,
            date_mismatches=len(check.date_check.mismatches),
            number_mismatches=len(check.number_check.mismatches),
        )


class ReverifyReport(BaseModel):
    """Outcome of a re-verification sweep."""

    dry_run: bool
    checked: int = 0
    updated: int = 0
    issues: list[RecordIssue] = Field(default_factory=list)

    @property
    def with_critical_issues(self) -> int:
        return sum(1 for i in self.issues if i.critical_issues)

    @property
    def with_date_mismatches(self) -> int:
        return sum(1 for i in self.issues if i.date_mismatches)

    @property
    def with_number_mismatches(self) -> int:
        return sum(1 for i in self.issues if i.number_mismatches)


class Reverifier:
    """
    Hard checks stored records against their original content.

    Usage:
        reverifier = Reverifier(store)
        report = await reverifier.reverify(dry_run=False)
    """

    def __init__(self, store: ContentRepository, policy: Optional[SeverityPolicy] = None):
        self.store = store
        self.policy = policy or SeverityPolicy()
        self._logger = get_structured_logger("Reverifier")

    def check(self, record: ContentRecord) -> Optional[HardCheckResult]:
        """Hard check one record, or None if it lacks original content or body."""
        if not record.original_content or not record.body_html:
            return None
        return perform_hard_check(record.original_content, record.body_html, self.policy)

    async def reverify(
        self,
        status: ContentStatus = ContentStatus.PUBLISHED,
        limit: int = 100,
        dry_run: bool = True,
    ) -> ReverifyReport:
        """
        Re-check the newest records with a status.

        Args:
            status: Status to sweep
            limit: Maximum records to check
            dry_run: Report only; when False, failing records move to needs_review

        Returns:
            ReverifyReport

        Raises:
            ValueError: If status is rejected
        """
        # Rejected records may share a URL with a live record
        if ContentStatus(status) == ContentStatus.REJECTED:
            raise ValueError("Rejected records cannot be re-verified")

        records = await self.store.list_by_status(ContentStatus(status), limit)
        report = ReverifyReport(dry_run=dry_run)

        for record in records:
            check = self.check(record)
            if check is None:
                continue
            report.checked += 1
            if not check.passed:
                report.issues.append(RecordIssue.from_check(record, check))

        self._logger.info(
            "reverify_checked",
            status=ContentStatus(status).value,
            checked=report.checked,
            issues=len(report.issues),
            dry_run=dry_run,
        )

        if not dry_run and report.issues:
            report.updated = await self.store.update_status(
                [issue.id for issue in report.issues],
                ContentStatus.NEEDS_REVIEW,
                REVERIFY_REASON,
            )
            self._logger.info("reverify_updated", updated=report.updated)

        return report

    async def reverify_one(self, record_id: str, fix: bool = False) -> Optional[RecordIssue]:
        """
        Re-check a single record.

        Args:
            record_id: Record to check
            fix: Move the record to needs_review when the check fails

        Returns:
            Findings, or None if the record does not exist or cannot be checked
        """
        record = await self.store.get(record_id)
        if record is None:
            return None

        check = self.check(record)
        if check is None:
            return None

        issue = RecordIssue.from_check(record, check)
        if fix and not check.passed:
            await self.store.update_status(
                [record_id], ContentStatus.NEEDS_REVIEW, REVERIFY_REASON
            )
            self._logger.info("reverify_fixed", record_id=record_id)
        return issue
