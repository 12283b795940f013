from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Settings
from .errors import FatalProvisioningError
from .executor import ExecContext, ExecutionResult, Status, execute_directive, required_installers
from .plan import Plan

logger = logging.getLogger(__name__)


@dataclass
class PhaseSummary:
    phase_id: str
    ran: bool
    reason: str = ""
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def line(self) -> str:
        if not self.ran:
            return f"{self.phase_id}: not run ({self.reason})"
        return (
            f"{self.phase_id}: ran ({self.succeeded} succeeded, "
            f"{self.failed} failed, {self.skipped} skipped)"
        )


@dataclass
class RunReport:
    results: List[ExecutionResult] = field(default_factory=list)
    phases: List[PhaseSummary] = field(default_factory=list)
    fatal: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return 1 if self.fatal else 0

    def phase(self, phase_id: str) -> PhaseSummary:
        for p in self.phases:
            if p.phase_id == phase_id:
                return p
        raise KeyError(phase_id)

    def count(self, status: Status) -> int:
        return sum(1 for r in self.results if r.status is status)


def execute_plan(plan: Plan, settings: Settings, ctx: Optional[ExecContext] = None) -> RunReport:
    """Run phases strictly in order, one directive at a time.

    A failing directive is recorded and the run continues. A phase whose
    package installer is missing aborts everything after it.
    """

    ctx = ctx or ExecContext.from_settings(settings)
    report = RunReport()

    for pp in plan.phases:
        if report.fatal:
            report.phases.append(PhaseSummary(pp.phase_id, ran=False, reason="aborted"))
            continue
        if pp.skip_reason:
            logger.info("Phase %s: %s", pp.phase_id, pp.skip_reason)
            report.phases.append(PhaseSummary(pp.phase_id, ran=False, reason=pp.skip_reason))
            continue
        if not pp.directives:
            logger.debug("Phase %s: nothing to do", pp.phase_id)
            report.phases.append(PhaseSummary(pp.phase_id, ran=False, reason="nothing to do"))
            continue

        logger.info("Phase %s: %d directive(s)", pp.phase_id, len(pp.directives))
        summary = PhaseSummary(pp.phase_id, ran=True)
        report.phases.append(summary)

        current = pp.directives[0]
        try:
            for eco in required_installers(pp.directives):
                ctx.tools.require_installer(eco)

            for d in pp.directives:
                current = d
                result = execute_directive(d, ctx)
                report.results.append(result)
                if result.status is Status.SUCCEEDED:
                    summary.succeeded += 1
                elif result.status is Status.SKIPPED:
                    summary.skipped += 1
                else:
                    summary.failed += 1
        except FatalProvisioningError as e:
            logger.error("Fatal in phase %s: %s", pp.phase_id, e)
            report.fatal = str(e)
            report.results.append(ExecutionResult(current, Status.FAILED_FATAL, str(e)))
            summary.failed += 1

    return report
