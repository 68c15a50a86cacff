"""Runs audits over the artifacts of one page.

All audits of a run share one ``ComputedContext``, so artifacts several audits
need (network records, entity classification) are computed once. A failing
audit yields a failed ``AuditResult`` and never affects its siblings.
"""

import asyncio
import inspect
import logging
import time
from typing import Dict, List, Optional

from ..config import AnalysisConfig
from ..computed.context import ComputedContext
from ..models.devtools import Artifacts
from .base import AuditResult, BaseAudit, registry as default_registry


logger = logging.getLogger(__name__)


class AuditRunner:
    """Executes audits concurrently against one run context."""

    def __init__(self, config: Optional[AnalysisConfig] = None, registry=None):
        self.config = config or AnalysisConfig()
        self.registry = registry or default_registry

    async def run(self,
                  artifacts: Artifacts,
                  audits: Optional[List[BaseAudit]] = None,
                  context: Optional[ComputedContext] = None) -> Dict[str, AuditResult]:
        """Run audits and collect their results.

        Args:
            artifacts: Gathered artifacts for the page
            audits: Audits to run (enabled registry audits when omitted)
            context: Run context; a fresh one is created and closed when omitted

        Returns:
            Results keyed by audit id, in audit order
        """
        if audits is None:
            audits = self.registry.get_enabled_audits(self.config)

        owns_context = context is None
        if context is None:
            context = ComputedContext(config=self.config)

        try:
            results = await asyncio.gather(
                *(self._run_audit(audit, artifacts, context) for audit in audits)
            )
        finally:
            if owns_context:
                context.close()

        failed = sum(1 for result in results if not result.success)
        logger.info(
            f"Ran {len(results)} audits ({failed} failed, "
            f"{context.stats.misses} artifacts computed, {context.stats.hits} cache hits)"
        )
        return {result.audit_id: result for result in results}

    async def _run_audit(self, audit: BaseAudit, artifacts: Artifacts,
                         context: ComputedContext) -> AuditResult:
        start_time = time.perf_counter()

        try:
            selected = audit.select_artifacts(artifacts)
            result = audit.audit(selected, context)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.error(f"Audit {audit.id} failed: {type(e).__name__}: {e}")
            result = AuditResult.from_exception(audit.id, audit.title, e)

        result.processing_time_ms = (time.perf_counter() - start_time) * 1000
        return result


async def run_audits(artifacts: Artifacts,
                     config: Optional[AnalysisConfig] = None,
                     audits: Optional[List[BaseAudit]] = None) -> Dict[str, AuditResult]:
    """Convenience wrapper running audits in a fresh run context."""
    return await AuditRunner(config).run(artifacts, audits)
