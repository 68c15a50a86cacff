"""Base audit protocol and result models.

This module defines the interfaces every audit implements, the standardized
result format, and the registry used to discover and toggle audits. Audits
read gathered artifacts through a restricted view and derive anything
expensive through computed artifacts on the run's ``ComputedContext``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from ..computed.artifact import ComputedInputs
from ..computed.context import ComputedContext
from ..models.devtools import Artifacts


class TableHeading(BaseModel):
    """Column of a details table."""

    key: str = Field(description="Item key rendered in this column")
    value_type: str = Field(default="text", description="text, url, numeric, ms, ...")
    label: str = Field(description="Column label")


class TableDetails(BaseModel):
    """Tabular audit details."""

    type: str = Field(default="table", description="Details type")
    headings: List[TableHeading] = Field(default_factory=list)
    items: List[Dict[str, Any]] = Field(default_factory=list)
    is_entity_grouped: bool = Field(
        default=False,
        description="Whether rows are already grouped by entity"
    )


class AuditResult(BaseModel):
    """Standardized output of one audit."""

    audit_id: str = Field(description="Audit identifier")
    title: str = Field(description="Human-readable audit title")
    score: Optional[float] = Field(
        default=None,
        ge=0.0,
        le=1.0,
        description="Score between 0 and 1; None when the audit errored"
    )
    display_value: Optional[str] = Field(default=None, description="Short summary")
    not_applicable: bool = Field(default=False, description="Audit had nothing to check")
    details: Optional[TableDetails] = Field(default=None, description="Result details")

    success: bool = Field(default=True, description="Whether the audit completed")
    error_message: Optional[str] = Field(default=None, description="Failure reason")
    processing_time_ms: Optional[float] = Field(default=None)
    analyzed_at: datetime = Field(default_factory=datetime.utcnow)

    @classmethod
    def from_exception(cls, audit_id: str, title: str, e: BaseException) -> "AuditResult":
        return cls(
            audit_id=audit_id,
            title=title,
            score=None,
            success=False,
            error_message=f"{type(e).__name__}: {e}",
        )


def make_table_details(headings: Sequence[Dict[str, str]], items: List[Dict[str, Any]],
                       is_entity_grouped: bool = False) -> TableDetails:
    """Build table details from heading dicts."""
    return TableDetails(
        headings=[TableHeading(**heading) for heading in headings],
        items=items,
        is_entity_grouped=is_entity_grouped,
    )


class BaseAudit(ABC):
    """Abstract base class providing common audit functionality."""

    #: Unique audit identifier
    id: str = ""
    #: Human-readable title
    title: str = ""
    #: Names of the gathered artifacts this audit reads
    required_artifacts: Sequence[str] = ()

    def select_artifacts(self, artifacts: Artifacts) -> ComputedInputs:
        """Expose only the declared artifacts to the audit.

        Artifacts that were not gathered (None) are passed as None.
        """
        return ComputedInputs(
            self.id,
            {name: getattr(artifacts, name) for name in self.required_artifacts},
        )

    @abstractmethod
    def audit(self, artifacts: ComputedInputs,
              context: ComputedContext) -> Union[AuditResult, Awaitable[AuditResult]]:
        """Evaluate the page and return a result."""
        ...

    def _create_result(self, **kwargs) -> AuditResult:
        """Create a new AuditResult with metadata populated."""
        return AuditResult(audit_id=self.id, title=self.title, **kwargs)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r})"


class AuditRegistry:
    """Registry for managing audit discovery and activation."""

    def __init__(self):
        self._audits: Dict[str, type] = {}
        self._instances: Dict[str, BaseAudit] = {}
        self._enabled: Dict[str, bool] = {}

    def register(self, audit_class: type, enabled: bool = True) -> None:
        """Register an audit class under its ``id``."""
        audit_id = audit_class.id or audit_class.__name__

        self._audits[audit_id] = audit_class
        self._enabled[audit_id] = enabled

        # Clear any existing instance if re-registering
        self._instances.pop(audit_id, None)

    def get_audit(self, audit_id: str) -> Optional[BaseAudit]:
        """Get an audit instance by id, or None if unknown or disabled."""
        if audit_id not in self._audits or not self._enabled.get(audit_id, False):
            return None

        if audit_id not in self._instances:
            self._instances[audit_id] = self._audits[audit_id]()
        return self._instances[audit_id]

    def set_enabled(self, audit_id: str, enabled: bool) -> bool:
        """Enable or disable an audit.

        Returns:
            True if the audit exists, False otherwise
        """
        if audit_id not in self._audits:
            return False

        self._enabled[audit_id] = enabled
        return True

    def is_enabled(self, audit_id: str) -> bool:
        return self._enabled.get(audit_id, False)

    def get_enabled_audits(self, config=None) -> List[BaseAudit]:
        """Get all enabled audit instances.

        Args:
            config: Optional AnalysisConfig whose ``audits`` toggles override
                the registry defaults
        """
        audits = []
        for audit_id in self._audits:
            enabled = self._enabled.get(audit_id, False)
            if config is not None and audit_id in config.audits:
                enabled = config.audits[audit_id].enabled

            if enabled:
                if audit_id not in self._instances:
                    self._instances[audit_id] = self._audits[audit_id]()
                audits.append(self._instances[audit_id])
        return audits

    def list_audits(self, enabled_only: bool = False) -> List[str]:
        if enabled_only:
            return [audit_id for audit_id, enabled in self._enabled.items() if enabled]
        return list(self._audits.keys())

    def clear(self) -> None:
        self._audits.clear()
        self._instances.clear()
        self._enabled.clear()


# Global registry instance
registry = AuditRegistry()
