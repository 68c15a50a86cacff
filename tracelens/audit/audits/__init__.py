"""Audit framework.

This module provides the base audit protocol, result models, the registry of
default audits, and the runner that executes them against one run context.
"""

from .base import (
    AuditRegistry,
    AuditResult,
    BaseAudit,
    TableDetails,
    TableHeading,
    make_table_details,
    registry,
)
from .third_party_summary import ThirdPartySummaryAudit
from .first_party_resources import FirstPartyResourcesAudit
from .link_text import LinkTextAudit, NON_DESCRIPTIVE_LINK_TEXTS, is_non_descriptive
from .runner import AuditRunner, run_audits


def _register_default_audits():
    """Register default audit implementations."""
    registry.register(ThirdPartySummaryAudit, enabled=True)
    registry.register(FirstPartyResourcesAudit, enabled=True)
    registry.register(LinkTextAudit, enabled=True)


# Auto-register on import
_register_default_audits()

__all__ = [
    # Base framework
    "AuditRegistry",
    "AuditResult",
    "BaseAudit",
    "TableDetails",
    "TableHeading",
    "make_table_details",
    "registry",

    # Audit implementations
    "ThirdPartySummaryAudit",
    "FirstPartyResourcesAudit",
    "LinkTextAudit",
    "NON_DESCRIPTIVE_LINK_TEXTS",
    "is_non_descriptive",

    # Runner
    "AuditRunner",
    "run_audits",
]
