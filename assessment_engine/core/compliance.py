"""
Professional-standards compliance tracking.

Evaluates an assessment type against the static requirement checklists of
APA, ITC, AERA, ISO and GDPR (content/compliance_standards.yaml). A
requirement is met when the evidence documents its key, or when computed
evidence satisfies it:

- ``reliability``: Cronbach's alpha at or above RELIABILITY_ALPHA_THRESHOLD
- ``bias_analysis``: a complete BiasAnalysisResult whose EEO check passes

The compliance score is the share of requirements met. Missing critical
requirements are always reported, whatever the score.
"""

import logging
from typing import Dict, List, Optional, Sequence

from assessment_engine.core.config import _check_descending_bands, settings
from assessment_engine.core.content import get_content
from assessment_engine.schemas.compliance import (
    ComplianceEvidence,
    ComplianceStandard,
    ComplianceSummary,
    EvidenceSource,
    Requirement,
    StandardChecklist,
)
from libs.domain_types import AnalysisStatus, ComplianceStatus, StandardType

logger = logging.getLogger(__name__)


def determine_compliance_status(
    score: float, status_bands: Optional[Dict[str, float]] = None
) -> ComplianceStatus:
    """
    Map a compliance score to a status.

    Args:
        score: Compliance score (0-100)
        status_bands: Minimum score per status (defaults to settings:
            >=80 compliant, >=50 partial, otherwise non_compliant)

    Raises:
        ValueError: If status_bands misses a status or is not descending
    """
    if status_bands is None:
        bands = settings.COMPLIANCE_STATUS_BANDS
    else:
        _check_descending_bands(
            "status_bands", status_bands, [status.value for status in ComplianceStatus]
        )
        bands = status_bands
    for status in ComplianceStatus:
        if score >= bands[status.value]:
            return status
    return ComplianceStatus.NON_COMPLIANT


def is_requirement_met(requirement: Requirement, evidence: ComplianceEvidence) -> bool:
    """Whether documentation or computed evidence satisfies one requirement."""
    if requirement.key in evidence.documented:
        return True

    if requirement.evidence == EvidenceSource.RELIABILITY:
        return (
            evidence.reliability_alpha is not None
            and evidence.reliability_alpha >= settings.RELIABILITY_ALPHA_THRESHOLD
        )
    if requirement.evidence == EvidenceSource.BIAS_ANALYSIS:
        analysis = evidence.bias_analysis
        return (
            analysis is not None
            and analysis.status == AnalysisStatus.COMPLETE
            and analysis.compliance_status.eeo is True
        )
    return False


def evaluate_compliance(
    standard: StandardChecklist | StandardType,
    assessment_type: str,
    evidence: ComplianceEvidence,
    status_bands: Optional[Dict[str, float]] = None,
) -> ComplianceStandard:
    """
    Evaluate one assessment type against one standard's checklist.

    Args:
        standard: The checklist, or a standard type looked up in the loaded content
        assessment_type: Assessment type the evidence belongs to
        evidence: Documented requirement keys and computed evidence
        status_bands: Minimum score per status (defaults to settings)

    Returns:
        ComplianceStandard with met/missing requirements, score, status,
        critical issues and (when anything is missing) the remediation plan
    """
    checklist = (
        standard
        if isinstance(standard, StandardChecklist)
        else get_content().checklist_for(StandardType(standard))
    )
    analysis = evidence.bias_analysis
    if analysis is not None and analysis.assessment_type != assessment_type:
        logger.warning(
            f"Bias analysis for {analysis.assessment_type} supplied as "
            f"evidence for {assessment_type}"
        )

    met: List[str] = []
    missing: List[str] = []
    critical_issues: List[str] = []
    for requirement in checklist.requirements:
        if is_requirement_met(requirement, evidence):
            met.append(requirement.description)
        else:
            missing.append(requirement.description)
            if requirement.critical:
                critical_issues.append(f"CRITICAL: {requirement.description} not satisfied")

    score = round(len(met) / len(checklist.requirements) * 100, 1)
    status = determine_compliance_status(score, status_bands)

    logger.info(
        f"Compliance {checklist.standard_type.value} for {assessment_type}: "
        f"{len(met)}/{len(checklist.requirements)} met, score={score}, "
        f"status={status.value}, critical_issues={len(critical_issues)}"
    )
    return ComplianceStandard(
        standard_type=checklist.standard_type,
        assessment_type=assessment_type,
        requirements_met=met,
        requirements_missing=missing,
        compliance_score=score,
        status=status,
        critical_issues=critical_issues,
        remediation_plan=list(checklist.remediation_plan) if missing else [],
    )


def evaluate_all_standards(
    assessment_type: str,
    evidence: ComplianceEvidence,
    checklists: Optional[Sequence[StandardChecklist]] = None,
    status_bands: Optional[Dict[str, float]] = None,
) -> List[ComplianceStandard]:
    """Evaluate an assessment type against every standard, in checklist order."""
    checklists = checklists if checklists is not None else get_content().compliance.standards
    return [
        evaluate_compliance(checklist, assessment_type, evidence, status_bands)
        for checklist in checklists
    ]


def summarize_compliance(records: Sequence[ComplianceStandard]) -> ComplianceSummary:
    """
    Dashboard roll-up of compliance records.

    Returns:
        Mean score per standard, overall mean over all records, total
        critical issue count and the non-compliant (standard, type) pairs
    """
    by_standard: Dict[StandardType, List[float]] = {}
    for record in records:
        by_standard.setdefault(record.standard_type, []).append(record.compliance_score)

    standard_scores = {
        standard: round(sum(scores) / len(scores), 1)
        for standard, scores in by_standard.items()
    }
    overall = (
        round(sum(r.compliance_score for r in records) / len(records), 1) if records else None
    )

    return ComplianceSummary(
        standard_scores=standard_scores,
        overall_score=overall,
        critical_issue_count=sum(len(r.critical_issues) for r in records),
        non_compliant=[
            f"{r.standard_type.value}:{r.assessment_type}"
            for r in records
            if r.status == ComplianceStatus.NON_COMPLIANT
        ],
    )
