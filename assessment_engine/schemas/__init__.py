"""
Pydantic schemas for the engine's data contracts.
"""
from .items import (
    Item,
    ItemOption,
    Response,
    ResponseSet,
)
from .scoring import (
    DimensionScore,
    LevelBand,
    SubdimensionScore,
)
from .validity import (
    TimingStatistics,
    ValidityCheck,
    ValidityConfig,
    ValidityMetrics,
    ValidityTrigger,
)
from .content import (
    AssessmentDefinition,
    InterpretationTables,
    ProfileBand,
    RiskConfig,
)
from .results import AssessmentResult
from .fairness import (
    AttributeAnalysis,
    BiasAnalysisRequest,
    BiasAnalysisResult,
    BiasIndicators,
    BiasMonitoringSummary,
    ComplianceChecks,
    DimensionDisparity,
    FairnessConfig,
    FairnessRecord,
    GroupStatistics,
    PassCriterion,
    Timeframe,
)
from .compliance import (
    ComplianceEvidence,
    ComplianceStandard,
    ComplianceSummary,
    EvidenceSource,
    Requirement,
    StandardChecklist,
)

__all__ = [
    "Item",
    "ItemOption",
    "Response",
    "ResponseSet",
    "DimensionScore",
    "LevelBand",
    "SubdimensionScore",
    "TimingStatistics",
    "ValidityCheck",
    "ValidityConfig",
    "ValidityMetrics",
    "ValidityTrigger",
    "AssessmentDefinition",
    "InterpretationTables",
    "ProfileBand",
    "RiskConfig",
    "AssessmentResult",
    "AttributeAnalysis",
    "BiasAnalysisRequest",
    "BiasAnalysisResult",
    "BiasIndicators",
    "BiasMonitoringSummary",
    "ComplianceChecks",
    "DimensionDisparity",
    "FairnessConfig",
    "FairnessRecord",
    "GroupStatistics",
    "PassCriterion",
    "Timeframe",
    "ComplianceEvidence",
    "ComplianceStandard",
    "ComplianceSummary",
    "EvidenceSource",
    "Requirement",
    "StandardChecklist",
]
