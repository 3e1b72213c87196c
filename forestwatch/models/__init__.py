"""Record types shared by every layer of the dashboard."""
from __future__ import annotations

from .forest import (
    Alert,
    AlertType,
    ChangeType,
    Evidence,
    ForestDataInput,
    ForestWatchResponse,
    GeoPoint,
    Report,
    ReportCategory,
    SatelliteTile,
    SensorReading,
    Severity,
    Summary,
    classify_severity,
    filter_alerts,
    sort_by_severity,
)
from .knowledge import KnowledgeQueryResult, PlantAnalysisResult
from .programs import (
    BenefitShare,
    GeneratedPesInsights,
    Partner,
    Participants,
    PesMetrics,
    PesProgram,
    ProgramType,
    ProjectIncentives,
    ProjectLocation,
    ProjectStatus,
    RestorationMetrics,
    RestorationProject,
    TourismProduct,
)
from .waste import (
    CircularEconomyResponse,
    MarketPrice,
    SmartBin,
    WasteAnalysisSummary,
    WasteDataInput,
    WasteTransaction,
    WasteType,
)
