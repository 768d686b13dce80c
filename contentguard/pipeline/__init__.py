"""Pipeline stages: ingestion, classification, and stats bookkeeping."""

from contentguard.pipeline.classification import ClassificationStage, build_text
from contentguard.pipeline.ingestion import IngestionStage
from contentguard.pipeline.stats import StatsTracker, smooth_latency

__all__ = [
    "ClassificationStage",
    "IngestionStage",
    "StatsTracker",
    "build_text",
    "smooth_latency",
]
