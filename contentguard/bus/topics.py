"""Topic names used by the moderation pipeline."""

# Raw submissions from bulk producers (news fetcher)
CONTENT_INGESTION_TOPIC = "content-ingestion"

# Persisted ContentItems awaiting classification
CONTENT_ANALYSIS_TOPIC = "content-analysis"

# {"type": ..., "data": ...} events for the notification fan-out
NOTIFICATIONS_TOPIC = "notifications"
