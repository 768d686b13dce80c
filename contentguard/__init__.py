"""ContentGuard -- asynchronous content moderation pipeline.

Content is ingested, classified, routed through moderation rules and
fanned out to connected moderator clients in real time.
"""

__version__ = "0.1.0"
