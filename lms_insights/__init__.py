"""
lms_insights package marker.

Ingestion, normalization and aggregation of LMS and StoryLane CSV exports.
"""
