"""
Fetch pipeline for the session catalog.

Re-exports the pipeline interfaces, the extractor and the retrying fetch job so
downstream code can import from `session_catalog.pipeline` directly.
"""

from session_catalog.pipeline.abstract import FetchJob, PageFetcher, RecordExtractor
from session_catalog.pipeline.extractor import FieldSelectors, SessionExtractor
from session_catalog.pipeline.fetch_job import RETRYABLE_ERRORS, RetryingFetchJob

__all__ = [
    # Interfaces
    "FetchJob",
    "PageFetcher",
    "RecordExtractor",
    # Implementations
    "FieldSelectors",
    "RETRYABLE_ERRORS",
    "RetryingFetchJob",
    "SessionExtractor",
]
