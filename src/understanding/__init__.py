"""Understanding: turns transcripts into canonical items and merged topics."""

from .canonicalizer import canonicalize, fingerprint
from .extractor import ItemExtractor, SegmentWork
from .models import ExtractedItem, ItemCorrection, RawCandidateItem, TopicAggregate
from .pipeline import UnderstandingPipeline
from .queue import ExtractionQueue
from .store import ExtractionStore
from .topic_store import TopicStore

__all__ = [
    "canonicalize",
    "fingerprint",
    "ItemExtractor",
    "SegmentWork",
    "ExtractedItem",
    "ItemCorrection",
    "RawCandidateItem",
    "TopicAggregate",
    "UnderstandingPipeline",
    "ExtractionQueue",
    "ExtractionStore",
    "TopicStore",
]
