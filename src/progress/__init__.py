from .ambiguity import AmbiguityChecker
from .checkin import CheckInOutcome, CheckInProcessor
from .checkin_extractor import CheckInExtractor
from .intention_parser import IntentionsParser
from .intentions import IntentionStore
from .mood import DailyMoodStore
from .store import CheckInStore, OverrideStore, ProgressStore

__all__ = [
    "AmbiguityChecker",
    "CheckInOutcome",
    "CheckInProcessor",
    "CheckInExtractor",
    "IntentionsParser",
    "IntentionStore",
    "DailyMoodStore",
    "CheckInStore",
    "OverrideStore",
    "ProgressStore",
]
