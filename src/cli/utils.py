"""Shared CLI utilities."""

import sys

import structlog
from rich.console import Console

console = Console()
logger = structlog.get_logger()


def get_components(skip_llm: bool = False):
    """Initialize stores, pipelines and processors from config.

    Args:
        skip_llm: If True, skip provider init (for commands that only read stores)
    """
    from cli.config import get_paths, load_config_model
    from llm import LLMError
    from llm.factory import provider_from_config
    from momentum import StreakCalculator, StreakDataLoader
    from progress import (
        AmbiguityChecker,
        CheckInExtractor,
        CheckInProcessor,
        CheckInStore,
        DailyMoodStore,
        IntentionsParser,
        IntentionStore,
        OverrideStore,
        ProgressStore,
    )
    from understanding import ExtractionStore, ItemExtractor, TopicStore, UnderstandingPipeline

    config = load_config_model()
    paths = get_paths(config)
    db_path = paths["db_path"]

    provider = None
    if not skip_llm:
        try:
            provider = provider_from_config(config.llm)
        except LLMError as e:
            console.print(f"[red]Config error:[/] {e}")
            sys.exit(1)

    item_store = ExtractionStore(db_path)
    topic_store = TopicStore(db_path)
    intention_store = IntentionStore(db_path)
    progress_store = ProgressStore(db_path)
    override_store = OverrideStore(db_path)
    check_in_store = CheckInStore(db_path)
    mood_store = DailyMoodStore(db_path)

    extractor = ItemExtractor(
        provider,
        max_transcript_chars=config.extraction.max_transcript_chars,
        max_tokens=config.llm.max_tokens,
    )
    pipeline = UnderstandingPipeline(item_store, topic_store, extractor=extractor)

    processor = CheckInProcessor(
        check_in_store,
        progress_store,
        override_store,
        intention_store,
        mood_store,
        extractor=CheckInExtractor(provider),
        checker=AmbiguityChecker.from_config(config.ambiguity),
    )

    streak_loader = StreakDataLoader(
        intention_store,
        check_in_store,
        progress_store,
        override_store,
        lookback_days=config.momentum.lookback_days,
    )
    streak = StreakCalculator(config.momentum.streak_rule, max_days=config.momentum.lookback_days)

    return {
        "config": config,
        "paths": paths,
        "item_store": item_store,
        "topic_store": topic_store,
        "intention_store": intention_store,
        "progress_store": progress_store,
        "override_store": override_store,
        "check_in_store": check_in_store,
        "mood_store": mood_store,
        "pipeline": pipeline,
        "processor": processor,
        "intentions_parser": IntentionsParser(provider),
        "streak_loader": streak_loader,
        "streak": streak,
    }
