"""Page analysis: identity, extraction, classification and summarization."""

from .classifier import (
    RULES,
    ClassificationResult,
    ClassificationRule,
    Classifier,
    classify,
    classify_one,
    merge_classifications,
    rank,
)
from .extractor import Extractor
from .identity import IdentityMap
from .strategies import (
    ClassificationStrategy,
    OpenRouterClassificationStrategy,
    OpenRouterSummaryStrategy,
    SummaryStrategy,
    classification_strategy_from_env,
    strategy_from_env,
)
from .summarizer import Summarizer, SummaryResult

__all__ = [
    "ClassificationResult",
    "ClassificationRule",
    "ClassificationStrategy",
    "Classifier",
    "Extractor",
    "IdentityMap",
    "OpenRouterClassificationStrategy",
    "OpenRouterSummaryStrategy",
    "RULES",
    "Summarizer",
    "SummaryResult",
    "SummaryStrategy",
    "classification_strategy_from_env",
    "classify",
    "classify_one",
    "merge_classifications",
    "rank",
    "strategy_from_env",
]
