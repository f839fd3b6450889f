from moderation.toxicity.base import BaseToxicityClassifier
from moderation.toxicity.factory import ToxicityScorerFactory
from moderation.toxicity.scorer import ToxicityScorer

__all__ = ["BaseToxicityClassifier", "ToxicityScorer", "ToxicityScorerFactory"]
