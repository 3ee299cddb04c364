# Matching stages module
from .stage1_normalize import EntityNormalizationStage
from .stage2_features import ContactFeatureStage
from .stage3_names import NameMatchStage
from .stage4_components import ComponentScoringStage
from .stage5_aggregate import ScoreAggregationStage
from .stage6_rank import RankingStage
from .stage7_explain import ExplanationStage
