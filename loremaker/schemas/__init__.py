# Character codex schema definitions
from .character import (
    Power,
    Character,
    TaxonomyType,
    TaxonomyMember,
    PowerMetrics,
    TaxonomyEntry,
    Taxonomies,
    FeaturedCollection,
    FeaturedBundle,
    RelatedCard,
)

# GViz wire format
from .gviz import (
    GVizColumn,
    GVizRow,
    GVizTable,
    GVizResponse,
)

# Arena simulation
from .arena import (
    OriginProfile,
    BattleRound,
    BattleResult,
)

__all__ = [
    # Canonical records
    "Power",
    "Character",
    "TaxonomyType",
    "TaxonomyMember",
    "PowerMetrics",
    "TaxonomyEntry",
    "Taxonomies",
    "FeaturedCollection",
    "FeaturedBundle",
    "RelatedCard",
    # GViz wire format
    "GVizColumn",
    "GVizRow",
    "GVizTable",
    "GVizResponse",
    # Arena simulation
    "OriginProfile",
    "BattleRound",
    "BattleResult",
]
