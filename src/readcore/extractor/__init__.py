"""
ReadCore Content Extraction Module.

Scores tree nodes, selects and merges the main-content candidate, cleans it
and derives article metadata:

- Preprocessing: noscript image unwrapping, script/style/comment removal, br-chain paragraphs
- Candidate scoring with class weighting and link density
- Fallback ladder relaxing the unlikely-stripping, class-weight and conditional-clean passes
- Metadata from JSON-LD, meta tags and the title heuristic
"""

from .engine import Readability, extract
from .metadata import ArticleMetadata, JsonLdParser, MetadataExtractor, MetaTagParser, get_article_title
from .models import FALLBACK_LADDER, Attempt, ExtractionFlags, ExtractionResult
from .scoring import CandidateScores

__all__ = [
    "Readability",
    "extract",
    "ArticleMetadata",
    "JsonLdParser",
    "MetaTagParser",
    "MetadataExtractor",
    "get_article_title",
    "FALLBACK_LADDER",
    "Attempt",
    "ExtractionFlags",
    "ExtractionResult",
    "CandidateScores",
]
