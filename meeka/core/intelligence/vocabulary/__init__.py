"""Regional vocabulary module."""

from .regions import (
    BROADEST_VOCABULARY,
    VOCABULARIES,
    RegionCache,
    RegionCode,
    RegionVocabulary,
    detect_region,
    expand_template,
    get_vocabulary,
    parse_region,
    region_display_name,
    term_alternation,
)

__all__ = [
    "BROADEST_VOCABULARY",
    "VOCABULARIES",
    "RegionCache",
    "RegionCode",
    "RegionVocabulary",
    "detect_region",
    "expand_template",
    "get_vocabulary",
    "parse_region",
    "region_display_name",
    "term_alternation",
]
