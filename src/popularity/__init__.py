"""Package popularity data used to pick which packages to analyze."""

from .ecosystems import EcosystemsClient, PopularityApiError, PopularPackage
from .filters import filter_packages, parse_int_arg, parse_recency

__all__ = [
    "EcosystemsClient",
    "PopularityApiError",
    "PopularPackage",
    "filter_packages",
    "parse_int_arg",
    "parse_recency",
]
