"""Tool bundle acquisition."""

from .agent import BuildAgentUpdater, BundleUpdater, extract_bundle, get_bundle_url

__all__ = [
    "BundleUpdater",
    "BuildAgentUpdater",
    "extract_bundle",
    "get_bundle_url",
]
