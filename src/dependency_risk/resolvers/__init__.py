"""Reputation resolvers for fetching upstream health signals.

This module provides resolvers for fetching repository and registry
statistics from GitHub, crates.io, and other sources.
"""

from dependency_risk.resolvers.base import BaseResolver
from dependency_risk.resolvers.crates_io import CratesIoResolver
from dependency_risk.resolvers.github import GitHubResolver
from dependency_risk.resolvers.http import HttpResolver
from dependency_risk.resolvers.oracle import ReputationOracle

__all__ = [
    "BaseResolver",
    "CratesIoResolver",
    "GitHubResolver",
    "HttpResolver",
    "ReputationOracle",
]
