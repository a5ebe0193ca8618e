"""GitHub reputation resolver.

Fetches repository statistics from GitHub's API: the stargazer count and
the number of distinct commit authors over the last six months.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any, Optional
from urllib.parse import urlparse

from dependency_risk.models import PackageNode, Reputation
from dependency_risk.resolvers.http import HttpResolver

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"

# Window for counting active contributors
ACTIVITY_WINDOW = timedelta(weeks=4 * 6)


class GitHubResolver(HttpResolver):
    """Resolver that fetches repository statistics from GitHub's API.

    Supports authentication via GitHub token for higher rate limits.

    Attributes:
        github_token: Optional GitHub personal access token for authentication.
    """

    def __init__(self, github_token: Optional[str] = None, **kwargs: Any) -> None:
        """Initialize GitHubResolver.

        Args:
            github_token: Optional GitHub personal access token for API authentication.
                Increases rate limit from 60 to 5000 requests/hour.
            **kwargs: Forwarded to HttpResolver (proxy, retries).
        """
        super().__init__(**kwargs)
        self.github_token = github_token

    @property
    def name(self) -> str:
        """Return the resolver name.

        Returns:
            "GitHub"
        """
        return "GitHub"

    @property
    def priority(self) -> int:
        """Return resolver priority.

        Returns:
            10 (repository statistics come from the repository itself)
        """
        return 10

    def supports(self, package: PackageNode) -> bool:
        return (
            package.repository_url is not None
            and self._parse_github_url(package.repository_url) is not None
        )

    def _parse_github_url(self, url: str) -> Optional[tuple[str, str]]:
        """Parse GitHub URL to extract owner and repository name.

        Deeper paths such as ``/tree/main/crates/foo`` are accepted and
        reduced to the repository itself.

        Args:
            url: GitHub repository URL.

        Returns:
            Tuple of (owner, repo) if valid GitHub URL, None otherwise.
        """
        parsed = urlparse(url)

        # Check if it's a GitHub URL
        if parsed.netloc not in ("github.com", "www.github.com"):
            return None

        parts = parsed.path.strip("/").split("/")
        if len(parts) < 2:
            return None

        owner, repo = parts[0], parts[1]
        if repo.endswith(".git"):
            repo = repo[:-4]
        if not owner or not repo:
            return None

        return (owner, repo)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
        }
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"
        return headers

    async def _fetch_stars(self, owner: str, repo: str) -> Optional[int]:
        data = await self._get_json(
            f"{GITHUB_API}/repos/{owner}/{repo}", headers=self._headers()
        )
        if not isinstance(data, dict):
            return None
        stars = data.get("stargazers_count")
        return stars if isinstance(stars, int) else None

    async def _fetch_active_contributors(self, owner: str, repo: str) -> Optional[int]:
        since = (datetime.now(UTC) - ACTIVITY_WINDOW).strftime("%Y-%m-%dT%H:%M:%SZ")
        data = await self._get_json(
            f"{GITHUB_API}/repos/{owner}/{repo}/commits",
            headers=self._headers(),
            params={"since": since, "per_page": "100"},
        )
        if not isinstance(data, list):
            return None

        authors = set()
        for commit_info in data:
            author = (commit_info.get("commit") or {}).get("author") or {}
            email = author.get("email")
            if email:
                authors.add(email)
        return len(authors)

    async def lookup(self, package: PackageNode) -> Optional[Reputation]:
        """Fetch repository statistics for a package.

        Args:
            package: Package whose repository_url points at GitHub.

        Returns:
            Reputation with stars and active contributors, or None if the
            package has no GitHub repository or both requests failed.
        """
        if not package.repository_url:
            return None

        parsed = self._parse_github_url(package.repository_url)
        if parsed is None:
            return None

        owner, repo = parsed
        stars = await self._fetch_stars(owner, repo)
        contributors = await self._fetch_active_contributors(owner, repo)

        if stars is None and contributors is None:
            logger.debug("No GitHub statistics for %s/%s", owner, repo)
            return None

        return Reputation(stars=stars, active_contributors=contributors)
