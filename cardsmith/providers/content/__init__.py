"""Content acquisition providers.

Implementations of IContentProvider:
    1. GitHubContentProvider - markdown files via the GitHub Contents API.
    2. WebContentProvider    - main content of web pages via trafilatura.
    3. FileContentProvider   - local markdown/text files.
    4. ContentRouter         - picks the first provider that supports an origin.
"""

from cardsmith.providers.content.github_provider import (
    GitHubContentProvider,
    is_github_url,
    parse_github_url,
)
from cardsmith.providers.content.router import ContentRouter, FileContentProvider
from cardsmith.providers.content.web_provider import WebContentProvider

__all__ = [
    "ContentRouter",
    "FileContentProvider",
    "GitHubContentProvider",
    "WebContentProvider",
    "is_github_url",
    "parse_github_url",
]
