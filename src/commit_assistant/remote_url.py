"""Remote URL parsing and merge/pull request URL generation."""

import re
from typing import Optional
from urllib.parse import quote_plus, urlencode, urlparse

from commit_assistant.errors import InvalidArgumentError
from commit_assistant.models import Platform, RemoteInfo


# git@host:owner/repo.git, ssh://git@host/owner/repo.git, host:group/sub/repo
SSH_URL_PATTERN = re.compile(r"^(?:ssh://)?(?:git@)?([^:/]+)[:/](.+?)(?:\.git)?$")


def _strip_git_suffix(name: str) -> str:
    return name[: -len(".git")] if name.endswith(".git") else name


def _split_owner_repo(host: str, path_parts: list, keep_rest_in_repo: bool) -> tuple:
    """Split path segments into (owner, repo).

    GitLab keeps every segment but the last in the owner (nested groups).
    """
    if "gitlab" in host.lower() and len(path_parts) > 2:
        return "/".join(path_parts[:-1]), _strip_git_suffix(path_parts[-1])
    if keep_rest_in_repo:
        return path_parts[0], _strip_git_suffix("/".join(path_parts[1:]))
    return path_parts[0], _strip_git_suffix(path_parts[1])


def detect_platform(host: str) -> Platform:
    lower_host = host.lower()
    if "github" in lower_host:
        return Platform.GITHUB
    if "gitlab" in lower_host:
        return Platform.GITLAB
    return Platform.UNKNOWN


def parse_remote_url(remote_url: str) -> RemoteInfo:
    """Parse an HTTP(S) or SSH remote URL.

    Raises:
        InvalidArgumentError: If the URL is empty or not in a supported format
    """
    if not remote_url:
        raise InvalidArgumentError("empty remote URL")

    if remote_url.startswith(("http://", "https://")):
        parsed = urlparse(remote_url)
        host = parsed.netloc.rsplit("@", 1)[-1]
        path_parts = parsed.path.strip("/").split("/")
        if len(path_parts) < 2 or not all(path_parts[:2]):
            raise InvalidArgumentError("invalid repository path in URL")
        owner, repo = _split_owner_repo(host, path_parts, keep_rest_in_repo=False)
    else:
        match = SSH_URL_PATTERN.match(remote_url)
        if not match:
            raise InvalidArgumentError(f"unsupported URL format: {remote_url}")
        host = match.group(1)
        path_parts = match.group(2).split("/")
        if len(path_parts) < 2:
            raise InvalidArgumentError("invalid repository path in SSH URL")
        owner, repo = _split_owner_repo(host, path_parts, keep_rest_in_repo=True)

    return RemoteInfo(platform=detect_platform(host), host=host, owner=owner, repo=repo)


def generate_merge_request_url(
    info: Optional[RemoteInfo],
    branch: str,
    target_branch: str = "",
) -> str:
    """Build the URL that opens a new merge/pull request for ``branch``.

    Returns an empty string for unknown platforms or an empty branch.
    """
    if info is None or not branch:
        return ""

    distinct_target = bool(target_branch) and target_branch != branch
    base = f"https://{info.host}/{info.owner}/{info.repo}"

    if info.platform == Platform.GITHUB:
        if distinct_target:
            return (
                f"{base}/compare/{quote_plus(target_branch, safe='')}"
                f"...{quote_plus(branch, safe='')}?expand=1"
            )
        return f"{base}/pull/new/{quote_plus(branch, safe='')}"

    if info.platform == Platform.GITLAB:
        params = {"merge_request[source_branch]": branch}
        if distinct_target:
            params["merge_request[target_branch]"] = target_branch
        return f"{base}/-/merge_requests/new?{urlencode(sorted(params.items()))}"

    return ""
