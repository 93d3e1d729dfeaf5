"""
Aggregation of GitHub repository and event data into summary statistics.

Pure functions over already-fetched data; `now` is always passed in so results
are reproducible. No I/O happens here.

The events feed GitHub exposes is partial (roughly the last 90 days, capped at
300 events), so commit, streak and contribution figures are estimates.
"""

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from devstats.core.numbers import round_half_up
from devstats.schemas.stats import StatsRecord
from devstats.services.github.constants import PUSH_EVENT, language_color
from devstats.services.github.types import EventRecord, LanguageStat, RepoSummary, UserProfile

MAX_CURRENT_STREAK = 30
MAX_LONGEST_STREAK = 365
CONTRIBUTION_ACTIVITY_WEIGHT = 3


# ─────────────────────────────────────────────────────────────
# Languages
# ─────────────────────────────────────────────────────────────


def select_language_repos(
    repos: Iterable[RepoSummary],
    now: datetime,
    recency_days: int = 365,
    limit: int = 20,
) -> list[RepoSummary]:
    """
    Pick the repositories whose languages are worth fetching.

    Keeps non-fork repos with content pushed within the recency window,
    largest first, capped at `limit` to bound per-repo language requests.
    """
    cutoff = now - timedelta(days=recency_days)
    candidates = [
        repo
        for repo in repos
        if not repo.is_fork
        and repo.size_bytes > 0
        and repo.pushed_at is not None
        and repo.pushed_at > cutoff
    ]
    candidates.sort(key=lambda r: r.size_bytes, reverse=True)
    return candidates[:limit]


def aggregate_languages(
    language_maps: Iterable[Mapping[str, int] | None],
    limit: int = 6,
) -> list[LanguageStat]:
    """
    Combine per-repo language byte counts into percentage shares.

    The top `limit` languages by bytes are kept and percentages are computed
    against their combined bytes. Each percentage is rounded on its own, so the
    total can drift from 100 by a point or two.

    Args:
        language_maps: Per-repo {language: bytes}; None entries (failed fetches) are skipped
        limit: Maximum number of languages returned

    Returns:
        LanguageStat list ordered by percentage, then bytes, then name
    """
    totals: dict[str, int] = defaultdict(int)
    for langs in language_maps:
        if not langs:
            continue
        for lang, count in langs.items():
            if count > 0:
                totals[lang] += count

    top = sorted(totals.items(), key=lambda item: (-item[1], item[0]))[:limit]
    top_total = sum(count for _, count in top)
    if top_total == 0:
        return []

    stats = [
        LanguageStat(
            name=lang,
            bytes=count,
            percentage=round_half_up(count / top_total * 100),
            color=language_color(lang),
        )
        for lang, count in top
    ]
    stats.sort(key=lambda s: (-s.percentage, -s.bytes, s.name))
    return stats


def top_languages(stats: Sequence[LanguageStat]) -> dict[str, int]:
    """Ordered language -> percentage mapping."""
    return {stat.name: stat.percentage for stat in stats}


# ─────────────────────────────────────────────────────────────
# Activity
# ─────────────────────────────────────────────────────────────


def count_commits(events: Iterable[EventRecord], now: datetime) -> int:
    """Sum commits of push events created in now's calendar year (1 when unknown)."""
    return sum(
        event.commit_count or 1
        for event in events
        if event.type == PUSH_EVENT and event.created_at.year == now.year
    )


def count_recent_events(events: Iterable[EventRecord], now: datetime, days: int = 30) -> int:
    cutoff = now - timedelta(days=days)
    return sum(1 for event in events if event.created_at > cutoff)


def recent_activity_score(
    repos: Iterable[RepoSummary],
    events: Iterable[EventRecord],
    now: datetime,
    days: int = 30,
) -> int:
    """Repos pushed plus events created within the last `days` days."""
    cutoff = now - timedelta(days=days)
    recent_repos = sum(
        1 for repo in repos if repo.pushed_at is not None and repo.pushed_at > cutoff
    )
    return recent_repos + count_recent_events(events, now, days)


def estimate_streaks(recent_event_count: int, total_commits: int) -> tuple[int, int]:
    """
    Approximate (current, longest) streak in days.

    There is no daily contribution calendar to count from: the current streak
    is the recent event count capped at 30, the longest is twice the commit
    count capped at 365 and never below the current estimate.
    """
    current = min(recent_event_count, MAX_CURRENT_STREAK)
    longest = max(current, min(total_commits * 2, MAX_LONGEST_STREAK))
    return current, longest


def estimate_contributions(total_commits: int, recent_activity: int) -> int:
    """Rough contribution count: commits plus weighted recent activity."""
    return total_commits + recent_activity * CONTRIBUTION_ACTIVITY_WEIGHT


def count_contributed_to(repos: Iterable[RepoSummary], own_login: str) -> int:
    """Number of distinct owners, other than the user, among the fetched repos."""
    own = own_login.lower()
    return len({repo.owner_login.lower() for repo in repos if repo.owner_login.lower() != own})


# ─────────────────────────────────────────────────────────────
# Record assembly
# ─────────────────────────────────────────────────────────────


def _format_timestamp(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")


def build_stats_record(
    profile: UserProfile,
    repos: Sequence[RepoSummary],
    public_repos: Sequence[RepoSummary],
    events: Sequence[EventRecord],
    languages: Sequence[LanguageStat],
    total_prs: int,
    total_issues: int,
    now: datetime,
    recent_days: int = 30,
) -> StatsRecord:
    """
    Assemble the StatsRecord from fetched data.

    Args:
        profile: User profile
        repos: Repos the user owns or collaborates on (activity, contributed-to)
        public_repos: Public repos owned by the user (stars, forks)
        events: Public events, newest first as GitHub returns them
        languages: Output of aggregate_languages
        total_prs: Authored pull request count
        total_issues: Authored issue count
        now: Reference time
        recent_days: Window for recent activity
    """
    total_commits = count_commits(events, now)
    recent = recent_activity_score(repos, events, now, recent_days)
    current_streak, longest_streak = estimate_streaks(
        count_recent_events(events, now, recent_days), total_commits
    )

    if events:
        last_activity = _format_timestamp(max(event.created_at for event in events))
    else:
        last_activity = profile.updated_at

    return StatsRecord(
        total_stars=sum(repo.star_count for repo in public_repos),
        total_forks=sum(repo.fork_count for repo in public_repos),
        total_repos=profile.public_repos,
        private_repos=profile.total_private_repos,
        followers=profile.followers,
        following=profile.following,
        public_gists=profile.public_gists,
        account_created=profile.created_at,
        last_activity=last_activity,
        top_languages=top_languages(languages),
        recent_activity_score=recent,
        total_commits=total_commits,
        total_prs=total_prs,
        total_issues=total_issues,
        contributed_to=count_contributed_to(repos, profile.login),
        total_contributions=estimate_contributions(total_commits, recent),
        current_streak=current_streak,
        longest_streak=longest_streak,
        last_updated=_format_timestamp(now),
    )
