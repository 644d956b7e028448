from __future__ import annotations

from typing import Any

from app.db import store
from app.services.cooldowns import index_active_cooldowns
from app.services.tiers import can_access_recruiter, normalize_tier


def _matches_search(recruiter: dict[str, Any], query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    haystack = (recruiter.get("name") or "", recruiter.get("email") or "", recruiter.get("company") or "")
    return any(needle in value.lower() for value in haystack)


def list_recruiters_for(
    profile: dict[str, Any],
    *,
    search: str = "",
    domain: str | None = None,
    tier: str | None = None,
) -> list[dict[str, Any]]:
    """Recruiter directory as seen by one user.

    Without an explicit tier filter only recruiters the user's tier unlocks are
    listed; with one, every recruiter of that tier is shown and flagged ``locked``.
    """
    now = store.utc_now()
    cooldowns = index_active_cooldowns(store.list_active_cooldowns(profile["id"], now.isoformat()), now)
    user_tier = profile.get("subscription_tier")
    wanted_tier = normalize_tier(tier) if tier else None

    rows: list[dict[str, Any]] = []
    for recruiter in store.list_recruiters():
        if not _matches_search(recruiter, search.strip()):
            continue
        if domain and domain.lower() != "all" and recruiter.get("domain") != domain:
            continue
        accessible = can_access_recruiter(user_tier, recruiter.get("tier"))
        if wanted_tier is not None:
            if normalize_tier(recruiter.get("tier")) != wanted_tier:
                continue
        elif not accessible:
            continue

        info = cooldowns.get(recruiter["email"].lower())
        rows.append(
            {
                **recruiter,
                "tier": normalize_tier(recruiter.get("tier")),
                "locked": not accessible,
                "cooldown": info,
            }
        )
    return rows


def list_domains() -> list[str]:
    return sorted({r["domain"] for r in store.list_recruiters() if r.get("domain")})
