"""Query risk policy evaluator.

Pure function of (statement text, policy set): no I/O, safe to call for a
"test this query" action without executing anything.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from sqlgate.application.dtos.query_policy import (
    MatchedPolicy,
    QueryRiskPolicyResult,
    QueryValidationResult,
)
from sqlgate.domain.enums import PolicyAction, PolicyType
from sqlgate.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

DDL_KEYWORDS: tuple[str, ...] = ("DROP", "TRUNCATE", "ALTER", "CREATE", "GRANT", "REVOKE")


def normalize_query(query: str) -> str:
    """Uppercase and trim; all detection runs on this form."""
    return query.upper().strip()


def _match_custom(policy: QueryRiskPolicyResult, normalized: str) -> bool:
    try:
        return re.search(policy.pattern or "", normalized, re.IGNORECASE) is not None
    except re.error as e:
        logger.warning(
            "Skipping custom policy %s: invalid pattern %r (%s)", policy.id, policy.pattern, e
        )
        return False


def check_policy(policy: QueryRiskPolicyResult, normalized: str) -> str | None:
    """Return the reason policy fires on the normalized statement, or None."""
    match policy.policy_type:
        case PolicyType.DDL_BLOCK.value:
            for keyword in DDL_KEYWORDS:
                if keyword in normalized:
                    return f"Contains DDL keyword: {keyword}"
        case PolicyType.WHERE_REQUIRED.value:
            if ("UPDATE" in normalized or "DELETE" in normalized) and "WHERE" not in normalized:
                return "UPDATE/DELETE without WHERE clause"
        case PolicyType.LIMIT_REQUIRED.value:
            if "SELECT" in normalized and "LIMIT" not in normalized:
                return "SELECT without LIMIT clause"
        case PolicyType.KEYWORD_BLOCK.value:
            for keyword in policy.blocked_keywords:
                if keyword and keyword.upper() in normalized:
                    return f"Contains blocked keyword: {keyword}"
        case PolicyType.TABLE_RESTRICT.value:
            for table in policy.restricted_tables:
                if table and table.upper() in normalized:
                    return f"Accesses restricted table: {table}"
        case PolicyType.CUSTOM.value:
            if policy.pattern and _match_custom(policy, normalized):
                return "Matches custom pattern"
    return None


def evaluate_query(
    query: str, policies: Iterable[QueryRiskPolicyResult]
) -> QueryValidationResult:
    """Evaluate a statement against policies.

    Policies are considered in descending risk order (stable for ties). The
    action of the first matched policy carrying the maximum risk score
    decides; the statement is allowed unless that action is block. With no
    match the result is risk 0, action warn, allowed.
    """
    normalized = normalize_query(query)
    ordered = sorted(policies, key=lambda p: p.risk_score, reverse=True)
    matched: list[MatchedPolicy] = []
    chosen: MatchedPolicy | None = None
    for policy in ordered:
        if not policy.is_active:
            continue
        reason = check_policy(policy, normalized)
        if reason is None:
            continue
        hit = MatchedPolicy(
            policy_id=policy.id,
            policy_name=policy.name,
            policy_type=policy.policy_type,
            risk_score=policy.risk_score,
            action=policy.action,
            reason=reason,
        )
        matched.append(hit)
        if chosen is None or hit.risk_score > chosen.risk_score:
            chosen = hit
    if chosen is None:
        return QueryValidationResult(
            allowed=True, risk_score=0, action=PolicyAction.WARN.value
        )
    warnings = tuple(
        f"{m.policy_name}: {m.reason}" for m in matched if m.action != PolicyAction.BLOCK.value
    )
    return QueryValidationResult(
        allowed=chosen.action != PolicyAction.BLOCK.value,
        risk_score=chosen.risk_score,
        action=chosen.action,
        matched_policies=tuple(matched),
        warnings=warnings,
        decisive_policy_id=chosen.policy_id,
    )
