"""Static SQL guard driven by per-organization security settings.

Checks run in a fixed order (DDL, DML, blocked keywords, injection heuristics)
and stop at the first hit. Keyword checks use word boundaries, so a column
named ``created_at`` does not trip the CREATE rule.
"""

from __future__ import annotations

import re

from sqlgate.application.dtos.query import SecurityCheckResult, SecuritySettingsResult

DDL_KEYWORDS: tuple[str, ...] = (
    "CREATE",
    "ALTER",
    "DROP",
    "TRUNCATE",
    "RENAME",
    "GRANT",
    "REVOKE",
)
DML_KEYWORDS: tuple[str, ...] = ("INSERT", "UPDATE", "DELETE", "MERGE", "UPSERT")

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r";\s*(drop|delete|truncate|alter|create)\s+", re.IGNORECASE),
    re.compile(r"or\s+1\s*=\s*1", re.IGNORECASE),
    re.compile(r"union\s+select", re.IGNORECASE),
)

RULE_DDL = "ddl_block"
RULE_DML = "dml_block"
RULE_KEYWORD = "blocked_keyword"
RULE_INJECTION = "sql_injection"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        RULE_DDL: "DDL statement ({keyword}) is blocked by security policy",
        RULE_DML: "DML statement ({keyword}) is blocked by security policy",
        RULE_KEYWORD: 'Query contains blocked keyword "{keyword}"',
        RULE_INJECTION: "SQL injection pattern detected ({keyword}); query blocked",
    },
    "ko": {
        RULE_DDL: "DDL 문 ({keyword})이 보안 정책에 의해 차단되었습니다",
        RULE_DML: "DML 문 ({keyword})이 보안 정책에 의해 차단되었습니다",
        RULE_KEYWORD: '차단된 키워드 "{keyword}"가 포함되어 있습니다',
        RULE_INJECTION: "SQL Injection 패턴({keyword})이 감지되어 차단되었습니다",
    },
}


def _word_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)


class SqlSecurityGuard:
    """Evaluate a statement against the static security toggles."""

    def __init__(self, locale: str = "en") -> None:
        if locale not in MESSAGES:
            raise ValueError(f"Unsupported message locale: {locale}")
        self._messages = MESSAGES[locale]

    def _blocked(self, rule: str, keyword: str) -> SecurityCheckResult:
        return SecurityCheckResult(
            blocked=True,
            reason=self._messages[rule].format(keyword=keyword),
            rule=rule,
            keyword=keyword,
        )

    def check(self, query: str, settings: SecuritySettingsResult) -> SecurityCheckResult:
        """Return the first rule the statement violates, or an unblocked result."""
        if settings.enable_ddl_block:
            for keyword in DDL_KEYWORDS:
                if _word_pattern(keyword).search(query):
                    return self._blocked(RULE_DDL, keyword)
        if settings.enable_dml_block:
            for keyword in DML_KEYWORDS:
                if _word_pattern(keyword).search(query):
                    return self._blocked(RULE_DML, keyword)
        for keyword in settings.keyword_list:
            if _word_pattern(keyword).search(query):
                return self._blocked(RULE_KEYWORD, keyword)
        if settings.enable_sql_injection_check:
            for pattern in INJECTION_PATTERNS:
                found = pattern.search(query)
                if found:
                    return self._blocked(RULE_INJECTION, " ".join(found.group(0).split()))
        return SecurityCheckResult(blocked=False)
