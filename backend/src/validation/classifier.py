"""
Category / ecosystem detection for submitted ideas.

Rules are evaluated top to bottom and the first match wins, so a
"shopify analytics dashboard" lands in ecommerce, not analytics.
Keep the ordering when adding rules.
"""

import re

CATEGORY_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"e.?commerce|shop|store|cart|merchant|retail"), "ecommerce"),
    (re.compile(r"fintech|payment|banking|trading|invest|crypto"), "fintech"),
    (re.compile(r"health|medical|patient|clinic|wellness"), "healthtech"),
    (re.compile(r"education|learn|course|student|tutor"), "edtech"),
    (re.compile(r"developer|code|api|devtool|ci.?cd|deploy"), "devtools"),
    (re.compile(r"market|seo|social|content|email.*market|growth"), "marketing"),
    (re.compile(r"hr|recruit|hiring|employee|team|workforce"), "hr"),
    (re.compile(r"real.?estate|property|rent|mortgage"), "realestate"),
    (re.compile(r"restaurant|food|delivery|kitchen|menu"), "foodtech"),
    (re.compile(r"legal|compliance|contract|law"), "legaltech"),
    (re.compile(r"productiv|task|project|workflow|automat"), "productivity"),
    (re.compile(r"data|analytics|dashboard|report|insight"), "analytics"),
    (re.compile(r"security|auth|identity|access|encrypt"), "security"),
    (re.compile(r"ai|machine.?learn|llm|gpt|model"), "ai-native"),
)

ECOSYSTEM_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"shopify"), "shopify"),
    (re.compile(r"bigcommerce"), "bigcommerce"),
    (re.compile(r"chrome.*ext|browser.*ext"), "chrome"),
    (re.compile(r"vs.?code|visual studio"), "vscode"),
    (re.compile(r"wordpress|wp"), "wordpress"),
    (re.compile(r"slack"), "slack"),
    (re.compile(r"salesforce"), "salesforce"),
    (re.compile(r"hubspot"), "hubspot"),
    (re.compile(r"jira|atlassian|confluence"), "atlassian"),
)

DEFAULT_CATEGORY = "other"
DEFAULT_ECOSYSTEM = "standalone"


def _first_match(text: str, rules: tuple[tuple[re.Pattern, str], ...], default: str) -> str:
    for pattern, label in rules:
        if pattern.search(text):
            return label
    return default


def detect_category(text: str) -> str:
    return _first_match(text.lower(), CATEGORY_RULES, DEFAULT_CATEGORY)


def detect_ecosystem(text: str) -> str:
    return _first_match(text.lower(), ECOSYSTEM_RULES, DEFAULT_ECOSYSTEM)


def classify(text: str) -> tuple[str, str]:
    """Return (category, ecosystem) for free text. Never raises."""
    return detect_category(text), detect_ecosystem(text)
