"""
VaaS Pattern Library

Static risk / strength tables the scorer matches idea text against.
Loaded once at import, never mutated. Bump PATTERN_LIBRARY_VERSION
whenever an entry, weight or ordering changes so stored submissions
can be traced back to the table that scored them.
"""

import re
from dataclasses import dataclass

PATTERN_LIBRARY_VERSION = "2025.1"


@dataclass(frozen=True)
class FailurePattern:
    matcher: re.Pattern
    risk: str
    weight: float


@dataclass(frozen=True)
class StrengthIndicator:
    matcher: re.Pattern
    strength: str


@dataclass(frozen=True)
class FallbackRisk:
    category: str
    risk: str
    weight: float


@dataclass(frozen=True)
class FallbackStrength:
    category: str
    strength: str


def _p(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


# ═══════════════════════════════════════
# Failure patterns (saturated / structurally weak markets)
# ═══════════════════════════════════════

FAILURE_PATTERNS: tuple[FailurePattern, ...] = (
    FailurePattern(_p(r"social media scheduler"),
                   "Extreme saturation (Buffer, Hootsuite, Later, etc.)", 0.9),
    FailurePattern(_p(r"todo|task manager"),
                   "Over-saturated market with strong incumbents (Todoist, Things, TickTick)", 0.8),
    FailurePattern(_p(r"crm|customer relationship"),
                   "Enterprise-dominated market (Salesforce, HubSpot). SMB CRMs have high churn.", 0.7),
    FailurePattern(_p(r"email marketing"),
                   "Commoditized market (Mailchimp, ConvertKit). Margins compress toward zero.", 0.8),
    FailurePattern(_p(r"project management"),
                   "Red ocean (Asana, Monday, Linear, Notion). New entrants die within 18 months.", 0.85),
    FailurePattern(_p(r"note taking|notes app"),
                   "Feature of existing platforms. Hard to monetize. Apple Notes is free.", 0.75),
    FailurePattern(_p(r"chat|messaging|slack alternative"),
                   "Network effects make switching nearly impossible. Teams/Slack/Discord lock-in.", 0.9),
    FailurePattern(_p(r"ai writing|ai content"),
                   "Race to bottom. OpenAI/Anthropic APIs commoditize. No defensible moat.", 0.8),
    FailurePattern(_p(r"landing page builder"),
                   "Saturated (Carrd, Framer, Webflow). Differentiation is temporary.", 0.7),
    FailurePattern(_p(r"invoice|invoicing"),
                   "Embedded in accounting tools (QuickBooks, Wave, FreshBooks). Hard to unbundle.", 0.65),
    FailurePattern(_p(r"time tracking"),
                   "Feature, not product. Built into every project management tool.", 0.7),
    FailurePattern(_p(r"password manager"),
                   "Security-critical + trust requirements + Apple/Google building it natively.", 0.85),
    FailurePattern(_p(r"vpn"),
                   "Race to bottom pricing. Privacy trust is hard to establish.", 0.8),
    FailurePattern(_p(r"link shortener"),
                   "Bit.ly won. Free alternatives everywhere. Zero switching cost.", 0.9),
    FailurePattern(_p(r"analytics|website analytics"),
                   "Google Analytics is free. Plausible/Fathom have privacy niche. Margins thin.", 0.65),
)


# ═══════════════════════════════════════
# Strength indicators (moats and urgency signals)
# ═══════════════════════════════════════

STRENGTH_INDICATORS: tuple[StrengthIndicator, ...] = (
    StrengthIndicator(_p(r"compliance|regulation|gdpr|hipaa|sox"),
                      "Regulatory requirements create switching costs and justify pricing"),
    StrengthIndicator(_p(r"api|integration|webhook|middleware"),
                      "Integration products have high switching costs (infrastructure lock-in)"),
    StrengthIndicator(_p(r"vertical|niche|specific industry"),
                      "Vertical SaaS has higher retention and willingness to pay"),
    StrengthIndicator(_p(r"migration|switch|convert|transition"),
                      "Migration tools have clear deadline-driven urgency"),
    StrengthIndicator(_p(r"deprecat|sunset|deadline|end.of.life"),
                      "Platform deprecation creates time-sensitive demand"),
    StrengthIndicator(_p(r"enterprise|b2b|team|organization"),
                      "B2B has higher LTV and lower churn than B2C"),
    StrengthIndicator(_p(r"plugin|extension|app store|marketplace"),
                      "Platform ecosystems provide built-in distribution"),
    StrengthIndicator(_p(r"workflow|automat|orchestrat"),
                      "Automation tools save measurable time, which makes ROI easy to calculate"),
    StrengthIndicator(_p(r"monitor|alert|watchdog|detect"),
                      "Monitoring tools are \"insurance\": high retention, low churn"),
    StrengthIndicator(_p(r"data|report|dashboard|insight"),
                      "Data products compound value over time (more data = more useful)"),
)


# ═══════════════════════════════════════
# Heuristic risks for thin input
# ═══════════════════════════════════════

VAGUE_IDEA_RISK = FallbackRisk(
    "any",
    "Idea description is too vague to evaluate. Spell out who pays, for what, and why now.",
    0.3,
)
NO_AUDIENCE_RISK = FallbackRisk(
    "any",
    "No clear audience. Ideas without a named buyer rarely find one after launch.",
    0.3,
)


# ═══════════════════════════════════════
# Category fallbacks
#
# Ordered, first match on category wins. Used when nothing in the
# pattern tables matched, so every idea gets at least one actionable
# risk and one strength to build on.
# ═══════════════════════════════════════

CATEGORY_RISKS: tuple[FallbackRisk, ...] = (
    FallbackRisk("ecommerce", "Thin margins and heavy dependence on paid acquisition. Shopify apps churn with the merchant.", 0.25),
    FallbackRisk("fintech", "Licensing, KYC and bank partnerships add months before first revenue.", 0.3),
    FallbackRisk("healthtech", "Long sales cycles and clinical buyers who need proof before paying.", 0.3),
    FallbackRisk("edtech", "Learners churn when the course ends. Schools buy slowly and on annual budgets.", 0.25),
    FallbackRisk("devtools", "Developers expect free tiers and open-source alternatives. Monetization is hard.", 0.25),
    FallbackRisk("marketing", "Crowded tooling space where buyers switch for small price differences.", 0.25),
    FallbackRisk("hr", "HR suites bundle this already. Standalone tools fight procurement.", 0.25),
    FallbackRisk("realestate", "Transaction-driven demand swings with interest rates and seasonality.", 0.25),
    FallbackRisk("foodtech", "Restaurants run on thin margins and churn quickly when cash is tight.", 0.3),
    FallbackRisk("legaltech", "Risk-averse buyers and liability concerns slow adoption.", 0.25),
    FallbackRisk("productivity", "Productivity buyers already pay for suites that cover most of this.", 0.25),
    FallbackRisk("analytics", "Dashboards get built and ignored. Tie the output to a decision someone makes weekly.", 0.2),
    FallbackRisk("security", "Trust must be earned before anyone hands over credentials or data.", 0.3),
    FallbackRisk("ai-native", "Model providers ship overlapping features every quarter. The wrapper risk is real.", 0.3),
)

GENERIC_RISK = FallbackRisk(
    "other",
    "Unproven demand. Nothing in the description shows someone is already paying to solve this.",
    0.2,
)

CATEGORY_STRENGTHS: tuple[FallbackStrength, ...] = (
    FallbackStrength("ecommerce", "Merchants pay quickly for anything that moves revenue or conversion"),
    FallbackStrength("fintech", "Money-adjacent products justify premium pricing"),
    FallbackStrength("healthtech", "Healthcare buyers stay for years once a tool is adopted"),
    FallbackStrength("edtech", "Outcome-driven learners pay for measurable progress"),
    FallbackStrength("devtools", "Developer tools spread bottom-up inside companies"),
    FallbackStrength("marketing", "Marketing budgets are large and tied to measurable results"),
    FallbackStrength("hr", "Every growing company has recurring hiring and people-ops pain"),
    FallbackStrength("realestate", "High transaction values leave room for meaningful fees"),
    FallbackStrength("foodtech", "Daily operational use creates strong habits"),
    FallbackStrength("legaltech", "Legal work is billed by the hour, so time savings are easy to price"),
    FallbackStrength("productivity", "Time saved is easy to demonstrate in a trial"),
    FallbackStrength("analytics", "Reporting becomes part of a team's weekly rhythm"),
    FallbackStrength("security", "Security spend keeps growing and survives budget cuts"),
    FallbackStrength("ai-native", "AI lets a small team ship what used to take a large one"),
)

GENERIC_STRENGTH = FallbackStrength(
    "other",
    "A focused first version can be shipped and tested with real users quickly",
)


def fallback_risk(category: str) -> FallbackRisk:
    for entry in CATEGORY_RISKS:
        if entry.category == category:
            return entry
    return GENERIC_RISK


def fallback_strength(category: str) -> FallbackStrength:
    for entry in CATEGORY_STRENGTHS:
        if entry.category == category:
            return entry
    return GENERIC_STRENGTH
