from moderation.config.settings import Settings
from moderation.rules.rule_filter import DEFAULT_BLOCKLIST, RuleBasedFilter


class RuleFilterFactory:
    """Creates the rule-based filter with configured extra blocklist terms."""

    @classmethod
    def create(cls, settings: Settings, supported_types: frozenset[str]) -> RuleBasedFilter:
        blocklist = (*DEFAULT_BLOCKLIST, *settings.rule_blocklist_terms)
        return RuleBasedFilter(supported_types=supported_types, blocklist=blocklist)
