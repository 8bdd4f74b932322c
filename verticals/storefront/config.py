"""Storefront configuration.

Loads the DiscountConfig once at startup and exposes the RuleTable to
routes through a FastAPI dependency, so tests can swap in their own table.
"""

from fastapi import Request

from patterns.domain_config import DiscountConfig
from verticals.storefront.rule_table import RuleTable


def load_rule_table() -> RuleTable:
    """Build the process rule table from env / rules file, with reference promo codes."""
    table = RuleTable.from_config(DiscountConfig.from_env())
    table.check_consistency()
    return table


def get_rule_table(request: Request) -> RuleTable:
    return request.app.state.rule_table
