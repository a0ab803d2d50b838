"""MCP Timelog Configuration - Python Example

Copy to your project root as timelog_config.py.

Convention:
- CONFIG dict for static configuration (same structure as TOML)
- Functions named hook_* become lifecycle hooks
- Functions named group_* become grouping keys usable in --group-by
- Functions named custom_tool_* become MCP tools
"""

import os

# =============================================================================
# Static Configuration (same structure as TOML)
# =============================================================================

CONFIG = {
    "project": {
        "name": "consulting",
    },
    "directories": {
        "log": "timelog",
        "export": "timelog/exports",
    },
    "log": {
        # One file per machine per day
        "document": "{host}/{date}.org",
        "level": "INFO",
    },
    "report": {
        "csv_fields": ["TIMESTAMP", "DURATION", "TITLE", "TAGS", "PROJECT"],
        "group_by": ["PROJECT"],
    },
}


# =============================================================================
# Hooks
# =============================================================================

def hook_pre_append(entry):
    """Called before an entry is appended. Must return the entry."""
    client = os.environ.get("TIMELOG_CLIENT")
    if client and "CLIENT" not in entry.properties:
        entry.properties["CLIENT"] = client
    return entry


# =============================================================================
# Grouping keys
# =============================================================================

def group_client(entry):
    """Group by the CLIENT property, falling back to the first tag."""
    if entry.get("CLIENT"):
        return entry.get("CLIENT")
    if entry.tags:
        return entry.tags.strip(":").split(":")[0]
    return None


# =============================================================================
# Custom tools
# =============================================================================

def custom_tool_billable_hours(engine, params):
    """Total billable hours per client for a period."""
    from mcp_timelog.period import period_from_args

    period = period_from_args(params.get("date_from"), params.get("date_to"))
    summaries = engine.summary(period=period, group_by=["client"])
    return {
        s.name: round(s.total.total_seconds() / 3600, 2)
        for s in summaries
    }
