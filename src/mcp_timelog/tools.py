"""MCP tool definitions wrapping the timelog engine."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from loguru import logger

from .engine import TimelogEngine
from .errors import (
    DestinationError,
    InvalidPropertyError,
    ReservedPropertyError,
    TimelogError,
    UnknownExporterError,
)
from .models import format_timestamp
from .period import period_from_args

_PERIOD_PROPERTIES = {
    "date_from": {
        "type": "string",
        "description": "First day of the period (YYYY-MM-DD). Omit for the whole log.",
    },
    "date_to": {
        "type": "string",
        "description": "Last day of the period (YYYY-MM-DD), inclusive. Defaults to date_from.",
    },
}

_GROUP_BY_PROPERTY = {
    "type": "array",
    "items": {"type": "string"},
    "description": "Group keys: day, week, month, tag, or a property name such as PROJECT",
}


def _custom_tool_definition(name: str, func: Callable) -> dict:
    doc = (func.__doc__ or f"Custom tool: {name}").strip()
    return {
        "name": name,
        "description": doc.splitlines()[0],
        "inputSchema": {
            "type": "object",
            "properties": {
                "params": {
                    "type": "object",
                    "description": "Parameters for the custom tool",
                }
            },
        },
    }


async def _run_custom_tool(func: Callable, engine: TimelogEngine, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    try:
        result = func(engine, arguments.get("params", arguments))
        if asyncio.iscoroutine(result):
            result = await result
        return result
    except Exception as e:
        logger.exception("Custom tool {} failed", name)
        return {
            "success": False,
            "error": str(e),
            "error_type": "custom_tool_error",
        }


def make_tools(engine: TimelogEngine, custom_tools: Optional[dict[str, Callable]] = None) -> dict[str, dict]:
    """Create MCP tool definitions for the timelog engine.

    Functions from ``custom_tools`` are listed after the built-in tools and
    take their description from the first docstring line.

    Returns:
        Dict mapping tool names to their definitions.
    """

    tools = {}

    # ========== timelog_append ==========
    tools["timelog_append"] = {
        "name": "timelog_append",
        "description": "Append a new entry to the activity log. Never edits existing entries; correct mistakes by appending.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "title": {
                    "type": "string",
                    "description": "What is being done from now on",
                },
                "tags": {
                    "type": "string",
                    "description": "Classification, e.g. :work:meeting:",
                },
                "body": {
                    "type": "string",
                    "description": "Free text notes",
                },
                "properties": {
                    "type": "object",
                    "description": "Extra key/value properties (ID, TIMESTAMP and DURATION are reserved)",
                    "additionalProperties": {"type": "string"},
                },
            },
        },
    }

    # ========== timelog_timeline ==========
    tools["timelog_timeline"] = {
        "name": "timelog_timeline",
        "description": "Reconstruct the chronological timeline with per-entry durations for a period.",
        "inputSchema": {
            "type": "object",
            "properties": {
                **_PERIOD_PROPERTIES,
                "group_by": _GROUP_BY_PROPERTY,
            },
        },
    }

    # ========== timelog_report ==========
    tools["timelog_report"] = {
        "name": "timelog_report",
        "description": "Render a CSV or native document report without writing it to disk.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "format": {
                    "type": "string",
                    "enum": ["csv", "document"],
                    "description": "Report format (default: csv)",
                },
                "fields": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "CSV columns, e.g. TIMESTAMP, DURATION, TITLE, GROUP",
                },
                **_PERIOD_PROPERTIES,
                "group_by": _GROUP_BY_PROPERTY,
            },
        },
    }

    # ========== timelog_export ==========
    tools["timelog_export"] = {
        "name": "timelog_export",
        "description": "Render a report and write it to a file. An empty period is a successful zero-row export.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "format": {
                    "type": "string",
                    "enum": ["csv", "document"],
                    "description": "Report format (default: csv)",
                },
                "destination": {
                    "type": "string",
                    "description": "Output path, relative to the project root (default: export directory)",
                },
                "fields": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "CSV columns",
                },
                **_PERIOD_PROPERTIES,
                "group_by": _GROUP_BY_PROPERTY,
            },
        },
    }

    # ========== timelog_summary ==========
    tools["timelog_summary"] = {
        "name": "timelog_summary",
        "description": "Entry count and total duration per group for a period.",
        "inputSchema": {
            "type": "object",
            "properties": {
                **_PERIOD_PROPERTIES,
                "group_by": _GROUP_BY_PROPERTY,
            },
        },
    }

    # ========== timelog_sources ==========
    tools["timelog_sources"] = {
        "name": "timelog_sources",
        "description": "List the source documents reports are built from and the active document.",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    }

    for name, func in (custom_tools or {}).items():
        tools[name] = _custom_tool_definition(name, func)

    return tools


async def execute_tool(
    engine: TimelogEngine,
    name: str,
    arguments: dict[str, Any],
    custom_tools: Optional[dict[str, Callable]] = None,
) -> dict[str, Any]:
    """Execute a timelog tool and return the result.

    Args:
        engine: TimelogEngine instance
        name: Tool name
        arguments: Tool arguments
        custom_tools: Project tools from the Python config, by name

    Returns:
        Result dict with success status and data or error
    """
    if custom_tools and name in custom_tools:
        return await _run_custom_tool(custom_tools[name], engine, name, arguments)

    try:
        if name == "timelog_append":
            entry = engine.append(
                title=arguments.get("title"),
                tags=arguments.get("tags"),
                body=arguments.get("body"),
                properties=arguments.get("properties"),
            )
            return {
                "success": True,
                "entry_id": entry.entry_id,
                "timestamp": format_timestamp(entry.timestamp),
                "document": entry.source,
                "message": f"Entry {entry.entry_id} appended",
            }

        elif name == "timelog_timeline":
            period = period_from_args(arguments.get("date_from"), arguments.get("date_to"))
            groups = engine.timeline(period=period, group_by=arguments.get("group_by"))
            return {
                "success": True,
                "period": period.to_dict() if period else None,
                "count": sum(len(g.entries) for g in groups),
                "groups": [
                    {"name": g.name, "entries": [e.to_dict() for e in g.entries]}
                    for g in groups
                ],
            }

        elif name == "timelog_report":
            period = period_from_args(arguments.get("date_from"), arguments.get("date_to"))
            report = engine.report(
                format=arguments.get("format", "csv"),
                fields=arguments.get("fields"),
                period=period,
                group_by=arguments.get("group_by"),
            )
            return {
                "success": True,
                **report.to_dict(),
            }

        elif name == "timelog_export":
            period = period_from_args(arguments.get("date_from"), arguments.get("date_to"))
            result = engine.export(
                format=arguments.get("format", "csv"),
                destination=arguments.get("destination"),
                fields=arguments.get("fields"),
                period=period,
                group_by=arguments.get("group_by"),
            )
            return {
                "success": True,
                **result.to_dict(),
                "message": f"Wrote {result.report.row_count} rows to {result.destination}",
            }

        elif name == "timelog_summary":
            period = period_from_args(arguments.get("date_from"), arguments.get("date_to"))
            summaries = engine.summary(period=period, group_by=arguments.get("group_by"))
            return {
                "success": True,
                "period": period.to_dict() if period else None,
                "groups": [s.to_dict() for s in summaries],
            }

        elif name == "timelog_sources":
            return {
                "success": True,
                **engine.describe(),
            }

        else:
            return {
                "success": False,
                "error": f"Unknown tool: {name}",
            }

    except ReservedPropertyError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "reserved_property",
            "suggestion": "ID, TIMESTAMP and DURATION are assigned by the timelog",
        }

    except InvalidPropertyError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "invalid_property",
            "suggestion": "Use keys like PROJECT or CLIENT_NAME",
        }

    except DestinationError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "destination_unwritable",
            "suggestion": "Check that the destination directory is writable",
        }

    except UnknownExporterError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "unknown_format",
        }

    except TimelogError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "timelog_error",
        }

    except ValueError as e:
        return {
            "success": False,
            "error": str(e),
            "error_type": "invalid_argument",
        }

    except Exception as e:
        logger.exception("Tool {} failed", name)
        return {
            "success": False,
            "error": str(e),
            "error_type": "unexpected_error",
        }
