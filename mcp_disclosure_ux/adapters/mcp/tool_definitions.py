"""
MCP Tool Definitions

Single source of truth for tool schemas and descriptions.
Used by both stdio and HTTP/SSE servers.
"""

_USER = {
    "type": "string",
    "description": "User id owning the dataset (e.g. PIF_SubmitIQ, neom)"
}
_PERIOD = {
    "type": "string",
    "description": "Period label, e.g. 'First Half 2025', 'Third Quarter 2025', 'Fourth Quarter 2025'"
}
_ROLE = {
    "type": "string",
    "enum": ["Administrator", "Company"],
    "description": "Caller role; Administrator may target a company or request a consolidated view",
    "default": "Company"
}

# Tool schemas for MCP
TOOL_SCHEMAS = {
    "load_dataset": {
        "name": "load_dataset",
        "description": """Load a user's saved records for one period. Empty if nothing was saved.

load_dataset("neom", "Third Quarter 2025") → {records: [...], count: 12, has_saved: true, locked: false}
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user": _USER,
                "period": _PERIOD
            },
            "required": ["user", "period"]
        }
    },
    "save_dataset": {
        "name": "save_dataset",
        "description": """Replace a user's dataset for one period. Read-only rows are dropped and counted.

save_dataset("neom", "Third Quarter 2025", [{entityNameEnglish: "Alpha", ownershipPercentage: 50}])
save_dataset(..., finalize=true) → also clears draft flags (isNewRow, isFromPreviousQuarter)
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user": _USER,
                "period": _PERIOD,
                "records": {
                    "type": "array",
                    "items": {"type": "object"},
                    "description": "Records in camelCase form (entityNameEnglish, commercialRegistrationNumber, ...)"
                },
                "finalize": {
                    "type": "boolean",
                    "description": "Mark every row as no longer a draft",
                    "default": False
                }
            },
            "required": ["user", "period", "records"]
        }
    },
    "resolve_dataset": {
        "name": "resolve_dataset",
        "description": """Dataset a user should see for a period: own saved data, or a draft derived from the previous period.

resolve_dataset("neom", "Fourth Quarter 2025") → {is_from_previous_quarter: true, previous_quarter_source: "Third Quarter 2025", ...}
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user": _USER,
                "period": _PERIOD
            },
            "required": ["user", "period"]
        }
    },
    "combined_view": {
        "name": "combined_view",
        "description": """Administrator view: admin records (with fallback) then every company's saved records (read-only).

combined_view("Third Quarter 2025") → {records: [...], admin_count: 4, company_count: 9}
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "period": _PERIOD
            },
            "required": ["period"]
        }
    },
    "compare_periods": {
        "name": "compare_periods",
        "description": """Field-level changes and deletions between a period and the one before it.

compare_periods("neom", "Third Quarter 2025") → {changes: [...], deleted: [...], has_new_records: false}
compare_periods("PIF_SubmitIQ", "Third Quarter 2025", role="Administrator", include_all_companies=true)
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "username": _USER,
                "period": _PERIOD,
                "role": _ROLE,
                "include_all_companies": {
                    "type": "boolean",
                    "description": "Administrator only: compare the consolidated view",
                    "default": False
                },
                "target_company": {
                    "type": "string",
                    "description": "Administrator only: compare this company's datasets"
                }
            },
            "required": ["username", "period"]
        }
    },
    "generate_report": {
        "name": "generate_report",
        "description": """Write an Excel comparison report to disk. Returns its path.

generate_report("neom", "Third Quarter 2025") → {path: ".../Company-Change-Tracking-Report-Third-Quarter-2025-2025-10-01.xlsx"}
generate_report("PIF_SubmitIQ", "Third Quarter 2025", role="Administrator", include_all_companies=true, report_type="full-data")
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "username": _USER,
                "period": _PERIOD,
                "role": _ROLE,
                "report_type": {
                    "type": "string",
                    "enum": ["change-tracking", "full-data"],
                    "description": "change-tracking adds changes/deletions sections; full-data lists rows only",
                    "default": "change-tracking"
                },
                "include_all_companies": {
                    "type": "boolean",
                    "description": "Administrator only: consolidated report with a Summary sheet",
                    "default": False
                },
                "target_company": {
                    "type": "string",
                    "description": "Administrator only: report on this company's datasets"
                },
                "highlight_ownership_changes": {
                    "type": "boolean",
                    "description": "Flag changed ownership %. Defaults to on for full-data, off for change-tracking"
                },
                "output_dir": {
                    "type": "string",
                    "description": "Directory to write the workbook into (default: DISCLOSURE_REPORT_DIR)"
                }
            },
            "required": ["username", "period"]
        }
    },
    "list_periods": {
        "name": "list_periods",
        "description": """List reporting periods in order. With a user: saved status, row counts and locks.

list_periods() → periods + known users
list_periods("neom") → [{period: "First Half 2025", saved: true, count: 10, locked: true}, ...]
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user": {
                    "type": "string",
                    "description": "User id. Omit to list periods and users only."
                }
            }
        }
    },
    "submit_period": {
        "name": "submit_period",
        "description": """Submit, unsubmit, or sync a period with the remote submission API.

submit_period("neom", "Third Quarter 2025") → finalizes and flags every row submitted
submit_period("neom", "Third Quarter 2025", action="unsubmit", record_id="...") → reopen one row
submit_period("neom", "Third Quarter 2025", action="pull") → replace local data with the API's
submit_period("neom", "Third Quarter 2025", remote=true) → also submit on the API
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "user": _USER,
                "period": _PERIOD,
                "action": {
                    "type": "string",
                    "enum": ["submit", "unsubmit", "pull", "push"],
                    "description": "submit/unsubmit locally (and remotely with remote=true); pull/push sync with the API",
                    "default": "submit"
                },
                "record_id": {
                    "type": "string",
                    "description": "unsubmit only: reopen a single record"
                },
                "remote": {
                    "type": "boolean",
                    "description": "Also forward submit/unsubmit to the remote API",
                    "default": False
                }
            },
            "required": ["user", "period"]
        }
    },
    "period_deadlines": {
        "name": "period_deadlines",
        "description": """Submission deadlines per reporting period, held by the remote submission API.

period_deadlines() → every deadline with status (future/upcoming/urgent/expired) and time remaining
period_deadlines(action="list", year=2026) → deadlines from 2026 onwards
period_deadlines(action="next") → the earliest deadline that has not passed
period_deadlines(action="set", period="Third Quarter 2026", dead_line="2026-10-31T23:59:59Z") → create or replace
""",
        "inputSchema": {
            "type": "object",
            "properties": {
                "action": {
                    "type": "string",
                    "enum": ["list", "upcoming", "next", "set"],
                    "description": "list/upcoming/next read deadlines; set validates and upserts one",
                    "default": "list"
                },
                "year": {
                    "type": "integer",
                    "description": "list only: deadlines from this year onwards"
                },
                "period": {
                    **_PERIOD,
                    "description": "set only: period label to set the deadline for"
                },
                "dead_line": {
                    "type": "string",
                    "description": "set only: ISO date or timestamp, must be in the future"
                }
            }
        }
    }
}

