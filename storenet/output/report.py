"""
StoreNet Report Generator
==========================

Writes JSON and self-contained HTML reports for a finished topology
check: the findings, the per-device derived state and the run metadata.

HTML reports embed their CSS so they can be mailed or attached to a
ticket without any other files.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from shared.models import CheckResult

_REPORT_VERSION = "1.0"


class _StoreNetJSONEncoder(json.JSONEncoder):
    """JSON encoder handling datetime, enum and pydantic types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if hasattr(obj, "value"):
            return obj.value
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return super().default(obj)


def _esc(text: Any) -> str:
    return (
        str(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


class StoreNetReportGenerator:
    """Generate JSON and HTML reports from a :class:`CheckResult`.

    Usage::

        gen = StoreNetReportGenerator()
        gen.generate_json(result, "output/store.json")
        gen.generate_html(result, "output/store.html")
    """

    def __init__(self, version: str = "1.0.0") -> None:
        self.version = version

    # ================================================================== #
    #  JSON Report
    # ================================================================== #

    def build_json(self, result: CheckResult) -> dict[str, Any]:
        return {
            "report": {
                "tool": "StoreNet",
                "version": self.version,
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "format_version": _REPORT_VERSION,
            },
            "data": result.model_dump(mode="json"),
        }

    def generate_json(self, result: CheckResult, output_path: str | Path) -> Path:
        """Write *result* as a JSON report and return the path."""
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as fh:
            json.dump(
                self.build_json(result),
                fh,
                indent=2,
                cls=_StoreNetJSONEncoder,
                ensure_ascii=False,
            )
        return output

    # ================================================================== #
    #  HTML Report
    # ================================================================== #

    def generate_html(self, result: CheckResult, output_path: str | Path) -> Path:
        """Write *result* as a self-contained HTML report and return the path."""
        output = Path(output_path)
        output.parent.mkdir(parents=True, exist_ok=True)
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(self.build_html(result))
        return output

    def build_html(self, result: CheckResult) -> str:
        now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        status_class = "ok" if result.ok else "fail"

        finding_rows = "".join(
            f"""
                <tr>
                    <td><span class="badge {f.severity.css_class}">{f.severity.label}</span></td>
                    <td><code>{_esc(f.id)}</code></td>
                    <td>{_esc(f.message)}</td>
                    <td>{_esc(", ".join(f.device_ids))}</td>
                </tr>"""
            for f in result.findings
        ) or '<tr><td colspan="4" class="empty">No topology problems found.</td></tr>'

        device_rows = "".join(
            f"""
                <tr>
                    <td><code>{_esc(d.get("id", ""))}</code></td>
                    <td>{_esc(d.get("name", ""))}</td>
                    <td>{_esc(d.get("type", ""))}</td>
                    <td class="status-{_esc(d.get("status", ""))}">{_esc(d.get("status", ""))}</td>
                    <td>{_esc(d.get("connection_state") or "-")}</td>
                    <td>{sum(1 for p in d.get("ports", []) if p.get("link_status") == "up")}/{len(d.get("ports", []))}</td>
                </tr>"""
            for d in result.metadata.get("devices", [])
        )

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>StoreNet Report - {_esc(result.target)}</title>
    <style>
        :root {{
            --bg-primary: #0d1117;
            --bg-secondary: #161b22;
            --text-primary: #e6edf3;
            --text-secondary: #8b949e;
            --accent: #58a6ff;
            --error: #f85149;
            --warning: #d29922;
            --success: #3fb950;
            --border-color: #30363d;
        }}
        * {{ margin: 0; padding: 0; box-sizing: border-box; }}
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Helvetica, Arial, sans-serif;
            background: var(--bg-primary);
            color: var(--text-primary);
            line-height: 1.6;
            padding: 2rem;
        }}
        .container {{ max-width: 1200px; margin: 0 auto; }}
        .header, .section {{
            background: var(--bg-secondary);
            border: 1px solid var(--border-color);
            border-radius: 8px;
            padding: 1.5rem;
            margin-bottom: 1.5rem;
        }}
        .header {{ text-align: center; }}
        .header.ok {{ border-color: var(--success); }}
        .header.fail {{ border-color: var(--error); }}
        .header h1 {{ color: var(--accent); }}
        .meta {{ color: var(--text-secondary); font-size: 0.9rem; }}
        h2 {{ margin-bottom: 1rem; }}
        table {{ width: 100%; border-collapse: collapse; }}
        th, td {{ text-align: left; padding: 0.5rem; border-bottom: 1px solid var(--border-color); }}
        th {{ color: var(--text-secondary); }}
        .badge {{ padding: 0.1rem 0.5rem; border-radius: 4px; font-weight: bold; font-size: 0.8rem; }}
        .severity-error {{ background: var(--error); color: #fff; }}
        .severity-warning {{ background: var(--warning); color: #000; }}
        .status-online {{ color: var(--success); }}
        .status-offline {{ color: var(--text-secondary); }}
        .status-booting {{ color: var(--warning); }}
        .status-error {{ color: var(--error); }}
        .empty {{ color: var(--text-secondary); text-align: center; }}
    </style>
</head>
<body>
<div class="container">
    <div class="header {status_class}">
        <h1>StoreNet Topology Report</h1>
        <div>{_esc(result.target)}</div>
        <div class="meta">Generated {now} &middot; StoreNet {_esc(self.version)}</div>
        <div class="meta">{_esc(result.summary)}</div>
    </div>
    <div class="section">
        <h2>Findings ({len(result.findings)})</h2>
        <table>
            <thead><tr><th>Severity</th><th>Id</th><th>Message</th><th>Devices</th></tr></thead>
            <tbody>{finding_rows}
            </tbody>
        </table>
    </div>
    <div class="section">
        <h2>Devices ({result.metadata.get("device_count", 0)})</h2>
        <table>
            <thead><tr><th>Id</th><th>Name</th><th>Type</th><th>Status</th><th>Connection</th><th>Links up</th></tr></thead>
            <tbody>{device_rows}
            </tbody>
        </table>
    </div>
</div>
</body>
</html>
"""
