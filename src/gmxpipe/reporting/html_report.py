"""HTML report generation for pipeline runs."""
from html import escape
from pathlib import Path
import json

def _stage_rows(stages):
    rows = []
    for stage in stages:
        commands = "<br>".join(escape(step["command"]) for step in stage.get("steps", []))
        rows.append(
            f"<tr class=\"{escape(stage['status'])}\"><td>{escape(stage['name'])}</td>"
            f"<td>{escape(stage['status'])}</td><td>{stage.get('duration_sec', 0)}</td>"
            f"<td><code>{commands}</code></td></tr>"
        )
    return "\n".join(rows)

def generate_html_report(manifest_path: Path, output_path: Path):
    """Create HTML report from a run manifest."""
    with open(manifest_path) as f:
        manifest = json.load(f)

    status = manifest.get("status", "unknown")
    html_content = f"""<!DOCTYPE html>
<html>
<head>
    <title>gmxpipe Run Report</title>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; }}
        .container {{ max-width: 1000px; margin: 0 auto; }}
        .section {{ margin-bottom: 2rem; }}
        .success, .ok {{ color: green; }}
        .failed {{ color: red; }}
        .skipped {{ color: gray; }}
        table {{ border-collapse: collapse; width: 100%; }}
        td, th {{ border-bottom: 1px solid #ddd; padding: 0.3rem; text-align: left; vertical-align: top; }}
        pre {{ background: #f4f4f4; padding: 1rem; overflow-x: auto; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>gmxpipe Run Report</h1>

        <div class="section">
            <h2>Status</h2>
            <p class="{'success' if status == 'success' else 'failed'}">
                {escape(status.upper())} (exit code {manifest.get('exit_code', 'N/A')})
            </p>
            <p>Completed at: {escape(str(manifest.get('finished', manifest.get('timestamp', 'N/A'))))}</p>
            <p>Execution time: {manifest.get('elapsed_sec', 'N/A')} seconds on {escape(str(manifest.get('host', '')))}</p>
        </div>

        <div class="section">
            <h2>Stages</h2>
            <table>
                <tr><th>Stage</th><th>Status</th><th>Seconds</th><th>Commands</th></tr>
                {_stage_rows(manifest.get('stages', []))}
            </table>
        </div>

        <div class="section">
            <h2>Configuration</h2>
            <pre>{escape(json.dumps(manifest.get('params', {}), indent=2))}</pre>
        </div>
    </div>
</body>
</html>
"""

    output_path.write_text(html_content)
    return output_path
