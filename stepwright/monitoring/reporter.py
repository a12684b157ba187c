"""
HTML reporter for test case executions.

Renders an ExecutionResult together with its test case into a standalone
HTML page.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

from stepwright.core.types import ExecutionResult, StepStatus, TestCase
from stepwright.monitoring.logger import get_logger

logger = get_logger(__name__)


HTML_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Test Report - {{ test_name }}</title>
    <style>
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            margin: 0;
            padding: 40px 20px;
            background: #f5f5f5;
            line-height: 1.6;
        }
        .container {
            max-width: 900px;
            margin: 0 auto;
            background: white;
            border-radius: 8px;
            box-shadow: 0 2px 8px rgba(0,0,0,0.1);
            overflow: hidden;
        }
        .header { padding: 30px 40px; border-bottom: 1px solid #e0e0e0; }
        .header h1 { margin: 0 0 5px 0; color: #333; }
        .timestamp { color: #666; font-size: 0.9em; }
        .status-badge {
            display: inline-block;
            padding: 4px 14px;
            border-radius: 16px;
            font-weight: 600;
            margin-top: 12px;
        }
        .status-passed { background: #e8f5e9; color: #2e7d32; border: 1px solid #4caf50; }
        .status-failed { background: #ffebee; color: #c62828; border: 1px solid #f44336; }

        .summary {
            display: grid;
            grid-template-columns: repeat(3, 1fr);
            gap: 20px;
            padding: 30px 40px;
            border-bottom: 1px solid #e0e0e0;
        }
        .metric { text-align: center; }
        .metric-value { font-size: 2em; font-weight: bold; }
        .metric-label {
            color: #666;
            font-size: 0.8em;
            text-transform: uppercase;
            letter-spacing: 1px;
        }
        .passed { color: #4caf50; }
        .failed { color: #f44336; }

        .section { padding: 30px 40px; border-bottom: 1px solid #e0e0e0; }
        .section h2 { margin-top: 0; font-size: 1.2em; color: #333; }
        .info-row { display: flex; margin-bottom: 8px; font-size: 0.95em; }
        .info-row .label { width: 140px; color: #666; }
        .info-row .value { flex: 1; word-break: break-all; }

        .step {
            padding: 12px 18px;
            margin-bottom: 10px;
            border-radius: 6px;
            border: 1px solid #e0e0e0;
        }
        .step.passed { border-color: #4caf50; background: #f1f8e9; }
        .step.failed { border-color: #f44336; background: #fff5f5; }
        .step-type { font-weight: 600; color: #333; }
        .step-meta { color: #888; font-size: 0.85em; }
        .step-error {
            margin-top: 8px;
            padding: 8px 12px;
            background: #ffebee;
            border-radius: 4px;
            color: #c62828;
            font-size: 0.9em;
            white-space: pre-wrap;
        }
        .run-error { color: #c62828; white-space: pre-wrap; }
        .footer { text-align: center; color: #999; font-size: 0.85em; padding: 20px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Test Report</h1>
            <div class="timestamp">{{ generated_at }}</div>
            <div class="status-badge status-{{ status }}">
                {% if status == "passed" %}&#10003; Passed{% else %}&#10007; Failed{% endif %}
            </div>
        </div>

        <div class="summary">
            <div class="metric">
                <div class="metric-value">{{ total_steps }}</div>
                <div class="metric-label">Executed Steps</div>
            </div>
            <div class="metric">
                <div class="metric-value passed">{{ passed_steps }}</div>
                <div class="metric-label">Passed</div>
            </div>
            <div class="metric">
                <div class="metric-value failed">{{ failed_steps }}</div>
                <div class="metric-label">Failed</div>
            </div>
        </div>

        <div class="section">
            <h2>Test Case</h2>
            <div class="info-row"><div class="label">Name</div><div class="value">{{ test_name }}</div></div>
            <div class="info-row"><div class="label">ID</div><div class="value">{{ test_case_id }}</div></div>
            <div class="info-row"><div class="label">Base URL</div><div class="value">{{ base_url }}</div></div>
            <div class="info-row"><div class="label">Declared Steps</div><div class="value">{{ declared_steps }}</div></div>
            <div class="info-row"><div class="label">Total Duration</div><div class="value">{{ duration }} s</div></div>
            {% if error %}
            <div class="info-row"><div class="label">Error</div><div class="value run-error">{{ error }}</div></div>
            {% endif %}
        </div>

        <div class="section">
            <h2>Executed Steps</h2>
            {% for step in steps %}
            <div class="step {{ step.status }}">
                <div class="step-type">{% if step.status == "passed" %}&#10003;{% else %}&#10007;{% endif %} {{ step.step_type }}</div>
                <div class="step-meta">Step #{{ step.number }} &middot; {{ step.duration }}s{% if step.description %} &middot; {{ step.description }}{% endif %}</div>
                {% if step.error %}
                <div class="step-error">{{ step.error }}</div>
                {% endif %}
            </div>
            {% else %}
            <p class="step-meta">No steps were executed.</p>
            {% endfor %}
        </div>

        <div class="footer">
            Generated by Stepwright
        </div>
    </div>
</body>
</html>
"""


def default_report_path(reports_dir: Path, test_case_id: str) -> Path:
    """Timestamped report location for a test case run."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(reports_dir) / f"{test_case_id}_{timestamp}.html"


class HTMLReporter:
    """Generate HTML reports from execution results."""

    def __init__(self):
        """Initialize the reporter."""
        self.logger = logger
        self.template = Template(HTML_TEMPLATE, autoescape=True)

    def generate_report(
        self,
        test_case: TestCase,
        result: ExecutionResult,
        output_path: Path
    ) -> Path:
        """
        Generate an HTML report for one run.

        Args:
            test_case: The executed test case
            result: The run's terminal result
            output_path: Path to save the HTML report

        Returns:
            Path to the generated report
        """
        html_content = self.render(test_case, result)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(html_content, encoding="utf-8")

        self.logger.info(f"Generated HTML report: {output_path}")
        return output_path

    def render(self, test_case: TestCase, result: ExecutionResult) -> str:
        """Render the report as an HTML string."""
        return self.template.render(**self._prepare_template_data(test_case, result))

    def _prepare_template_data(
        self,
        test_case: TestCase,
        result: ExecutionResult
    ) -> Dict[str, Any]:
        declared = {step.id: step for step in test_case.steps}

        steps = []
        for index, outcome in enumerate(result.executed_steps, start=1):
            step = declared.get(outcome.step_id)
            description = ""
            if step is not None:
                params = step.params
                description = params.target or params.value or params.url or ""
            steps.append(
                {
                    "number": index,
                    "step_type": outcome.step_type,
                    "status": outcome.status.value,
                    "duration": f"{outcome.duration_ms / 1000:.2f}",
                    "description": description,
                    "error": outcome.error,
                }
            )

        failed_steps = sum(
            1 for outcome in result.executed_steps if outcome.status == StepStatus.FAILED
        )

        return {
            "test_name": test_case.name,
            "test_case_id": test_case.id,
            "base_url": test_case.base_url,
            "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "status": result.status.value,
            "duration": f"{result.duration_ms / 1000:.2f}",
            "error": result.error,
            "declared_steps": len(test_case.steps),
            "total_steps": len(result.executed_steps),
            "passed_steps": len(result.executed_steps) - failed_steps,
            "failed_steps": failed_steps,
            "steps": steps,
        }
