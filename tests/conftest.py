"""Shared fixtures: raw rows as they come out of the CSV, and parsed records."""

import pytest

from vulndash.data import RECORD_COLUMNS, parse_rows


def _row(**overrides):
    row = {col: "" for col in RECORD_COLUMNS}
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    """Factory for a raw row with every known column present and blank."""
    return _row


@pytest.fixture
def sample_rows():
    return [
        _row(issue_id="ISS-1", org_name="Acme", project_name="proj-a", scan_type="sca", severity="critical",
             cvss_score="9.8", priority_score="812", issue_type="vuln", exploit_maturity="mature",
             cwe_id="CWE-79", is_fixable="True", status="open", discovered_date="2024-01-15T10:00:00Z",
             language="Python"),
        _row(issue_id="ISS-2", org_name="Acme", project_name="proj-a", scan_type="sast", severity="high",
             cvss_score="7.5", priority_score="640", issue_type="vuln", exploit_maturity="proof-of-concept",
             cwe_id="CWE-89", is_fixable="True", status="open", discovered_date="2024-02-03",
             language="JavaScript", title="SQL Injection"),
        _row(issue_id="ISS-3", org_name="Beta", project_name="proj-b", scan_type="sca", severity="medium",
             cvss_score="5.0", priority_score="410", issue_type="vuln", exploit_maturity="no-known-exploit",
             cwe_id="CWE-79", is_fixable="True", status="fixed", discovered_date="2024-01-20",
             resolved_date="2024-01-30", resolution_days="10", language="Python", title="XSS"),
        _row(issue_id="ISS-4", org_name="Beta", project_name="proj-c", scan_type="iac", severity="low",
             cvss_score="", priority_score="120", issue_type="configuration", is_fixable="true",
             status="open", discovered_date="2024-03-01"),
        _row(issue_id="ISS-5", org_name="Gamma", project_name="proj-d", scan_type="sca", severity="critical",
             cvss_score="9.1", priority_score="900", issue_type="vuln", exploit_maturity="mature",
             cwe_id="CWE-22", is_fixable="True", status="fixed", discovered_date="2024-02-10",
             resolved_date="2024-02-14", resolution_days="4", language="Go", title="Path Traversal"),
        _row(issue_id="ISS-6", org_name="Gamma", project_name="proj-d", scan_type="sca", severity="high",
             cvss_score="8.0", priority_score="700", issue_type="vuln", cwe_id="CWE-79", is_fixable="False",
             status="open", discovered_date="2024-02-11", language="Go", title="Cross-site Scripting"),
        _row(issue_id="  ", org_name="Acme", project_name="proj-a", scan_type="sca", severity="critical",
             status="open"),
    ]


@pytest.fixture
def sample_records(sample_rows):
    return parse_rows(sample_rows)
