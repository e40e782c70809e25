import csv
import io

import pytest

from analytics.csv_importer import parse_csv_to_rows, rows_to_frame
from analytics.mapping import CANONICAL_HEADERS


def make_csv(records, header=None):
    """Render dict records as CSV text with the given (default canonical) header"""
    header = header or CANONICAL_HEADERS
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=header, lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow({column: record.get(column, "") for column in header})
    return buffer.getvalue()


def entry(**overrides):
    """One timesheet line keyed by canonical header"""
    record = {
        "Member": "Smith, Jo",
        "Date": "04/03/2024",
        "Ticket": "T-100",
        "Work Role": "Engineer",
        "Work Type": "Project Management",
        "Company": "Acme Ltd",
        "Hours": "7.5",
        "Project/Ticket": "Acme Rollout",
        "Project Type": "Client Project",
        "Role": "Cloud",
        "Productivity": "Productive",
    }
    record.update(overrides)
    return record


@pytest.fixture
def rows_frame():
    """Build a row frame from canonical-header records"""

    def build(records):
        return rows_to_frame(parse_csv_to_rows(make_csv(records), sample_size=0))

    return build
