"""
CSV column mapping and business rule definitions for timesheet exports.
"""

# Canonical CSV headers (exact, case-sensitive)
CANONICAL_HEADERS = [
    "Member",
    "Date",
    "Ticket",
    "Work Role",
    "Work Type",
    "Company",
    "Hours",
    "Project/Ticket",
    "Project Type",
    "Role",
    "Productivity",
]

# Older exports used these column names
LEGACY_COLUMN_MAPPING = {
    "Team": "Role",
    "Project/Ticket/Worktype": "Project/Ticket",
    "Date  (dd/MM/yyyy)": "Date",
}

# Canonical header -> NormalizedRow field, for the text columns
TEXT_FIELDS = {
    "Member": "member",
    "Ticket": "ticket",
    "Work Role": "work_role",
    "Work Type": "work_type",
    "Company": "company",
    "Project/Ticket": "project",
    "Project Type": "project_type",
    "Role": "role",
    "Productivity": "productivity",
}

# Fields that fall back to "Unknown" when the cell is blank
DEFAULTED_FIELDS = {
    "member",
    "work_type",
    "company",
    "project",
    "project_type",
    "role",
    "productivity",
}

UNKNOWN = "Unknown"

# Roles removed from every analysis at import time
EXCLUDED_ROLES = {"HoPS"}

PRODUCTIVE = "Productive"
UNPRODUCTIVE = "Unproductive"

BANK_HOLIDAY_WORK_TYPE = "Bank/Holiday Leave"
NON_WORKING_WORK_TYPES = {BANK_HOLIDAY_WORK_TYPE, "Sick Leave", "Training"}

# Work Type -> board category; anything unmapped is "Other"
WORK_TYPE_TO_BOARD = {
    "Project Installation & Engineering": "Tech Delivery",
    "Project Management": "PM Delivery",
    "Solutions & Scoping": "Pre-Sales",
    "Admin": "Internal Admin",
    "Internal Support, Projects & Documents": "Internal Support",
    "Internal Support & Projects": "Internal Support",
    "Bank/Holiday Leave": "Leave/Bank Holiday",
    "Sick Leave": "Sick Leave",
    "Training": "Training",
}
OTHER_BOARD_WORK_TYPE = "Other"

INTERNAL_COMPANIES = {
    "OryxAlign",
    "OryxAlign-Internal c/code",
}

# Contracted hours
DAY_HOURS = 7.5
WEEK_HOURS = 37.5

# Target billable utilisation per role
ROLE_TARGETS = {
    "Cloud": 0.75,
    "Network": 0.75,
    "PM": 0.70,
    "Team Lead": 0.60,
}

# A member-day above this many hours is an outlier
OUTLIER_DAILY_THRESHOLD = 12


def is_internal_work(company, project_type):
    """Internal work is booked to an internal company or an Internal* project type"""
    return company in INTERNAL_COMPANIES or bool(project_type and project_type.startswith("Internal"))


def map_work_type_to_board(work_type):
    """Map a Work Type onto its board rollup category"""
    return WORK_TYPE_TO_BOARD.get(work_type, OTHER_BOARD_WORK_TYPE)
