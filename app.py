import logging
from datetime import datetime

# Setup logging FIRST, before any Streamlit imports
from analytics.logger import setup_logging, get_logger
setup_logging(log_level=logging.INFO)
logger = get_logger(__name__)

# Now import Streamlit and other dependencies
import streamlit as st

# Page configuration - must be first Streamlit command
st.set_page_config(
    page_title="Timesheet Analytics Dashboard",
    page_icon="⏱️",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
    <style>
    [data-testid="stMetric"] {
        background-color: #f5f8fc;
        border-radius: 0.5rem;
        padding: 0.75rem 1rem;
    }
    [data-testid="stMetricValue"] {
        font-size: 1.6rem;
    }
    </style>
""", unsafe_allow_html=True)

from analytics.csv_importer import InvalidDateError, MissingHeadersError, TimesheetCSVImporter, rows_to_frame
from analytics.data_processor import DataProcessor
from analytics.filters import (
    ALL,
    FILTER_DEFAULTS,
    PERIOD_OPTIONS,
    PRODUCTIVITY_OPTIONS,
    apply_filters,
    default_filters,
    get_distinct_values,
)

# Initialize session state BEFORE defining pages
# so page scripts can rely on it
if 'rows_df' not in st.session_state:
    logger.info("Initializing session state")
    st.session_state.rows_df = rows_to_frame([])
    st.session_state.import_summary = {}
    st.session_state.loaded_file = None
    st.session_state.data_processor = DataProcessor()

if 'filters' not in st.session_state:
    st.session_state.filters = dict(FILTER_DEFAULTS)


def load_timesheet(uploaded_file):
    """Import an uploaded CSV into session state; batch failures are shown, not raised"""
    file_key = (uploaded_file.name, uploaded_file.size)
    if file_key == st.session_state.loaded_file:
        return

    logger.info(f"Importing timesheet CSV: {uploaded_file.name}")
    try:
        rows, summary = TimesheetCSVImporter(uploaded_file).import_all()
    except MissingHeadersError as e:
        logger.error(f"Timesheet import failed: {e}")
        st.error(f"❌ {e}")
        return
    except InvalidDateError as e:
        logger.error(f"Timesheet import failed: {e}")
        st.error(f"❌ {e}")
        return

    st.session_state.rows_df = rows_to_frame(rows)
    st.session_state.import_summary = summary
    st.session_state.filters = default_filters(st.session_state.rows_df)
    st.session_state.loaded_file = file_key


def _pick_index(options, value):
    """Index of value in options, falling back to the last option"""
    if value in options:
        return options.index(value)
    return max(len(options) - 1, 0)


def render_filters(rows_df):
    """Sidebar filter widgets; writes the selection back to st.session_state.filters"""
    options = get_distinct_values(rows_df)
    filters = st.session_state.filters

    st.markdown("### 🔎 Filters")

    filters['period'] = st.selectbox(
        "Period",
        PERIOD_OPTIONS,
        index=PERIOD_OPTIONS.index(filters.get('period', "Month")),
        key="filter_period"
    )

    if filters['period'] == "Month":
        months = options['calendar_months']
        filters['month'] = st.selectbox("Month", months, index=_pick_index(months, filters.get('month')))
    elif filters['period'] == "Quarter":
        quarters = options['quarters']
        filters['quarter'] = st.selectbox("Quarter", quarters, index=_pick_index(quarters, filters.get('quarter')))
    elif filters['period'] == "FY":
        fiscal_years = options['fiscal_years']
        filters['fy'] = st.selectbox("Fiscal Year", fiscal_years, index=_pick_index(fiscal_years, filters.get('fy')))
    else:
        first_day = rows_df['date'].min().date()
        last_day = rows_df['date'].max().date()
        filters['from_date'] = st.date_input("From", value=filters.get('from_date') or first_day)
        filters['to_date'] = st.date_input("To", value=filters.get('to_date') or last_day)

    selected_roles = filters.get('roles') or []
    filters['roles'] = st.multiselect(
        "Roles",
        options['roles'],
        default=[r for r in selected_roles if r in options['roles']],
    )

    for key, label, option_key in [
        ('members', "Members", 'members'),
        ('companies', "Companies", 'companies'),
        ('project_types', "Project Types", 'project_types'),
    ]:
        current = filters.get(key)
        chosen = st.multiselect(
            label,
            options[option_key],
            default=[] if current == ALL else [v for v in current or [] if v in options[option_key]],
            placeholder="All",
        )
        filters[key] = chosen or ALL

    selected_boards = filters.get('work_types_board') or []
    filters['work_types_board'] = st.multiselect(
        "Board Work Types",
        options['work_types_board'],
        default=[b for b in selected_boards if b in options['work_types_board']],
    )

    filters['productivity'] = st.radio(
        "Productivity",
        PRODUCTIVITY_OPTIONS,
        index=PRODUCTIVITY_OPTIONS.index(filters.get('productivity', "All")),
        horizontal=True,
    )

    if st.button("Reset Filters"):
        st.session_state.filters = default_filters(rows_df)
        st.rerun()


# Define pages using st.Page
overview_page = st.Page(
    "pages/overview.py",
    title="Overview",
    icon="📊",
    default=True
)
people_page = st.Page(
    "pages/people.py",
    title="People",
    icon="👥"
)
clients_page = st.Page(
    "pages/clients.py",
    title="Clients",
    icon="🏢"
)
overtime_page = st.Page(
    "pages/overtime.py",
    title="Overtime",
    icon="⏱️"
)

pg = st.navigation([
    overview_page,
    people_page,
    clients_page,
    overtime_page,
])

with st.sidebar:
    st.markdown("### 📂 Timesheet Data")
    timesheet_file = st.file_uploader(
        "Choose timesheet CSV file",
        type=['csv'],
        key="timesheet_upload",
        help="Columns: Member, Date (DD/MM/YYYY), Ticket, Work Role, Work Type, Company, Hours, "
             "Project/Ticket, Project Type, Role, Productivity"
    )
    if timesheet_file is not None:
        load_timesheet(timesheet_file)

    summary = st.session_state.import_summary
    if summary:
        st.markdown("### 📈 Quick Stats")
        st.metric("Clean Rows", f"{summary['clean_rows']:,}")
        st.metric("Filtered Out", f"{summary['filtered_rows']:,}")
        st.metric("Members", summary['unique_members'])
        st.metric("Total Hours", f"{summary['total_hours']:,.2f}")
        if summary['date_range']:
            st.caption(f"{summary['date_range'][0]:%d/%m/%Y} to {summary['date_range'][1]:%d/%m/%Y}")

    if not st.session_state.rows_df.empty:
        render_filters(st.session_state.rows_df)

# Pages read the filtered frame; recomputed on every rerun
st.session_state.filtered_df = apply_filters(st.session_state.rows_df, st.session_state.filters)

# Run the selected page
pg.run()

# Footer
st.markdown("---")
st.markdown(
    """
    <div style='text-align: center; color: #666;'>
        Timesheet Analytics Dashboard v1.0 | Last updated: {0}
    </div>
    """.format(datetime.now().strftime("%Y-%m-%d %H:%M")),
    unsafe_allow_html=True
)
