import streamlit as st
import plotly.graph_objects as go
from datetime import datetime
from analytics.export import export_overtime_to_excel
from analytics.filters import recent_weeks
from analytics.logger import get_logger

logger = get_logger(__name__)

processor = st.session_state.data_processor
rows_df = st.session_state.filtered_df

st.markdown("### ⏱️ Weekly Overtime")

if rows_df.empty:
    st.info("No rows to show. Upload a timesheet CSV or widen the filters.")
    st.stop()

with st.expander("How overtime is calculated", expanded=False):
    st.markdown("""
    - **Daily weekday**: productive hours above the member's daily baseline
      (7.5h, or the member's compressed schedule) on an ordinary weekday
    - **Weekly overflow**: baseline hours that exceed the week's remaining
      capacity (37.5h less bank holiday, sick leave and training)
    - **Weekend / holiday**: all productive hours on a weekend or a bank holiday
    - All values are rounded to the nearest quarter hour
    """)

col1, col2 = st.columns([3, 1])
with col2:
    last_six_weeks = st.checkbox("Last 6 weeks only", value=True, key="overtime_recent")

source_df = recent_weeks(rows_df, weeks=6) if last_six_weeks else rows_df
overtime_df = processor.calculate_weekly_overtime(source_df)

if overtime_df.empty or overtime_df['total'].sum() == 0:
    st.success("No overtime recorded for this selection")
    st.stop()

by_member = (
    overtime_df.groupby('member')[['daily_weekday', 'weekly_overflow', 'weekend_holiday', 'total']]
    .sum()
    .sort_values('total', ascending=False)
    .reset_index()
)

with col1:
    st.markdown("#### 👤 Overtime by Member")

fig = go.Figure()
for column, label, color in [
    ('daily_weekday', 'Daily Weekday', '#1f77b4'),
    ('weekly_overflow', 'Weekly Overflow', '#ff7f0e'),
    ('weekend_holiday', 'Weekend / Holiday', '#E53935'),
]:
    fig.add_trace(go.Bar(
        x=by_member['member'],
        y=by_member[column],
        name=label,
        marker_color=color
    ))
fig.update_layout(
    barmode='stack',
    height=420,
    yaxis_title="Overtime Hours",
    legend=dict(x=0.02, y=0.98),
    hovermode='x unified'
)
st.plotly_chart(fig, use_container_width=True)

st.markdown("#### 📋 Member-Week Detail")
st.dataframe(
    overtime_df.rename(columns={
        'member': 'Member',
        'iso_week': 'ISO Week',
        'daily_weekday': 'Daily Weekday',
        'weekly_overflow': 'Weekly Overflow',
        'weekend_holiday': 'Weekend / Holiday',
        'total': 'Total'
    }),
    hide_index=True,
    use_container_width=True
)

st.download_button(
    label="Download Excel",
    data=export_overtime_to_excel(overtime_df),
    file_name=f"weekly_overtime_{datetime.now().strftime('%Y%m%d')}.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)
