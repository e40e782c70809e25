import streamlit as st
import plotly.graph_objects as go
from analytics.logger import get_logger

logger = get_logger(__name__)

processor = st.session_state.data_processor
rows_df = st.session_state.filtered_df

st.markdown("### 📊 Dashboard Overview")

if st.session_state.rows_df.empty:
    st.info("Upload a timesheet CSV from the sidebar to get started.")
    st.stop()

if rows_df.empty:
    st.warning("No rows match the current filters. Try widening the period or resetting filters.")
    st.stop()


def format_percent(value):
    return f"{round(value * 100)}%"


kpis = processor.calculate_kpis(rows_df)

# KPI tiles
col1, col2, col3, col4, col5, col6 = st.columns(6)
with col1:
    st.metric("Dept Utilisation", format_percent(kpis['dept_util']))
with col2:
    st.metric("Billable Hours", f"{kpis['billable_hours']:,.2f}")
with col3:
    st.metric("Internal Share", format_percent(kpis['internal_share']))
with col4:
    st.metric("Cloud Utilisation", format_percent(kpis['cloud_util']))
with col5:
    st.metric("Network Utilisation", format_percent(kpis['network_util']))
with col6:
    st.metric("PM Utilisation", format_percent(kpis['pm_util']))

st.markdown("---")

col1, col2 = st.columns([2, 1])

with col1:
    st.markdown("#### 💷 Billable vs Non-billable Hours")
    trend_df = processor.calculate_billable_trend(rows_df)
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=trend_df['month'],
        y=trend_df['billable_hours'],
        name='Billable',
        marker_color='#2E7D32'
    ))
    fig.add_trace(go.Bar(
        x=trend_df['month'],
        y=trend_df['non_billable_hours'],
        name='Non-billable',
        marker_color='#FFA726'
    ))
    fig.update_layout(
        barmode='stack',
        height=400,
        yaxis_title="Hours",
        legend=dict(x=0.02, y=0.98),
        hovermode='x unified'
    )
    st.plotly_chart(fig, use_container_width=True)

with col2:
    st.markdown("#### 🎯 Utilisation by Role")
    role_df = processor.calculate_role_utilisation(rows_df)
    if role_df.empty:
        st.info("No role data available")
    else:
        display_df = role_df.assign(utilisation=(role_df['utilisation'] * 100).round(1))
        st.dataframe(
            display_df.rename(columns={
                'role': 'Role',
                'billable_hours': 'Billable Hrs',
                'worked_hours': 'Worked Hrs',
                'utilisation': 'Utilisation %'
            }),
            hide_index=True,
            use_container_width=True
        )
