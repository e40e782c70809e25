import streamlit as st
import plotly.graph_objects as go
from analytics.logger import get_logger

logger = get_logger(__name__)

processor = st.session_state.data_processor
rows_df = st.session_state.filtered_df

st.markdown("### 🏢 Clients")

if rows_df.empty:
    st.info("No rows to show. Upload a timesheet CSV or widen the filters.")
    st.stop()

top_n = st.slider("Companies shown", min_value=5, max_value=40, value=20, step=5)
pareto_df = processor.calculate_client_pareto(rows_df, top_n=top_n)

st.markdown("#### 📊 Client Pareto (billable hours)")
if pareto_df.empty:
    st.info("No billable hours for external companies in this selection")
    st.stop()

fig = go.Figure()
fig.add_trace(go.Bar(
    x=pareto_df['company'],
    y=pareto_df['hours'],
    name='Billable Hours',
    marker_color='#1f77b4'
))
fig.add_trace(go.Scatter(
    x=pareto_df['company'],
    y=pareto_df['cumulative_percent'],
    name='Cumulative %',
    mode='lines+markers',
    yaxis='y2',
    line=dict(color='#ff7f0e', width=3)
))
# 80% reference line
fig.add_shape(
    type="line",
    xref="paper",
    x0=0,
    x1=1,
    yref="y2",
    y0=80,
    y1=80,
    line=dict(color="red", dash="dash", width=2),
)
fig.update_layout(
    height=450,
    yaxis=dict(title="Hours"),
    yaxis2=dict(title="Cumulative %", overlaying='y', side='right', range=[0, 105]),
    legend=dict(x=0.02, y=0.98),
    hovermode='x unified'
)
st.plotly_chart(fig, use_container_width=True)

st.dataframe(
    pareto_df.rename(columns={
        'rank': 'Rank',
        'company': 'Company',
        'hours': 'Billable Hrs',
        'cumulative_percent': 'Cumulative %'
    })[['Rank', 'Company', 'Billable Hrs', 'Cumulative %']],
    hide_index=True,
    use_container_width=True
)
