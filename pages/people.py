import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from analytics.logger import get_logger

logger = get_logger(__name__)

processor = st.session_state.data_processor
rows_df = st.session_state.filtered_df

DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

st.markdown("### 👥 People")

if rows_df.empty:
    st.info("No rows to show. Upload a timesheet CSV or widen the filters.")
    st.stop()

col1, col2 = st.columns(2)

with col1:
    st.markdown("#### ⏱️ Hours by Person")
    hours_df = processor.calculate_hours_by_person(rows_df)
    fig = px.bar(
        hours_df,
        x='hours',
        y='member',
        orientation='h',
        text='hours',
        labels={'hours': 'Hours', 'member': ''}
    )
    fig.update_layout(
        height=max(400, 28 * len(hours_df)),
        yaxis=dict(autorange='reversed')
    )
    st.plotly_chart(fig, use_container_width=True)

with col2:
    st.markdown("#### 📈 Role Utilisation Trend")
    trend_df = processor.calculate_role_utilisation_trend(rows_df)
    if trend_df.empty:
        st.info("No rows for roles with utilisation targets")
    else:
        fig = go.Figure()
        for role, role_df in trend_df.groupby('role'):
            fig.add_trace(go.Scatter(
                x=role_df['month'],
                y=role_df['utilisation'],
                mode='lines+markers',
                name=role
            ))
            # Target line per role
            fig.add_trace(go.Scatter(
                x=role_df['month'],
                y=role_df['target'],
                mode='lines',
                name=f"{role} target",
                line=dict(dash='dash', width=1),
                showlegend=False
            ))
        fig.update_layout(
            height=400,
            yaxis_title="Billable Utilisation %",
            hovermode='x unified'
        )
        st.plotly_chart(fig, use_container_width=True)

st.markdown("#### 📅 Calendar Heatmap")
daily_df = processor.calculate_daily_hours(rows_df)
heatmap = daily_df.pivot_table(index='day_of_week', columns='iso_week', values='hours', aggfunc='sum')
heatmap = heatmap.reindex(range(1, 8))
fig = go.Figure(data=go.Heatmap(
    z=heatmap.values,
    x=heatmap.columns,
    y=DAY_NAMES,
    colorscale='Greens',
    hovertemplate='%{x} %{y}: %{z}h<extra></extra>'
))
fig.update_layout(height=320, yaxis=dict(autorange='reversed'))
st.plotly_chart(fig, use_container_width=True)

st.markdown("#### 🚩 Outlier Days (> 12h)")
outliers_df = processor.calculate_outlier_days(rows_df)
if outliers_df.empty:
    st.success("No member logged more than 12 hours on a single day")
else:
    outliers_df['date'] = pd.to_datetime(outliers_df['date']).dt.strftime('%d/%m/%Y')
    st.dataframe(
        outliers_df.rename(columns={
            'member': 'Member',
            'date': 'Date',
            'hours': 'Hours',
            'project': 'Main Project',
            'company': 'Main Company',
            'entry_count': 'Entries'
        }),
        hide_index=True,
        use_container_width=True
    )
