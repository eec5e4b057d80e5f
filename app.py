import logging

import streamlit as st
import pandas as pd
import utils
import evm_engine
import kpi_engine
import rating_engine
import recommendation_engine
import trend_engine
import summary_engine

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("project_kpi_dashboard")

# --- Phase 1: Configuration ---
st.set_page_config(
    page_title="Project Performance Analytics",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .block-container {
        padding-top: 2rem;
        padding-bottom: 2rem;
    }
    div[data-testid="stMetricValue"] {
        font-size: 1.2rem;
    }
</style>
""", unsafe_allow_html=True)

# --- Phase 2: Sidebar (Upload & Observations) ---
st.sidebar.title("Input & Settings")

st.sidebar.markdown("### 1. Upload Tasks")
st.sidebar.info(
    f"Upload `tasks.csv` ({', '.join(utils.REQUIRED_COLUMNS_TASKS)}; "
    f"optional: {', '.join(utils.OPTIONAL_COLUMNS_TASKS)})"
)
uploaded_tasks = st.sidebar.file_uploader("Select Tasks File", type=["csv"], key="tasks_uploader")

st.sidebar.markdown("### 2. Upload Cost Ledger")
st.sidebar.info("Upload `actual_costs.csv` (task_id, actual_cost)")
uploaded_costs = st.sidebar.file_uploader("Select Cost File", type=["csv"], key="costs_uploader")

st.sidebar.markdown("### 3. Upload KPI History (Optional)")
uploaded_history = st.sidebar.file_uploader("Select History File", type=["csv"], key="history_uploader")

st.sidebar.markdown("---")
st.sidebar.subheader("4. Budget & Observations")
budget_at_completion = st.sidebar.number_input("Budget at Completion (BAC)", min_value=0.0, value=0.0, step=1000.0)

evm_data = None
if st.sidebar.checkbox("EVM observation"):
    evm_data = {
        "planned_value": st.sidebar.number_input("Planned Value (PV)", min_value=0.0, value=0.0),
        "earned_value": st.sidebar.number_input("Earned Value (EV)", min_value=0.0, value=0.0),
        "actual_cost": st.sidebar.number_input("Actual Cost (AC)", min_value=0.0, value=0.0),
    }

quality_data = None
if st.sidebar.checkbox("Quality observation"):
    quality_data = {
        "defects": st.sidebar.number_input("Defects", min_value=0, value=0),
        "total_deliverables": st.sidebar.number_input("Total Deliverables", min_value=0, value=0),
        "rework_hours": st.sidebar.number_input("Rework Hours", min_value=0.0, value=0.0),
        "total_hours": st.sidebar.number_input("Total Hours", min_value=0.0, value=0.0),
    }

resource_data = None
if st.sidebar.checkbox("Resource observation"):
    resource_data = {
        "allocated_hours": st.sidebar.number_input("Allocated Hours", min_value=0.0, value=0.0),
        "actual_hours": st.sidebar.number_input("Actual Hours", min_value=0.0, value=0.0),
        "team_size": st.sidebar.number_input("Team Size", min_value=0, value=0),
        "productivity": st.sidebar.number_input("Productivity Index", min_value=0.0, value=100.0),
    }

risk_data = None
if st.sidebar.checkbox("Risk observation"):
    risk_data = {
        "total_risks": st.sidebar.number_input("Total Risks", min_value=0, value=0),
        "high_risks": st.sidebar.number_input("High-Severity Risks", min_value=0, value=0),
        "mitigated_risks": st.sidebar.number_input("Mitigated Risks", min_value=0, value=0),
        "contingency_used": st.sidebar.number_input("Contingency Used", min_value=0.0, value=0.0),
        "contingency_total": st.sidebar.number_input("Contingency Total", min_value=0.0, value=0.0),
    }

st.sidebar.markdown("---")
if st.sidebar.button("Run Analysis", type="primary"):
    st.session_state['analyzed'] = True

if 'analyzed' not in st.session_state:
    st.session_state['analyzed'] = False

# --- Data Loading & Validation ---
df_tasks = None
df_costs = None
df_history = None
task_errors = []
cost_errors = []
history_errors = []

if uploaded_tasks:
    try:
        df_tasks = pd.read_csv(uploaded_tasks)
        task_errors.extend(utils.validate_columns(df_tasks, utils.REQUIRED_COLUMNS_TASKS, "tasks.csv"))
        task_errors.extend(utils.validate_task_statuses(df_tasks, "tasks.csv"))
        task_errors.extend(utils.validate_iso_dates(df_tasks, ["start_date", "end_date"], "tasks.csv"))
        task_errors.extend(utils.validate_numeric(df_tasks, ["duration_days"], "tasks.csv"))
    except Exception as e:
        st.error(f"Error reading tasks.csv: {e}")

if uploaded_costs:
    try:
        df_costs = pd.read_csv(uploaded_costs)
        cost_errors.extend(utils.validate_columns(df_costs, utils.REQUIRED_COLUMNS_COSTS, "actual_costs.csv"))
        cost_errors.extend(utils.validate_numeric(df_costs, ["actual_cost"], "actual_costs.csv"))
    except Exception as e:
        st.error(f"Error reading actual_costs.csv: {e}")

if uploaded_history:
    try:
        df_history = pd.read_csv(uploaded_history)
        history_errors.extend(utils.validate_columns(df_history, utils.REQUIRED_COLUMNS_HISTORY, "kpi_history.csv"))
        history_errors.extend(utils.validate_required_values(df_history, ["date"], "kpi_history.csv"))
        history_errors.extend(utils.validate_iso_dates(df_history, ["date"], "kpi_history.csv"))
    except Exception as e:
        st.error(f"Error reading kpi_history.csv: {e}")

all_errors = task_errors + cost_errors + history_errors

# --- Analysis ---
metrics = None
ratings = {}
recommendations = []
evm_metrics = None
actual_costs = {}

if st.session_state['analyzed'] and df_tasks is not None and not task_errors:
    try:
        if df_costs is not None and not cost_errors:
            actual_costs = utils.actual_costs_from_frame(df_costs)
        metrics = kpi_engine.calculate_kpi_metrics(
            df_tasks, actual_costs, budget_at_completion,
            evm_data=evm_data, quality_data=quality_data,
            resource_data=resource_data, risk_data=risk_data,
        )
        ratings = rating_engine.calculate_kpi_ratings(metrics)
        recommendations = recommendation_engine.generate_kpi_recommendations(metrics, ratings)
        evm_metrics = evm_engine.calculate_evm_metrics(evm_data, budget_at_completion)
    except Exception as e:
        logger.exception("KPI calculation failed")
        st.error(f"KPI Calculation Error: {e}")

# --- Tab Content ---
tabs = st.tabs([
    "Overview",
    "KPIs & Ratings",
    "Recommendations",
    "EVM",
    "Trends",
    "Project Data",
])

with tabs[0]: # Overview
    if metrics is not None:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Overall Health", f"{metrics['overall_health_score']}/100")
        c2.metric("Health Status", kpi_engine.get_overall_health_status(metrics['overall_health_score']))
        c3.metric("Performance Trend", metrics['performance_trend'])
        c4.metric("Recommendations", len(recommendations))

        st.divider()
        st.markdown(summary_engine.generate_kpi_summary(metrics, ratings, recommendations))

        st.divider()
        st.subheader("Budget Position")
        budget = kpi_engine.calculate_budget_summary(actual_costs, budget_at_completion)
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("BAC", f"${budget['budget_at_completion']:,.2f}")
        c2.metric("Actual Cost", f"${budget['total_actual_cost']:,.2f}")
        c3.metric("Utilization", f"{budget['budget_utilization']:.1f}%")
        c4.metric("Remaining", f"${budget['remaining_budget']:,.2f}")
    elif not uploaded_tasks:
        st.info("Upload 'tasks.csv' and click Run Analysis.")
    else:
        st.info("Run Analysis to view the project assessment.")

with tabs[1]: # KPIs & Ratings
    if metrics is not None:
        rows = []
        # weakest ratings first
        ranked = sorted(ratings.items(), key=lambda item: rating_engine.rating_rank(item[1]))
        for metric, rating in ranked:
            rows.append({
                "KPI": metric,
                "Value": metrics[metric],
                "Target": trend_engine.get_kpi_target(metric),
                "Rating": rating,
            })
        kpi_df = pd.DataFrame(rows)

        def highlight_rating(row):
            colors = {
                rating_engine.RATING_EXCELLENT: 'background-color: #d4edda',
                rating_engine.RATING_GOOD: 'background-color: #d1ecf1',
                rating_engine.RATING_FAIR: 'background-color: #fff3cd',
                rating_engine.RATING_POOR: 'background-color: #f8d7da',
            }
            styles = [''] * len(row)
            styles[row.index.get_loc("Rating")] = colors.get(row["Rating"], '')
            return styles

        try:
            st.dataframe(kpi_df.style.apply(highlight_rating, axis=1), use_container_width=True)
        except Exception as e:
            st.warning(f"Could not apply styling: {e}")
            st.dataframe(kpi_df, use_container_width=True)

        with st.expander("ℹ️ Understanding the Health Score (Click to Expand)"):
            st.markdown("""
            **Weighted Category Scores:**
            *   **Budget (25%)**: 100 − |cost variance %|
            *   **Schedule (25%)**: 100 − |schedule variance %|
            *   **Quality (25%)**: quality score
            *   **Resource (15%)**: average of utilization and team efficiency
            *   **Risk (10%)**: 100 − risk exposure
            """)
            st.json(kpi_engine.calculate_category_scores(metrics))
    else:
        st.info("Run Analysis to view KPI ratings.")

with tabs[2]: # Recommendations
    if metrics is not None:
        if recommendations:
            for rec in recommendations:
                st.markdown(f"- {rec}")
        else:
            st.success("No corrective actions required.")
    else:
        st.info("Run Analysis to view recommendations.")

with tabs[3]: # EVM
    if evm_metrics is not None and evm_data is not None:
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("PV (Planned Value)", f"${evm_metrics['PV']:,.2f}")
        c2.metric("EV (Earned Value)", f"${evm_metrics['EV']:,.2f}")
        c3.metric("AC (Actual Cost)", f"${evm_metrics['AC']:,.2f}")
        c4.metric("BAC (Budget at Completion)", f"${evm_metrics['BAC']:,.2f}")

        st.divider()
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("CPI (Cost Perf.)", f"{evm_metrics['CPI']:.2f}", delta=f"{evm_metrics['CPI']-1:.2f}")
        c2.metric("SPI (Sched Perf.)", f"{evm_metrics['SPI']:.2f}", delta=f"{evm_metrics['SPI']-1:.2f}")
        c3.metric("CV (Cost Variance)", f"${evm_metrics['CV']:,.2f}")
        c4.metric("SV (Sched Variance)", f"${evm_metrics['SV']:,.2f}")

        st.divider()
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("EAC (Estimate At Comp.)", f"${evm_metrics['EAC']:,.2f}")
        c2.metric("ETC (Est. To Complete)", f"${evm_metrics['ETC']:,.2f}")
        c3.metric("VAC (Variance At Comp.)", f"${evm_metrics['VAC']:,.2f}")
        c4.metric("TCPI (to BAC)", f"{evm_metrics['TCPI']:.2f}")
    else:
        st.info("Enable the EVM observation in the sidebar and Run Analysis to view EVM Metrics.")

with tabs[4]: # Trends
    if df_history is not None and not history_errors:
        try:
            history = utils.history_from_frame(df_history)
            trend_df = trend_engine.trends_to_dataframe(trend_engine.generate_kpi_trends(history))
            for metric in trend_engine.TRACKED_KPIS:
                st.markdown(f"**{metric.replace('_', ' ').title()}** (target {trend_engine.get_kpi_target(metric)})")
                chart_df = trend_df[trend_df["metric"] == metric].set_index("period")[["value", "target"]]
                st.line_chart(chart_df)
            st.dataframe(trend_df, use_container_width=True)
        except Exception as e:
            st.error(f"Trend Calculation Error: {e}")
    else:
        st.info("Upload 'kpi_history.csv' to view KPI trends.")

with tabs[5]: # Project Data
    if df_tasks is not None:
        st.subheader("Tasks")
        st.dataframe(df_tasks, use_container_width=True)
        st.caption(f"Rows: {len(df_tasks)} | Columns: {len(df_tasks.columns)}")
    if df_costs is not None:
        st.subheader("Cost Ledger")
        st.dataframe(df_costs, use_container_width=True)
    if df_tasks is None and df_costs is None:
        st.info("Please upload 'tasks.csv' in the sidebar.")

# --- Validation Panel (Always visible if errors exist) ---
if all_errors:
    st.markdown("### ⚠️ Data Validation Issues")
    with st.expander("View Validation Errors", expanded=True):
        for err in all_errors:
            st.error(err)

    st.warning("Please correct the CSV files and re-upload. The engine will not calculate correctly with invalid data.")
