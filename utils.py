import pandas as pd
import dateutil.parser

# --- Constants ---

REQUIRED_COLUMNS_TASKS = [
    "task_id",
    "status",
    "priority",
]

OPTIONAL_COLUMNS_TASKS = [
    "title",
    "start_date",
    "end_date",
    "duration_days",
]

REQUIRED_COLUMNS_COSTS = [
    "task_id",
    "actual_cost",
]

REQUIRED_COLUMNS_HISTORY = [
    "date",
    "budget_utilization",
    "task_completion_rate",
    "quality_score",
    "resource_utilization",
    "overall_health_score",
]

VALID_TASK_STATUSES = ["todo", "in-progress", "review", "done", "completed", "blocked"]

MAX_REPORTED_ERRORS = 10


# --- Coercion ---

def to_number(val, default=0.0):
    """
    Coerces a scalar to float. None, NaN, "" and non-numeric strings -> default.
    """
    num = pd.to_numeric(val, errors="coerce")
    if pd.isna(num):
        return default
    return float(num)


def _cap_errors(errors, kind):
    # Cap errors to avoid flooding UI
    if len(errors) > MAX_REPORTED_ERRORS:
        extra = len(errors) - MAX_REPORTED_ERRORS
        errors = errors[:MAX_REPORTED_ERRORS] + [f"... and {extra} more {kind} errors."]
    return errors


# --- Validation Functions ---

def validate_columns(df, required_columns, filename):
    """
    Checks if all required columns are present in the dataframe.
    Returns a list of error strings.
    """
    errors = []
    missing = [col for col in required_columns if col not in df.columns]
    if missing:
        errors.append(f"{filename}: Missing required columns: {', '.join(missing)}")
    return errors


def validate_iso_dates(df, date_cols, filename):
    """
    Checks if specified columns contain valid ISO dates.
    Returns a list of error strings.
    """
    errors = []
    for col in date_cols:
        if col not in df.columns:
            continue
        for idx, val in df[col].dropna().items():
            try:
                dateutil.parser.isoparse(str(val))
            except ValueError:
                errors.append(f"{filename} (Row {idx+2}): Invalid ISO date in '{col}': '{val}'")
    return _cap_errors(errors, "date")


def validate_required_values(df, cols, filename):
    """
    Flags blank cells in columns that every row must fill.
    """
    errors = []
    for col in cols:
        if col not in df.columns:
            continue
        blank = df[col].isna() | (df[col].astype(str).str.strip() == "")
        for idx in blank[blank].index:
            errors.append(f"{filename} (Row {idx+2}): Missing value in '{col}'")
    return _cap_errors(errors, "missing value")


def validate_numeric(df, num_cols, filename):
    """
    Checks if specified columns are numeric.
    Returns a list of errors.
    """
    errors = []
    for col in num_cols:
        if col not in df.columns:
            continue
        non_null_values = df[col].dropna()
        # read_csv already inferred numbers -> nothing to check
        if pd.api.types.is_numeric_dtype(non_null_values):
            continue
        for idx, val in non_null_values.items():
            try:
                float(val)
            except ValueError:
                errors.append(f"{filename} (Row {idx+2}): Non-numeric value in '{col}': '{val}'")
    return _cap_errors(errors, "numeric")


def validate_task_statuses(df, filename):
    """
    Flags task rows whose status is outside the known workflow states.
    """
    errors = []
    if "status" not in df.columns:
        return errors
    for idx, val in df["status"].items():
        if pd.isna(val) or str(val).strip().lower() not in VALID_TASK_STATUSES:
            errors.append(
                f"{filename} (Row {idx+2}): Unknown status '{val}'. "
                f"Expected one of: {', '.join(VALID_TASK_STATUSES)}"
            )
    return _cap_errors(errors, "status")


# --- Conversion into engine inputs ---

def actual_costs_from_frame(df_costs):
    """
    Sums the cost ledger per task.
    Returns dict: { task_id: total_actual_cost }
    """
    if df_costs is None or df_costs.empty:
        return {}
    costs = pd.to_numeric(df_costs["actual_cost"], errors="coerce").fillna(0)
    grouped = costs.groupby(df_costs["task_id"].astype(str)).sum()
    return {task_id: float(total) for task_id, total in grouped.items()}


def history_from_frame(df_history):
    """
    Turns a KPI history CSV (one row per period) into (timestamp, metrics) pairs,
    preserving row order.
    """
    history = []
    if df_history is None or df_history.empty:
        return history
    metric_cols = [c for c in df_history.columns if c != "date"]
    for _, row in df_history.iterrows():
        metrics = {col: to_number(row.get(col)) for col in metric_cols}
        history.append((pd.Timestamp(dateutil.parser.isoparse(str(row["date"]))), metrics))
    return history
