import logging

import utils

logger = logging.getLogger(__name__)


def empty_evm_metrics(budget_at_completion=0.0):
    """
    Zeroed metrics used when no EVM observation is supplied.
    """
    return {
        "PV": 0.0,
        "EV": 0.0,
        "AC": 0.0,
        "BAC": utils.to_number(budget_at_completion),
        "CPI": 0.0,
        "SPI": 0.0,
        "CV": 0.0,
        "SV": 0.0,
        "EAC": 0.0,
        "ETC": 0.0,
        "VAC": 0.0,
        "TCPI": 0.0,
    }


def calculate_evm_metrics(evm_data, budget_at_completion):
    """
    Calculates project-level EVM metrics from an observation dict:
        {"planned_value": PV, "earned_value": EV, "actual_cost": AC}

    evm_data may be None, in which case every figure is 0.
    Division guards never raise:
        CPI = EV / AC   (AC == 0 -> 0)
        SPI = EV / PV   (PV == 0 -> 0)
        EAC = BAC / CPI (CPI == 0 -> BAC)

    Returns a dictionary of metrics.
    """
    bac = utils.to_number(budget_at_completion)

    if evm_data is None:
        logger.debug("No EVM observation supplied, using zeroed metrics")
        return empty_evm_metrics(bac)

    pv = utils.to_number(evm_data.get("planned_value"))
    ev = utils.to_number(evm_data.get("earned_value"))
    ac = utils.to_number(evm_data.get("actual_cost"))

    metrics = empty_evm_metrics(bac)
    metrics["PV"] = pv
    metrics["EV"] = ev
    metrics["AC"] = ac

    # 1. Variances
    metrics["CV"] = ev - ac
    metrics["SV"] = ev - pv

    # 2. Indices. Undefined ratios are reported as 0, not inf.
    metrics["CPI"] = ev / ac if ac != 0 else 0.0
    metrics["SPI"] = ev / pv if pv != 0 else 0.0

    # 3. Forecasting
    if metrics["CPI"] != 0:
        metrics["EAC"] = bac / metrics["CPI"]
    else:
        metrics["EAC"] = bac

    metrics["ETC"] = metrics["EAC"] - ac
    metrics["VAC"] = bac - metrics["EAC"]

    # TCPI (to BAC) = (BAC - EV) / (BAC - AC)
    remaining_budget = bac - ac
    if remaining_budget != 0:
        metrics["TCPI"] = (bac - ev) / remaining_budget
    else:
        metrics["TCPI"] = 0.0

    return metrics
