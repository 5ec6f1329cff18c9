"""Plain-text and JSON-ready rendering of a FitReport."""

from __future__ import annotations

import math
from typing import Any

from .types import FitReport


def _fmt_p(p: float | None) -> str:
    """Scientific notation if tiny, 4 dp otherwise."""
    if p is None or (isinstance(p, float) and math.isnan(p)):
        return "N/A"
    if p < 0.0001:
        return f"{p:.2e}"
    return f"{p:.4f}"


def _fmt_num(x: float | None, digits: int = 3) -> str:
    if x is None or (isinstance(x, float) and math.isnan(x)):
        return "N/A"
    if math.isinf(x):
        return "Inf"
    return f"{x:.{digits}f}"


def _sig(p: float) -> str:
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    return ""


def render_dsep_table(report: FitReport) -> list[str]:
    lines = ["Tests of directed separation:", ""]
    if not report.claims:
        lines.append("  No independence claims tested.")
        return lines

    header = f"  {'Independ.Claim':<36} {'Estimate':>10} {'Std.Error':>10} {'DF':>8} {'P.Value':>10}"
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for r in report.claims:
        claim = f"{r.response} ~ {r.predictor}"
        if r.claim.conditioning:
            claim += " + ..."
        lines.append(
            f"  {claim:<36} {_fmt_num(r.estimate, 4):>10} {_fmt_num(r.std_error, 4):>10} "
            f"{_fmt_num(r.df, 1):>8} {_fmt_p(r.p_value):>10} {_sig(r.p_value)}"
        )
    if any(r.adjusted for r in report.claims):
        lines.append("")
        lines.append("  P-values use the full model's degrees of freedom.")
    return lines


def render_excluded(report: FitReport) -> list[str]:
    if not report.excluded:
        return []
    lines = ["", f"Excluded claims ({report.n_excluded}):", ""]
    for e in report.excluded:
        lines.append(f"  {str(e.claim):<36} [{e.reason.value}] {e.detail}")
    return lines


def render_fit(report: FitReport) -> list[str]:
    c = report.c_statistic
    ix = report.indices
    lines = [
        "",
        "Global goodness-of-fit:",
        "",
        f"  Fisher.C = {_fmt_num(c.c)} with P-value = {_fmt_p(c.p_value)} "
        f"and on {c.df} degrees of freedom",
        "",
        f"  {'AIC':>10} {'AICc':>10} {'BIC':>10} {'K':>6} {'n':>6} {'lik.df':>8} {'model.df':>9}",
        f"  {_fmt_num(ix.aic):>10} {_fmt_num(ix.aicc):>10} {_fmt_num(ix.bic):>10} "
        f"{ix.k_params:>6} {ix.n_obs:>6} {ix.likelihood_df:>8} {ix.model_df:>9}",
    ]
    if ix.aicc_error:
        lines.append(f"  Note: {ix.aicc_error}")
    return lines


def render_report(report: FitReport) -> str:
    """Missing-path table, exclusions, C block and fit-index block."""
    lines = [*render_dsep_table(report), *render_excluded(report), *render_fit(report)]
    return "\n".join(lines) + "\n"


def report_to_dict(report: FitReport) -> dict[str, Any]:
    return report.to_dict()
