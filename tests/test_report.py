"""Tests for report rendering."""

from __future__ import annotations

import json

from pwsem import AnalysisConfig, PiecewiseSEM
from pwsem.report import _fmt_p, _sig, render_fit, render_report, report_to_dict


class TestFormatting:
    def test_fmt_p(self):
        assert _fmt_p(0.5) == "0.5000"
        assert _fmt_p(1e-8) == "1.00e-08"
        assert _fmt_p(None) == "N/A"

    def test_sig(self):
        assert _sig(0.0001) == "***"
        assert _sig(0.005) == "**"
        assert _sig(0.03) == "*"
        assert _sig(0.2) == ""


class TestRender:
    def test_chain_report(self, chain_equations):
        text = render_report(PiecewiseSEM(chain_equations).evaluate())
        assert "Tests of directed separation:" in text
        assert "C ~ A + ..." in text
        assert "D ~ B + ..." in text
        assert "Fisher.C = 3.140 with P-value = " in text
        assert "on 6 degrees of freedom" in text
        assert "Excluded claims" not in text

    def test_excluded_section(self, make_stub):
        eqs = [
            make_stub("B", "A"),
            make_stub("C", "B"),
            make_stub("D", "C", fail_on=frozenset({"A"})),
        ]
        text = render_report(PiecewiseSEM(eqs).evaluate())
        assert "Excluded claims (1):" in text
        assert "A _||_ D | C" in text
        assert "[refit_failed]" in text

    def test_saturated(self, saturated_equations):
        text = render_report(PiecewiseSEM(saturated_equations).evaluate())
        assert "No independence claims tested." in text
        assert "on 0 degrees of freedom" in text

    def test_undefined_aicc_noted(self, chain_equations):
        report = PiecewiseSEM(chain_equations, config=AnalysisConfig(n_obs=13)).evaluate()
        lines = render_fit(report)
        assert any("N/A" in line for line in lines)
        assert any(line.strip().startswith("Note: AICc undefined") for line in lines)

    def test_adjusted_note(self, chain_equations):
        report = PiecewiseSEM(chain_equations, config=AnalysisConfig(adjust_p=True)).evaluate()
        assert "full model's degrees of freedom" in render_report(report)


class TestDict:
    def test_json_serializable(self, chain_equations):
        d = report_to_dict(PiecewiseSEM(chain_equations).evaluate())
        decoded = json.loads(json.dumps(d, default=str))
        assert decoded["c_statistic"]["df"] == 6
        assert len(decoded["dsep"]) == 3
