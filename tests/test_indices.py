"""Tests for FitIndexCalculator."""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from pwsem.errors import InsufficientDataError
from pwsem.fisher import fisher_c
from pwsem.indices import FitIndexCalculator, aicc


class TestAICc:
    def test_formula(self):
        c, k, n = 3.0, 5, 50
        assert aicc(c, k, n) == pytest.approx(c + 2 * k + 2 * k * (k + 1) / (n - k - 1))

    def test_zero_denominator(self):
        with pytest.raises(InsufficientDataError, match="n - K - 1"):
            aicc(1.0, 9, 10)

    def test_negative_denominator(self):
        with pytest.raises(InsufficientDataError):
            aicc(1.0, 20, 10)

    @given(
        st.floats(min_value=0.0, max_value=500.0),
        st.integers(min_value=1, max_value=40),
        st.integers(min_value=1, max_value=1000),
    )
    def test_never_below_aic(self, c, k, extra):
        n = k + 1 + extra
        assert aicc(c, k, n) >= c + 2 * k


class TestCalculator:
    def test_counts_all_equations(self, chain_equations):
        calc = FitIndexCalculator(chain_equations)
        # three single-predictor stubs at 3 parameters each
        assert calc.model_parameters == 9
        assert calc.sample_size == 100

    def test_indices(self, chain_equations):
        c_stat = fisher_c([0.80, 0.65, 0.40])
        idx = FitIndexCalculator(chain_equations).compute(c_stat)
        k_params = 9 + 3
        assert idx.k_params == k_params
        assert idx.model_df == k_params
        assert idx.likelihood_df == 6
        assert idx.n_obs == 100
        assert idx.aic == pytest.approx(c_stat.c + 2 * k_params)
        assert idx.aicc == pytest.approx(
            c_stat.c + 2 * k_params + 2 * k_params * (k_params + 1) / (100 - k_params - 1)
        )
        assert idx.bic == pytest.approx(c_stat.c + k_params * math.log(100))
        assert idx.aicc_error is None

    def test_log_likelihood_summed(self, chain_equations):
        assert FitIndexCalculator(chain_equations).log_likelihood() == pytest.approx(-150.0)

    def test_explicit_n_overrides_nobs(self, chain_equations):
        assert FitIndexCalculator(chain_equations, n_obs=40).sample_size == 40

    def test_sample_size_is_largest_nobs(self, make_stub):
        eqs = [make_stub("B", "A", n=80), make_stub("C", "B", n=95)]
        assert FitIndexCalculator(eqs).sample_size == 95

    def test_undefined_aicc_is_recorded(self, chain_equations):
        c_stat = fisher_c([0.80, 0.65, 0.40])
        idx = FitIndexCalculator(chain_equations, n_obs=13).compute(c_stat)
        assert idx.aicc is None
        assert "AICc undefined" in idx.aicc_error
        assert idx.aic == pytest.approx(c_stat.c + 24)

    def test_full_model_df(self, chain_equations):
        assert FitIndexCalculator(chain_equations).full_model_df() == 91.0
        assert FitIndexCalculator(chain_equations, n_obs=5).full_model_df() == 1.0
