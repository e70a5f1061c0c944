"""
Unit tests for aspupath/base.py: trait kinds, power parsing, labels, and PathwayConfig.
"""

from __future__ import annotations

import logging
import math

import pytest

from aspupath.base import (
    PathwayConfig,
    format_power,
    normalize_trait_kind,
    output_labels,
    parse_powers,
)
from aspupath.exceptions import AspuPathError, InvalidPowerError, InvalidTraitKindError


@pytest.mark.unit
class TestNormalizeTraitKind:
    @pytest.mark.parametrize("model", ["binomial", "Binary", "BINOMIAL"])
    def test_binary_aliases(self, model):
        assert normalize_trait_kind(model) == "binary"

    @pytest.mark.parametrize("model", ["gaussian", "continuous", "quantitative"])
    def test_continuous_aliases(self, model):
        assert normalize_trait_kind(model) == "continuous"

    @pytest.mark.parametrize("model", ["poisson", "", None, 1])
    def test_unknown_model_raises(self, model):
        with pytest.raises(InvalidTraitKindError) as exc_info:
            normalize_trait_kind(model)
        assert exc_info.value.details["model"] == model
        assert isinstance(exc_info.value, ValueError)


@pytest.mark.unit
class TestParsePowers:
    def test_string_with_inf(self):
        assert parse_powers("1, 2 ,inf") == [1.0, 2.0, math.inf]

    def test_mixed_iterable(self):
        assert parse_powers([1, 0.5, "Inf", math.inf]) == [1.0, 0.5, math.inf, math.inf]

    def test_range(self):
        assert parse_powers(range(1, 4)) == [1.0, 2.0, 3.0]

    @pytest.mark.parametrize("bad", [[], "", [0], [-2.0], [float("nan")], ["two"], [None]])
    def test_invalid_power_sets(self, bad):
        with pytest.raises(InvalidPowerError):
            parse_powers(bad)

    def test_large_power_set_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="aspupath"):
            parse_powers(range(1, 30))
        assert "29 powers requested" in caplog.text


@pytest.mark.unit
class TestLabels:
    @pytest.mark.parametrize(
        "power, expected", [(1.0, "1"), (8.0, "8"), (0.5, "0.5"), (math.inf, "Inf")]
    )
    def test_format_power(self, power, expected):
        assert format_power(power) == expected

    def test_output_labels_end_with_adaptive(self):
        assert output_labels([1.0, math.inf]) == [
            "SPUpathSingle1",
            "SPUpathSingleInf",
            "aSPUpathSingle",
        ]


@pytest.mark.unit
class TestPathwayConfig:
    def test_defaults(self):
        config = PathwayConfig()
        assert config.pow == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0]
        assert config.n_perm == 200
        assert config.model == "binomial"
        assert config.use_pcs is False
        assert config.varprop == 0.95
        assert config.seed is None
        assert config.permutation_workers == 1

    def test_from_dict_parses_power_string(self):
        config = PathwayConfig.from_dict({"pow": "1,inf", "n_perm": 500, "seed": 4})
        assert config.pow == [1.0, math.inf]
        assert config.n_perm == 500
        assert config.seed == 4

    def test_from_dict_ignores_unknown_keys(self, caplog):
        with caplog.at_level(logging.WARNING, logger="aspupath"):
            config = PathwayConfig.from_dict({"model": "gaussian", "bogus": 1})
        assert config.model == "gaussian"
        assert "bogus" in caplog.text

    def test_from_dict_rejects_bad_powers(self):
        with pytest.raises(AspuPathError):
            PathwayConfig.from_dict({"pow": [0]})
