# -*- coding: utf-8 -*-
"""
Tint: Rendering hyperspectral cubes through the eyes of a standard observer
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later
"""

import numpy as np
import pytest

from tint_errors import ConfigurationError
from tint_illuminant import (
    IlluminantChoice,
    build_illuminant,
    calculate_power_spectrum,
    parse_illuminant,
)


class TestPlanck:

    def test_shape_at_5000k(self):
        p = lambda wl: calculate_power_spectrum(5000, wl)
        assert p(500) < p(550)
        assert p(700) > p(800)

    def test_scalar_and_vector_agree(self):
        wl = np.array([400, 550, 700])
        vec = calculate_power_spectrum(6504, wl)
        assert isinstance(calculate_power_spectrum(6504, 550), float)
        np.testing.assert_allclose(vec, [calculate_power_spectrum(6504, w) for w in wl])

    def test_known_value(self):
        # c1 / (λ^5 (exp(c2 / λT) - 1)) at 500 nm, 5000 K
        wl = 500e-9
        expected = 3.74177152e-16 / (wl ** 5 * (np.exp(1.43877696e-2 / (wl * 5000)) - 1.0))
        assert calculate_power_spectrum(5000, 500) == pytest.approx(expected, rel=1e-12)

    def test_peak_follows_wien(self):
        wl = np.arange(300, 831)
        power = calculate_power_spectrum(5000, wl)
        # 2.898e6 nm K / 5000 K ~ 580 nm
        assert abs(int(wl[np.argmax(power)]) - 580) <= 2

    def test_very_low_temperature_is_zero_not_nan(self):
        power = calculate_power_spectrum(1, np.arange(360, 831))
        assert np.all(power == 0.0)

    @pytest.mark.parametrize("temperature", [0, -100])
    def test_non_positive_temperature(self, temperature):
        with pytest.raises(ConfigurationError):
            calculate_power_spectrum(temperature, 500)


class TestParse:

    @pytest.mark.parametrize("text, name, kelvin, tabulated", [
        ("D65", "D65", 6504, True),
        ("d65", "D65", 6504, True),
        ("A", "A", 2856, True),
        ("D50", "D50", 5000, False),
        ("D75", "D75", 7500, False),
        ("d93", "D93", 9300, False),
        ("5000", "5000K", 5000, False),
        ("3200K", "3200K", 3200, False),
        (" 7000k ", "7000K", 7000, False),
        ("6504", "D65", 6504, True),
        ("6504K", "D65", 6504, True),
    ])
    def test_names_and_kelvin(self, text, name, kelvin, tabulated):
        choice = parse_illuminant(text)
        assert choice == IlluminantChoice(name, kelvin, tabulated)

    def test_integer(self):
        assert parse_illuminant(6000) == IlluminantChoice("6000K", 6000)

    def test_6504_kelvin_selects_d65_table(self):
        assert parse_illuminant(6504) == parse_illuminant("D65")
        d65 = build_illuminant(parse_illuminant(6504))
        assert d65.at(560) == pytest.approx(100.0)

    @pytest.mark.parametrize("bad", ["F11", "warm", "", "0", "-5000", 0, -1])
    def test_rejects(self, bad):
        with pytest.raises(ConfigurationError):
            parse_illuminant(bad)

    def test_unknown_tabulated_name(self):
        with pytest.raises(ConfigurationError):
            IlluminantChoice("F2", 4230, tabulated=True)


class TestBuild:

    def test_d65_table(self):
        d65 = build_illuminant(parse_illuminant("D65"))
        assert (d65.first, d65.last) == (300, 830)
        assert d65.at(560) == pytest.approx(100.0)
        assert d65.at(300) == pytest.approx(0.0341)
        assert d65.at(830) == pytest.approx(60.3125)
        # linear between 555 (102.023) and 560 (100.0)
        assert d65.at(557) == pytest.approx(102.023 + 0.4 * (100.0 - 102.023))

    def test_illuminant_a_is_normalised_at_560(self):
        a = build_illuminant(parse_illuminant("A"))
        assert a.at(560) == pytest.approx(100.0)
        assert a.at(400) < a.at(500) < a.at(700)
        # CIE 15 Table T.1
        assert a.at(300) == pytest.approx(0.930483, rel=5e-4)
        assert a.at(400) == pytest.approx(14.708, rel=1e-4)
        assert a.at(500) == pytest.approx(59.8611, rel=1e-5)
        assert a.at(780) == pytest.approx(241.675, rel=1e-5)

    def test_blackbody_on_full_grid(self):
        blackbody = build_illuminant(parse_illuminant("D50"))
        assert len(blackbody) == 531
        np.testing.assert_allclose(blackbody.power, calculate_power_spectrum(5000, blackbody.wavelengths))

    def test_tables_are_read_only(self):
        d65 = build_illuminant(parse_illuminant("D65"))
        with pytest.raises(ValueError):
            d65.power[0] = 1.0
