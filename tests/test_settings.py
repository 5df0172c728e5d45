"""
Tests for settings loading.
"""

from settings import (
    DEFAULT_FIXED_CATEGORIES,
    RECURRING_AMOUNT_TOLERANCE,
    AnalysisSettings,
    load_settings,
)


def test_defaults():
    settings = load_settings()
    assert settings == AnalysisSettings()
    assert settings.fixed_categories == DEFAULT_FIXED_CATEGORIES
    assert settings.recurring_amount_tolerance == RECURRING_AMOUNT_TOLERANCE == 0.15
    assert settings.recurring_lookback_months == 6
    assert settings.recurring_min_description_length == 3
    assert settings.trend_months == 6


def test_overrides_are_coerced():
    settings = load_settings({
        'fixed_categories': 'Home, Rent ,,Insurance',
        'recurring_amount_tolerance': '0.2',
        'trend_months': '12',
    })
    assert settings.fixed_categories == ('Home', 'Rent', 'Insurance')
    assert settings.recurring_amount_tolerance == 0.2
    assert settings.trend_months == 12


def test_bad_values_are_ignored(caplog):
    settings = load_settings({
        'recurring_amount_tolerance': 'lots',
        'trend_months': 0,
        'mystery': 1,
    })
    assert settings == AnalysisSettings()
    assert "Ignoring unknown setting 'mystery'" in caplog.text
    assert "Ignoring invalid value for setting 'trend_months'" in caplog.text


def test_trend_months_below_six_is_ignored(caplog):
    settings = load_settings({'trend_months': '3'})
    assert settings.trend_months == 6
    assert 'must be at least 6' in caplog.text
