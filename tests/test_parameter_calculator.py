import pytest

from src_zncc_disparity.disparity.parameter_calculator import (
    DEFAULT_PARAMETERS,
    DisparityParameterCalculator,
)


@pytest.fixture
def calculator():
    return DisparityParameterCalculator()


def test_defaults_when_nothing_configured(calculator):
    parameters = calculator.calculate_zncc_parameters({})

    for key, value in DEFAULT_PARAMETERS.items():
        assert parameters[key] == value
    assert parameters['max_disparity_source'] == 'configuration'


def test_configured_values_win_and_none_is_ignored(calculator):
    parameters = calculator.calculate_zncc_parameters({
        'window_size': 5,
        'max_disparity': 16.0,
        'cross_check_threshold': None,
        'invert_second_pass': "False"
    })

    assert parameters['window_size'] == 5
    assert parameters['max_disparity'] == 16
    assert isinstance(parameters['max_disparity'], int)
    assert parameters['cross_check_threshold'] == DEFAULT_PARAMETERS['cross_check_threshold']
    assert parameters['invert_second_pass'] is False


def test_max_disparity_from_geometry(calculator):
    parameters = calculator.calculate_zncc_parameters({
        'downscale_factor': 4,
        'focal_length_px': 1000.0,
        'baseline_m': 0.1,
        'min_depth_m': 2.0
    })

    # 1000 * 0.1 / 2.0 / 4 = 12.5
    assert parameters['max_disparity'] == 13
    assert parameters['max_disparity_source'] == 'geometry'


def test_explicit_max_disparity_beats_geometry(calculator):
    parameters = calculator.calculate_zncc_parameters({
        'max_disparity': 30,
        'focal_length_px': 1000.0,
        'baseline_m': 0.1,
        'min_depth_m': 2.0
    })

    assert parameters['max_disparity'] == 30


def test_non_positive_geometry_is_rejected(calculator):
    with pytest.raises(ValueError):
        calculator.calculate_max_disparity(1000.0, 0.1, 0.0)


def test_default_parameters_are_valid(calculator):
    is_valid, warnings = calculator.validate_parameters(dict(DEFAULT_PARAMETERS))

    assert is_valid
    assert warnings == []


@pytest.mark.parametrize("override", [
    {'window_size': 8},
    {'downscale_factor': 0},
    {'max_disparity': 300},
    {'cross_check_threshold': -1},
    {'occlusion_search_radius': -5},
])
def test_invalid_parameters(calculator, override):
    is_valid, warnings = calculator.validate_parameters(dict(DEFAULT_PARAMETERS, **override))

    assert not is_valid
    assert warnings


def test_threshold_not_below_max_disparity_only_warns(calculator):
    is_valid, warnings = calculator.validate_parameters(
        dict(DEFAULT_PARAMETERS, max_disparity=8, cross_check_threshold=8))

    assert is_valid
    assert any('cross_check_threshold' in warning for warning in warnings)
