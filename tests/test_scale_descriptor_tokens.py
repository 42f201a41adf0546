"""Scale descriptor tokens as they appear in the invocation."""
from __future__ import annotations

import pytest

from media_convert_menu.errors import InvalidParameterError
from media_convert_menu.params import ScaleDescriptor


def _scale_value(invocation) -> str:
    args = list(invocation.args)
    return args[args.index("-vf") + 1]


def test_default_scale_is_1920_auto(planner) -> None:
    assert planner.state.scale.token() == "1920:-1"


def test_width_token(planner) -> None:
    planner.set_scale_by_width(1280)
    invocation = planner.build_invocation("/tmp/pic.jpg", "png")
    assert planner.state.scale.token() == "1280:-1"
    assert _scale_value(invocation) == "scale=1280:-1"


def test_height_token(planner) -> None:
    planner.set_scale_by_height(720)
    invocation = planner.build_invocation("/tmp/pic.jpg", "png")
    assert planner.state.scale.token() == "-1:720"
    assert _scale_value(invocation) == "scale=-1:720"


def test_reset_restores_default(planner) -> None:
    planner.set_scale_by_height(480)
    planner.reset_scale()
    invocation = planner.build_invocation("/tmp/pic.jpg", "png")
    assert _scale_value(invocation) == "scale=1920:-1"


@pytest.mark.parametrize("value", [0, -5, "wide", None])
def test_non_positive_or_malformed_dimension_rejected(planner, value) -> None:
    with pytest.raises(InvalidParameterError):
        planner.set_scale_by_width(value)
    with pytest.raises(InvalidParameterError):
        planner.set_scale_by_height(value)
    assert planner.state.scale.token() == "1920:-1"


def test_descriptor_requires_exactly_one_dimension() -> None:
    with pytest.raises(InvalidParameterError):
        ScaleDescriptor(width=None, height=None)
    with pytest.raises(InvalidParameterError):
        ScaleDescriptor(width=100, height=100)
