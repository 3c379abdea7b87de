import pytest

from ai_image_editor.domain.entities.operation import OperationRequest, OperationType
from ai_image_editor.domain.services.prompt_builder import (
    BACKGROUND_REMOVAL_PROMPT,
    ENHANCE_PROMPT,
    GENERIC_PROMPT,
    build_prompt,
)


def test_background_removal_is_fixed():
    first = build_prompt(OperationRequest.from_payload("background-removal"))
    second = build_prompt(OperationRequest.from_payload("background-removal", {"style": "anime"}))
    assert first == BACKGROUND_REMOVAL_PROMPT
    assert second == first


def test_enhance_is_fixed():
    assert build_prompt(OperationRequest.from_payload("enhance")) == ENHANCE_PROMPT


def test_style_transfer_interpolates_style():
    prompt = build_prompt(OperationRequest.from_payload("style-transfer", {"style": "anime"}))
    assert prompt.startswith("Transform this image into anime style.")


def test_style_transfer_default_style():
    prompt = build_prompt(OperationRequest.from_payload("style-transfer"))
    assert "into artistic style" in prompt


def test_object_removal_uses_prompt_or_default():
    with_target = build_prompt(OperationRequest.from_payload("object-removal", {"prompt": "the red car"}))
    assert with_target.startswith("Remove the red car from this image")
    default = build_prompt(OperationRequest.from_payload("object-removal"))
    assert default.startswith("Remove unwanted object from this image")


def test_artistic_filter_default_watercolor():
    assert "Apply a watercolor artistic filter" in build_prompt(
        OperationRequest.from_payload("artistic-filter")
    )
    assert "Apply a charcoal artistic filter" in build_prompt(
        OperationRequest.from_payload("artistic-filter", {"style": "charcoal"})
    )


def test_unknown_operation_falls_back_to_generic_enhance():
    req = OperationRequest.from_payload("make-it-pop", {"prompt": "more contrast"})
    assert req.is_generic
    assert req.operation is OperationType.ENHANCE
    assert req.name == "make-it-pop"
    assert req.parameters == {"prompt": "more contrast"}
    assert build_prompt(req) == GENERIC_PROMPT


@pytest.mark.parametrize(
    "name,label",
    [("style-transfer", "style transfer"), ("background-removal", "background removal"), ("enhance", "enhance")],
)
def test_display_name(name, label):
    assert OperationRequest.from_payload(name).display_name == label


def test_intensity_is_parsed_as_float():
    req = OperationRequest.from_payload("artistic-filter", {"intensity": "0.5"})
    assert req.intensity == 0.5
