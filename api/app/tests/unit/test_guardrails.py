"""Unit tests for model-output decoding and contract validation."""

from unittest.mock import Mock, patch
import pytest

from app.models.exceptions import InvalidResponseError
from app.services.guardrails import (
    EDITS_CONTRACT,
    KIT_PATCH_CONTRACT,
    _load_schema,
    decode_model_json,
    unwrap_code_fence,
    validate_contract,
)


class TestUnwrapCodeFence:
    """Test cases for code fence stripping."""

    def test_bare_text_is_trimmed(self):
        assert unwrap_code_fence('  [1, 2]\n') == '[1, 2]'

    def test_json_fence_is_removed(self):
        assert unwrap_code_fence('```json\n[{"id": "a"}]\n```') == '[{"id": "a"}]'

    def test_untagged_fence_is_removed(self):
        assert unwrap_code_fence('```\n{"colors": []}\n```  ') == '{"colors": []}'

    def test_text_around_fence_is_left_alone(self):
        raw = 'Here you go:\n```json\n[]\n```'
        assert unwrap_code_fence(raw) == raw

    def test_none_becomes_empty(self):
        assert unwrap_code_fence(None) == ''


class TestValidateContract:
    """Test cases for contract loading and validation."""

    def test_load_schema_is_cached(self):
        validator = _load_schema(EDITS_CONTRACT)
        assert validator is _load_schema(EDITS_CONTRACT)

    def test_edits_contract_accepts_array(self):
        validate_contract(EDITS_CONTRACT, [{"id": "a"}])

    def test_edits_contract_rejects_object(self):
        with pytest.raises(InvalidResponseError) as exc_info:
            validate_contract(EDITS_CONTRACT, {"id": "a"})

        assert exc_info.value.contract == EDITS_CONTRACT
        assert exc_info.value.message == "Invalid LLM response"
        assert len(exc_info.value.validation_errors) == 1

    def test_kit_contract_rejects_array(self):
        with pytest.raises(InvalidResponseError):
            validate_contract(KIT_PATCH_CONTRACT, [])

    def test_validation_errors_are_reported(self):
        mock_error = Mock()
        mock_error.path = []
        mock_error.message = "42 is not of type 'array'"

        with patch('app.services.guardrails._load_schema') as mock_load:
            mock_validator = Mock()
            mock_validator.iter_errors.return_value = [mock_error]
            mock_load.return_value = mock_validator

            with pytest.raises(InvalidResponseError) as exc_info:
                validate_contract('edits.json', 42, "Invalid LLM response for kit")

            mock_load.assert_called_once_with('edits.json')
            assert exc_info.value.message == "Invalid LLM response for kit"
            assert exc_info.value.validation_errors == ["[]: 42 is not of type 'array'"]


class TestDecodeModelJson:
    """Test cases for the two-stage decode."""

    def test_fenced_and_bare_decode_alike(self):
        bare = decode_model_json('[{"id": "a", "new_text": "Hi"}]', EDITS_CONTRACT)
        fenced = decode_model_json('```json\n[{"id": "a", "new_text": "Hi"}]\n```', EDITS_CONTRACT)
        assert bare == fenced

    @pytest.mark.parametrize("raw", ["not json", "", None, "```json\n```"])
    def test_unparseable_text_fails(self, raw):
        with pytest.raises(InvalidResponseError) as exc_info:
            decode_model_json(raw, EDITS_CONTRACT)
        assert "not JSON" in exc_info.value.validation_errors[0]

    @pytest.mark.parametrize("raw", ["NaN", "[Infinity]", '{"a": -Infinity}'])
    def test_non_json_constants_fail(self, raw):
        with pytest.raises(InvalidResponseError) as exc_info:
            decode_model_json(raw, EDITS_CONTRACT)
        assert "not valid JSON" in exc_info.value.validation_errors[0]

    def test_wrong_root_shape_fails(self):
        with pytest.raises(InvalidResponseError):
            decode_model_json("42", KIT_PATCH_CONTRACT)

    def test_custom_message(self):
        with pytest.raises(InvalidResponseError, match="for kit"):
            decode_model_json("[]", KIT_PATCH_CONTRACT, "Invalid LLM response for kit")
