"""
Masking component unit tests.
"""

from __future__ import annotations

import pytest

from project_access.components.masking import (
    MaskPayloadInput,
    Viewer,
    is_masked,
    mask_email,
    mask_payload,
    parse_path,
    run,
)

# --- mask_email ---


class TestMaskEmail:
    def test_keeps_first_and_last_character_and_domain(self) -> None:
        assert mask_email("john.doe@example.com") == "j**e@example.com"

    def test_three_letter_local_part(self) -> None:
        assert mask_email("new@test.com") == "n**w@test.com"

    def test_short_local_parts(self) -> None:
        assert mask_email("ab@example.com") == "a**@example.com"
        assert mask_email("a@example.com") == "a**@example.com"

    def test_domain_case_preserved(self) -> None:
        assert mask_email("Hello@World.COM") == "H**o@World.COM"

    def test_not_an_email(self) -> None:
        assert mask_email("not-an-email") == "not-an-email"
        assert mask_email("@example.com") == "@example.com"

    @pytest.mark.parametrize(
        "email",
        ["john.doe@example.com", "ab@example.com", "a@x.io", "new@test.com"],
    )
    def test_idempotent(self, email: str) -> None:
        once = mask_email(email)
        assert mask_email(once) == once
        assert is_masked(once)

    def test_custom_placeholder(self) -> None:
        masked = mask_email("john.doe@example.com", placeholder="***")
        assert masked == "j***e@example.com"
        assert mask_email(masked, placeholder="***") == masked

    def test_plain_address_is_not_masked(self) -> None:
        assert not is_masked("john@example.com")


# --- parse_path ---


class TestParsePath:
    def test_nested_path(self) -> None:
        tokens = parse_path("$.success[*].email")
        assert tokens[0] == "success"
        assert tokens[2] == "email"
        assert len(tokens) == 3

    def test_root_only(self) -> None:
        assert parse_path("$") == []

    @pytest.mark.parametrize("path", ["success.email", "$..email", "$.a[0]"])
    def test_malformed(self, path: str) -> None:
        with pytest.raises(ValueError):
            parse_path(path)


# --- mask_payload ---


@pytest.fixture
def response_payload() -> dict:
    return {
        "success": [
            {"id": 1, "userId": None, "email": "new@test.com"},
            {"id": 2, "userId": 7, "email": "owner@test.com"},
        ],
        "failed": [{"email": "dup@test.com", "code": "already_invited"}],
    }


class TestMaskPayload:
    def test_masks_every_matched_value(self, response_payload: dict) -> None:
        masked, count = mask_payload(
            response_payload,
            ["$.success[*].email", "$.failed[*].email"],
            Viewer(user_id=99, email="someone@else.com"),
        )
        assert count == 3
        assert masked["success"][0]["email"] == "n**w@test.com"
        assert masked["failed"][0]["email"] == "d**p@test.com"

    def test_input_is_not_mutated(self, response_payload: dict) -> None:
        mask_payload(response_payload, ["$.success[*].email"], Viewer(user_id=1))
        assert response_payload["success"][0]["email"] == "new@test.com"

    def test_owner_by_email_sees_clear_value(self, response_payload: dict) -> None:
        masked, _ = mask_payload(
            response_payload, ["$.success[*].email"], Viewer(user_id=1, email="NEW@test.com")
        )
        assert masked["success"][0]["email"] == "new@test.com"

    def test_owner_by_sibling_user_id_sees_clear_value(self, response_payload: dict) -> None:
        masked, _ = mask_payload(response_payload, ["$.success[*].email"], Viewer(user_id=7))
        assert masked["success"][1]["email"] == "owner@test.com"
        assert masked["success"][0]["email"] == "n**w@test.com"

    def test_privileged_viewer_sees_clear_values(self, response_payload: dict) -> None:
        masked, count = mask_payload(
            response_payload, ["$.success[*].email"], Viewer(user_id=1, privileged=True)
        )
        assert count == 0
        assert masked == response_payload

    def test_top_level_list(self) -> None:
        masked, count = mask_payload(
            [{"email": "hello@world.com"}, {"email": None}], ["$[*].email"], Viewer()
        )
        assert count == 1
        assert masked[0]["email"] == "h**o@world.com"
        assert masked[1]["email"] is None

    def test_missing_keys_are_skipped(self) -> None:
        masked, count = mask_payload({"other": 1}, ["$.success[*].email"], Viewer())
        assert count == 0
        assert masked == {"other": 1}

    def test_applying_twice_is_a_fixed_point(self, response_payload: dict) -> None:
        paths = ["$.success[*].email", "$.failed[*].email"]
        once, _ = mask_payload(response_payload, paths, Viewer())
        twice, count = mask_payload(once, paths, Viewer())
        assert twice == once
        assert count == 0


class TestRun:
    def test_run_success(self) -> None:
        result = run(MaskPayloadInput(payload={"email": "john.doe@example.com"}, paths=("$.email",)))
        assert result.success is True
        assert result.payload == {"email": "j**e@example.com"}
        assert result.masked_count == 1

    def test_run_invalid_path(self) -> None:
        result = run(MaskPayloadInput(payload={}, paths=("email",)))
        assert result.success is False
        assert result.errors[0].code == "invalid_path"
