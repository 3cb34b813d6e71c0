"""Тесты нормализации сообщений об ошибках."""

from __future__ import annotations

from nema.models.config import NormalizationConfig
from nema.utils.text_normalization import normalize_failure_message

DEFAULTS = NormalizationConfig()
ALL_ON = NormalizationConfig.model_validate({name: True for name in NormalizationConfig.model_fields})


def test_uuid_is_replaced_before_long_numbers() -> None:
    msg = "order 123e4567-e89b-12d3-a456-426614174000 not found"
    assert normalize_failure_message(msg, DEFAULTS) == "order <UUID> not found"


def test_uppercase_uuid_is_replaced() -> None:
    msg = "id=123E4567-E89B-12D3-A456-426614174000"
    assert normalize_failure_message(msg, DEFAULTS) == "id=<UUID>"


def test_hex_runs_of_32_to_40_chars() -> None:
    sha1 = "a" * 40
    md5 = "0123456789abcdef0123456789abcdef"
    short = "deadbeef"
    msg = f"{sha1} {md5} {short}"
    assert normalize_failure_message(msg, DEFAULTS) == "<HEX> <HEX> deadbeef"


def test_long_digit_runs_become_num_short_ones_stay() -> None:
    msg = "user 1234567 got 404 after 12345"
    assert normalize_failure_message(msg, DEFAULTS) == "user <NUM> got 404 after 12345"


def test_iso_timestamp_is_replaced_whole() -> None:
    msg = "expired at 2026-02-06T10:12:13.123456Z, retry"
    assert normalize_failure_message(msg, DEFAULTS) == "expired at <TIMESTAMP>, retry"


def test_optional_rules_are_off_by_default() -> None:
    msg = "mail bob@example.com from 10.0.0.1 via /x?token=abc"
    assert normalize_failure_message(msg, DEFAULTS) == msg


def test_optional_rules_when_enabled() -> None:
    assert normalize_failure_message("mail bob@example.com", ALL_ON) == "mail <EMAIL>"
    assert normalize_failure_message("from 10.0.0.1", ALL_ON) == "from <IPV4>"
    assert normalize_failure_message("addr fe80:0:0:0:202:b3ff:fe1e:8329", ALL_ON) == "addr <IPV6>"
    assert normalize_failure_message("call 555-123-4567", ALL_ON) == "call <PHONE>"


def test_url_query_values_are_masked_keys_kept() -> None:
    msg = "GET /users?page=2&token=abc#frag"
    assert normalize_failure_message(msg, ALL_ON) == "GET /users?page=<VAL>&token=<VAL>#frag"


def test_disabled_config_keeps_message_unchanged() -> None:
    msg = "order 123e4567-e89b-12d3-a456-426614174000 at 2026-02-06T10:12:13Z id 99999999"
    assert normalize_failure_message(msg, NormalizationConfig.disabled()) == msg


def test_each_rule_toggles_independently() -> None:
    config = NormalizationConfig(strip_numbers_long=False)
    msg = "id 1234567 at 2026-02-06T10:12:13"
    assert normalize_failure_message(msg, config) == "id 1234567 at <TIMESTAMP>"


def test_empty_message_is_returned_as_is() -> None:
    assert normalize_failure_message("", DEFAULTS) == ""


def test_ids_adjacent_to_cjk_text_are_replaced() -> None:
    sha1 = "0123456789abcdef0123456789abcdef01234567"

    assert normalize_failure_message("订单1234567不存在", DEFAULTS) == "订单<NUM>不存在"
    assert normalize_failure_message(f"签名{sha1}无效", DEFAULTS) == "签名<HEX>无效"


def test_non_ascii_digits_are_left_alone() -> None:
    msg = "ID １２３４５６７"
    assert normalize_failure_message(msg, DEFAULTS) == msg
