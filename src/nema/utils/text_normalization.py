"""Нормализация сообщений об ошибках — замена волатильных данных плейсхолдерами.

Используется в кластеризации падений: сообщения, различающиеся только
встроенными идентификаторами, временем или адресами, попадают в один пример
кластера в одинаковом виде.
"""

from __future__ import annotations

import re

from nema.models.config import NormalizationConfig

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------

_UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.ASCII | re.IGNORECASE,
)
# sha1/md5 и прочие hex-идентификаторы длиной 32-40
_HEX_RE = re.compile(r"\b[0-9a-f]{32,40}\b", re.ASCII | re.IGNORECASE)
_LONG_NUMBER_RE = re.compile(r"\b\d{6,}\b", re.ASCII)

# ISO 8601: 2026-02-06T10:12:13, 2026-02-06T10:12:13.123Z
_ISO_DATETIME_RE = re.compile(r"\b\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d+)?Z?\b", re.ASCII)

_EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.ASCII)
_IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b", re.ASCII)
_IPV6_RE = re.compile(r"\b(?:[0-9A-Fa-f]{1,4}:){2,7}[0-9A-Fa-f]{1,4}\b", re.ASCII)
# Грубый шаблон телефонов (опциональный код страны), по умолчанию выключен
_PHONE_RE = re.compile(r"\b(?:\+?\d{1,3}[-\s]?)?(?:\d{3}[-\s]?){2}\d{4}\b", re.ASCII)
_URL_QUERY_VALUE_RE = re.compile(r"([?&])([^=&]+)=([^&#]*)", re.ASCII)


def _mask_query_value(match: re.Match[str]) -> str:
    return f"{match.group(1)}{match.group(2)}=<VAL>"


def normalize_failure_message(message: str, config: NormalizationConfig) -> str:
    """Заменить волатильные фрагменты сообщения плейсхолдерами.

    Порядок применения:
    - UUID и HEX до длинных чисел (иначе цифровые куски UUID станут <NUM>)
    - ISO-время до длинных чисел (доли секунды 2026-02-06T10:12:13.123456
      иначе превратились бы в <NUM>)
    - сетевые идентификаторы и контакты последними, они выключены по умолчанию

    Args:
        message: Исходное сообщение.
        config: Переключатели правил.

    Returns:
        Нормализованное сообщение. Пустая строка возвращается как есть.
    """
    if not message:
        return message

    out = message
    if config.strip_uuid:
        out = _UUID_RE.sub("<UUID>", out)
    if config.strip_hex:
        out = _HEX_RE.sub("<HEX>", out)
    if config.strip_iso_datetime:
        out = _ISO_DATETIME_RE.sub("<TIMESTAMP>", out)
    if config.strip_numbers_long:
        out = _LONG_NUMBER_RE.sub("<NUM>", out)
    if config.strip_email:
        out = _EMAIL_RE.sub("<EMAIL>", out)
    if config.strip_ipv4:
        out = _IPV4_RE.sub("<IPV4>", out)
    if config.strip_ipv6:
        out = _IPV6_RE.sub("<IPV6>", out)
    if config.strip_phone:
        out = _PHONE_RE.sub("<PHONE>", out)
    if config.strip_url_query_values:
        out = _URL_QUERY_VALUE_RE.sub(_mask_query_value, out)
    return out
