"""
Вспомогательные функции: длительности, JID, упоминания, время.
"""
import datetime
import re
from typing import List, Optional

import pytz

USER_SERVER = "s.whatsapp.net"
GROUP_SERVER = "g.us"

# Единицы длительности в секундах
DURATION_UNITS = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 604800,
}

_DURATION_RE = re.compile(r"^(\d+)([smhdw])$", re.IGNORECASE)
_MENTION_RE = re.compile(r"@(\d{5,16})")


def parse_duration(text: str) -> Optional[int]:
    """
    Разбирает строку вида 10m, 2h, 1d, 1w в миллисекунды.
    Возвращает None, если строка не распознана или длительность нулевая.
    """
    if not text:
        return None
    match = _DURATION_RE.match(text.strip())
    if not match:
        return None
    value = int(match.group(1))
    if value <= 0:
        return None
    return value * DURATION_UNITS[match.group(2).lower()] * 1000


def format_duration(ms: int) -> str:
    """Человекочитаемая длительность: 1d 2h 3m 4s"""
    seconds = max(0, int(ms) // 1000)
    if seconds == 0:
        return "0s"

    parts = []
    for unit, size in (("d", 86400), ("h", 3600), ("m", 60), ("s", 1)):
        amount, seconds = divmod(seconds, size)
        if amount:
            parts.append(f"{amount}{unit}")
    return " ".join(parts)


def format_uptime(seconds: float) -> str:
    return format_duration(int(seconds * 1000))


def phone_to_jid(phone: str) -> str:
    """+1 (555) 123-4567 -> 15551234567@s.whatsapp.net"""
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValueError(f"Invalid phone number: {phone!r}")
    return f"{digits}@{USER_SERVER}"


def jid_to_phone(jid: str) -> str:
    user = jid.split("@", 1)[0]
    # Отбрасываем суффикс устройства: 15551234567:12@s.whatsapp.net
    return "+" + user.split(":", 1)[0]


def normalize_jid(jid: str) -> str:
    """Убирает суффикс устройства из JID"""
    if "@" not in jid:
        return jid
    user, server = jid.split("@", 1)
    return f"{user.split(':', 1)[0]}@{server}"


def is_group_jid(jid: str) -> bool:
    return jid.endswith("@" + GROUP_SERVER)


def mentions_from_text(text: str) -> List[str]:
    """Находит упоминания вида @15551234567 и возвращает JID без повторов"""
    result = []
    for number in _MENTION_RE.findall(text or ""):
        jid = f"{number}@{USER_SERVER}"
        if jid not in result:
            result.append(jid)
    return result


def mention_tag(jid: str) -> str:
    """Текст упоминания для сообщения: @15551234567"""
    return "@" + jid.split("@", 1)[0].split(":", 1)[0]


def format_timestamp(ts: int, timezone: str = "UTC", fmt: str = "%Y-%m-%d %H:%M") -> str:
    """Форматирует UNIX timestamp в заданной временной зоне"""
    tz = pytz.timezone(timezone)
    dt = datetime.datetime.fromtimestamp(ts, tz=pytz.utc).astimezone(tz)
    return dt.strftime(fmt)
