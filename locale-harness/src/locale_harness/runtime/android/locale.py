"""Device locale get/set over the adb shell channel."""

from __future__ import annotations

import logging
import re
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from locale_harness.runtime.android.device_channel import (
    DEFAULT_COMMAND,
    DeviceChannel,
    DeviceChannelError,
)

logger = logging.getLogger(__name__)

SET_LOCALE_ACTION = "com.android.intent.action.SET_LOCALE"
SET_LOCALE_EXTRA = "com.android.intent.extra.LOCALE"

LOCALE_PROPERTY_KEYS = ("persist.sys.locale", "persist.sys.language")

_PROPERTY_VALUE_RE = re.compile(r":\s+\[([^\]]+)\]")


class InvalidLocaleError(ValueError):
    """Raised for locale codes outside the supported set."""


class LocaleCode(str, Enum):
    EN = "en"
    DE = "de"
    FR = "fr"
    ES = "es"
    IT = "it"
    JA = "ja"
    KO = "ko"
    ZH = "zh"
    PT = "pt"
    RU = "ru"
    NL = "nl"
    SV = "sv"
    EN_US = "en-US"
    EN_GB = "en-GB"
    DE_DE = "de-DE"
    FR_FR = "fr-FR"
    ES_ES = "es-ES"
    IT_IT = "it-IT"
    JA_JP = "ja-JP"
    KO_KR = "ko-KR"
    ZH_CN = "zh-CN"
    ZH_TW = "zh-TW"
    PT_BR = "pt-BR"
    RU_RU = "ru-RU"


@dataclass(frozen=True)
class LocaleInfo:
    code: LocaleCode
    english_name: str
    native_name: str

    def to_dict(self) -> dict:
        return {
            "code": self.code.value,
            "english_name": self.english_name,
            "native_name": self.native_name,
        }


_LOCALE_NAMES = {
    LocaleCode.EN: ("English", "English"),
    LocaleCode.DE: ("German", "Deutsch"),
    LocaleCode.FR: ("French", "français"),
    LocaleCode.ES: ("Spanish", "español"),
    LocaleCode.IT: ("Italian", "italiano"),
    LocaleCode.JA: ("Japanese", "日本語"),
    LocaleCode.KO: ("Korean", "한국어"),
    LocaleCode.ZH: ("Chinese", "中文"),
    LocaleCode.PT: ("Portuguese", "português"),
    LocaleCode.RU: ("Russian", "русский"),
    LocaleCode.NL: ("Dutch", "Nederlands"),
    LocaleCode.SV: ("Swedish", "svenska"),
    LocaleCode.EN_US: ("English (United States)", "English (United States)"),
    LocaleCode.EN_GB: ("English (United Kingdom)", "English (United Kingdom)"),
    LocaleCode.DE_DE: ("German (Germany)", "Deutsch (Deutschland)"),
    LocaleCode.FR_FR: ("French (France)", "français (France)"),
    LocaleCode.ES_ES: ("Spanish (Spain)", "español (España)"),
    LocaleCode.IT_IT: ("Italian (Italy)", "italiano (Italia)"),
    LocaleCode.JA_JP: ("Japanese (Japan)", "日本語 (日本)"),
    LocaleCode.KO_KR: ("Korean (Korea)", "한국어 (대한민국)"),
    LocaleCode.ZH_CN: ("Chinese (China)", "中文 (中国)"),
    LocaleCode.ZH_TW: ("Chinese (Taiwan)", "中文 (台灣)"),
    LocaleCode.PT_BR: ("Portuguese (Brazil)", "português (Brasil)"),
    LocaleCode.RU_RU: ("Russian (Russia)", "русский (Россия)"),
}


def list_locales() -> List[LocaleInfo]:
    return [
        LocaleInfo(code=code, english_name=names[0], native_name=names[1])
        for code, names in _LOCALE_NAMES.items()
    ]


def coerce_locale(value: Union[str, LocaleCode]) -> LocaleCode:
    if isinstance(value, LocaleCode):
        return value
    try:
        return LocaleCode(str(value).strip())
    except ValueError:
        supported = ", ".join(code.value for code in LocaleCode)
        raise InvalidLocaleError(
            f"unsupported locale code: {value!r} (supported: {supported})"
        ) from None


def parse_locale_property(text: str) -> Optional[str]:
    """Return the bracketed value of the first locale property line in `text`.

    Only the first line carrying a locale key is considered; if that line does
    not look like `[key]: [value]`, the result is None.
    """

    for line in (text or "").splitlines():
        if not any(key in line for key in LOCALE_PROPERTY_KEYS):
            continue
        m = _PROPERTY_VALUE_RE.search(line)
        return m.group(1) if m else None
    return None


def build_set_locale_command(code: LocaleCode, *, receiver: Optional[str] = None) -> str:
    parts = ["am", "broadcast", "-a", SET_LOCALE_ACTION, "--es", SET_LOCALE_EXTRA, code.value]
    if receiver:
        parts.append(receiver)
    return " ".join(shlex.quote(p) for p in parts)


class LocaleController:
    """Reads and sets the device locale through a DeviceChannel."""

    def __init__(self, channel: DeviceChannel, *, receiver: Optional[str] = None) -> None:
        self._channel = channel
        self._receiver = receiver

    def get_locale(self, target: Optional[str] = None) -> Optional[str]:
        try:
            text = self._channel.send(target, DEFAULT_COMMAND)
        except DeviceChannelError as e:
            logger.warning("locale query failed (device=%s): %s", target, e)
            return None
        value = parse_locale_property(text)
        logger.debug("device=%s locale=%s", target, value)
        return value

    def set_locale(self, target: Optional[str], locale: Union[str, LocaleCode]) -> None:
        """Broadcast a locale change to the device.

        Fire-and-forget: the broadcast output is not inspected and the new
        locale is not read back. Call `get_locale` to verify.

        Raises:
            InvalidLocaleError: `locale` is not a supported code. No command
                is sent in that case.
        """

        code = coerce_locale(locale)
        command = build_set_locale_command(code, receiver=self._receiver)
        logger.info("setting locale %s (device=%s)", code.value, target)
        try:
            self._channel.send(target, command)
        except DeviceChannelError as e:
            logger.warning("locale broadcast failed (device=%s): %s", target, e)
