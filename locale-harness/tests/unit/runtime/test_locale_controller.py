from __future__ import annotations

import shlex

import pytest
from fakes import GETPROP_DE, GETPROP_NO_LOCALE, FakeChannel

from locale_harness.runtime.android.device_channel import DeviceChannelError
from locale_harness.runtime.android.locale import (
    SET_LOCALE_ACTION,
    SET_LOCALE_EXTRA,
    InvalidLocaleError,
    LocaleCode,
    LocaleController,
    coerce_locale,
    list_locales,
    parse_locale_property,
)


def test_get_locale_reads_persist_sys_locale() -> None:
    channel = FakeChannel(outputs={"getprop": GETPROP_DE})
    ctr = LocaleController(channel)

    assert ctr.get_locale("emulator-5554") == "de-DE"
    assert channel.calls == [("emulator-5554", "getprop")]


def test_get_locale_absent_when_no_locale_property() -> None:
    ctr = LocaleController(FakeChannel(outputs={"getprop": GETPROP_NO_LOCALE}))
    assert ctr.get_locale(None) is None


def test_get_locale_is_stable_without_intervening_set() -> None:
    ctr = LocaleController(FakeChannel(outputs={"getprop": GETPROP_DE}))
    assert ctr.get_locale("s") == ctr.get_locale("s")


def test_get_locale_degrades_to_none_on_channel_error() -> None:
    class BrokenChannel:
        def send(self, target=None, command=None):
            raise DeviceChannelError("device offline")

    assert LocaleController(BrokenChannel()).get_locale("s") is None


def test_parse_locale_property_uses_first_matching_line_only() -> None:
    text = "[persist.sys.language]: garbage\n[persist.sys.locale]: [fr-FR]\n"
    assert parse_locale_property(text) is None


def test_parse_locale_property_matches_language_key() -> None:
    assert parse_locale_property("[persist.sys.language]: [ja]\n") == "ja"


def test_parse_locale_property_rejects_empty_brackets_and_empty_input() -> None:
    assert parse_locale_property("[persist.sys.locale]: []") is None
    assert parse_locale_property("") is None


def test_set_locale_broadcasts_intent_with_locale_extra() -> None:
    channel = FakeChannel()
    LocaleController(channel).set_locale("emulator-5554", "ja-JP")

    assert len(channel.calls) == 1
    target, cmd = channel.calls[0]
    assert target == "emulator-5554"
    assert shlex.split(cmd) == [
        "am",
        "broadcast",
        "-a",
        SET_LOCALE_ACTION,
        "--es",
        SET_LOCALE_EXTRA,
        "ja-JP",
    ]


def test_set_locale_appends_receiver_package_when_configured() -> None:
    channel = FakeChannel()
    LocaleController(channel, receiver="com.android.customlocale2").set_locale(
        None, LocaleCode.DE
    )
    assert shlex.split(channel.calls[0][1])[-2:] == ["de", "com.android.customlocale2"]


@pytest.mark.parametrize("bad", ["xx", "de_DE", "", "EN-us", "klingon"])
def test_set_locale_rejects_unsupported_codes_without_device_command(bad: str) -> None:
    channel = FakeChannel()
    with pytest.raises(InvalidLocaleError):
        LocaleController(channel).set_locale("s", bad)
    assert channel.calls == []


def test_set_locale_swallows_channel_error() -> None:
    class BrokenChannel:
        def __init__(self) -> None:
            self.calls = 0

        def send(self, target=None, command=None):
            self.calls += 1
            raise DeviceChannelError("device offline")

    channel = BrokenChannel()
    LocaleController(channel).set_locale("s", "en")
    assert channel.calls == 1


def test_coerce_locale_accepts_enum_and_padded_string() -> None:
    assert coerce_locale(LocaleCode.KO_KR) is LocaleCode.KO_KR
    assert coerce_locale(" zh-TW ") is LocaleCode.ZH_TW


def test_list_locales_covers_every_supported_code() -> None:
    infos = list_locales()
    assert {i.code for i in infos} == set(LocaleCode)
    de = next(i for i in infos if i.code is LocaleCode.DE)
    assert de.to_dict() == {"code": "de", "english_name": "German", "native_name": "Deutsch"}
