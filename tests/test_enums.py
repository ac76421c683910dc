import pytest

from deckbuddy.enums import AppState, PcState, SteamUiMode, StreamState


def test_steam_ui_mode_keys_in_order():
    assert list(SteamUiMode) == [
        SteamUiMode("Unknown"),
        SteamUiMode("Desktop"),
        SteamUiMode("BigPicture"),
    ]


def test_app_state_keys_in_order():
    assert list(AppState) == [
        AppState("Stopped"),
        AppState("Running"),
        AppState("Updating"),
    ]


def test_pc_state_keys_in_order():
    assert list(PcState) == [
        PcState("Normal"),
        PcState("Restarting"),
        PcState("ShuttingDown"),
        PcState("Suspending"),
        PcState("Transient"),
    ]


def test_stream_state_lookup_by_key():
    assert StreamState("StreamEnding") is StreamState.STREAM_ENDING


@pytest.mark.parametrize("enum_type", [SteamUiMode, AppState, PcState, StreamState])
def test_round_trip_through_key(enum_type):
    for member in enum_type:
        assert enum_type(member.value) is member


def test_unknown_key_is_rejected():
    with pytest.raises(ValueError):
        StreamState("Paused")