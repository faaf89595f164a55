import pytest

from pvmkit.compiler.settings import (
    Settings,
    _is_debug_mode,
    anchor_settings,
    get_global_settings,
    merge_settings,
)


def test_merge_settings():
    merged = merge_settings(Settings(contract_name="a"), Settings(debug=True))
    assert merged == Settings(contract_name="a", debug=True)

    # agreeing values are not a conflict
    assert merge_settings(Settings(debug=True), Settings(debug=True)).debug is True

    with pytest.raises(ValueError, match="contract-name"):
        merge_settings(Settings(contract_name="a"), Settings(contract_name="b"))


def test_merge_drops_compiler_version():
    merged = merge_settings(Settings(), Settings(compiler_version=">=0.1"))
    assert merged.compiler_version is None


def test_as_dict():
    settings = Settings(compiler_version="0.1", contract_name="token", debug=True)
    assert settings.as_dict() == {"contract_name": "token", "debug": True}
    assert Settings().as_dict() == {}


def test_anchor_settings():
    assert get_global_settings() is None
    assert not _is_debug_mode()
    with anchor_settings(Settings(debug=True)):
        assert _is_debug_mode()
        with anchor_settings(Settings()):
            assert not _is_debug_mode()
        assert _is_debug_mode()
    assert get_global_settings() is None


def test_settings_are_checked():
    with pytest.raises(AssertionError):
        Settings(debug="yes")
