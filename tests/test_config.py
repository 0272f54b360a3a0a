from pathlib import Path

import pytest

from chatmark.core.config import RenderMode, RenderOptions, SessionConfig, load_session_config
from chatmark.core.exceptions import ConfigurationError


def test_session_defaults() -> None:
    config = SessionConfig()
    assert config.enable_artifacts is True
    assert config.enable_code_fold is True
    assert config.fold_threshold == 400
    assert config.artifact_debounce_ms == 600
    assert config.lookahead_margin == 200
    assert config.visibility_threshold == pytest.approx(0.1)


def test_session_config_is_read_only() -> None:
    config = SessionConfig()
    with pytest.raises(Exception):  # noqa: B017 - pydantic raises ValidationError
        config.enable_artifacts = False  # type: ignore[misc]


def test_mask_disabling_feature_wins() -> None:
    config = SessionConfig()
    merged = config.merged({"enable_artifacts": False, "enable_code_fold": True})

    assert merged.enable_artifacts is False
    assert merged.enable_code_fold is True
    assert config.enable_artifacts is True


def test_mask_cannot_reenable_feature() -> None:
    config = SessionConfig(enable_code_fold=False)
    assert config.merged({"enable_code_fold": True}).enable_code_fold is False
    assert config.merged(None) is config


@pytest.mark.parametrize(
    ("options", "count", "expected"),
    [
        ({"loading": True, "streaming": True}, 3, RenderMode.LOADING),
        ({"streaming": True, "immediately_render": True}, 3, RenderMode.STREAMING),
        ({"immediately_render": True}, 3, RenderMode.IMMEDIATE),
        ({}, 3, RenderMode.STATIC_LAZY),
        ({}, 1, RenderMode.SINGLE),
        ({}, 0, RenderMode.SINGLE),
    ],
)
def test_mode_resolution(options: dict[str, bool], count: int, expected: RenderMode) -> None:
    assert RenderOptions(**options).resolve_mode(count) is expected


def test_render_options_reject_unknown_keys() -> None:
    with pytest.raises(ValueError):
        RenderOptions(unknown=True)  # type: ignore[call-arg]


def test_load_session_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "chatmark.yml"
    path.write_text("enable_artifacts: false\nfold_threshold: 250\n", encoding="utf-8")

    config = load_session_config(path)

    assert config.enable_artifacts is False
    assert config.fold_threshold == 250


def test_missing_config_file_yields_defaults(tmp_path: Path) -> None:
    assert load_session_config(tmp_path / "absent.yml") == SessionConfig()
    assert load_session_config(None) == SessionConfig()


def test_invalid_config_raises_configuration_error(tmp_path: Path) -> None:
    path = tmp_path / "bad.yml"
    path.write_text("fold_threshold: -4\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_session_config(path)

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="must contain a mapping"):
        load_session_config(path)
