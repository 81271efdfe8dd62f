"""Tests for config/models.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from codeweave.config.models import (
    CodeWeaveConfig,
    DeprecationConfig,
    DiscoveryConfig,
    ExclusionMode,
    LimitsConfig,
    LogOutputConfig,
    RenameMode,
    WeaveConfig,
)


class TestDefaults:
    """Built-in defaults."""

    def test_root_config_has_every_section(self) -> None:
        config = CodeWeaveConfig()

        assert config.logging.level == "WARNING"
        assert config.discovery.extra_excludes == []
        assert config.weave.excluded_classes == []
        assert config.deprecation.decorators == ["deprecated"]
        assert config.limits.ancestor_walk_max_depth > 0

    def test_interface_bases_cover_abc_and_protocol(self) -> None:
        bases = DiscoveryConfig().interface_bases

        assert "abc.ABC" in bases
        assert "typing.Protocol" in bases

    def test_modes_accept_plain_strings(self) -> None:
        assert WeaveConfig(exclusion_mode="any").exclusion_mode == ExclusionMode.ANY
        assert DeprecationConfig(rename_mode="resolved").rename_mode == RenameMode.RESOLVED


class TestValidation:
    """Field validators."""

    def test_relative_log_file_rejected(self) -> None:
        with pytest.raises(ValidationError, match="absolute"):
            LogOutputConfig(destination="logs/out.log")

    def test_stream_destinations_accepted(self) -> None:
        assert LogOutputConfig(destination="stdout").destination == "stdout"

    def test_unknown_exclusion_mode_rejected(self) -> None:
        with pytest.raises(ValidationError):
            WeaveConfig(exclusion_mode="some")

    def test_non_positive_depth_rejected(self) -> None:
        with pytest.raises(ValidationError, match="positive"):
            LimitsConfig(ancestor_walk_max_depth=-1)
