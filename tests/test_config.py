"""Tests for perch.config — DispatchConfig."""

import pytest

from perch.config import DEFAULT_CONFIG, DispatchConfig
from perch.errors import ConfigurationError


class TestDispatchConfig:
    def test_defaults(self) -> None:
        config = DispatchConfig()
        assert config.default_key == "default"
        assert config.image_suffix == ".x"
        assert config.cancel_parameter == "perch.cancel"
        assert config.cancelled_method == "cancelled"
        assert config.unspecified_method == "unspecified"
        assert config.reserved_methods == ("execute", "perform")

    def test_shared_default_instance(self) -> None:
        assert DEFAULT_CONFIG == DispatchConfig()

    def test_frozen(self) -> None:
        config = DispatchConfig()
        with pytest.raises(AttributeError):
            config.default_key = "other"  # type: ignore[misc]

    @pytest.mark.parametrize("field", ["default_key", "image_suffix", "cancel_parameter"])
    def test_empty_values_rejected(self, field: str) -> None:
        with pytest.raises(ConfigurationError, match=field):
            DispatchConfig(**{field: ""})
