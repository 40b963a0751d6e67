"""Unit tests for the SoharPortClient facade: mode binding and config surface."""

import logging
from unittest.mock import patch

import pytest

from app.integrations.sohar_port import (
    SoharPortClient,
    SoharPortConfigError,
)
from app.integrations.sohar_port.client import GatePassOperations, RealOperations
from app.integrations.sohar_port.mock import MockOperations


class TestModeBinding:

    def test_mock_mode_never_builds_a_transport(self):
        with patch("app.integrations.sohar_port.client.SoharPortTransport") as mock_transport:
            client = SoharPortClient({"use_mock": True}, mock_latency=0, env={})

        mock_transport.assert_not_called()
        assert client.is_mock_mode() is True
        assert isinstance(client.operations, MockOperations)
        assert isinstance(client.operations, GatePassOperations)

    def test_real_mode_binds_real_operations(self, real_env):
        client = SoharPortClient(env=real_env)
        assert client.is_mock_mode() is False
        assert isinstance(client.operations, RealOperations)

    def test_mock_mode_from_env(self):
        client = SoharPortClient(env={"SOHAR_PORT_MOCK_MODE": "true"}, mock_latency=0)
        assert client.is_mock_mode() is True

    def test_real_mode_without_key_fails_at_construction(self):
        with pytest.raises(SoharPortConfigError, match="SOHAR_PORT_API_KEY"):
            SoharPortClient(env={"SOHAR_PORT_API_BASE_URL": "https://sohar.test"})

    @pytest.mark.parametrize("name, value, field", [
        ("SOHAR_PORT_RETRY_DELAY", "-5", "retry_delay_ms"),
        ("SOHAR_PORT_TIMEOUT", "0", "timeout_ms"),
    ])
    def test_out_of_range_timing_fails_at_construction(self, real_env, name, value, field):
        real_env[name] = value
        with pytest.raises(SoharPortConfigError, match=field):
            SoharPortClient(env=real_env)

    def test_send_and_receive_groups(self, mock_client):
        assert set(vars(mock_client.send)) == {"create_gate_pass", "cancel_gate_pass"}
        assert set(vars(mock_client.receive)) == {
            "get_gate_pass", "list_gate_passes", "get_gate_pass_status",
        }


class TestConfigSurface:

    def test_get_config_returns_a_copy(self, real_env):
        client = SoharPortClient({"timeout_ms": 1234}, env=real_env)

        cfg = client.get_config()

        assert cfg.timeout_ms == 1234
        assert cfg.api_key == "test-key"
        assert cfg is not client.get_config()
        assert cfg == client.get_config()

    def test_config_is_resolved_once(self, real_env):
        client = SoharPortClient(env=real_env)
        real_env["SOHAR_PORT_API_KEY"] = "rotated"
        assert client.get_config().api_key == "test-key"

    def test_api_key_not_logged_on_init(self, real_env, caplog):
        with caplog.at_level(logging.INFO, logger="app.integrations.sohar_port.client"):
            SoharPortClient(env=real_env)
        assert "test-key" not in caplog.text
        assert "REAL" in caplog.text


class TestSeedMockData:

    def test_real_mode_seed_is_a_logged_no_op(self, real_env, caplog):
        client = SoharPortClient(env=real_env)

        with caplog.at_level(logging.WARNING):
            seeded = client.seed_mock_data()

        assert seeded == []
        assert "only be called in mock mode" in caplog.text

    def test_mock_mode_seed(self, mock_client):
        assert len(mock_client.seed_mock_data()) == 2
        assert mock_client.receive.list_gate_passes().pagination.total == 2
