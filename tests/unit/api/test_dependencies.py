"""Behavior tests for API dependency injection."""

from unittest.mock import Mock

import pytest
from fastapi import FastAPI, Request, WebSocket

from fix_trade_sim.api.dependencies import (
    get_allocation_config,
    get_connection_registry,
    get_fix_config,
    get_workflow_service,
)
from fix_trade_sim.infrastructure.config.models import AllocationConfig, FixConfig
from fix_trade_sim.infrastructure.messaging.connection_registry import (
    ConnectionRegistry,
)
from fix_trade_sim.services.trade_workflow import TradeWorkflowService


def connection_with_state(connection_type, **state):
    mock_state = Mock(spec=list(state))
    for name, value in state.items():
        setattr(mock_state, name, value)

    mock_app = Mock(spec=FastAPI)
    mock_app.state = mock_state

    connection = Mock(spec=connection_type)
    connection.app = mock_app
    return connection


class TestWorkflowServiceDependency:
    """Test workflow service injection for FastAPI."""

    def test_get_service_from_app_state(self):
        """Test retrieving the service from app state.

        Given - FastAPI app with a workflow service in state
        When - Dependency function is called
        Then - Returns the service from app state
        """
        # Given - Mock request whose app holds the service
        service = Mock(spec=TradeWorkflowService)
        request = connection_with_state(Request, workflow_service=service)

        # When - Get service via dependency
        result = get_workflow_service(request)

        # Then - Same object
        assert result is service

    def test_service_from_websocket(self):
        """Test that the same dependency works on a WebSocket scope."""
        service = Mock(spec=TradeWorkflowService)
        websocket = connection_with_state(WebSocket, workflow_service=service)

        assert get_workflow_service(websocket) is service

    def test_missing_service_raises_error(self):
        """Test proper error when startup did not run.

        Given - FastAPI app without a service in state
        When - Dependency function is called
        Then - AttributeError is raised
        """
        # Given - Empty state
        request = connection_with_state(Request, some_other_attr=None)

        # When/Then - AttributeError
        with pytest.raises(AttributeError):
            get_workflow_service(request)


class TestConfigDependencies:
    def test_config_objects_from_state(self):
        fix_config = FixConfig()
        allocation_config = AllocationConfig(percent_tolerance=0.5)
        request = connection_with_state(
            Request, fix_config=fix_config, allocation_config=allocation_config
        )

        assert get_fix_config(request) is fix_config
        assert get_allocation_config(request) is allocation_config

    def test_connection_registry_from_state(self):
        registry = ConnectionRegistry()
        websocket = connection_with_state(WebSocket, connection_registry=registry)

        assert get_connection_registry(websocket) is registry
