"""Pytest configuration and fixtures for Schlüter thermostat tests."""

from datetime import UTC, datetime
from typing import Any

import pytest

from custom_components.schluter_thermostat.models import (
    Session,
    ThermostatRegistry,
    ThermostatState,
)


def create_thermostat(
    thermostat_id: int = 1001,
    serial_number: str | None = "SN1001",
    online: bool = True,
    **overrides: Any,
) -> dict[str, Any]:
    """Create a raw vendor thermostat dictionary.

    Args:
        thermostat_id: Vendor thermostat id.
        serial_number: Serial number, or None to omit it.
        online: Online flag.
        **overrides: Additional or replacement vendor fields.

    Returns:
        A dictionary shaped like a GroupContents thermostat.

    """
    thermostat: dict[str, Any] = {
        "Id": thermostat_id,
        "ThermostatName": "Bathroom",
        "Online": online,
        "Heating": True,
        "RoomTemperature": 2150,
        "FloorTemperature": 2675,
        "RegulationMode": 1,
        "ManualModeSetpoint": 2100,
        "ComfortSetpoint": 2300,
        "ComfortEndTime": "2024-01-15T10:00:00Z",
        "BoostEndTime": "2024-01-15T12:30:00",
        "VacationEnabled": False,
        "VacationBeginDay": "2024-02-01",
        "VacationEndDay": "2024-02-10",
        "VacationTemperature": 1200,
        "TimeZone": 3600,
    }
    if serial_number is not None:
        thermostat["SerialNumber"] = serial_number
    thermostat.update(overrides)
    return thermostat


@pytest.fixture
def sample_session() -> Session:
    """Fixture providing an authenticated session."""
    return Session(token="session-1", created_at=datetime.now(UTC))


@pytest.fixture
def sample_sign_in_response() -> dict[str, Any]:
    """Fixture providing a successful SignIn response."""
    return {"ErrorCode": 0, "SessionId": "session-1"}


@pytest.fixture
def sample_group_contents_response() -> dict[str, Any]:
    """Fixture providing a GroupContents response with two thermostats.

    Returns:
        A dictionary with one group holding two thermostats.

    """
    return {
        "ErrorCode": 0,
        "GroupContents": [
            {
                "GroupId": 501,
                "GroupName": "Ground floor",
                "Thermostats": [
                    create_thermostat(),
                    create_thermostat(
                        1002,
                        "SN1002",
                        online=False,
                        ThermostatName="Kitchen",
                    ),
                ],
            },
        ],
    }


@pytest.fixture
def sample_update_response() -> dict[str, Any]:
    """Fixture providing a successful UpdateThermostat response."""
    return {"ErrorCode": 0}


@pytest.fixture
def registry() -> ThermostatRegistry:
    """Fixture providing a registry with one online thermostat."""
    thermostat_registry = ThermostatRegistry()
    thermostat_registry.upsert(
        "1001",
        online=True,
        group_id="501",
        serial_number="SN1001",
        name="Bathroom",
        timezone_offset=3600,
    )
    return thermostat_registry


@pytest.fixture
def sample_state() -> ThermostatState:
    """Fixture providing the polled state of an online thermostat."""
    return ThermostatState(
        thermostat_id="1001",
        group_id="501",
        group_name="Ground floor",
        serial_number="SN1001",
        name="Bathroom",
        online=True,
        heating=True,
        room_temperature=21.5,
        floor_temperature=26.75,
        manual_setpoint=21.0,
        comfort_setpoint=23.0,
        regulation_mode=3,
        comfort_end_time="2024-01-15T11:00:00",
        boost_end_time="",
        vacation_enabled=False,
        vacation_begin="2024-02-01",
        vacation_end="",
        vacation_temperature=12.0,
        timezone_offset=3600,
    )
