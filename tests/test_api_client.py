from unittest.mock import patch, MagicMock

import pytest
import requests

from itinerary_logic.api_client import OSRMClient
from itinerary_logic.errors import RouteUnavailableError


def make_response(status_code=200, payload=None):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    mock_response.text = str(payload)
    return mock_response


def test_build_route_url_uses_lon_lat_order():
    client = OSRMClient(base_url="http://osrm.local/", profile="driving")
    url = client.build_route_url([75.85, 26.98], [75.82, 26.92])
    assert url == "http://osrm.local/route/v1/driving/75.85,26.98;75.82,26.92"


def test_route_success():
    client = OSRMClient(base_url="http://osrm.local", timeout=2)
    payload = {"code": "Ok", "routes": [{"distance": 10000.0, "duration": 1200.0}]}

    with patch('requests.get', return_value=make_response(200, payload)) as mock_get:
        route = client.route([75.85, 26.98], [75.82, 26.92])

    assert route == {"distance": 10000.0, "duration": 1200.0}
    mock_get.assert_called_once()
    _, kwargs = mock_get.call_args
    assert kwargs["params"] == {"overview": "false"}
    assert kwargs["timeout"] == 2


def test_route_non_200_raises():
    client = OSRMClient(base_url="http://osrm.local")
    with patch('requests.get', return_value=make_response(503, {"message": "busy"})):
        with pytest.raises(RouteUnavailableError) as excinfo:
            client.route([0, 0], [0, 1])
    assert excinfo.value.provider == "OSRM"


@pytest.mark.parametrize("error", [
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("refused"),
    requests.exceptions.TooManyRedirects("loop"),
])
def test_route_network_errors_raise(error):
    client = OSRMClient(base_url="http://osrm.local")
    with patch('requests.get', side_effect=error):
        with pytest.raises(RouteUnavailableError):
            client.route([0, 0], [0, 1])


@pytest.mark.parametrize("payload", [
    {"code": "NoRoute", "routes": []},
    {"code": "Ok", "routes": []},
    {"code": "Ok", "routes": [{"distance": "far"}]},
    ["not", "a", "dict"],
])
def test_route_malformed_payload_raises(payload):
    client = OSRMClient(base_url="http://osrm.local")
    with patch('requests.get', return_value=make_response(200, payload)):
        with pytest.raises(RouteUnavailableError):
            client.route([0, 0], [0, 1])


def test_route_non_json_body_raises():
    client = OSRMClient(base_url="http://osrm.local")
    response = make_response(200)
    response.json.side_effect = ValueError("no json")
    with patch('requests.get', return_value=response):
        with pytest.raises(RouteUnavailableError):
            client.route([0, 0], [0, 1])
