import requests
import logging

from .config import Config
from .errors import RouteUnavailableError


class OSRMClient:
    """
    Client for an OSRM-compatible routing service.
    Only the route endpoint is used: one origin, one destination, no geometry.
    """

    def __init__(self, base_url=None, profile=None, timeout=None):
        """
        Initialize the routing client.

        timeout is in seconds and applies to both connect and read.
        """
        self.base_url = (base_url or Config.OSRM_BASE_URL).rstrip('/')
        self.profile = profile or Config.OSRM_PROFILE
        self.timeout = timeout if timeout is not None else Config.OSRM_TIMEOUT_MS / 1000
        self.headers = {
            "accept": "application/json",
            "User-Agent": "ItineraryLogic/1.0",
        }

    def build_route_url(self, origin, destination) -> str:
        """Coordinates are [lon, lat], which is also the order OSRM expects."""
        coordinates = f"{origin[0]},{origin[1]};{destination[0]},{destination[1]}"
        return f"{self.base_url}/route/v1/{self.profile}/{coordinates}"

    def route(self, origin, destination):
        """
        Query the route between two points.

        Returns a dict with 'distance' (meters) and 'duration' (seconds) for the
        first route. Raises RouteUnavailableError for network errors, non-200
        responses and payloads without a usable route.
        """
        url = self.build_route_url(origin, destination)
        params = {"overview": "false"}
        logging.debug(f"Requesting OSRM route: {url}")

        try:
            response = requests.get(url, params=params, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logging.warning(f"Timeout connecting to OSRM at {self.base_url}")
            raise RouteUnavailableError("OSRM request timed out", cause=e, provider="OSRM")
        except requests.exceptions.ConnectionError as e:
            logging.warning(f"Connection error with OSRM at {self.base_url}: {str(e)}")
            raise RouteUnavailableError("OSRM connection failed", cause=e, provider="OSRM")
        except requests.exceptions.RequestException as e:
            logging.warning(f"Request error with OSRM at {self.base_url}: {str(e)}")
            raise RouteUnavailableError("OSRM request failed", cause=e, provider="OSRM")

        if response.status_code != 200:
            response_text = response.text[:200]  # Limit to first 200 chars to avoid huge logs
            logging.warning(f"OSRM returned {response.status_code}: {response_text}")
            raise RouteUnavailableError(f"OSRM returned HTTP {response.status_code}", provider="OSRM")

        try:
            data = response.json()
        except ValueError as e:
            logging.warning("OSRM returned a non-JSON body")
            raise RouteUnavailableError("OSRM response is not JSON", cause=e, provider="OSRM")

        if not isinstance(data, dict) or data.get("code") != "Ok":
            code = data.get("code") if isinstance(data, dict) else None
            logging.warning(f"OSRM route unavailable, code={code}")
            raise RouteUnavailableError(f"OSRM_ROUTE_UNAVAILABLE ({code})", provider="OSRM")

        routes = data.get("routes") or []
        if not routes:
            logging.warning("OSRM response contains no routes")
            raise RouteUnavailableError("OSRM_ROUTE_UNAVAILABLE (no routes)", provider="OSRM")

        first = routes[0]
        try:
            distance = float(first["distance"])
            duration = float(first["duration"])
        except (KeyError, TypeError, ValueError) as e:
            logging.warning(f"Malformed OSRM route: {first}")
            raise RouteUnavailableError("OSRM route is malformed", cause=e, provider="OSRM")

        if distance < 0 or duration < 0:
            raise RouteUnavailableError("OSRM route has negative values", provider="OSRM")

        logging.debug(f"OSRM route: {distance:.0f} m, {duration:.0f} s")
        return {"distance": distance, "duration": duration}
