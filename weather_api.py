import logging

import requests

from errors import DecodeError, EmptyResponse, InvalidInput, NotFound, TransportError
from forecast import WeatherRecord, decode_weather

logger = logging.getLogger(__name__)

BASE_URL = "https://api.openweathermap.org"
WEATHER_PATH = "/data/2.5/weather"


# Checks a city name can go into the `q` query parameter; requests does the encoding.
def validate_city(city) -> str:
    if not isinstance(city, str) or not city.strip():
        raise InvalidInput()
    try:
        city.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidInput() from e
    return city.strip()


# User-facing text for a failed request. Exception text from requests carries the
# request URL, api key included, so it is never shown or logged.
def _transport_message(exc) -> str:
    if isinstance(exc, requests.Timeout):
        return "Error: The request timed out."
    if isinstance(exc, requests.ConnectionError):
        return "Error: Could not connect to the weather service."
    return TransportError.message


class WeatherClient:
    """
    Client for the provider's current-weather endpoint.
    Every fetch returns a WeatherRecord or raises exactly one WeatherError subclass;
    nothing is cached and failed calls are not retried.
    """

    def __init__(self, api_key: str, base_url: str = BASE_URL, timeout: float | None = None, http=None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # anything with a requests-style get(); the module itself by default
        self.http = http or requests

    @property
    def url(self) -> str:
        return f"{self.base_url}{WEATHER_PATH}"

    def fetch_by_city(self, city: str) -> WeatherRecord:
        return self._get_weather({"q": validate_city(city)})

    def fetch_by_coordinates(self, latitude: float, longitude: float) -> WeatherRecord:
        return self._get_weather({"lat": float(latitude), "lon": float(longitude)})

    def _get_weather(self, params: dict) -> WeatherRecord:
        params = dict(params, appid=self.api_key)
        try:
            response = self.http.get(self.url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Weather request to %s failed: %s", self.base_url, type(e).__name__)
            raise TransportError(_transport_message(e)) from e

        # 404 is reported before the body is looked at
        if response.status_code == 404:
            raise NotFound()
        if response.status_code >= 400:
            raise TransportError(f"Error: provider returned HTTP {response.status_code}{_provider_message(response)}")

        body = response.content
        if not body or not body.strip():
            raise EmptyResponse()

        try:
            return decode_weather(body)
        except DecodeError:
            logger.warning("Could not decode weather payload from %s", self.base_url, exc_info=True)
            raise


# Appends the provider's own error text, e.g. "Invalid API key", when the body carries one.
def _provider_message(response) -> str:
    try:
        message = response.json().get("message")
    except (ValueError, AttributeError):
        return ""
    return f" ({message})" if message else ""
