"""
Error types shared by the weather client, the payload decoder and the history store.
Every WeatherError carries a message that is shown to the user as-is.
"""


class WeatherError(Exception):
    message = "Error: weather lookup failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class InvalidInput(WeatherError):
    message = "Invalid city name"


class TransportError(WeatherError):
    message = "Error: network request failed"


class NotFound(WeatherError):
    message = "City not found. Please check spelling."


class EmptyResponse(WeatherError):
    message = "Error: Data is invalid"


class DecodeError(WeatherError):
    message = "Error: could not decode weather data"


class StorageError(RuntimeError):
    """Raised by the history store when the database rejects an operation."""
