# Maps provider icon codes to the animation shown next to a history entry.

DEFAULT_ANIMATION = "sunny"

ANIMATIONS = frozenset({"sunny", "moon", "cloudy", "rain", "storm", "snow", "mist"})

ICON_ANIMATIONS = {
    "01d": "sunny",
    "01n": "moon",
    "02d": "cloudy", "02n": "cloudy",
    "03d": "cloudy", "03n": "cloudy",
    "04d": "cloudy", "04n": "cloudy",
    "09d": "rain", "09n": "rain",
    "10d": "rain", "10n": "rain",
    "11d": "storm", "11n": "storm",
    "13d": "snow", "13n": "snow",
    "50d": "mist", "50n": "mist",
}


def animation_for(icon_code: str | None) -> str:
    return ICON_ANIMATIONS.get(icon_code or "", DEFAULT_ANIMATION)
