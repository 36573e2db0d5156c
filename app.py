import os
from functools import partial
from datetime import timedelta

from flask import Flask, current_app, flash, redirect, render_template, request, url_for

import weather_api
from animations import animation_for
from errors import StorageError, WeatherError
from forecast import format_celsius, format_observed, format_saved, icon_url
from history import HistoryStore
from models import db

# Settings read from the environment; anything passed to create_app(config=...) wins.
def _env_config():
    timeout = os.environ.get("WEATHER_HTTP_TIMEOUT", "").strip()
    return {
        "SECRET_KEY": os.environ.get("SECRET_KEY", "dev-secret"),
        "SQLALCHEMY_DATABASE_URI": os.environ.get("DATABASE_URL", "sqlite:///weather.db"),
        "SQLALCHEMY_TRACK_MODIFICATIONS": False,
        "OPENWEATHER_API_KEY": os.environ.get("OPENWEATHER_API_KEY", ""),
        "OPENWEATHER_BASE_URL": os.environ.get("OPENWEATHER_BASE_URL", weather_api.BASE_URL),
        "WEATHER_HTTP_TIMEOUT": float(timeout) if timeout else None,
        "HISTORY_DEDUP_SECONDS": int(os.environ.get("HISTORY_DEDUP_SECONDS", "3600")),
        "HISTORY_RETENTION_DAYS": int(os.environ.get("HISTORY_RETENTION_DAYS", "7")),
    }

def _client():
    return current_app.extensions["weather"]["client"]

def _history():
    return current_app.extensions["weather"]["history"](db.session)

# App factory: sets configuration, opens the database, wires the weather client and history store, and registers routes.
def create_app(config=None, client=None, history=None):
    """
    `client` is anything with fetch_by_city/fetch_by_coordinates; `history` is a
    callable taking a SQLAlchemy session and returning a HistoryStore. Both are
    built from configuration when not given.
    """
    app = Flask(__name__)
    app.config.update(_env_config())
    if config:
        app.config.update(config)

    db.init_app(app)

    # The app is unusable without its store, so a failure here aborts startup.
    with app.app_context():
        try:
            db.create_all()
        except Exception:
            app.logger.critical("Could not open history database at %s", app.config["SQLALCHEMY_DATABASE_URI"])
            raise

    if client is None:
        client = weather_api.WeatherClient(
            api_key=app.config["OPENWEATHER_API_KEY"],
            base_url=app.config["OPENWEATHER_BASE_URL"],
            timeout=app.config["WEATHER_HTTP_TIMEOUT"],
        )
    if history is None:
        history = partial(
            HistoryStore,
            dedup_window=timedelta(seconds=app.config["HISTORY_DEDUP_SECONDS"]),
            retention=timedelta(days=app.config["HISTORY_RETENTION_DAYS"]),
        )
    app.extensions["weather"] = {"client": client, "history": history}

    app.add_template_filter(format_celsius, "celsius")
    app.add_template_filter(format_observed, "observed")
    app.add_template_filter(format_saved, "saved")
    app.add_template_filter(icon_url, "icon_url")
    app.add_template_filter(animation_for, "animation")

    @app.route("/", methods=["GET"])
    def index():
        return render_template("index.html", record=None, error=None, city="", autolocate=True)

    # Manual search by name. Never touches history.
    @app.route("/search", methods=["POST"])
    def search():
        city = (request.form.get("city") or "").strip()
        if not city:
            return render_template("index.html", record=None, error="Please enter a city name.", city=city, autolocate=False)

        try:
            record = _client().fetch_by_city(city)
        except WeatherError as e:
            app.logger.info("City search for %r failed: %s", city, e)
            return render_template("index.html", record=None, error=str(e), city=city, autolocate=False)

        return render_template("index.html", record=record, error=None, city=city, autolocate=False)

    # Search by the coordinates the browser's geolocation reported; successful lookups are saved to history.
    @app.route("/locate", methods=["POST"])
    def locate():
        location_error = (request.form.get("error") or "").strip()
        if location_error:
            app.logger.info("Location unavailable: %s", location_error)
            return render_template("index.html", record=None, error="Could not determine your location.", city="", autolocate=False)

        try:
            latitude = float(request.form.get("lat") or request.form.get("latitude") or "")
            longitude = float(request.form.get("lon") or request.form.get("longitude") or "")
        except ValueError:
            return render_template("index.html", record=None, error="Latitude/Longitude must be numeric.", city="", autolocate=False)

        try:
            record = _client().fetch_by_coordinates(latitude, longitude)
        except WeatherError as e:
            app.logger.info("Location search for (%s, %s) failed: %s", latitude, longitude, e)
            return render_template("index.html", record=None, error=str(e), city="", autolocate=False)

        # best-effort: a history failure never blocks showing the weather
        try:
            _history().record_weather(record)
        except StorageError:
            app.logger.warning("Could not save %s to history", record.location_name, exc_info=True)

        return render_template("index.html", record=record, error=None, city="", autolocate=False)

    @app.route("/history", methods=["GET"])
    def history_list():
        try:
            entries = _history().list_all()
        except StorageError as e:
            app.logger.error("Could not load history: %s", e)
            flash("Could not load history.", "error")
            entries = []
        return render_template("history.html", entries=entries)

    # Deletes the selected entry.
    @app.route("/history/<int:entry_id>/delete", methods=["POST"])
    def history_delete(entry_id):
        try:
            deleted = _history().delete(entry_id)
        except StorageError as e:
            app.logger.error("Error deleting history entry %s: %s", entry_id, e)
            flash("Could not delete entry.", "error")
            return redirect(url_for("history_list"))

        if deleted:
            flash("Entry deleted.", "success")
        else:
            flash("Entry not found.", "error")
        return redirect(url_for("history_list"))

    return app

if __name__ == "__main__":
    app = create_app()
    app.run(debug=True)
