"""Tests unitarios para la configuración."""

import pytest
from pydantic import ValidationError

from backoffice.core.config import Settings, get_settings, reload_settings


class TestSettings:
    """Tests para Settings y sus validadores."""

    def test_allowed_hosts_from_comma_list(self):
        """ALLOWED_HOSTS debe parsearse desde una lista separada por comas."""
        settings = Settings(ALLOWED_HOSTS="api.example.com, admin.example.com")

        assert settings.ALLOWED_HOSTS == ["api.example.com", "admin.example.com"]

    @pytest.mark.parametrize("hour", [-1, 24])
    def test_check_hour_out_of_range(self, hour):
        """DELAYED_ORDERS_CHECK_HOUR debe estar entre 0 y 23."""
        with pytest.raises(ValidationError):
            Settings(DELAYED_ORDERS_CHECK_HOUR=hour)

    def test_unknown_timezone(self):
        """Una zona horaria inexistente debe fallar."""
        with pytest.raises(ValidationError):
            Settings(SCHEDULER_TIMEZONE="America/Atlantida")

    def test_log_level_is_uppercased(self):
        """LOG_LEVEL debe normalizarse a mayúsculas."""
        assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"

    def test_queue_options(self):
        """queue_options debe reflejar los valores por defecto de los jobs."""
        settings = Settings(QUEUE_DEFAULT_ATTEMPTS=5, QUEUE_BACKOFF_DELAY_MS=1000)

        assert settings.queue_options["attempts"] == 5
        assert settings.queue_options["backoff_delay_ms"] == 1000

    def test_default_poll_timeout_is_below_socket_timeout(self):
        """Por defecto el bloqueo de la cola termina antes que el timeout del socket Redis."""
        settings = Settings()

        assert settings.QUEUE_POLL_TIMEOUT_SECONDS < settings.REDIS_SOCKET_TIMEOUT

    @pytest.mark.parametrize("poll_timeout", [5, 8])
    def test_poll_timeout_must_be_below_socket_timeout(self, poll_timeout):
        """QUEUE_POLL_TIMEOUT_SECONDS igual o mayor que REDIS_SOCKET_TIMEOUT debe fallar."""
        with pytest.raises(ValidationError):
            Settings(QUEUE_POLL_TIMEOUT_SECONDS=poll_timeout, REDIS_SOCKET_TIMEOUT=5)


def test_reload_settings_reads_environment(monkeypatch):
    """reload_settings debe volver a leer las variables de entorno."""
    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "7")
    try:
        assert reload_settings().RATE_LIMIT_PER_MINUTE == 7
        assert get_settings().RATE_LIMIT_PER_MINUTE == 7
    finally:
        monkeypatch.delenv("RATE_LIMIT_PER_MINUTE")
        reload_settings()
