"""Unit tests for main.py lifespan startup logic."""

import logging

import pytest
from unittest.mock import MagicMock, patch
from fastapi.testclient import TestClient

from provisioner.main import create_app
from provisioner.services.session import ProvisioningSession


# -----------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------

@pytest.fixture
def mock_setup_logger():
    """Lifespan logs through a real logger but without file handlers."""
    with patch("provisioner.main.setup_logger") as mock_log:
        mock_log.return_value = logging.getLogger("provisioner")
        yield mock_log


# -----------------------------------------------------------------------
# Startup
# -----------------------------------------------------------------------

@pytest.mark.unit
class TestLifespan:

    def test_logger_configured_from_settings(self, settings, mock_setup_logger):
        with TestClient(create_app(settings=settings)):
            pass

        mock_setup_logger.assert_called_once_with(
            "provisioner", settings.log_file, level=settings.log_level
        )

    def test_session_created(self, settings, make_executor, mock_setup_logger):
        executor = make_executor()
        app = create_app(settings=settings, executor=executor)

        with TestClient(app):
            session = app.state.session
            assert isinstance(session, ProvisioningSession)
            assert session.settings is settings
            assert session.executor is executor
            assert not session.reporter.enabled

    def test_report_url_enables_reporter(self, settings, mock_setup_logger):
        settings = settings.model_copy(update={"report_url": "http://hub/events"})
        app = create_app(settings=settings)

        with TestClient(app):
            assert app.state.session.reporter.enabled

    def test_missing_transport_warns(self, settings, mock_setup_logger, caplog):
        settings = settings.model_copy(update={"transport_program": "no-such-fwi-serial"})

        with caplog.at_level(logging.WARNING, logger="provisioner"):
            with patch("provisioner.main.shutil.which", return_value=None):
                with TestClient(create_app(settings=settings)):
                    pass

        assert "'no-such-fwi-serial' not found on PATH" in caplog.text

    def test_missing_work_dir_warns(self, settings, mock_setup_logger, caplog):
        settings = settings.model_copy(update={"work_dir": settings.work_dir / "absent"})

        with caplog.at_level(logging.WARNING, logger="provisioner"):
            with patch("provisioner.main.shutil.which", return_value="/usr/bin/fwi-serial"):
                with TestClient(create_app(settings=settings)):
                    pass

        assert "does not exist" in caplog.text
        assert "not found on PATH" not in caplog.text

    def test_startup_does_not_touch_device(self, settings, mock_setup_logger):
        executor = MagicMock()

        with TestClient(create_app(settings=settings, executor=executor)):
            pass

        executor.execute.assert_not_called()
