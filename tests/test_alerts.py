"""Unit tests for AlertDispatcher and the platform alert backends."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from pomotrack.core.alerts import AlertDispatcher
from pomotrack.core.models import Phase, PomodoroSettings
from pomotrack.platform.base import NullAlertBackend
from pomotrack.platform.factory import create_alert_backend
from pomotrack.platform.linux import LinuxAlertBackend
from pomotrack.platform.macos import MacOSAlertBackend, _escape


@pytest.fixture
def backend():
    b = MagicMock()
    b.request_permission.return_value = True
    return b


# ------------------------------------------------------------------
# AlertDispatcher
# ------------------------------------------------------------------

class TestAlertDispatcher:
    def test_permission_requested_once(self, backend):
        alerts = AlertDispatcher(backend)
        assert alerts.request_permission() is True
        assert alerts.request_permission() is True
        backend.request_permission.assert_called_once()

    def test_permission_failure_counts_as_denied(self, backend):
        backend.request_permission.side_effect = RuntimeError("denied")
        alerts = AlertDispatcher(backend)
        assert alerts.request_permission() is False
        assert alerts.permission_granted is False

    def test_sound_and_notification(self, backend):
        alerts = AlertDispatcher(backend)
        alerts.request_permission()
        alerts.phase_completed(Phase.WORK, PomodoroSettings(), "Landing page")
        backend.play_sound.assert_called_once()
        backend.show_notification.assert_called_once_with(
            "Pomodoro complete!", 'You completed a pomodoro on "Landing page".'
        )

    def test_break_notification_text(self, backend):
        alerts = AlertDispatcher(backend)
        alerts.request_permission()
        alerts.phase_completed(Phase.LONG_BREAK, PomodoroSettings())
        backend.show_notification.assert_called_once_with(
            "Break is over!", "Time to get back to work."
        )

    def test_no_notification_without_permission(self, backend):
        alerts = AlertDispatcher(backend)
        alerts.phase_completed(Phase.WORK, PomodoroSettings())
        backend.show_notification.assert_not_called()
        backend.play_sound.assert_called_once()

    def test_respects_disabled_settings(self, backend):
        alerts = AlertDispatcher(backend)
        alerts.request_permission()
        settings = PomodoroSettings(sound_enabled=False, notifications_enabled=False)
        alerts.phase_completed(Phase.WORK, settings)
        backend.play_sound.assert_not_called()
        backend.show_notification.assert_not_called()

    def test_backend_errors_are_contained(self, backend):
        backend.play_sound.side_effect = OSError("no audio")
        backend.show_notification.side_effect = OSError("no display")
        alerts = AlertDispatcher(backend)
        alerts.request_permission()
        alerts.phase_completed(Phase.WORK, PomodoroSettings())


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

class TestFactory:
    def test_darwin(self, monkeypatch):
        monkeypatch.setattr("pomotrack.platform.factory.sys.platform", "darwin")
        assert isinstance(create_alert_backend(), MacOSAlertBackend)

    def test_linux(self, monkeypatch):
        monkeypatch.setattr("pomotrack.platform.factory.sys.platform", "linux")
        assert isinstance(create_alert_backend(), LinuxAlertBackend)

    def test_windows(self, monkeypatch):
        monkeypatch.setattr("pomotrack.platform.factory.sys.platform", "win32")
        from pomotrack.platform.windows import WindowsAlertBackend
        assert isinstance(create_alert_backend(), WindowsAlertBackend)

    def test_unknown_platform(self, monkeypatch):
        monkeypatch.setattr("pomotrack.platform.factory.sys.platform", "sunos5")
        assert isinstance(create_alert_backend(), NullAlertBackend)


# ------------------------------------------------------------------
# Backends
# ------------------------------------------------------------------

class TestMacOSAlertBackend:
    def test_escape(self):
        assert _escape('say "hi" \\o/') == 'say \\"hi\\" \\\\o/'

    @patch("pomotrack.platform.macos.subprocess.run")
    def test_show_notification(self, mock_run):
        mock_run.return_value = MagicMock(returncode=0, stderr="")
        MacOSAlertBackend().show_notification("Done", 'Task "A"')
        args = mock_run.call_args[0][0]
        assert args[:2] == ["osascript", "-e"]
        assert 'display notification "Task \\"A\\""' in args[2]
        assert 'with title "Done"' in args[2]

    @patch("pomotrack.platform.macos.subprocess.Popen")
    def test_play_sound(self, mock_popen):
        MacOSAlertBackend(sound_path="/tmp/ding.aiff").play_sound()
        assert mock_popen.call_args[0][0] == ["afplay", "/tmp/ding.aiff"]

    @patch("pomotrack.platform.macos.shutil.which", return_value=None)
    def test_permission_requires_osascript(self, _which):
        assert MacOSAlertBackend().request_permission() is False


class TestLinuxAlertBackend:
    @patch("pomotrack.platform.linux.subprocess.run")
    def test_show_notification(self, mock_run):
        LinuxAlertBackend().show_notification("Done", "Body")
        args = mock_run.call_args[0][0]
        assert args[0] == "notify-send"
        assert args[-2:] == ["Done", "Body"]

    @patch("pomotrack.platform.linux.subprocess.Popen")
    @patch("pomotrack.platform.linux.shutil.which", return_value=None)
    def test_play_sound_without_player(self, _which, mock_popen):
        LinuxAlertBackend().play_sound()
        mock_popen.assert_not_called()

    @patch("pomotrack.platform.linux.subprocess.Popen")
    @patch("pomotrack.platform.linux.shutil.which")
    def test_play_sound_prefers_canberra(self, mock_which, mock_popen):
        mock_which.side_effect = lambda name: f"/usr/bin/{name}"
        LinuxAlertBackend().play_sound()
        assert mock_popen.call_args[0][0][0] == "canberra-gtk-play"

    @patch("pomotrack.platform.linux.shutil.which", return_value="/usr/bin/notify-send")
    def test_permission_with_notify_send(self, _which):
        assert LinuxAlertBackend().request_permission() is True


class TestNullAlertBackend:
    def test_logs_notification(self, caplog):
        with caplog.at_level("INFO", logger="pomotrack.platform.base"):
            NullAlertBackend().show_notification("Title", "Body")
        assert "Title: Body" in caplog.text
        assert NullAlertBackend().request_permission() is False
