import unittest
from unittest.mock import patch, MagicMock
import sys
import os

# Mock pynput before importing application modules
sys.modules["pynput"] = MagicMock()
sys.modules["pynput.keyboard"] = MagicMock()

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gpgtui_app.input_listener import ModifierKeyMonitor, start_modifier_monitor  # noqa: E402


class TestModifierKeyMonitor(unittest.TestCase):

    def setUp(self):
        self.monitor = ModifierKeyMonitor()

    @patch('gpgtui_app.input_listener.keyboard.Listener')
    def test_start_stop(self, mock_listener_cls):
        listener = MagicMock()
        mock_listener_cls.return_value = listener

        self.monitor.start()
        self.assertTrue(self.monitor.running)
        listener.start.assert_called_once()
        self.assertTrue(listener.daemon)

        # already running
        self.monitor.start()
        mock_listener_cls.assert_called_once()

        self.monitor.stop()
        listener.stop.assert_called_once()
        self.assertFalse(self.monitor.running)

    def test_stop_forgets_pressed_keys(self):
        shift = self.monitor._SHIFT_KEYS[0]
        self.monitor._on_press(shift)
        self.monitor.stop()
        self.assertFalse(self.monitor.is_shift_pressed())

    def test_is_shift_pressed(self):
        shift = self.monitor._SHIFT_KEYS[1]
        other = MagicMock()

        self.assertFalse(self.monitor.is_shift_pressed())
        self.monitor._on_press(other)
        self.assertFalse(self.monitor.is_shift_pressed())
        self.monitor._on_press(shift)
        self.assertTrue(self.monitor.is_shift_pressed())
        self.monitor._on_release(shift)
        self.assertFalse(self.monitor.is_shift_pressed())

    @patch('gpgtui_app.input_listener.keyboard.Listener')
    def test_start_modifier_monitor(self, mock_listener_cls):
        monitor = start_modifier_monitor()
        self.assertTrue(monitor.running)
        self.assertIs(start_modifier_monitor(monitor), monitor)
        mock_listener_cls.assert_called_once()
        monitor.stop()


if __name__ == '__main__':
    unittest.main()
