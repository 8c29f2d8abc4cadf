"""Tests for rikuesuto.abort module."""

from unittest.mock import Mock

from rikuesuto.abort import AbortController, AbortSignal


class TestAbortController:
    """Tests for AbortController/AbortSignal."""

    def test_initial_state(self):
        """Test a fresh signal is not aborted."""
        controller = AbortController()
        assert isinstance(controller.signal, AbortSignal)
        assert controller.signal.aborted is False

    def test_abort_notifies_listeners(self):
        """Test listeners run when the controller aborts."""
        controller = AbortController()
        listener = Mock()
        controller.signal.add_listener(listener)
        controller.abort()
        assert controller.signal.aborted is True
        listener.assert_called_once_with()

    def test_abort_is_idempotent(self):
        """Test listeners run only once even if abort is repeated."""
        controller = AbortController()
        listener = Mock()
        controller.signal.add_listener(listener)
        controller.abort()
        controller.abort()
        listener.assert_called_once()

    def test_removed_listener_not_called(self):
        """Test removed listeners are not notified."""
        controller = AbortController()
        listener = Mock()
        controller.signal.add_listener(listener)
        controller.signal.remove_listener(listener)
        controller.abort()
        listener.assert_not_called()

    def test_remove_unknown_listener(self):
        """Test removing a listener that was never added is a no-op."""
        AbortController().signal.remove_listener(Mock())

    def test_duplicate_listener_registered_once(self):
        """Test the same listener is only registered once."""
        controller = AbortController()
        listener = Mock()
        controller.signal.add_listener(listener)
        controller.signal.add_listener(listener)
        controller.abort()
        listener.assert_called_once()
