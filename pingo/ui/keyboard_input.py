"""Single-key terminal input for the push-to-talk client."""

import sys
import threading
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class KeyboardInputHandler:
    """Reads single keypresses on a background thread.

    The callback runs on the reader thread; it returns False to stop reading.
    """

    def __init__(self, callback: Callable[[str], bool], poll_interval: float = 0.1):
        """Initialize keyboard handler.

        Args:
            callback: Function that takes a key and returns True to continue, False to quit
            poll_interval: Seconds to wait for input before checking for stop
        """
        self.callback = callback
        self.poll_interval = poll_interval
        self.running = False
        self.thread: Optional[threading.Thread] = None
        self._saved_tty = None

    def start(self) -> None:
        """Put the terminal in cbreak mode and start reading keys."""
        if self.running:
            return

        self._enter_cbreak()
        self.running = True
        self.thread = threading.Thread(target=self._input_loop, daemon=True)
        self.thread.name = "KeyboardInputThread"
        self.thread.start()
        logger.info("Keyboard input handler started")

    def stop(self) -> None:
        """Stop reading keys and restore the terminal."""
        self.running = False
        if self.thread and self.thread is not threading.current_thread():
            self.thread.join(timeout=1.0)
        self.thread = None
        self._restore_terminal()
        logger.info("Keyboard input handler stopped")

    def _input_loop(self) -> None:
        logger.info("Starting keyboard input loop")
        while self.running:
            try:
                key = self._get_key()
            except OSError as e:
                logger.error(f"Error reading keyboard: {e}")
                break
            if not key:
                continue
            logger.debug(f"Key detected: '{key}'")
            if not self.callback(key):
                logger.info("Callback returned False, ending input loop")
                break
        self.running = False
        logger.info("Keyboard input loop ended")

    def _get_key(self) -> Optional[str]:
        if sys.platform == "win32":
            return self._get_key_windows()
        return self._get_key_unix()

    def _get_key_windows(self) -> Optional[str]:
        import msvcrt
        import time

        if msvcrt.kbhit():
            return msvcrt.getch().decode('utf-8', errors='ignore').lower()
        time.sleep(self.poll_interval)
        return None

    def _get_key_unix(self) -> Optional[str]:
        import select

        if select.select([sys.stdin], [], [], self.poll_interval)[0]:
            key = sys.stdin.read(1)
            return key.lower() if key else None
        return None

    def _enter_cbreak(self) -> None:
        if sys.platform == "win32" or not sys.stdin.isatty():
            return
        import termios
        import tty

        self._saved_tty = termios.tcgetattr(sys.stdin)
        tty.setcbreak(sys.stdin.fileno())

    def _restore_terminal(self) -> None:
        if self._saved_tty is None:
            return
        import termios

        termios.tcsetattr(sys.stdin, termios.TCSADRAIN, self._saved_tty)
        self._saved_tty = None
