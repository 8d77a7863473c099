import logging
import threading
import time
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from flacfix.diagnostics import Diagnostics


class TestDiagnostics(unittest.TestCase):
    def test_calls_back_and_logs(self) -> None:
        seen = []
        diagnostics = Diagnostics(seen.append, logger=logging.getLogger("flacfix.test"))
        with self.assertLogs("flacfix.test", level="INFO") as logs:
            info = diagnostics.info("converted")
            event = diagnostics.warning(
                "dup", path=Path("a.flac"), key="MUSICBRAINZ_TRACKID", count=2
            )
        self.assertEqual(seen, [info, event])
        self.assertFalse(info.is_warning)
        self.assertTrue(event.is_warning)
        self.assertEqual((event.key, event.count), ("MUSICBRAINZ_TRACKID", 2))
        self.assertEqual(logs.output, ["INFO:flacfix.test:converted", "WARNING:flacfix.test:dup"])

    def test_callbacks_from_threads_are_serialized(self) -> None:
        active = []
        overlaps = []
        guard = threading.Lock()

        def callback(event) -> None:
            with guard:
                active.append(event)
                if len(active) > 1:
                    overlaps.append(event)
            time.sleep(0.001)
            with guard:
                active.remove(event)

        logging.getLogger("flacfix.test.quiet").disabled = True
        diagnostics = Diagnostics(callback, logger=logging.getLogger("flacfix.test.quiet"))
        with ThreadPoolExecutor(max_workers=4) as executor:
            list(executor.map(lambda i: diagnostics.debug(f"event {i}"), range(40)))
        self.assertEqual(overlaps, [])


if __name__ == "__main__":
    unittest.main()
