import unittest
import sys
import os

# Add project root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from trojangolink.qr import generate_qr_ascii

LINK = "trojan-go://pw123@example.com:443?type=ws&host=cdn.example.com&path=%2Fws#MyServer"


class TestQRGeneration(unittest.TestCase):
    def test_qr_width_selection(self):
        """
        Both modes print two module rows per text line, so the double mode is
        only 2 columns wider than compact (border 2 vs 1 on each side), not
        twice as wide. A roomy terminal should get the double mode.
        """
        text, width, mode = generate_qr_ascii(LINK, console_width=120)

        if mode is None:
            self.fail(f"QR Generation failed: {text}")

        self.assertEqual(mode, "double", "Should favor double mode when space allows")
        self.assertTrue("▀" in text or "▄" in text or "█" in text)
        self.assertTrue(all(len(line) == width for line in text.splitlines()))

    def test_qr_compact_fallback(self):
        _, double_width, _ = generate_qr_ascii(LINK, console_width=500)
        # too tight for the double margin, roomy enough for compact
        text, width, mode = generate_qr_ascii(LINK, console_width=double_width + 7)
        self.assertEqual(mode, "compact")
        self.assertEqual(width, double_width - 2)

    def test_qr_too_narrow(self):
        text, width, mode = generate_qr_ascii(LINK, console_width=20)
        self.assertIsNone(mode)
        self.assertIn("too narrow", text)


if __name__ == "__main__":
    unittest.main()
