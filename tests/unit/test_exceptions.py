"""
Unit tests for tri_scan/exceptions.py
"""

import unittest

from tri_scan.exceptions import (
    ConfigError,
    ExpectedVenueRejection,
    InvalidDecimal,
    InvalidInput,
    RegistryError,
    TriScanError,
    VenueError,
)


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy and carried context."""

    def test_hierarchy(self):
        self.assertTrue(issubclass(InvalidDecimal, InvalidInput))
        self.assertTrue(issubclass(RegistryError, ConfigError))
        self.assertTrue(issubclass(ExpectedVenueRejection, VenueError))
        for cls in (InvalidInput, ConfigError, VenueError):
            self.assertTrue(issubclass(cls, TriScanError))

    def test_details_default_to_empty(self):
        self.assertEqual(TriScanError("boom").details, {})
        self.assertEqual(ConfigError("x", details={"field": "amount"}).details, {"field": "amount"})

    def test_context_attributes(self):
        self.assertEqual(InvalidDecimal("bad", value="1.2.3").value, "1.2.3")
        self.assertEqual(RegistryError("bad", path="tokens.json").path, "tokens.json")
        rejection = ExpectedVenueRejection("no stable pool", venue="aerodrome")
        self.assertEqual(rejection.venue, "aerodrome")
        self.assertEqual(str(rejection), "no stable pool")


if __name__ == "__main__":
    unittest.main()
