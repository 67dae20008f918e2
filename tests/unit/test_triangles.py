"""
Unit tests for tri_scan/triangles.py
"""

import unittest

from fakes import AERO, CBBTC, DAI, USDC, WETH

from tri_scan.exceptions import InvalidInput
from tri_scan.triangles import generate_triangles, triangle_id, validate_triangle
from tri_scan.types import RouteCandidate


class TestGenerateTriangles(unittest.TestCase):
    """Test deterministic triangle enumeration."""

    def test_deterministic(self):
        """Same inputs produce identical ordered output and ids."""
        first = generate_triangles(USDC, [WETH, AERO, DAI], 10)
        second = generate_triangles(USDC, [WETH, AERO, DAI], 10)
        self.assertEqual(first, second)
        self.assertEqual([t.id for t in first], [t.id for t in second])

    def test_ordered_by_mid_symbols(self):
        """Mids are sorted by symbol; mid1 == mid2 is skipped."""
        routes = generate_triangles(USDC, [WETH, AERO], 10)
        self.assertEqual(
            [r.id for r in routes],
            ["USDC->AERO->WETH->USDC", "USDC->WETH->AERO->USDC"],
        )

    def test_input_order_does_not_matter(self):
        a = generate_triangles(USDC, [WETH, AERO, CBBTC], 10)
        b = generate_triangles(USDC, [CBBTC, AERO, WETH], 10)
        self.assertEqual(a, b)

    def test_all_ordered_pairs(self):
        routes = generate_triangles(USDC, [WETH, AERO, DAI], 100)
        self.assertEqual(len(routes), 6)
        for route in routes:
            self.assertEqual(route.tokens[0], USDC)
            self.assertEqual(route.tokens[3], USDC)
            self.assertNotEqual(route.tokens[1], route.tokens[2])

    def test_cap(self):
        routes = generate_triangles(USDC, [WETH, AERO, DAI], 4)
        self.assertEqual(len(routes), 4)
        self.assertEqual(routes[0].id, "USDC->AERO->DAI->USDC")

    def test_non_positive_cap(self):
        self.assertEqual(generate_triangles(USDC, [WETH, AERO], 0), [])
        self.assertEqual(generate_triangles(USDC, [WETH, AERO], -3), [])

    def test_start_and_duplicates_removed(self):
        routes = generate_triangles(USDC, [USDC, WETH, WETH, AERO], 10)
        self.assertEqual(len(routes), 2)

    def test_single_mid_yields_nothing(self):
        self.assertEqual(generate_triangles(USDC, [WETH], 10), [])

    def test_triangle_id(self):
        self.assertEqual(triangle_id(USDC, WETH, AERO), "USDC->WETH->AERO->USDC")


class TestValidateTriangle(unittest.TestCase):
    """Test the closed-walk invariant."""

    def test_valid(self):
        route = generate_triangles(USDC, [WETH, AERO], 1)[0]
        validate_triangle(route)

    def test_open_walk_rejected(self):
        route = RouteCandidate(id="bad", tokens=(USDC, WETH, AERO, DAI))
        with self.assertRaises(InvalidInput):
            validate_triangle(route)

    def test_wrong_length_rejected(self):
        route = RouteCandidate(id="short", tokens=(USDC, WETH, USDC))
        with self.assertRaises(InvalidInput):
            validate_triangle(route)


if __name__ == "__main__":
    unittest.main()
