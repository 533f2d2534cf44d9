"""Tests for the default license resolver."""

import pytest

from npmjs.licenses import resolve_licenses


class TestResolveLicenses:
    @pytest.mark.parametrize(
        "document,expected",
        [
            ({"license": "MIT"}, ["MIT"]),
            ({"license": {"type": "BSD-3-Clause", "url": "http://x"}}, ["BSD-3-Clause"]),
            ({"licenses": [{"type": "MIT"}, {"type": "Apache-2.0"}]}, ["MIT", "Apache-2.0"]),
            ({"license": "MIT", "licenses": ["MIT", "ISC"]}, ["MIT", "ISC"]),
            ({"license": ""}, []),
            ({"license": 5}, []),
            ({}, []),
            (None, []),
        ],
    )
    def test_shapes(self, document, expected):
        assert resolve_licenses(document) == expected
