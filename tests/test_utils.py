"""Unit tests for utility functions (ui8gen.utils).

Tests cover:
- maybe_await with plain values and coroutines
- to_kebab_case
- resolve_path
- format_duration / format_size
- Rich output helpers (print_banner, print_summary_table)
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from ui8gen.utils import (
    format_duration,
    format_size,
    maybe_await,
    print_banner,
    print_summary_table,
    resolve_path,
    to_kebab_case,
)


# ---------------------------------------------------------------------------
# maybe_await
# ---------------------------------------------------------------------------


class TestMaybeAwait:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_plain_value(self):
        assert await maybe_await(42) == 42

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_coroutine(self):
        async def produce():
            return "done"

        assert await maybe_await(produce()) == "done"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_none(self):
        assert await maybe_await(None) is None


# ---------------------------------------------------------------------------
# Names & paths
# ---------------------------------------------------------------------------


class TestToKebabCase:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("HeroBlock", "hero-block"),
            ("site_header", "site-header"),
            ("Nav Bar", "nav-bar"),
            ("fontSize", "font-size"),
            ("footer", "footer"),
            ("Card2Column", "card2-column"),
        ],
    )
    def test_conversion(self, name: str, expected: str):
        assert to_kebab_case(name) == expected


class TestResolvePath:
    @pytest.mark.unit
    def test_relative_joined_to_root(self, tmp_path: Path):
        assert resolve_path(tmp_path, "dist") == tmp_path / "dist"

    @pytest.mark.unit
    def test_absolute_kept(self, tmp_path: Path):
        absolute = tmp_path / "abs"
        assert resolve_path("/other", absolute) == absolute


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_milliseconds(self):
        assert format_duration(12.3) == "12ms"

    @pytest.mark.unit
    def test_seconds(self):
        assert format_duration(3700) == "3.7s"

    @pytest.mark.unit
    def test_minutes(self):
        assert format_duration(65_200) == "1m 5s"

    @pytest.mark.unit
    def test_negative_clamped(self):
        assert format_duration(-5) == "0ms"


class TestFormatSize:
    @pytest.mark.unit
    def test_bytes(self):
        assert format_size(512) == "512 B"

    @pytest.mark.unit
    def test_kilobytes(self):
        assert format_size(1536) == "1.5 KB"

    @pytest.mark.unit
    def test_megabytes(self):
        assert format_size(2 * 1024 * 1024) == "2.00 MB"


# ---------------------------------------------------------------------------
# Rich helpers
# ---------------------------------------------------------------------------


class TestRichHelpers:
    @pytest.mark.unit
    def test_print_banner(self):
        with patch("ui8gen.utils.console") as mock_console:
            print_banner("DONE", ["line one", "line two"], style="green")
        mock_console.print.assert_called_once()

    @pytest.mark.unit
    def test_print_summary_table(self):
        with patch("ui8gen.utils.console") as mock_console:
            print_summary_table({"Templates": "3", "Errors": "0"}, title="Run")
        assert mock_console.print.call_count == 2
