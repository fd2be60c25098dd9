"""Tests for the Rich console factory."""

from fwdctl.output.console import FWD_THEME, create_console, get_output, style_for_status


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console(no_color=True)
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_width_override(self) -> None:
        assert create_console(width=60).width == 60
        assert create_console().width == 120

    def test_theme_styles_resolve(self) -> None:
        console = create_console(no_color=True)
        console.print("[fwd.ok]OK[/fwd.ok] [fwd.id]c1[/fwd.id]")
        assert get_output(console) == "OK c1\n"
        assert "fwd.error" in FWD_THEME.styles


class TestStatusStyles:
    def test_known_statuses(self) -> None:
        assert style_for_status("active") == "fwd.status.active"
        assert style_for_status("archived") == "fwd.status.archived"

    def test_unknown_status(self) -> None:
        assert style_for_status("dormant") == ""
