import copy
from datetime import datetime, timezone

from btc_dashboard.address_book import AddressEntry
from btc_dashboard.dashboard import DashboardState
from btc_dashboard.overlay import OverlayState, StatusMessage
from btc_dashboard.render import (
    HELP_HEIGHT,
    Rect,
    Tone,
    render,
    split_columns,
    split_rows,
    visible_window,
)

ADDRESS = "bc1qfpacvgpjms0eu6mszhwgjjs03yldesmmcgzad0"


def fake_qr(data: str) -> list[str]:
    return [f"QR[{data}]", "▀▄▀"]


def _dashboard(**kwargs) -> DashboardState:
    kwargs.setdefault("commands", ("getblockcount", "getpeerinfo", "uptime"))
    return DashboardState(**kwargs)


def _overlay(buffer: str = ADDRESS, *, is_open: bool = True, **kwargs) -> OverlayState:
    return OverlayState(edit_buffer=buffer, cursor_position=len(buffer), is_open=is_open, **kwargs)


def _render(dashboard=None, overlay=None, book=(), width=120, height=40, **kwargs):
    return render(
        dashboard or _dashboard(),
        overlay or _overlay(is_open=False),
        list(book),
        width,
        height,
        qr_renderer=fake_qr,
        **kwargs,
    )


def test_layout_splits_help_bar_and_columns() -> None:
    screen = _render()

    help_panel = screen.panel("help")
    assert help_panel.rect == Rect(0, 40 - HELP_HEIGHT, 120, HELP_HEIGHT)
    assert screen.panel("node_info").rect.width == 42
    assert screen.panel("output").rect.x == 42
    assert screen.panel("output").rect.width == 78
    assert screen.output_height == 40 - HELP_HEIGHT - 2
    assert "overlay" not in [panel.name for panel in screen.panels]
    assert screen.cursor is None


def test_selected_command_is_highlighted() -> None:
    screen = _render(_dashboard(selected_index=2))

    commands = screen.panel("commands")
    assert commands.lines[commands.highlight] == "uptime"


def test_output_window_follows_scroll_offset() -> None:
    lines = [f"line {i}" for i in range(100)]
    screen = _render(_dashboard(output_lines=lines, scroll_offset=10))

    output = screen.panel("output")
    assert output.lines[0] == "line 10"
    assert len(output.lines) == screen.output_height


def test_wallet_panel_masks_digits_when_hidden() -> None:
    state = _dashboard(wallet_info_text="Balance: 1.25 BTC", hide_sensitive=True)

    wallet = _render(state).panel("wallet_info")

    assert wallet.title == "Wallet Info (hidden)"
    assert wallet.lines == ("Balance: X.XX BTC",)
    assert state.wallet_info_text == "Balance: 1.25 BTC"


def test_help_text_switches_with_focus() -> None:
    assert _render().panel("help").lines[0] == "Main keys:"
    assert _render(overlay=_overlay()).panel("help").lines[0] == "Overlay keys:"


def test_valid_address_shows_network_and_qr() -> None:
    screen = _render(overlay=_overlay())

    qr = screen.panel("qr")
    assert "VALID (mainnet)" in qr.title
    assert qr.title_tone is Tone.OK
    assert qr.lines == (f"QR[{ADDRESS}]", "▀▄▀")
    assert "VALID" in screen.panel("address_input").title


def test_empty_address_shows_placeholder_without_qr() -> None:
    screen = _render(overlay=_overlay(""))

    qr = screen.panel("qr")
    assert "(enter an address)" in qr.title
    assert qr.lines == ()
    assert qr.tone is Tone.DIM
    assert qr.title_tone is Tone.WARN


def test_invalid_address_is_marked_in_both_boxes() -> None:
    screen = _render(overlay=_overlay("hello"))

    assert "INVALID" in screen.panel("address_input").title
    assert "INVALID" in screen.panel("qr").title
    assert screen.panel("qr").lines == ()
    assert screen.panel("qr").title_tone is Tone.ERROR


def test_overlay_cursor_tracks_buffer_position() -> None:
    overlay = OverlayState(edit_buffer="abcdef", cursor_position=2, is_open=True)

    screen = _render(overlay=overlay)

    field = screen.panel("address_input").body
    assert screen.cursor == (field.y, field.x + 2)
    assert screen.panel("address_input").lines == ("abcdef",)


def test_long_buffer_scrolls_horizontally_to_cursor() -> None:
    buffer = "x" * 200
    overlay = OverlayState(edit_buffer=buffer, cursor_position=200, is_open=True)

    screen = _render(overlay=overlay)

    field = screen.panel("address_input").body
    assert screen.cursor == (field.y, field.x + field.width - 1)


def test_status_message_replaces_hint() -> None:
    status = StatusMessage("Copy failed: nope", issued_at=0.0, is_error=True)

    panel = _render(overlay=_overlay(), status=status).panel("status")

    assert panel.lines == ("Copy failed: nope",)
    assert panel.tone is Tone.ERROR


def test_address_book_highlights_selection() -> None:
    book = [
        AddressEntry(datetime(2024, 5, day, tzinfo=timezone.utc), f"addr{day}")
        for day in range(1, 4)
    ]

    panel = _render(overlay=_overlay(book_selection_index=1), book=book).panel("address_book")

    assert panel.lines[panel.highlight].endswith("addr2")


def test_render_does_not_mutate_state() -> None:
    dashboard = _dashboard(output_lines=["a", "b"], scroll_offset=1)
    overlay = _overlay()
    before = (copy.deepcopy(dashboard), copy.deepcopy(overlay))

    _render(dashboard, overlay)

    assert (dashboard, overlay) == before


def test_tiny_terminal_does_not_fail() -> None:
    screen = _render(overlay=_overlay(), width=10, height=5)

    assert screen.output_height >= 0


def test_visible_window_edges() -> None:
    lines = ["a", "b", "c"]

    assert visible_window(lines, 0, 2) == ["a", "b"]
    assert visible_window(lines, 2, 5) == ["c"]
    assert visible_window(lines, 3, 5) == []
    assert visible_window(lines, 0, 0) == []
    assert visible_window([], 0, 5) == []


def test_split_helpers_cover_the_rect() -> None:
    rect = Rect(0, 0, 101, 20)

    left, right = split_columns(rect, (35, 65))
    assert left.width + right.width == 101

    top, middle, rest = split_rows(rect, (7, 7, None))
    assert (top.height, middle.height, rest.height) == (7, 7, 6)
    assert rest.y == 14
