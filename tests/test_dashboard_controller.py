from btc_dashboard.dashboard import (
    DashboardAction,
    DashboardController,
    DashboardState,
    mask_digits,
)
from btc_dashboard.keys import Key, KeyEvent
from btc_dashboard.node_info import NODE_INFO_PLACEHOLDER, WALLET_INFO_PLACEHOLDER
from btc_dashboard.query import QueryError


class StubExecutor:
    def __init__(self, outputs: dict[str, object]) -> None:
        self.outputs = outputs
        self.calls: list[str] = []

    def run(self, command):
        self.calls.append(str(command))
        result = self.outputs.get(command.name)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise QueryError(f"Error: unknown command {command.name}")
        return result

    def new_address(self) -> str:
        raise QueryError("not used")


class InfoSequence:
    """Info fetcher returning queued values; exceptions are raised."""

    def __init__(self, *values) -> None:
        self.values = list(values)

    def __call__(self, _executor) -> str:
        value = self.values.pop(0)
        if isinstance(value, Exception):
            raise value
        return value


def _controller(commands, outputs, node=None, wallet=None) -> DashboardController:
    return DashboardController.create(
        commands,
        StubExecutor(outputs),
        node_info=node or InfoSequence("node"),
        wallet_info=wallet or InfoSequence("wallet"),
    )


def test_single_command_output_is_split_into_lines() -> None:
    controller = _controller(["getblockcount"], {"getblockcount": "800000\n"})

    controller.run_selected()

    assert controller.state.output_lines == ["800000"]


def test_selection_change_runs_new_command_and_resets_scroll() -> None:
    controller = _controller(
        ["getblockcount", "getpeerinfo"],
        {"getblockcount": "1\n2\n3\n4\n5\n", "getpeerinfo": "[]\n"},
    )
    controller.run_selected()
    controller.scroll(3)
    assert controller.state.scroll_offset == 3

    controller.select_next()

    assert controller.state.selected_index == 1
    assert controller.state.scroll_offset == 0
    assert controller.state.output_lines == ["[]"]
    assert controller.executor.calls[-1] == "getpeerinfo"


def test_selection_does_not_wrap_and_skips_query_at_bounds() -> None:
    controller = _controller(["a", "b"], {"a": "A", "b": "B"})

    controller.select_previous()
    assert controller.state.selected_index == 0
    assert controller.executor.calls == []

    controller.select_next()
    controller.select_next()
    assert controller.state.selected_index == 1
    assert controller.executor.calls == ["b"]


def test_command_arguments_are_passed_to_executor() -> None:
    controller = _controller(["getblockhash 100"], {"getblockhash": "00ab\n"})

    controller.run_selected()

    assert controller.executor.calls == ["getblockhash 100"]


def test_query_failure_becomes_single_output_line() -> None:
    controller = _controller(["getblockcount"], {"getblockcount": QueryError("Error: connection refused")})

    controller.run_selected()

    assert controller.state.output_lines == ["Error: connection refused"]


def test_multiline_failure_text_is_split_into_lines() -> None:
    error = QueryError("Error: error code: -32601\nerror message:\nMethod not found\n")
    controller = _controller(["getfoo"], {"getfoo": error})

    controller.run_selected()

    assert controller.state.output_lines == [
        "Error: error code: -32601",
        "error message:",
        "Method not found",
    ]
    assert not any("\n" in line for line in controller.state.output_lines)


def test_info_failure_before_first_load_shows_placeholders() -> None:
    controller = _controller(
        ["getblockcount"],
        {"getblockcount": "1"},
        node=InfoSequence(QueryError("down")),
        wallet=InfoSequence(QueryError("down")),
    )

    controller.start()

    assert controller.state.node_info_text == NODE_INFO_PLACEHOLDER
    assert controller.state.wallet_info_text == WALLET_INFO_PLACEHOLDER


def test_info_failure_after_load_keeps_stale_text() -> None:
    controller = _controller(
        ["getblockcount"],
        {"getblockcount": "1"},
        node=InfoSequence("node v1", QueryError("down"), "node v2"),
        wallet=InfoSequence("wallet v1", "wallet v2", QueryError("down")),
    )

    controller.start()
    controller.refresh()
    assert controller.state.node_info_text == "node v1"
    assert controller.state.wallet_info_text == "wallet v2"

    controller.refresh()
    assert controller.state.node_info_text == "node v2"
    assert controller.state.wallet_info_text == "wallet v2"


def test_refresh_reruns_selected_command() -> None:
    controller = _controller(["getblockcount"], {"getblockcount": "1"},
                             node=InfoSequence("n", "n"), wallet=InfoSequence("w", "w"))
    controller.start()
    controller.executor.outputs["getblockcount"] = "2\n"

    controller.refresh()

    assert controller.state.output_lines == ["2"]
    assert controller.executor.calls == ["getblockcount", "getblockcount"]


def test_scroll_is_clamped_to_visible_window() -> None:
    controller = _controller(["x"], {"x": "\n".join(str(i) for i in range(10))})
    controller.run_selected()
    controller.set_visible_height(4)

    controller.scroll(100)
    assert controller.state.scroll_offset == 6

    controller.scroll(-100)
    assert controller.state.scroll_offset == 0


def test_scroll_with_short_output_stays_at_zero() -> None:
    controller = _controller(["x"], {"x": "one\ntwo"})
    controller.run_selected()
    controller.set_visible_height(10)

    controller.scroll(1)

    assert controller.state.scroll_offset == 0


def test_scroll_keeps_last_line_visible_before_layout_is_known() -> None:
    controller = _controller(["x"], {"x": "a\nb\nc"})
    controller.run_selected()

    controller.scroll(5)

    assert controller.state.scroll_offset == 2


def test_shrinking_window_pulls_offset_back_in_range() -> None:
    controller = _controller(["x"], {"x": "\n".join("abcdefgh")})
    controller.run_selected()
    controller.scroll(7)

    controller.set_visible_height(5)

    assert controller.state.scroll_offset == 3


def test_mask_digits_only_touches_ascii_digits() -> None:
    text = "Balance: 1.50000000 BTC\nTransactions: 42 (€, ٣)"

    masked = mask_digits(text)

    assert masked == "Balance: X.XXXXXXXX BTC\nTransactions: XX (€, ٣)"
    assert mask_digits(masked) == masked


def test_hide_sensitive_is_display_only() -> None:
    state = DashboardState(commands=("x",), wallet_info_text="Balance: 0.1 BTC")

    state.hide_sensitive = True
    assert state.wallet_display == "Balance: X.X BTC"
    assert state.wallet_info_text == "Balance: 0.1 BTC"

    state.hide_sensitive = False
    assert state.wallet_display == "Balance: 0.1 BTC"


def test_key_bindings() -> None:
    controller = _controller(["a", "b"], {"a": "1\n2\n3", "b": "B"})
    controller.run_selected()

    assert controller.handle_key(KeyEvent.of("w")) is DashboardAction.OPEN_OVERLAY
    assert controller.handle_key(KeyEvent.of("q")) is DashboardAction.QUIT

    controller.handle_key(KeyEvent.of("j"))
    assert controller.state.scroll_offset == 1
    controller.handle_key(KeyEvent(Key.PAGE_UP))
    assert controller.state.scroll_offset == 0

    controller.handle_key(KeyEvent.of("h"))
    assert controller.state.hide_sensitive is True

    assert controller.handle_key(KeyEvent(Key.DOWN)) is DashboardAction.NONE
    assert controller.state.selected_index == 1

    controller.handle_key(KeyEvent(Key.ENTER))
    assert controller.executor.calls[-2:] == ["b", "b"]


def test_ctrl_letters_are_not_dashboard_bindings() -> None:
    controller = _controller(["a"], {"a": "A"})

    assert controller.handle_key(KeyEvent.of("q", ctrl=True)) is DashboardAction.NONE
