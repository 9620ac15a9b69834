import pytest

from scour.panel import PanelError, PanelPresenter
from scour.state import Location, PanelEntry
from tests.conftest import FakeHost

ENTRIES = [
    PanelEntry(text="header\n", properties={"type": "header"}),
    PanelEntry(text="a.txt:1\n", properties={"type": "result", "index": 0,
                                              "location": {"file": "a.txt", "line": 1, "column": 2}}),
]


@pytest.mark.asyncio
async def test_open_captures_source_split_and_buffer(host: FakeHost):
    panel = PanelPresenter(host, "*Test*", "test-mode")

    buffer_id = await panel.open(ENTRIES, ratio=0.3)

    assert panel.is_open
    assert panel.buffer_id == buffer_id
    assert panel.source_split_id == 7
    spec = host.specs[buffer_id]
    assert spec.read_only and spec.mode == "test-mode" and spec.ratio == 0.3


@pytest.mark.asyncio
async def test_open_twice_is_an_error(host: FakeHost):
    panel = PanelPresenter(host, "*Test*", "test-mode")
    await panel.open(ENTRIES)

    with pytest.raises(PanelError):
        await panel.open(ENTRIES)


@pytest.mark.asyncio
async def test_update_and_close(host: FakeHost):
    panel = PanelPresenter(host, "*Test*", "test-mode")
    panel.update_content(ENTRIES)  # closed: nothing happens
    assert host.buffers == {}

    buffer_id = await panel.open(ENTRIES)
    panel.update_content(ENTRIES[:1])
    assert host.texts(buffer_id) == ["header\n"]

    panel.close()
    assert not panel.is_open
    assert panel.buffer_id is None and panel.source_split_id is None
    assert host.closed == [buffer_id]

    panel.close()
    assert host.closed == [buffer_id]


@pytest.mark.asyncio
async def test_entry_at_cursor_and_jump(host: FakeHost):
    panel = PanelPresenter(host, "*Test*", "test-mode")
    assert panel.entry_at_cursor() is None
    assert not panel.jump_to(Location(file="a.txt", line=1, column=1))

    buffer_id = await panel.open(ENTRIES)
    host.place_cursor(buffer_id, 0)

    entry = panel.entry_at_cursor()
    assert entry["location"]["file"] == "a.txt"
    assert panel.state.cursor_index == 0

    assert panel.jump_to(Location(**entry["location"]))
    assert host.jumps == [(7, "a.txt", 1, 2)]
