"""Unit tests for revise_scheduler.revise (plugin hooks and commands)."""

import asyncio

import pytest

from revise_scheduler.config import SchedulerConfig
from revise_scheduler.parser import parse_checkbox_items
from revise_scheduler.revise import DEFAULT_DESCRIPTOR, RevisePlugin, create_plugin

DONE = "- [x] T #revise ✅ 2023-01-01\n"


def _plugin(store, notifier, today, **config):
    config.setdefault("debounce_ms", 0)
    plugin = RevisePlugin(DEFAULT_DESCRIPTOR, SchedulerConfig(**config))
    plugin.on_load(store, notifier, clock=today)
    return plugin


class TestLifecycle:
    def test_create_plugin(self, monkeypatch):
        monkeypatch.delenv("REVISE_LADDER", raising=False)
        plugin = create_plugin(DEFAULT_DESCRIPTOR)
        assert plugin.config.ladder == "spaced"

    def test_on_load_notifies(self, store, notifier, today):
        _plugin(store, notifier, today, ladder="classic")
        assert notifier.messages == ["Revise Scheduler loaded (classic ladder)"]

    def test_commands_require_load(self):
        plugin = RevisePlugin(DEFAULT_DESCRIPTOR, SchedulerConfig())
        with pytest.raises(RuntimeError, match="on_load"):
            asyncio.run(plugin.scan_all())
        with pytest.raises(RuntimeError, match="on_load"):
            plugin.on_document_changed("a.md")

    def test_on_unload_clears_state(self, store, notifier, today):
        plugin = _plugin(store, notifier, today)
        plugin.processor.state.suppress("a.md", 60)
        plugin.processor.state.checkboxes.observe("a.md", [])
        asyncio.run(plugin.on_unload())
        assert not plugin.processor.state.suppressed_until
        assert not plugin.processor.state.checkboxes.snapshots


# ---------------------------------------------------------------------------
# Event hooks
# ---------------------------------------------------------------------------


class TestModifyTrigger:
    def test_change_processed(self, store, notifier, today):
        store.docs["a.md"] = DONE
        plugin = _plugin(store, notifier, today)

        async def scenario():
            plugin.on_document_changed("a.md")
            await plugin.scheduler.drain()
            await plugin.on_unload()

        asyncio.run(scenario())
        assert "#nextscheduled" in store.docs["a.md"]
        assert notifier.last == "Revise Scheduler: created 1 follow-up task(s) in a.md"

    def test_other_extensions_ignored(self, store, notifier, today):
        store.docs["a.txt"] = DONE
        plugin = _plugin(store, notifier, today)

        async def scenario():
            plugin.on_document_changed("a.txt")
            await plugin.scheduler.drain()
            await plugin.on_unload()

        asyncio.run(scenario())
        assert store.reads == []

    def test_checkbox_events_ignored(self, store, notifier, today):
        store.docs["a.md"] = DONE
        plugin = _plugin(store, notifier, today)
        plugin.on_checkbox_metadata_changed("a.md", parse_checkbox_items(DONE))
        assert plugin.scheduler._dispatcher is None


class TestCheckboxTrigger:
    def test_ticked_box_processed(self, store, notifier, today):
        store.docs["a.md"] = "- [ ] T #revise\n"
        plugin = _plugin(store, notifier, today, trigger="checkbox")
        plugin.on_document_opened("a.md", parse_checkbox_items(store.docs["a.md"]))

        async def scenario():
            store.docs["a.md"] = DONE
            plugin.on_checkbox_metadata_changed("a.md", parse_checkbox_items(DONE))
            await plugin.scheduler.drain()
            await plugin.on_unload()

        asyncio.run(scenario())
        assert store.docs["a.md"].splitlines()[1] == "- [ ] T ⏳ 2023-01-08 #revise_7"

    def test_already_checked_on_open_is_left_alone(self, store, notifier, today):
        store.docs["a.md"] = DONE
        plugin = _plugin(store, notifier, today, trigger="checkbox")
        plugin.on_document_opened("a.md", parse_checkbox_items(DONE))

        async def scenario():
            plugin.on_checkbox_metadata_changed("a.md", parse_checkbox_items(DONE))
            await plugin.scheduler.drain()
            await plugin.on_unload()

        asyncio.run(scenario())
        assert store.docs["a.md"] == DONE

    def test_plain_saves_ignored(self, store, notifier, today):
        plugin = _plugin(store, notifier, today, trigger="checkbox")
        plugin.on_document_changed("a.md")
        assert plugin.scheduler._dispatcher is None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommands:
    def test_scan_current(self, store, notifier, today):
        store.docs["a.md"] = DONE
        plugin = _plugin(store, notifier, today)
        result = asyncio.run(plugin.scan_current("a.md"))
        assert result.changed
        assert notifier.messages[-2:] == [
            "Revise Scheduler: created 1 follow-up task(s) in a.md",
            "Revise Scheduler: scanned a.md",
        ]

    def test_scan_current_read_failure(self, store, notifier, today):
        store.docs["a.md"] = DONE
        store.fail_reads = True
        plugin = _plugin(store, notifier, today)
        assert asyncio.run(plugin.scan_current("a.md")) is None
        assert notifier.last == "Revise Scheduler: could not update a.md"
        assert "Revise Scheduler: scanned a.md" not in notifier.messages

    def test_scan_current_while_busy(self, store, notifier, today):
        store.docs["a.md"] = DONE
        plugin = _plugin(store, notifier, today)
        plugin.processor.state.in_flight.add("a.md")
        assert asyncio.run(plugin.scan_current("a.md")) is None
        assert notifier.last == "Revise Scheduler: a.md is already being processed"
        assert store.reads == []

    def test_scan_current_without_document(self, store, notifier, today):
        plugin = _plugin(store, notifier, today)
        assert asyncio.run(plugin.scan_current(None)) is None
        assert notifier.last == "Revise Scheduler: no active document"
        assert store.reads == []

    def test_scan_all(self, store, notifier, today):
        store.docs.update({"a.md": DONE, "b.md": "- [ ] nothing\n", "sub/c.md": DONE, "d.txt": DONE})
        plugin = _plugin(store, notifier, today)
        assert asyncio.run(plugin.scan_all()) == 2
        assert store.docs["d.txt"] == DONE
        assert notifier.last == "Revise Scheduler: scanned 3 documents (2 updated)"

    def test_scan_all_twice(self, store, notifier, today):
        store.docs["a.md"] = DONE
        plugin = _plugin(store, notifier, today)
        asyncio.run(plugin.scan_all())
        assert asyncio.run(plugin.scan_all()) == 0
