import marimo

__generated_with = "0.13.10"
app = marimo.App(width="medium", app_title="Revise Scheduler")


# ---------------------------------------------------------------------------
# Bootstrap: paths, vault store, plugin
# ---------------------------------------------------------------------------


@app.cell
def _setup():
    import os
    from pathlib import Path

    from revise_scheduler.host import CollectingNotifier, FileSystemVault
    from revise_scheduler.plugin import fire_hook, load_all_plugins

    _ROOT = Path(__file__).parent.parent
    _VAULT_DIR = Path(os.getenv("REVISE_VAULT_DIR", _ROOT / "vault"))
    _PLUGINS_DIR = _ROOT / "plugins"

    vault = FileSystemVault(_VAULT_DIR)
    notifier = CollectingNotifier()
    revise_plugins = [p for p in load_all_plugins(_PLUGINS_DIR) if p.descriptor.id == "revise-scheduler"]
    fire_hook(revise_plugins, "on_load", store=vault, notifier=notifier)
    plugin = revise_plugins[0] if revise_plugins else None

    return notifier, plugin, vault


@app.cell
def _imports():
    import marimo as mo

    return (mo,)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.cell
def _controls(mo, plugin, vault):
    _notes = vault.list_documents(plugin.config.extension) if plugin else []
    note_picker = mo.ui.dropdown(options=_notes, label="Active note")
    scan_note_btn = mo.ui.button(label="Scan & schedule note", value=0, on_click=lambda v: v + 1)
    scan_vault_btn = mo.ui.button(label="Scan & schedule vault", value=0, on_click=lambda v: v + 1)
    return note_picker, scan_note_btn, scan_vault_btn


@app.cell
async def _scan_note(plugin, note_picker, scan_note_btn):
    if plugin is not None and scan_note_btn.value:
        await plugin.scan_current(note_picker.value)
    note_runs = scan_note_btn.value
    return (note_runs,)


@app.cell
async def _scan_vault(plugin, scan_vault_btn):
    if plugin is not None and scan_vault_btn.value:
        await plugin.scan_all()
    vault_runs = scan_vault_btn.value
    return (vault_runs,)


@app.cell
def _feedback(mo, notifier, plugin, note_runs, vault_runs):
    note_runs, vault_runs  # noqa: B018 (re-render after each command)
    if plugin is None:
        feedback = mo.callout(mo.md("Revise Scheduler plugin descriptor not found in `plugins/`."), kind="danger")
    elif notifier.messages:
        feedback = mo.callout(mo.md("\n".join(f"- {m}" for m in notifier.messages[-5:])), kind="info")
    else:
        feedback = mo.md("_No commands run yet._")
    return (feedback,)


@app.cell
def _render(mo, note_picker, scan_note_btn, scan_vault_btn, feedback):
    layout = mo.vstack(
        [
            mo.md("# Revise Scheduler"),
            mo.hstack([note_picker, scan_note_btn, scan_vault_btn], gap="8px", align="center"),
            feedback,
        ],
        gap="8px",
    )
    layout  # noqa: B018 (marimo displays the last expression as cell output)
    return


if __name__ == "__main__":
    app.run()
