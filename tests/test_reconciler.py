"""Reconciliation engine: idempotence, clear-on-stop, failure handling"""
import json

from conftest import make_track, playing
from statussync.models import CLEARED, DisplayPayload, Playback, PlayerState
from statussync.reconciler import CLEAR_AND_FORGET, ActionKind


def test_same_track_twice_publishes_once(make_reconciler, slack):
    rec = make_reconciler()
    first = rec.reconcile(playing())
    second = rec.reconcile(playing())

    assert first.kind is ActionKind.PUBLISH
    assert first.payload.text == "Artist A — Title B"
    assert second.kind is ActionKind.SKIP
    assert slack.status_calls == [("Artist A — Title B", ":musical_note:")]


def test_track_change_publishes_again(make_reconciler, slack):
    rec = make_reconciler()
    rec.reconcile(playing())
    action = rec.reconcile(playing(make_track(title="Other Song")))
    assert action.kind is ActionKind.PUBLISH
    assert len(slack.status_calls) == 2


def test_stop_with_clear_publishes_cleared_once(make_reconciler, slack, cache):
    rec = make_reconciler(clear_on_pause=True)
    rec.reconcile(playing())
    assert cache.read()["status_text"] == "Artist A — Title B"

    stop = rec.reconcile(None)
    again = rec.reconcile(None)

    assert stop.kind is ActionKind.PUBLISH
    assert stop.payload == CLEARED
    assert again.kind is ActionKind.SKIP
    assert slack.status_calls[-1] == ("", "")
    assert len(slack.status_calls) == 2
    assert not cache.path.exists()


def test_stop_without_clear_forgets_last_payload(make_reconciler, slack):
    rec = make_reconciler(clear_on_pause=False)
    rec.reconcile(playing())
    action = rec.reconcile(None)

    assert action.kind is ActionKind.SKIP
    assert rec.state.last_published is None
    assert len(slack.status_calls) == 1

    # Resuming the same track republishes because the remote state is now unknown.
    assert rec.reconcile(playing()).kind is ActionKind.PUBLISH
    assert len(slack.status_calls) == 2


def test_paused_counts_as_stopped_without_paused_block(make_reconciler, slack):
    rec = make_reconciler()
    rec.reconcile(playing())
    paused = Playback(state=PlayerState.PAUSED, track=make_track())
    assert rec.reconcile(paused).payload == CLEARED


def test_block_only_template_clears_while_playing(make_reconciler, slack):
    rec = make_reconciler(template="[paused]Paused: {song}[/paused]")
    action = rec.reconcile(playing())
    assert action.payload == CLEARED
    assert slack.status_calls == [("", "")]


def test_paused_block_is_published(make_reconciler, slack):
    rec = make_reconciler(template="{song}[paused]Paused: {song}[/paused]")
    paused = Playback(state=PlayerState.PAUSED, track=make_track())
    action = rec.reconcile(paused)
    assert action.payload == DisplayPayload("Paused: Title B", ":musical_note:")
    assert rec.visible_track(paused) == make_track()


def test_failed_publish_leaves_state_unchanged(make_reconciler, slack, cache):
    rec = make_reconciler()
    slack.fail_status = "ratelimited"

    action = rec.reconcile(playing())
    assert action.kind is ActionKind.PUBLISH
    assert rec.state.last_published is None
    assert cache.read() is None

    slack.fail_status = None
    assert rec.reconcile(playing()).kind is ActionKind.PUBLISH
    assert slack.status_calls == [("Artist A — Title B", ":musical_note:")]


def test_dry_run_updates_state_without_remote_calls(make_reconciler, slack, cache):
    rec = make_reconciler(dry_run=True)
    rec.reconcile(playing())

    assert slack.status_calls == []
    assert rec.state.last_published.text == "Artist A — Title B"
    assert rec.reconcile(playing()).kind is ActionKind.SKIP
    assert cache.read()["status_text"] == "Artist A — Title B"


def test_clear_and_forget(make_reconciler, slack, cache):
    rec = make_reconciler()
    rec.reconcile(playing())
    assert rec.apply(CLEAR_AND_FORGET)

    assert slack.status_calls[-1] == ("", "")
    assert rec.state.last_published is None
    assert not cache.path.exists()


def test_persisted_record_shape(make_reconciler, cache):
    rec = make_reconciler()
    rec.reconcile(playing())
    data = json.loads(cache.path.read_text())
    assert set(data) == {"status_text", "status_emoji", "updated_at"}
    assert data["status_emoji"] == ":musical_note:"
