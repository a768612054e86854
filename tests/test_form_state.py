"""Tests for the in-memory intake draft store."""

from datetime import UTC, datetime, timedelta

import pytest

from app.services.form_state import DraftSubmittingError, FormStateStore


def test_create_assigns_id_and_copies_initial():
    store = FormStateStore()
    initial = {"legal_first_name": "Ana"}
    session = store.create(initial)

    assert session.session_id
    assert session.form_data == {"legal_first_name": "Ana"}
    initial["legal_first_name"] = "changed"
    assert store.get(session.session_id).form_data["legal_first_name"] == "Ana"
    assert len(store) == 1


def test_update_is_shallow_merge_last_write_wins():
    store = FormStateStore()
    session = store.create({"legal_first_name": "Ana", "allergies": [{"allergen": "dust"}]})

    store.update_form_data(session.session_id, {"legal_last_name": "Lopez"})
    store.update_form_data(session.session_id, {"legal_first_name": "Anita", "allergies": []})

    data = store.get(session.session_id).form_data
    assert data == {"legal_first_name": "Anita", "legal_last_name": "Lopez", "allergies": []}


def test_update_touches_updated_at():
    store = FormStateStore()
    session = store.create()
    created = session.created_at
    store.update_form_data(session.session_id, {"city": "Rockville"})
    assert store.get(session.session_id).updated_at >= created


def test_unknown_session_raises_key_error():
    store = FormStateStore()
    with pytest.raises(KeyError):
        store.get("missing")
    with pytest.raises(KeyError):
        store.update_form_data("missing", {"a": 1})


def test_discard():
    store = FormStateStore()
    session = store.create()
    store.discard(session.session_id)
    store.discard(session.session_id)
    assert len(store) == 0


def test_snapshot_reads_aliased_keys():
    store = FormStateStore()
    session = store.create({
        "legal_first_name": "Ana",
        "cutDown": "yes",
        "persistentCough": "no",
        "familyHistoryEntries": [{"relation": "Mother", "alive": "yes"}],
    })

    snapshot = store.snapshot(session.session_id)
    assert snapshot.basic.legal_first_name == "Ana"
    assert snapshot.lifestyle.cut_down == "yes"
    assert snapshot.medical.persistent_cough == "no"
    assert snapshot.family.family_history_entries[0].relation == "Mother"


def test_to_response():
    store = FormStateStore()
    session = store.create({"zip": "20850"})
    response = session.to_response()
    assert response.session_id == session.session_id
    assert response.form_data == {"zip": "20850"}


def test_begin_submit_claims_draft_once():
    store = FormStateStore()
    session = store.create({"legal_first_name": "Ana"})

    store.begin_submit(session.session_id)
    with pytest.raises(DraftSubmittingError):
        store.begin_submit(session.session_id)


def test_failed_submit_releases_draft():
    store = FormStateStore()
    session = store.create()
    store.begin_submit(session.session_id)

    store.end_submit(session.session_id, succeeded=False)
    assert store.begin_submit(session.session_id) is session


def test_successful_submit_drops_draft():
    store = FormStateStore()
    session = store.create()
    store.begin_submit(session.session_id)

    store.end_submit(session.session_id, succeeded=True)
    with pytest.raises(KeyError):
        store.get(session.session_id)


def _age(session, seconds):
    session.updated_at = (datetime.now(UTC) - timedelta(seconds=seconds)).isoformat()


def test_idle_drafts_expire():
    store = FormStateStore(ttl_seconds=60)
    stale = store.create()
    fresh = store.create()
    _age(stale, 120)
    _age(fresh, 30)

    with pytest.raises(KeyError):
        store.get(stale.session_id)
    assert store.get(fresh.session_id) is fresh
    assert len(store) == 1


def test_create_evicts_idle_drafts():
    store = FormStateStore(ttl_seconds=60)
    _age(store.create(), 120)
    store.create()
    assert len(store) == 1


def test_draft_being_submitted_does_not_expire():
    store = FormStateStore(ttl_seconds=60)
    session = store.create()
    store.begin_submit(session.session_id)
    _age(session, 120)

    assert store.get(session.session_id) is session
