def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_db_init(client):
    from typerace.db import get_connection

    with get_connection() as conn:
        # Check tables exist
        tables = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ).fetchall()
        table_names = [t["name"] for t in tables]

        assert "users" in table_names
        assert "tokens" in table_names
        assert "text_lines" in table_names


def test_corpus_seeded(client):
    from typerace.db import DEFAULT_TEXT_LINES, list_text_lines

    assert list_text_lines() == DEFAULT_TEXT_LINES


def test_lifespan_wires_services(client):
    state = client.app.state
    assert state.guard.store is state.token_store
    assert state.coordinator.room_count() == 0


def test_db_path_parent_created(tmp_path, monkeypatch):
    import typerace.db as db_module

    target = tmp_path / "nested" / "race.db"
    monkeypatch.setattr(db_module, "DB_PATH", target)
    assert db_module.get_db_path() == target
    assert target.parent.is_dir()
