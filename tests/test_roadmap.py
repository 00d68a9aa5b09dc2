import random

from sqlalchemy import func, select

from tracker_api.models.entities import ActivityLogEntry


def _seed_project(client, name="Roadmap Project"):
    return client.post("/v1/projects", json={"name": name}).json()


def _create_item(client, project_id, title, column="backlog", **extra):
    response = client.post(
        "/v1/roadmap",
        json={"project_id": project_id, "title": title, "column": column, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


def _board(client, project_id):
    response = client.get(f"/v1/roadmap?project_id={project_id}")
    assert response.status_code == 200
    return response.json()


def _column(client, project_id, column):
    return [
        (entry["title"], entry["position"])
        for entry in _board(client, project_id)[column]
        if entry["source"] == "roadmap"
    ]


def _move(client, item_id, column, position):
    return client.patch(f"/v1/roadmap/{item_id}/move", json={"column": column, "position": position})


def test_create_appends_at_end_of_column(client):
    project = _seed_project(client)
    a = _create_item(client, project["id"], "A")
    b = _create_item(client, project["id"], "B")
    x = _create_item(client, project["id"], "X", column="in_progress", is_discovery=True)

    assert (a["position"], b["position"]) == (0, 1)
    assert x["position"] == 0
    assert x["is_discovery"] is True
    assert x["request_id"] is None


def test_create_at_explicit_position_opens_a_slot(client):
    project = _seed_project(client)
    _create_item(client, project["id"], "A")
    _create_item(client, project["id"], "B")
    _create_item(client, project["id"], "C", position=0)

    assert _column(client, project["id"], "backlog") == [("C", 0), ("A", 1), ("B", 2)]

    too_far = client.post(
        "/v1/roadmap",
        json={"project_id": project["id"], "title": "D", "position": 5},
    )
    assert too_far.status_code == 400
    assert _column(client, project["id"], "backlog") == [("C", 0), ("A", 1), ("B", 2)]


def test_move_to_top_of_same_column(client):
    project = _seed_project(client)
    _create_item(client, project["id"], "A")
    _create_item(client, project["id"], "B")
    c = _create_item(client, project["id"], "C")

    response = _move(client, c["id"], "backlog", 0)
    assert response.status_code == 200
    assert response.json()["position"] == 0
    assert _column(client, project["id"], "backlog") == [("C", 0), ("A", 1), ("B", 2)]


def test_move_down_within_column(client):
    project = _seed_project(client)
    a = _create_item(client, project["id"], "A")
    for title in ("B", "C", "D"):
        _create_item(client, project["id"], title)

    assert _move(client, a["id"], "backlog", 2).status_code == 200
    assert _column(client, project["id"], "backlog") == [("B", 0), ("C", 1), ("A", 2), ("D", 3)]


def test_move_across_columns(client):
    project = _seed_project(client)
    _create_item(client, project["id"], "A")
    b = _create_item(client, project["id"], "B")
    _create_item(client, project["id"], "X", column="in_progress")

    response = _move(client, b["id"], "in_progress", 0)
    assert response.status_code == 200
    assert response.json()["column"] == "in_progress"
    assert _column(client, project["id"], "backlog") == [("A", 0)]
    assert _column(client, project["id"], "in_progress") == [("B", 0), ("X", 1)]


def test_move_to_current_slot_changes_nothing(client):
    project = _seed_project(client)
    _create_item(client, project["id"], "A")
    b = _create_item(client, project["id"], "B")

    response = _move(client, b["id"], "backlog", 1)
    assert response.status_code == 200
    assert _column(client, project["id"], "backlog") == [("A", 0), ("B", 1)]


def test_move_rejects_out_of_range_position_without_mutation(client):
    project = _seed_project(client)
    a = _create_item(client, project["id"], "A")
    _create_item(client, project["id"], "B")
    _create_item(client, project["id"], "C")
    _create_item(client, project["id"], "X", column="in_progress")

    # Same column: three cards leave slots 0..2.
    same_column = _move(client, a["id"], "backlog", 3)
    assert same_column.status_code == 400
    # Other column: one card there leaves slots 0..1.
    cross_column = _move(client, a["id"], "in_progress", 2)
    assert cross_column.status_code == 400

    assert _column(client, project["id"], "backlog") == [("A", 0), ("B", 1), ("C", 2)]
    assert _column(client, project["id"], "in_progress") == [("X", 0)]

    append = _move(client, a["id"], "in_progress", 1)
    assert append.status_code == 200
    assert _column(client, project["id"], "in_progress") == [("X", 0), ("A", 1)]


def test_malformed_move_payloads_are_rejected(client):
    project = _seed_project(client)
    a = _create_item(client, project["id"], "A")

    unknown_column = _move(client, a["id"], "discovery", 0)
    assert unknown_column.status_code == 400
    assert unknown_column.json()["detail"][0]["loc"] == ["body", "column"]

    negative = _move(client, a["id"], "backlog", -1)
    assert negative.status_code == 400
    assert negative.json()["detail"] == "position must be between 0 and 0"

    missing = client.patch(f"/v1/roadmap/{a['id']}/move", json={"column": "backlog"})
    assert missing.status_code == 400

    negative_create = client.post("/v1/roadmap", json={"project_id": project["id"], "title": "B", "position": -1})
    assert negative_create.status_code == 400
    assert _column(client, project["id"], "backlog") == [("A", 0)]

    assert _move(client, 999, "backlog", 0).status_code == 404


def test_delete_closes_the_gap(client):
    project = _seed_project(client)
    _create_item(client, project["id"], "A")
    b = _create_item(client, project["id"], "B")
    _create_item(client, project["id"], "C")

    deleted = client.delete(f"/v1/roadmap/{b['id']}")
    assert deleted.status_code == 204
    assert _column(client, project["id"], "backlog") == [("A", 0), ("C", 1)]

    assert client.delete(f"/v1/roadmap/{b['id']}").status_code == 404


def test_update_edits_descriptive_fields_only(client):
    project = _seed_project(client)
    _create_item(client, project["id"], "A")
    b = _create_item(client, project["id"], "B")

    response = client.patch(f"/v1/roadmap/{b['id']}", json={"title": "B2", "priority": "high"})
    assert response.status_code == 200
    assert response.json()["title"] == "B2"
    assert response.json()["priority"] == "high"
    assert response.json()["position"] == 1

    empty = client.patch(f"/v1/roadmap/{b['id']}", json={})
    assert empty.status_code == 400
    assert empty.json()["detail"] == "no fields to update"


def test_boards_are_scoped_per_project(client):
    first = _seed_project(client, "First")
    second = _seed_project(client, "Second")
    _create_item(client, first["id"], "A")
    other = _create_item(client, second["id"], "Z")

    assert other["position"] == 0
    assert _column(client, first["id"], "backlog") == [("A", 0)]
    assert client.get("/v1/roadmap?project_id=999").status_code == 404


def test_linked_card_moves_sync_request_status(client, db_session):
    project = _seed_project(client)
    request = client.post("/v1/requests", json={"project_id": project["id"], "title": "Dark mode"}).json()
    linked = _create_item(client, project["id"], "Dark mode", request_id=request["id"])
    _create_item(client, project["id"], "Other", column="released")

    assert client.get(f"/v1/requests/{request['id']}").json()["status"] == "backlog"

    assert _move(client, linked["id"], "released", 0).status_code == 200
    assert client.get(f"/v1/requests/{request['id']}").json()["status"] == "completed"

    activity = client.get(f"/v1/requests/{request['id']}/activity").json()["items"]
    assert [(row["action"], row["old_value"], row["new_value"]) for row in activity] == [
        ("status_change", "pending", "backlog"),
        ("status_change", "backlog", "completed"),
    ]

    # Reordering inside a column never touches the request.
    before = db_session.execute(select(func.count(ActivityLogEntry.id))).scalar_one()
    assert _move(client, linked["id"], "released", 1).status_code == 200
    after = db_session.execute(select(func.count(ActivityLogEntry.id))).scalar_one()
    assert after == before
    assert client.get(f"/v1/requests/{request['id']}").json()["status"] == "completed"


def test_linking_a_request_twice_conflicts(client):
    project = _seed_project(client)
    request = client.post("/v1/requests", json={"project_id": project["id"], "title": "Export"}).json()
    _create_item(client, project["id"], "Export", request_id=request["id"])

    duplicate = client.post(
        "/v1/roadmap",
        json={"project_id": project["id"], "title": "Export again", "request_id": request["id"]},
    )
    assert duplicate.status_code == 409
    assert _column(client, project["id"], "backlog") == [("Export", 0)]


def test_positions_stay_contiguous_through_random_operations(client, assert_board_contiguous):
    project = _seed_project(client)
    rng = random.Random(7)
    columns = ["backlog", "in_progress", "released"]
    for index in range(6):
        _create_item(client, project["id"], f"seed-{index}", column=rng.choice(columns))

    for step in range(60):
        board = _board(client, project["id"])
        cards = [entry for column in columns for entry in board[column]]
        action = rng.random()
        if action < 0.6 and cards:
            card = rng.choice(cards)
            target = rng.choice(columns)
            slots = len(board[target]) - (1 if card["column"] == target else 0)
            response = _move(client, card["id"], target, rng.randint(0, slots))
            assert response.status_code == 200
        elif action < 0.8 and cards:
            card = rng.choice(cards)
            assert client.delete(f"/v1/roadmap/{card['id']}").status_code == 204
        else:
            target = rng.choice(columns)
            _create_item(client, project["id"], f"step-{step}", column=target, position=rng.randint(0, len(board[target])))
        assert_board_contiguous(project["id"])
