from collabmatch.core.schemas import BriefStatus


def _seed(store, make_brief, make_creator) -> None:
    store.save_brand("brand-1", "LiftShake")
    store.save_brief(make_brief())
    store.save_creator(make_creator(id="c-1", embedding=[1.0, 0.0, 0.0], dream_brands=["liftshake"]))
    store.save_creator(make_creator(id="c-2", niche="travel"))


def test_health_endpoint(client) -> None:
    res = client.get("/api/v1/health")
    assert res.status_code == 200
    assert res.json()["ok"] is True


def test_config_exposes_matching_defaults(client) -> None:
    defaults = client.get("/api/v1/config").json()["matching_defaults"]
    assert defaults["weights"] == {"semantic": 0.6, "rule": 0.4}
    assert defaults["max_matches"] == 50


def test_match_brief_and_list_matches(client, store, make_brief, make_creator) -> None:
    _seed(store, make_brief, make_creator)
    res = client.post("/api/v1/briefs/brief-1/match", json={"min_score": 10})
    assert res.status_code == 200
    body = res.json()
    assert body["match_count"] == 2
    assert body["golden_count"] == 1
    assert body["semantic_enabled"] is True
    assert body["matches"][0]["creator_id"] == "c-1"
    assert body["matches"][0]["is_dream_brand"] is True

    listed = client.get("/api/v1/briefs/brief-1/matches").json()
    assert [m["creator_id"] for m in listed] == ["c-1", "c-2"]
    assert listed[0]["description"].startswith("This is a dream brand for you!")

    golden = client.get("/api/v1/briefs/brief-1/matches", params={"golden_only": True}).json()
    assert [m["creator_id"] for m in golden] == ["c-1"]


def test_match_without_body_uses_defaults(client, store, make_brief, make_creator) -> None:
    _seed(store, make_brief, make_creator)
    assert client.post("/api/v1/briefs/brief-1/match").status_code == 200


def test_match_errors_map_to_status_codes(client, store, make_brief) -> None:
    res = client.post("/api/v1/briefs/missing/match")
    assert res.status_code == 404
    assert res.json()["error"] == "not_found"

    store.save_brief(make_brief(id="paused", status=BriefStatus.PAUSED))
    res = client.post("/api/v1/briefs/paused/match")
    assert res.status_code == 400
    assert res.json()["error"] == "validation_error"


def test_refresh_creator_embedding(client, store, make_creator) -> None:
    store.save_creator(make_creator(id="c-1"))
    res = client.post("/api/v1/creators/c-1/embedding")
    assert res.status_code == 200
    assert res.json() == {"creator_id": "c-1", "updated": True, "dimensions": 3}


def test_update_availability(client, store, make_creator) -> None:
    store.save_creator(make_creator(id="c-1"))
    res = client.patch("/api/v1/creators/c-1/availability", json={"partnership_capacity": 25, "min_budget": -1})
    assert res.status_code == 200
    assert res.json()["partnership_capacity"] == 10
    assert res.json()["min_budget"] == 0


def test_partnership_flow_over_http(client, store, make_creator) -> None:
    store.save_creator(make_creator(id="c-1", partnership_capacity=1))
    res = client.post(
        "/api/v1/partnerships",
        json={
            "brand_id": "brand-1",
            "creator_id": "c-1",
            "match_id": "m-1",
            "agreed_rate": 350,
            "deliverables": [{"id": "d1", "type": "reel", "quantity": 2}],
        },
    )
    assert res.status_code == 201
    pid = res.json()["id"]
    assert res.json()["status"] == "negotiating"

    # creator is now full
    full = client.post("/api/v1/partnerships", json={"brand_id": "brand-2", "creator_id": "c-1"})
    assert full.status_code == 400
    assert full.json()["error"] == "capacity_exceeded"

    assert client.post(f"/api/v1/partnerships/{pid}/status", json={"status": "active"}).json()["status"] == "active"
    bad = client.post(f"/api/v1/partnerships/{pid}/status", json={"status": "completed"})
    assert bad.status_code == 409
    assert bad.json()["details"] == {"current": "active", "requested": "completed"}

    res = client.post(f"/api/v1/partnerships/{pid}/deliverables/d1/complete", json={"completed": 9})
    assert res.json()["deliverables"][0]["completed"] == 2

    assert client.post(f"/api/v1/partnerships/{pid}/content/submit").json()["status"] == "content_pending"
    assert client.post(f"/api/v1/partnerships/{pid}/content/approve").json()["status"] == "review"

    res = client.post(f"/api/v1/partnerships/{pid}/payment", json={"complete_after_payment": True, "creator_rating": 5})
    assert res.status_code == 200
    assert res.json()["status"] == "completed"
    assert res.json()["creator_rating"] == 5

    assert client.get(f"/api/v1/matches/m-1/partnership").json()["id"] == pid
    health = client.get(f"/api/v1/partnerships/{pid}/health").json()
    assert health["deliverable_progress"] == 100

    stats = client.get("/api/v1/partnerships/stats", params={"user_id": "c-1", "role": "creator"}).json()
    assert stats["completed"] == 1
    assert stats["avg_rating"] == 5.0


def test_rating_and_deliverable_replacement(client, store, make_creator) -> None:
    store.save_creator(make_creator(id="c-1"))
    pid = client.post("/api/v1/partnerships", json={"brand_id": "b", "creator_id": "c-1"}).json()["id"]

    bad = client.post(f"/api/v1/partnerships/{pid}/rating", json={"rating_type": "brand", "rating": 7})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Rating must be between 1 and 5"

    ok = client.post(f"/api/v1/partnerships/{pid}/rating", json={"rating_type": "brand", "rating": 4})
    assert ok.json()["brand_rating"] == 4

    res = client.put(
        f"/api/v1/partnerships/{pid}/deliverables",
        json={"deliverables": [{"type": "post", "quantity": 1}, {"type": "story", "quantity": 3}]},
    )
    assert res.status_code == 200
    assert [d["type"] for d in res.json()["deliverables"]] == ["post", "story"]

    listed = client.get("/api/v1/partnerships", params={"user_id": "b", "role": "brand"}).json()
    assert [p["id"] for p in listed] == [pid]
    filtered = client.get(
        "/api/v1/partnerships", params={"user_id": "b", "role": "brand", "status": ["completed"]}
    ).json()
    assert filtered == []


def test_unknown_partnership_is_404(client) -> None:
    assert client.get("/api/v1/partnerships/nope").status_code == 404
    assert client.get("/api/v1/partnerships/nope/health").status_code == 404
    assert client.get("/api/v1/matches/nope/partnership").status_code == 404
