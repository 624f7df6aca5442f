import asyncio

from fastapi.testclient import TestClient

from conftest import login, signup


def test_feed_renders_empty(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert "No posts here." in r.text


def test_register_login_post_scenario(client):
    signup(client, "alice", "a@x.com", "secret1")

    r = client.post("/login", data={"credential": "alice", "password": "secret1"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"
    assert client.cookies.get("quill_session")

    r = client.post("/create-post", data={"content": "hello"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/"

    r = client.get("/")
    assert r.status_code == 200
    assert "hello" in r.text
    assert '<span class="author">alice</span>' in r.text


def test_login_by_email_sets_same_session_user(client, app):
    signup(client, "alice", "a@x.com")
    login(client, "a@x.com")
    sid = app.state.signer.unsign(client.cookies.get("quill_session"))
    assert app.state.sessions.get(sid).user_id == 1


def test_login_accepts_json_body(client):
    signup(client, "alice", "a@x.com")
    r = client.post("/login", json={"credential": "alice", "password": "secret1"}, follow_redirects=False)
    assert r.status_code == 303


def test_register_errors_render_form_with_400(client):
    r = client.post("/register", data={"username": "alice", "email": "bad", "password": "secret1"})
    assert r.status_code == 400
    assert "invalid email format" in r.text
    assert 'name="username" value="alice"' in r.text


def test_register_duplicate(client):
    signup(client, "alice", "a@x.com")
    r = client.post("/register", data={"username": "alice", "email": "z@x.com", "password": "secret1"})
    assert r.status_code == 400
    assert "credential already in use" in r.text


def test_login_failures_render_form_with_400(client):
    signup(client, "alice", "a@x.com")
    r = client.post("/login", data={"credential": "alice", "password": "nope-nope"})
    assert r.status_code == 400
    assert "invalid credentials" in r.text
    r = client.post("/login", data={"credential": "", "password": ""})
    assert r.status_code == 400
    assert "credential and password required" in r.text


def test_page_routes_redirect_anonymous_to_login(client):
    for method, url in [
        ("get", "/create-post"),
        ("post", "/create-post"),
        ("get", "/edit-post/1"),
        ("post", "/edit-post/1"),
    ]:
        r = getattr(client, method)(url, follow_redirects=False)
        assert r.status_code == 303, url
        assert r.headers["location"] == "/login", url


def test_anonymous_create_submission_stores_nothing(client, store):
    client.post("/create-post", data={"content": "sneaky"}, follow_redirects=False)
    assert store.get_post_count() == 0


def test_anonymous_delete_is_401_plain_text(client):
    r = client.delete("/post/1")
    assert r.status_code == 401
    assert r.headers["content-type"].startswith("text/plain")


def test_create_post_requires_content(alice):
    r = alice.post("/create-post", data={"content": "  "})
    assert r.status_code == 400
    assert "content required" in r.text


def test_post_page_shows_controls_only_to_author(alice, app, store):
    alice.post("/create-post", data={"content": "mine"})
    r = alice.get("/post/1")
    assert r.status_code == 200
    assert 'href="/edit-post/1"' in r.text

    other = TestClient(app)
    r = other.get("/post/1")
    assert r.status_code == 200
    assert "mine" in r.text
    assert 'href="/edit-post/1"' not in r.text


def test_unknown_post_page_is_404(client):
    r = client.get("/post/999")
    assert r.status_code == 404
    assert "post not found" in r.text


def test_edit_and_delete_as_author(alice, store):
    alice.post("/create-post", data={"content": "draft"})
    r = alice.get("/edit-post/1")
    assert r.status_code == 200
    assert "draft" in r.text

    r = alice.post("/edit-post/1", data={"content": "final"}, follow_redirects=False)
    assert r.status_code == 303
    assert store.get_post_by_id(1).content == "final"

    r = alice.delete("/post/1")
    assert r.status_code == 200
    assert r.json() == {"message": "post deleted"}
    assert store.get_post_by_id(1) is None


def test_non_author_cannot_edit_or_delete(alice, app, store):
    alice.post("/create-post", data={"content": "alice's post"})

    bob = TestClient(app)
    signup(bob, "bob", "b@x.com")
    login(bob, "bob")

    r = bob.get("/edit-post/1")
    assert r.status_code == 403
    assert "not allowed to modify this post" in r.text

    r = bob.post("/edit-post/1", data={"content": "defaced"})
    assert r.status_code == 403
    assert store.get_post_by_id(1).content == "alice's post"

    r = bob.delete("/post/1")
    assert r.status_code == 403
    assert store.get_post_by_id(1) is not None

    r = bob.delete("/post/999")
    assert r.status_code == 404


def test_far_page_is_empty_with_prev_only(alice):
    for i in range(3):
        alice.post("/create-post", data={"content": f"post {i}"})
    r = alice.get("/?page=999")
    assert r.status_code == 200
    assert "No posts here." in r.text
    assert 'href="/?page=998"' in r.text
    assert 'rel="next"' not in r.text


def test_feed_paginates_by_ten(alice):
    for i in range(11):
        alice.post("/create-post", data={"content": f"entry-{i:02d}"})
    first = alice.get("/")
    assert "entry-10" in first.text
    assert "entry-00" not in first.text
    assert 'href="/?page=2"' in first.text
    assert 'rel="prev"' not in first.text

    second = alice.get("/?page=2")
    assert "entry-00" in second.text
    assert 'href="/?page=1"' in second.text


def test_non_numeric_page_falls_back_to_first(alice):
    alice.post("/create-post", data={"content": "only"})
    r = alice.get("/?page=abc")
    assert r.status_code == 200
    assert "only" in r.text
    assert "Page 1" in r.text


def test_feed_store_failure_renders_500_with_message(client, store):
    store.posts_path.write_text("corrupt", encoding="utf-8")
    r = client.get("/")
    assert r.status_code == 500
    assert "Error fetching posts." in r.text
    assert "corrupt" not in r.text


def test_logout_destroys_session(alice, app):
    sid = app.state.signer.unsign(alice.cookies.get("quill_session"))
    r = alice.get("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert app.state.sessions.get(sid) is None
    r = alice.get("/create-post", follow_redirects=False)
    assert r.headers["location"] == "/login"


def test_tampered_cookie_is_anonymous(alice, app):
    token = alice.cookies.get("quill_session")
    fresh = TestClient(app)
    r = fresh.get("/create-post", headers={"Cookie": f"quill_session={token}"}, follow_redirects=False)
    assert r.status_code == 200
    r = fresh.get("/create-post", headers={"Cookie": f"quill_session={token}x"}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"


def test_static_assets_are_served(client):
    assert client.get("/css/main.css").status_code == 200
    assert client.get("/js/post.js").status_code == 200
    assert client.get("/images/quill.svg").status_code == 200


def test_blocking_work_runs_off_the_event_loop(client, store, monkeypatch):
    calls = []

    def off_loop(method):
        def wrapper(*args, **kwargs):
            try:
                asyncio.get_running_loop()
                calls.append((method.__name__, "loop"))
            except RuntimeError:
                calls.append((method.__name__, "thread"))
            return method(*args, **kwargs)

        return wrapper

    for name in ("get_user_by_username_or_email", "add_user", "get_user_by_id", "add_post", "update_post"):
        monkeypatch.setattr(store, name, off_loop(getattr(store, name)))

    signup(client, "alice", "a@x.com")
    login(client, "alice")
    client.post("/create-post", data={"content": "hello"})
    client.post("/edit-post/1", data={"content": "edited"})

    seen = {name for name, _ in calls}
    assert {"get_user_by_username_or_email", "add_user", "get_user_by_id", "add_post", "update_post"} <= seen
    assert all(where == "thread" for _, where in calls), calls


def test_register_race_answers_400(client, store, monkeypatch):
    signup(client, "alice", "a@x.com")
    monkeypatch.setattr(store, "get_user_by_username_or_email", lambda username, email: None)
    r = client.post("/register", data={"username": "alice", "email": "z@x.com", "password": "secret1"})
    assert r.status_code == 400
    assert "credential already in use" in r.text
