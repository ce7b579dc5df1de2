from types import SimpleNamespace

from orderbridge import config
from orderbridge.session.store import (
    PROCESS_SESSION_KEY,
    SESSION_ID_FIELD,
    BackendSession,
    SessionRegistry,
    bind_backend_session,
    close_backend_session,
    get_backend_session,
    registry,
    session_key,
)


def test_set_session_is_last_write_wins():
    s = BackendSession()
    s.set_session("t1", "a=1", base_url="https://one.test")
    s.set_session("t2", "b=2")
    assert s.get_token() == "t2"
    assert s.get_cookies() == "b=2"
    # base_url conservée si non fournie
    assert s.base_url == "https://one.test"


def test_clear_resets_everything():
    s = BackendSession()
    s.set_session("t1", "a=1", base_url="https://one.test")
    s.payment_id = "P1"
    s.clear()
    assert not s.is_authenticated
    assert s.cookies == "" and s.base_url is None and s.payment_id is None


def test_registry_isolates_keys_and_drop():
    reg = SessionRegistry()
    alice, bob = BackendSession(), BackendSession()
    alice.set_session("ta")
    bob.set_session("tb")
    reg.put("alice", alice)
    reg.put("bob", bob)
    assert reg.find("alice").token == "ta"
    assert reg.find("bob").token == "tb"
    assert len(reg) == 2
    reg.drop("alice")
    assert reg.find("alice") is None
    assert not alice.is_authenticated
    assert len(reg) == 1


def test_find_never_creates_entries():
    reg = SessionRegistry()
    for i in range(25):
        assert reg.find(f"anon-{i}") is None
    assert reg.find(None) is None
    assert len(reg) == 0


def test_put_replaces_and_clears_previous_session():
    reg = SessionRegistry()
    old, new = BackendSession(), BackendSession()
    old.set_session("t-old")
    new.set_session("t-new")
    reg.put("k", old)
    reg.put("k", new)
    assert reg.find("k") is new
    assert not old.is_authenticated
    # Réenregistrer le même objet ne l'efface pas
    reg.put("k", new)
    assert reg.find("k").token == "t-new"


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_idle_sessions_expire_after_ttl():
    clock = _Clock()
    reg = SessionRegistry(idle_ttl=60, clock=clock)
    s = BackendSession()
    s.set_session("t1")
    reg.put("k", s)
    clock.now += 61
    assert reg.find("k") is None
    assert len(reg) == 0
    assert not s.is_authenticated


def test_activity_refreshes_idle_deadline():
    clock = _Clock()
    reg = SessionRegistry(idle_ttl=60, clock=clock)
    reg.put("k", BackendSession())
    clock.now += 45
    assert reg.find("k") is not None
    clock.now += 45
    assert reg.find("k") is not None
    clock.now += 61
    assert reg.find("k") is None


def test_zero_ttl_never_expires():
    clock = _Clock()
    reg = SessionRegistry(idle_ttl=0, clock=clock)
    reg.put("k", BackendSession())
    clock.now += 10 ** 7
    assert reg.find("k") is not None


def test_session_key_client_scope_issues_identifier_on_demand(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SCOPE", "client")
    request = SimpleNamespace(session={})
    assert session_key(request) is None
    assert SESSION_ID_FIELD not in request.session
    key = session_key(request, create=True)
    assert key and request.session[SESSION_ID_FIELD] == key
    assert session_key(request) == key
    assert session_key(request, create=True) == key


def test_session_key_process_scope(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SCOPE", "process")
    assert session_key(SimpleNamespace(session={})) == PROCESS_SESSION_KEY


def test_unknown_browser_gets_throwaway_session(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SCOPE", "client")
    request = SimpleNamespace(session={})
    s = get_backend_session(request)
    assert not s.is_authenticated
    assert len(registry) == 0
    assert request.session == {}


def test_bind_then_close_backend_session(monkeypatch):
    monkeypatch.setattr(config, "SESSION_SCOPE", "client")
    request = SimpleNamespace(session={})
    s = BackendSession()
    s.set_session("t1")
    bind_backend_session(request, s)
    assert len(registry) == 1
    assert get_backend_session(request) is s
    close_backend_session(request)
    assert len(registry) == 0
    assert SESSION_ID_FIELD not in request.session
    assert not s.is_authenticated
