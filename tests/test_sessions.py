import asyncio

from mortgage_assistant.conversation.models import ConversationSession, Role, Scenario
from mortgage_assistant.llm.prompts import get_system_prompt
from mortgage_assistant.storage.sessions import SessionStore


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def _hold_briefly(store: SessionStore, key: str) -> None:
    async with store.hold(key):
        pass


def test_new_session_is_seeded_with_system_turn() -> None:
    store = SessionStore()

    session = store.get_or_create("abc", Scenario.REFINANCE_CHECK)

    assert len(session) == 1
    assert session.turns[0].role is Role.SYSTEM
    assert session.turns[0].content == get_system_prompt(Scenario.REFINANCE_CHECK)
    assert "abc" in store


def test_scenario_is_fixed_at_creation() -> None:
    store = SessionStore()
    store.get_or_create("abc", Scenario.BUY_VS_RENT)

    session = store.get_or_create("abc", Scenario.REFINANCE_CHECK)

    assert session.scenario is Scenario.BUY_VS_RENT
    assert len(session) == 1


def test_idle_sessions_expire() -> None:
    clock = FakeClock()
    store = SessionStore(ttl=60, clock=clock)
    torn_down: list[ConversationSession] = []
    store.add_teardown_hook(torn_down.append)

    store.get_or_create("old", Scenario.BUY_VS_RENT)
    clock.advance(45)
    store.get_or_create("fresh", Scenario.BUY_VS_RENT)
    clock.advance(30)

    assert store.purge_expired() == 1
    assert store.get("old") is None
    assert store.get("fresh") is not None
    assert [session.key for session in torn_down] == ["old"]


def test_touch_refreshes_ttl() -> None:
    clock = FakeClock()
    store = SessionStore(ttl=60, clock=clock)
    session = store.get_or_create("abc", Scenario.BUY_VS_RENT)

    clock.advance(50)
    store.touch(session)
    clock.advance(50)

    assert store.get("abc") is session


def test_locked_session_is_not_evicted() -> None:
    clock = FakeClock()
    store = SessionStore(ttl=60, clock=clock)
    store.get_or_create("busy", Scenario.BUY_VS_RENT)

    async def scenario() -> int:
        async with store.lock("busy"):
            clock.advance(120)
            return store.purge_expired()

    assert asyncio.run(scenario()) == 0
    assert "busy" in store
    assert store.purge_expired() == 1


def test_session_waited_on_is_not_evicted() -> None:
    clock = FakeClock()
    store = SessionStore(ttl=60, clock=clock)
    store.get_or_create("busy", Scenario.BUY_VS_RENT)

    async def scenario() -> int:
        async with store.hold("busy"):
            waiter = asyncio.create_task(_hold_briefly(store, "busy"))
            await asyncio.sleep(0)
        # Released, but the queued turn has not resumed yet
        clock.advance(120)
        evicted = store.purge_expired()
        await waiter
        return evicted

    assert asyncio.run(scenario()) == 0
    assert "busy" in store


def test_lock_of_session_deleted_mid_turn_is_dropped() -> None:
    store = SessionStore()

    async def scenario() -> None:
        async with store.hold("abc"):
            store.get_or_create("abc", Scenario.BUY_VS_RENT)
            assert store.delete("abc")
            assert store.busy("abc")
        assert not store.busy("abc")

    asyncio.run(scenario())

    assert "abc" not in store
    assert "abc" not in store._locks
    assert store._holders == {}


def test_lock_of_live_session_is_kept_between_turns() -> None:
    store = SessionStore()

    async def scenario() -> None:
        async with store.hold("abc"):
            store.get_or_create("abc", Scenario.BUY_VS_RENT)

    asyncio.run(scenario())

    assert not store.busy("abc")
    assert "abc" in store._locks
    assert store.delete("abc")
    assert "abc" not in store._locks


def test_zero_ttl_disables_eviction() -> None:
    clock = FakeClock()
    store = SessionStore(ttl=0, clock=clock)
    store.get_or_create("abc", Scenario.BUY_VS_RENT)
    clock.advance(10**9)

    assert store.purge_expired() == 0
    assert len(store) == 1


def test_delete_runs_teardown_once() -> None:
    store = SessionStore()
    torn_down: list[str] = []
    store.add_teardown_hook(lambda session: torn_down.append(session.key))
    store.get_or_create("abc", Scenario.BUY_VS_RENT)

    assert store.delete("abc") is True
    assert store.delete("abc") is False
    assert torn_down == ["abc"]


def test_failing_teardown_hook_does_not_block_others() -> None:
    store = SessionStore()
    seen: list[str] = []

    def broken(session: ConversationSession) -> None:
        raise RuntimeError("hook failed")

    store.add_teardown_hook(broken)
    store.add_teardown_hook(lambda session: seen.append(session.key))
    store.get_or_create("abc", Scenario.BUY_VS_RENT)

    assert store.delete("abc") is True
    assert seen == ["abc"]


def test_close_tears_down_everything() -> None:
    store = SessionStore()
    seen: list[str] = []
    store.add_teardown_hook(lambda session: seen.append(session.key))
    for key in ("a", "b", "c"):
        store.get_or_create(key, Scenario.BUY_VS_RENT)

    store.close()

    assert len(store) == 0
    assert sorted(seen) == ["a", "b", "c"]


def test_merge_parameters_keeps_numbers_only() -> None:
    session = SessionStore().get_or_create("abc", Scenario.BUY_VS_RENT)

    session.merge_parameters({"propertyPrice": 1_000_000, "note": "hi", "flag": True})
    session.merge_parameters({"propertyPrice": 1_200_000, "tenure": 20})

    assert session.parameters == {"propertyPrice": 1_200_000, "tenure": 20}
