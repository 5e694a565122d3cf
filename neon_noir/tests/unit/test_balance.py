"""
Balance Unit Tests

测试余额增量、本地镜像和扣款/派彩两阶段协议.
"""

import asyncio

import pytest

from neon_noir.core.balance import (
    BalanceDelta,
    BalanceMirror,
    BalanceMutationProtocol,
    DeltaType,
)
from neon_noir.core.events import EventBus, EventType
from neon_noir.services.account_store import InMemoryAccountStore


class TestBalanceDelta:
    """测试余额增量"""

    def test_debit_is_negative(self):
        delta = BalanceDelta.debit("acct", "r1", 50)
        assert delta.delta_type == DeltaType.DEBIT
        assert delta.amount == -50

    def test_credit_may_be_zero(self):
        delta = BalanceDelta.credit("acct", "r1", 0)
        assert delta.is_zero
        assert delta.to_dict()['delta_type'] == "CREDIT"

    def test_validation(self):
        with pytest.raises(ValueError):
            BalanceDelta.debit("acct", "r1", 0)
        with pytest.raises(ValueError):
            BalanceDelta(DeltaType.CREDIT, "acct", "r1", -1)
        with pytest.raises(ValueError):
            BalanceDelta(DeltaType.DEBIT, "acct", "r1", 5)
        with pytest.raises(ValueError):
            BalanceDelta.credit("", "r1", 5)


class TestBalanceMirror:
    """测试本地余额镜像"""

    def test_apply_and_clamp(self):
        mirror = BalanceMirror("acct", 100)
        assert mirror.apply(BalanceDelta.debit("acct", "r1", 30)) == 70
        assert mirror.apply(BalanceDelta.debit("acct", "r2", 500)) == 0
        assert len(mirror.get_history()) == 2
        assert len(mirror.get_history("r1")) == 1

    def test_can_afford(self):
        mirror = BalanceMirror("acct", 100)
        assert mirror.can_afford(100)
        assert not mirror.can_afford(101)
        assert not mirror.can_afford(0)

    def test_rejects_other_account(self):
        mirror = BalanceMirror("acct", 100)
        with pytest.raises(ValueError):
            mirror.apply(BalanceDelta.debit("other", "r1", 10))

    def test_sync(self):
        mirror = BalanceMirror("acct", 100)
        mirror.sync(420)
        snapshot = mirror.create_snapshot()
        assert snapshot.balance == 420
        assert snapshot.last_synced_balance == 420

    def test_sync_keeps_unacknowledged_deltas(self):
        mirror = BalanceMirror("acct", 1000)
        first = BalanceDelta.debit("acct", "r1", 60)
        second = BalanceDelta.debit("acct", "r2", 40)
        mirror.apply(first)
        mirror.apply(second)
        # 远程已应用r1，r2仍在途中
        assert mirror.sync(940) == 840
        assert mirror.acknowledge(first) == 900
        assert mirror.unacknowledged == [second]
        assert mirror.sync(900) == 860
        assert mirror.acknowledge(second) == 900
        assert mirror.create_snapshot().unacknowledged == 0

    def test_acknowledge_without_newer_snapshot_keeps_balance(self):
        mirror = BalanceMirror("acct", 100)
        mirror.sync(100)
        delta = BalanceDelta.debit("acct", "r1", 30)
        mirror.apply(delta)
        assert mirror.acknowledge(delta) == 70

    def test_abandon_keeps_optimistic_balance_until_next_snapshot(self):
        mirror = BalanceMirror("acct", 100)
        delta = BalanceDelta.debit("acct", "r1", 30)
        mirror.apply(delta)
        assert mirror.abandon(delta) == 70
        assert mirror.unacknowledged == []
        assert mirror.sync(100) == 100

    def test_zero_delta_is_not_tracked(self):
        mirror = BalanceMirror("acct", 100)
        mirror.apply(BalanceDelta.credit("acct", "r1", 0))
        assert mirror.unacknowledged == []


class TestBalanceMutationProtocol:
    """测试扣款/派彩协议"""

    def _setup(self, balance=1000):
        store = InMemoryAccountStore()
        store.create_account("tester", balance, account_id="acct")
        bus = EventBus()
        protocol = BalanceMutationProtocol(BalanceMirror("acct", balance), store, event_bus=bus)
        return store, bus, protocol

    def test_debit_then_credit(self):
        store, bus, protocol = self._setup()

        async def scenario():
            assert await protocol.debit("r1", 100)
            assert protocol.mirror.balance == 900
            assert protocol.pending_rounds == ["r1"]
            assert await protocol.credit("r1", 250)
            assert protocol.pending_rounds == []
            return (await store.get_profile("acct")).balance

        remote = asyncio.run(scenario())
        assert protocol.mirror.balance == 1150
        assert remote == 1150
        assert [w['delta'] for w in store.write_log] == [-100, 250]
        assert len(bus.get_event_history(EventType.BALANCE_DELTA_APPLIED)) == 2

    def test_credit_exactly_once(self):
        store, _, protocol = self._setup()

        async def scenario():
            await protocol.debit("r1", 100)
            first = await protocol.credit("r1", 100)
            second = await protocol.credit("r1", 100)
            return first, second

        assert asyncio.run(scenario()) == (True, False)
        assert protocol.mirror.balance == 1000

    def test_credit_requires_debit(self):
        store, _, protocol = self._setup()
        assert not asyncio.run(protocol.credit("unknown", 100))
        assert protocol.mirror.balance == 1000
        assert store.write_log == []

    def test_duplicate_or_unaffordable_debit(self):
        _, _, protocol = self._setup(balance=100)

        async def scenario():
            assert await protocol.debit("r1", 60)
            assert not await protocol.debit("r1", 10)
            assert not await protocol.debit("r2", 60)

        asyncio.run(scenario())
        assert protocol.mirror.balance == 40

    def test_zero_payout_skips_remote_write(self):
        store, _, protocol = self._setup()

        async def scenario():
            await protocol.debit("r1", 100)
            await protocol.credit("r1", 0)

        asyncio.run(scenario())
        assert [w['delta'] for w in store.write_log] == [-100]
        assert protocol.mirror.balance == 900

    def test_remote_failure_keeps_local_mirror(self):
        store, bus, protocol = self._setup()
        store.fail_next_writes(1)

        async def scenario():
            return await protocol.debit("r1", 100)

        assert asyncio.run(scenario())
        assert protocol.mirror.balance == 900
        assert store.write_log == []
        assert len(protocol.failed_writes) == 1
        failures = bus.get_event_history(EventType.REMOTE_WRITE_FAILED)
        assert len(failures) == 1
        assert failures[0].correlation_id == "r1"
        assert protocol.mirror.unacknowledged == []

    def test_write_timeout(self):
        store = InMemoryAccountStore(latency=0.2)
        store.create_account("tester", 1000, account_id="acct")
        protocol = BalanceMutationProtocol(BalanceMirror("acct", 1000), store, write_timeout=0.01)

        asyncio.run(protocol.debit("r1", 100))
        assert protocol.mirror.balance == 900
        assert len(protocol.failed_writes) == 1

    def test_overlapping_debits_do_not_overdraw(self):
        store = InMemoryAccountStore(latency=0.05)
        store.create_account("tester", 100, account_id="acct")
        mirror = BalanceMirror("acct", 100)
        store.subscribe_profile("acct", lambda profile: mirror.sync(profile.balance))
        protocol = BalanceMutationProtocol(mirror, store)

        async def scenario():
            first = asyncio.ensure_future(protocol.debit("r1", 60))
            await asyncio.sleep(0.01)
            second = asyncio.ensure_future(protocol.debit("r2", 40))
            await first
            # r1已落地，r2仍在途中
            balance_in_flight = mirror.balance
            third = await protocol.debit("r3", 40)
            await second
            return balance_in_flight, third, (await store.get_profile("acct")).balance

        balance_in_flight, third, remote = asyncio.run(scenario())
        assert balance_in_flight == 0
        assert third is False
        assert remote == 0
        assert mirror.balance == 0
        assert [w['delta'] for w in store.write_log] == [-60, -40]
        assert mirror.unacknowledged == []

    def test_snapshots_during_overlapping_rounds_converge(self):
        store = InMemoryAccountStore(latency=0.02)
        store.create_account("tester", 1000, account_id="acct")
        mirror = BalanceMirror("acct", 1000)
        store.subscribe_profile("acct", lambda profile: mirror.sync(profile.balance))
        protocol = BalanceMutationProtocol(mirror, store)

        async def play(round_id, stake, payout):
            await protocol.debit(round_id, stake)
            await protocol.credit(round_id, payout)

        async def scenario():
            await asyncio.gather(play("r1", 100, 0), play("r2", 200, 500), play("r3", 50, 75))
            return (await store.get_profile("acct")).balance

        remote = asyncio.run(scenario())
        assert remote == 1000 - 100 - 200 + 500 - 50 + 75
        assert mirror.balance == remote
        assert mirror.unacknowledged == []

    def test_negative_payout_rejected(self):
        _, _, protocol = self._setup()

        async def scenario():
            await protocol.debit("r1", 100)
            with pytest.raises(ValueError):
                await protocol.credit("r1", -1)

        asyncio.run(scenario())
