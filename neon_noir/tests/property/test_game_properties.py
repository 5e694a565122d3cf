"""
Property-based Tests

用hypothesis验证游戏与余额的不变量:
- 余额始终等于 max(0, 之前 - 下注 + 派彩)
- 同一回合内牌不重复
- Mines倍率与揭示次数一致
- 多个Plinko小球并发下落与逐个重放结果相同
- 非接受状态下的操作不改变任何状态
"""

import asyncio
import math

import pytest
from hypothesis import given, settings, strategies as st

from neon_noir.core.balance import BalanceMirror, BalanceMutationProtocol
from neon_noir.core.deck import Card, Rank, Suit
from neon_noir.core.eval import PokerEvaluator
from neon_noir.core.payout import apply_multiplier, mines_multiplier
from neon_noir.core.rng import create_rng
from neon_noir.core.state_machine import (
    BlackjackGame,
    MinesGame,
    MinesPhase,
    PlinkoGame,
    PokerGame,
)
from neon_noir.services.account_store import InMemoryAccountStore

ALL_CARDS = [Card(suit, rank) for suit in Suit for rank in Rank]

seeds = st.integers(min_value=0, max_value=2 ** 32)


class TestBalanceProperties:
    """余额协议不变量"""

    @pytest.mark.property_test
    @given(
        start=st.integers(min_value=0, max_value=5000),
        rounds=st.lists(
            st.tuples(st.integers(min_value=1, max_value=800), st.integers(min_value=0, max_value=3000)),
            max_size=12,
        ),
    )
    def test_balance_after_each_round(self, start, rounds):
        store = InMemoryAccountStore()
        store.create_account("prop", start, account_id="prop")
        protocol = BalanceMutationProtocol(BalanceMirror("prop", start), store)

        async def scenario():
            expected = start
            for i, (stake, payout) in enumerate(rounds):
                round_id = f"r{i}"
                debited = await protocol.debit(round_id, stake)
                if not debited:
                    assert stake > expected
                    continue
                await protocol.credit(round_id, payout)
                expected = max(0, expected - stake + payout)
                assert protocol.mirror.balance == expected
                assert (await store.get_profile("prop")).balance == expected
            return expected

        expected = asyncio.run(scenario())
        assert protocol.mirror.balance == expected >= 0


class TestCardProperties:
    """发牌不变量"""

    @pytest.mark.property_test
    @given(seed=seeds, hits=st.integers(min_value=0, max_value=6))
    def test_blackjack_cards_unique(self, seed, hits):
        game = BlackjackGame(create_rng(seed))
        game.start(10)
        for _ in range(hits):
            game.hit()
        game.stand()
        game.play_dealer()
        used = game.player_hand + game.dealer_hand
        assert len(set(used)) == len(used)
        assert game.deck.cards_remaining + len(game.deck.dealt_cards) == 52
        assert game.is_settled

    @pytest.mark.property_test
    @given(seed=seeds, holds=st.sets(st.integers(min_value=0, max_value=4)))
    def test_poker_draw_keeps_held_cards(self, seed, holds):
        game = PokerGame(create_rng(seed))
        game.start(5)
        dealt = game.hand
        for index in holds:
            game.toggle_hold(index)
        game.draw()
        final = game.hand
        assert len(set(final)) == 5
        assert all(final[i] == dealt[i] for i in holds)
        assert all(final[i] not in dealt for i in range(5) if i not in holds)
        assert len(set(game.deck.dealt_cards)) == 5 + (5 - len(holds))

    @pytest.mark.property_test
    @given(hand=st.lists(st.sampled_from(ALL_CARDS), min_size=5, max_size=5, unique=True), data=st.data())
    def test_poker_classification_order_independent(self, hand, data):
        shuffled = data.draw(st.permutations(hand))
        evaluator = PokerEvaluator()
        assert evaluator.classify(hand) == evaluator.classify(shuffled)


class TestMinesProperties:
    """Mines不变量"""

    @pytest.mark.property_test
    @given(
        seed=seeds,
        mine_count=st.integers(min_value=1, max_value=24),
        cells=st.lists(st.integers(min_value=0, max_value=24), unique=True, max_size=25),
        stake=st.integers(min_value=1, max_value=10000),
    )
    def test_reveal_sequence(self, seed, mine_count, cells, stake):
        game = MinesGame(create_rng(seed))
        assert game.start(stake, mine_count=mine_count)
        assert len(game.mine_set) == mine_count

        for cell in cells:
            if game.phase != MinesPhase.ACTIVE:
                break
            game.reveal(cell)

        assert not set(game.revealed_cells) & game.mine_set
        if game.phase == MinesPhase.GAMEOVER:
            assert game.current_round.outcome['hit_cell'] in game.mine_set
            assert game.payout == 0
        else:
            if game.phase == MinesPhase.ACTIVE:
                game.cash_out()
            expected = mines_multiplier(game.safe_reveals, mine_count)
            assert game.multiplier == pytest.approx(expected)
            assert game.payout == apply_multiplier(stake, game.multiplier)

    @pytest.mark.property_test
    @given(stake=st.integers(min_value=1, max_value=10 ** 6),
           multiplier=st.floats(min_value=0, max_value=1000, allow_nan=False))
    def test_apply_multiplier_floor(self, stake, multiplier):
        payout = apply_multiplier(stake, multiplier)
        assert payout >= 0
        assert payout <= math.floor(stake * multiplier) + 1
        assert payout >= math.floor(stake * multiplier) - 1


class TestPlinkoProperties:
    """Plinko不变量"""

    @pytest.mark.property_test
    @settings(max_examples=25, deadline=None)
    @given(ball_seeds=st.lists(st.integers(min_value=0, max_value=10 ** 9), min_size=1, max_size=5),
           rows=st.integers(min_value=8, max_value=16))
    def test_concurrent_balls_match_isolated_replay(self, ball_seeds, rows):
        together = PlinkoGame(create_rng(0), rows=rows)
        for seed in ball_seeds:
            together.start(100, seed=seed)
        while together.in_flight:
            for ball_id in together.in_flight:
                together.step_ball(ball_id)
        concurrent = [r.payout for r in together.pop_settled_rounds()]

        isolated = []
        for seed in ball_seeds:
            game = PlinkoGame(create_rng(1), rows=rows)
            game.start(100, seed=seed)
            isolated.append(game.drop(game.current_round.round_id).payout)

        assert sorted(concurrent) == sorted(isolated)
        assert sum(concurrent) == sum(isolated)


class TestNoOpProperties:
    """非接受状态下的操作不改变状态"""

    @pytest.mark.property_test
    @given(seed=seeds, actions=st.lists(
        st.sampled_from([
            ("reveal", {"cell": 3}),
            ("cash_out", {}),
            ("hit", {}),
            ("stand", {}),
            ("toggle_hold", {"index": 0}),
            ("draw", {}),
            ("step_ball", {"ball_id": "x"}),
        ]),
        min_size=1,
        max_size=10,
    ))
    def test_settled_games_ignore_actions(self, seed, actions):
        games = []
        mines = MinesGame(create_rng(seed))
        mines.start(10)
        mines.cash_out()
        games.append(mines)
        blackjack = BlackjackGame(create_rng(seed))
        blackjack.start(10)
        blackjack.stand()
        blackjack.play_dealer()
        games.append(blackjack)
        poker = PokerGame(create_rng(seed))
        poker.start(10)
        poker.draw()
        games.append(poker)

        for game in games:
            assert game.is_settled
            history = game.transition_history
            payout = game.payout
            phase = game.phase
            for action, params in actions:
                assert not game.act(action, **params)
            assert game.transition_history == history
            assert game.payout == payout
            assert game.phase == phase
