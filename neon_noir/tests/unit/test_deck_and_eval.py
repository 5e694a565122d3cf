"""
Deck and Evaluator Unit Tests

测试扑克牌、牌组以及各游戏的结果评估器.
"""

import pytest

from neon_noir.core.deck import Card, Deck, Rank, Suit
from neon_noir.core.eval import (
    BallState,
    PlinkoBoard,
    PokerEvaluator,
    PokerHand,
    RevealOutcome,
    evaluate_blackjack_hand,
    evaluate_reveal,
    generate_mine_set,
    landing_bucket,
    spawn_ball,
    step_ball,
)
from neon_noir.core.rng import create_rng
from neon_noir.tests.helpers import cards


class TestCard:
    """测试Card类"""

    def test_str_and_parse(self):
        """测试字符串表示与解析互相一致"""
        card = Card(Suit.HEARTS, Rank.ACE)
        assert str(card) == "AH"
        assert Card.from_str("AH") == card
        assert str(Card.from_str("10d")) == "10D"
        assert Card.from_str("Ts") == Card(Suit.SPADES, Rank.TEN)
        assert Card.from_str("K♠") == Card(Suit.SPADES, Rank.KING)

    @pytest.mark.parametrize("text", ["", "A", "1H", "AX", "11S"])
    def test_parse_invalid(self, text):
        with pytest.raises(ValueError):
            Card.from_str(text)

    def test_values(self):
        """测试Video Poker牌值和Blackjack点数"""
        assert Card.from_str("AS").numeric_value == 14
        assert Card.from_str("AS").blackjack_value == 11
        assert Card.from_str("QD").blackjack_value == 10
        assert Card.from_str("7C").blackjack_value == 7

    def test_invalid_types(self):
        with pytest.raises(TypeError):
            Card("hearts", Rank.ACE)
        with pytest.raises(TypeError):
            Card.from_str(42)


class TestDeck:
    """测试Deck类"""

    def test_fresh_deck_has_52_unique_cards(self):
        deck = Deck.fresh(create_rng(3))
        dealt = deck.deal_cards(Deck.FULL_SIZE)
        assert len(dealt) == 52
        assert len(set(dealt)) == 52
        assert deck.cards_remaining == 0

    def test_deal_tracks_dealt_cards(self):
        deck = Deck.fresh(create_rng(5))
        first = deck.deal_card()
        more = deck.deal_cards(4)
        assert deck.dealt_cards == [first] + more
        assert len(deck) == 47

    def test_same_seed_same_order(self):
        a = Deck.fresh(create_rng(11)).deal_cards(10)
        b = Deck.fresh(create_rng(11)).deal_cards(10)
        assert a == b

    def test_deal_from_empty_deck(self):
        deck = Deck.fresh(create_rng(1))
        deck.deal_cards(52)
        with pytest.raises(IndexError):
            deck.deal_card()
        with pytest.raises(ValueError):
            deck.deal_cards(-1)

    def test_reset(self):
        deck = Deck.fresh(create_rng(1))
        deck.deal_cards(10)
        deck.reset()
        assert deck.cards_remaining == 52
        assert deck.dealt_cards == []


class TestBlackjackEvaluator:
    """测试Blackjack点数计算"""

    def test_natural(self):
        value = evaluate_blackjack_hand(cards("AS", "KD"))
        assert value.total == 21
        assert value.is_natural
        assert value.soft

    def test_aces_demoted_one_at_a_time(self):
        assert evaluate_blackjack_hand(cards("AS", "AH")).total == 12
        value = evaluate_blackjack_hand(cards("AS", "AH", "9C"))
        assert value.total == 21
        assert not value.is_natural

    def test_bust(self):
        value = evaluate_blackjack_hand(cards("KS", "QD", "5C"))
        assert value.total == 25
        assert value.is_bust
        assert not value.soft

    def test_rejects_non_cards(self):
        with pytest.raises(TypeError):
            evaluate_blackjack_hand(["AS", "KD"])


class TestPokerEvaluator:
    """测试Video Poker牌型分类"""

    @pytest.mark.parametrize("hand,expected", [
        (("10S", "JS", "QS", "KS", "AS"), PokerHand.ROYAL_FLUSH),
        (("9H", "10H", "JH", "QH", "KH"), PokerHand.STRAIGHT_FLUSH),
        (("7C", "7D", "7H", "7S", "2D"), PokerHand.FOUR_OF_A_KIND),
        (("3C", "3D", "3H", "9S", "9D"), PokerHand.FULL_HOUSE),
        (("2H", "5H", "8H", "JH", "KH"), PokerHand.FLUSH),
        (("5C", "6D", "7H", "8S", "9C"), PokerHand.STRAIGHT),
        (("10C", "JD", "QH", "KS", "AD"), PokerHand.STRAIGHT),
        (("4C", "4D", "4H", "9S", "KD"), PokerHand.THREE_OF_A_KIND),
        (("4C", "4D", "9H", "9S", "KD"), PokerHand.TWO_PAIR),
        (("JC", "JD", "3H", "5S", "8D"), PokerHand.JACKS_OR_BETTER),
        (("10C", "10D", "3H", "5S", "8D"), PokerHand.NOTHING),
        (("2S", "2H", "5D", "9C", "KH"), PokerHand.NOTHING),
    ])
    def test_classification(self, hand, expected):
        assert PokerEvaluator().classify(cards(*hand)).hand == expected

    def test_order_independent(self):
        evaluator = PokerEvaluator()
        a = evaluator.classify(cards("AS", "KS", "QS", "JS", "10S"))
        b = evaluator.classify(cards("10S", "JS", "QS", "KS", "AS"))
        assert a == b

    def test_pair_value(self):
        result = PokerEvaluator().classify(cards("QC", "QD", "3H", "5S", "8D"))
        assert result.pair_value == 12
        assert result.is_winning

    def test_ace_low_straight_flag(self):
        hand = cards("AS", "2D", "3H", "4C", "5S")
        assert PokerEvaluator().classify(hand).hand == PokerHand.NOTHING
        assert PokerEvaluator(ace_low_straights=True).classify(hand).hand == PokerHand.STRAIGHT

    def test_invalid_hands(self):
        evaluator = PokerEvaluator()
        with pytest.raises(ValueError):
            evaluator.classify(cards("AS", "KS", "QS", "JS"))
        with pytest.raises(ValueError):
            evaluator.classify(cards("AS", "AS", "QS", "JS", "10S"))


class TestMinesEvaluator:
    """测试地雷生成与揭示判定"""

    def test_generate_distinct_cells(self):
        mines = generate_mine_set(5, create_rng(2))
        assert len(mines) == 5
        assert all(0 <= cell < 25 for cell in mines)

    @pytest.mark.parametrize("count", [0, 25, -1])
    def test_invalid_count(self, count):
        with pytest.raises(ValueError):
            generate_mine_set(count, create_rng(2))

    def test_reveal(self):
        mines = frozenset({1, 2, 3})
        assert evaluate_reveal(2, mines) == RevealOutcome.HAZARD
        assert evaluate_reveal(4, mines) == RevealOutcome.SAFE


class TestPlinkoPhysics:
    """测试Plinko物理步进与落点映射"""

    def test_bucket_edges_and_center(self):
        board = PlinkoBoard(rows=16)
        assert landing_bucket(0.0, board) == 0
        assert landing_bucket(100.0, board) == 16
        assert landing_bucket(50.0, board) == 8

    def test_bucket_count_matches_rows(self):
        for rows in range(8, 17):
            board = PlinkoBoard(rows=rows)
            assert board.bucket_count == rows + 1
            assert landing_bucket(1000.0, board) == rows

    def test_spawn_near_center(self):
        board = PlinkoBoard()
        ball = spawn_ball(board, create_rng(4))
        assert abs(ball.x - board.center_x) < board.spawn_x_spread
        assert ball.y == 0.0

    def test_ball_eventually_lands(self):
        board = PlinkoBoard(rows=12)
        rng = create_rng(8)
        ball = spawn_ball(board, rng)
        for _ in range(5000):
            if ball.has_landed(board):
                break
            ball = step_ball(ball, board, rng)
        assert ball.has_landed(board)
        assert board.wall_left <= ball.x <= board.wall_right

    def test_landed_ball_is_unchanged(self):
        board = PlinkoBoard()
        ball = BallState(x=50.0, y=board.floor_y + 1, vx=0.0, vy=0.5, ticks=300)
        assert step_ball(ball, board, create_rng(1)) is ball

    def test_invalid_rows(self):
        with pytest.raises(ValueError):
            PlinkoBoard(rows=0)
