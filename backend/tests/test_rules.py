from mathbattle.models import Card, PlayerState
from mathbattle.services.battle.branches import get_branch_effects
from mathbattle.services.battle.rules import GRACE_TURNS, evaluate_winner, resolve_card


def card(effect, value):
    return Card(name=f'{effect} {value}', effect=effect, value=value, description='')


def test_damage_without_block_hits_ip():
    me, them = PlayerState(), PlayerState()
    result = resolve_card(card('damage', 15), me, them)
    assert them.ip == 85
    assert result['actualDamage'] == 15
    assert result['blocked'] == 0


def test_damage_partially_blocked():
    me, them = PlayerState(), PlayerState(blocks=4)
    result = resolve_card(card('damage', 10), me, them)
    assert them.blocks == 0
    assert them.ip == 94
    assert result['blocked'] == 4
    assert result['actualDamage'] == 6


def test_damage_fully_blocked_leaves_ip():
    me, them = PlayerState(), PlayerState(blocks=12)
    result = resolve_card(card('damage', 10), me, them)
    assert them.ip == 100
    assert them.blocks == 2
    assert result['actualDamage'] == 0


def test_damage_can_push_ip_negative():
    me, them = PlayerState(), PlayerState(ip=5)
    resolve_card(card('damage', 15), me, them)
    assert them.ip == -10


def test_heal_is_capped():
    me, them = PlayerState(ip=95), PlayerState()
    resolve_card(card('heal', 12), me, them)
    assert me.ip == 100


def test_block_has_no_ceiling():
    me, them = PlayerState(blocks=200), PlayerState()
    resolve_card(card('block', 10), me, them)
    assert me.blocks == 210


def test_drain_transfers_and_caps_gain():
    me, them = PlayerState(ip=98), PlayerState(ip=50)
    result = resolve_card(card('drain', 5), me, them)
    assert them.ip == 45
    assert me.ip == 100
    assert result['actualDrain'] == 5


def test_drain_limited_by_opponent_pool():
    me, them = PlayerState(ip=50), PlayerState(ip=3)
    result = resolve_card(card('drain', 5), me, them)
    assert result['actualDrain'] == 3
    assert them.ip == 0
    assert me.ip == 53


def test_calculus_and_geometry_raise_card_values():
    me = PlayerState(branch='calculus', branch_effects=get_branch_effects('calculus'))
    them = PlayerState()
    result = resolve_card(card('damage', 10), me, them)
    assert result['actualDamage'] == 12

    builder = PlayerState(branch='geometry', branch_effects=get_branch_effects('geometry'))
    resolve_card(card('block', 8), builder, them)
    assert builder.blocks == 11


def test_unknown_branch_has_no_effects():
    assert get_branch_effects('topology') == {}
    assert get_branch_effects('probability')['risk'] is True


def test_grace_period_then_opponent_wins():
    a, b = PlayerState(), PlayerState(ip=-5)
    seats = [('a', a), ('b', b)]
    assert evaluate_winner(seats) is None
    assert b.grace_period and b.grace_turns == GRACE_TURNS

    assert evaluate_winner(seats) is None
    assert evaluate_winner(seats) is None
    assert evaluate_winner(seats) == 'a'
    assert b.grace_turns == 0


def test_winner_is_never_replaced():
    a, b = PlayerState(ip=-1, grace_period=True, grace_turns=1), PlayerState(ip=-1, grace_period=True, grace_turns=1)
    seats = [('a', a), ('b', b)]
    assert evaluate_winner(seats) == 'b'
    assert evaluate_winner(seats, 'b') == 'b'


def test_positive_player_wins_against_expired_grace():
    a, b = PlayerState(ip=10), PlayerState(ip=-3, grace_period=True, grace_turns=0)
    # b's own decrement also fires here; either path names a
    assert evaluate_winner([('a', a), ('b', b)]) == 'a'
