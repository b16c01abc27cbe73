import random

import pytest

from infinity_server.matchmaking import Matchmaker, RoomIdGenerator
from infinity_server.rooms import Role, RoomIdCollision, RoomRegistry, ServerFull


@pytest.fixture()
def registry(hash_method):
    return RoomRegistry(hash_method=hash_method)


@pytest.fixture()
def matchmaker(registry):
    return Matchmaker(registry, RoomIdGenerator(rng=random.Random(7)))


def test_first_caller_opens_a_room_as_x(matchmaker, registry):
    room, role, initial = matchmaker.find_public_room('a')
    assert role is Role.X
    assert initial is None
    assert registry.get(room.room_id) is room
    assert len(room.room_id) == 6
    assert room.room_id.isalnum()


def test_second_caller_fills_the_open_room_and_third_opens_another(matchmaker, registry):
    first, _, _ = matchmaker.find_public_room('a')
    first.state.apply_move(4)

    second, role, initial = matchmaker.find_public_room('b')
    assert second is first
    assert role is Role.O
    assert initial is first.state
    assert initial.board[4] == 'X'

    third, role, initial = matchmaker.find_public_room('c')
    assert third is not first
    assert role is Role.X
    assert initial is None
    assert len(registry) == 2


def test_passcode_rooms_and_empty_or_full_rooms_are_skipped(matchmaker, registry):
    registry.ensure('private', passcode='pw').seat('p')
    registry.ensure('empty')
    full = registry.ensure('full')
    full.seat('f1')
    full.seat('f2')

    room, role, _ = matchmaker.find_public_room('a')
    assert room.room_id not in ('private', 'empty', 'full')
    assert role is Role.X


def test_first_open_room_in_registry_order_wins(matchmaker, registry):
    registry.ensure('one').seat('x1')
    registry.ensure('two').seat('x2')
    room, role, _ = matchmaker.find_public_room('a')
    assert room.room_id == 'one'
    assert role is Role.O


def test_vacant_x_seat_is_offered(matchmaker, registry):
    room = registry.ensure('half')
    room.seat('x')
    room.seat('o')
    room.release('x')
    matched, role, _ = matchmaker.find_public_room('a')
    assert matched is room
    assert role is Role.X


def test_caller_is_not_matched_against_itself(matchmaker, registry):
    first, _, _ = matchmaker.find_public_room('a')
    second, role, _ = matchmaker.find_public_room('a')
    assert second is not first
    assert role is Role.X


def test_new_public_room_respects_capacity(hash_method):
    registry = RoomRegistry(max_rooms=1, hash_method=hash_method)
    registry.ensure('taken')
    with pytest.raises(ServerFull):
        Matchmaker(registry).find_public_room('a')
    assert len(registry) == 1


def test_generator_retries_past_collisions():
    class Scripted(RoomIdGenerator):
        def __init__(self, tokens, **kwargs):
            super().__init__(**kwargs)
            self._tokens = iter(tokens)

        def token(self):
            return next(self._tokens)

    generator = Scripted(['aaa', 'bbb', 'ccc'], max_attempts=3)
    assert generator({'aaa', 'bbb'}) == 'ccc'

    generator = Scripted(['aaa', 'aaa'], max_attempts=2)
    with pytest.raises(RoomIdCollision):
        generator({'aaa'})


def test_generator_uses_configured_length_and_alphabet():
    generator = RoomIdGenerator(length=4, alphabet='ab', rng=random.Random(1))
    token = generator(set())
    assert len(token) == 4
    assert set(token) <= {'a', 'b'}
