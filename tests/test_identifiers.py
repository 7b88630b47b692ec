import re
from itertools import islice

import pytest

from ephemeral_share.config import IdentifierConfig
from ephemeral_share.exceptions import IdentifierSpaceExhausted
from ephemeral_share.identifiers import ALPHABET, TRIES_PER_LENGTH, IdentifierAllocator, random_id


def scripted(*ids):
    """rng, отдающий заранее заданные id по очереди."""
    queue = iter(ids)

    def _rng(length):
        value = next(queue)
        assert len(value) == length
        return value

    return _rng


def test_alphabet_is_url_safe():
    assert len(ALPHABET) == 64
    assert re.fullmatch(r"[A-Za-z0-9_-]+", ALPHABET)
    assert re.fullmatch(r"[A-Za-z0-9_-]{12}", random_id(12))


@pytest.mark.parametrize(
    "requested, expected",
    [(None, 3), (1, 3), (3, 3), (10, 10), (24, 24), (1000, 24)],
)
def test_requested_length_is_clamped(requested, expected):
    allocator = IdentifierAllocator(IdentifierConfig(min_id_length=3, max_id_length=24))
    assert allocator.clamp(requested) == expected


def test_fixed_length_when_bounds_are_equal():
    allocator = IdentifierAllocator(IdentifierConfig(min_id_length=5, max_id_length=5))
    assert allocator.clamp(20) == 5


def test_candidates_grow_length_after_three_tries():
    allocator = IdentifierAllocator(IdentifierConfig())
    lengths = [length for _, length in islice(allocator.candidates(4), 3 * TRIES_PER_LENGTH)]
    assert lengths == [4, 4, 4, 5, 5, 5, 6, 6, 6]


def test_allocate_returns_first_free_name():
    taken = {"aaa.txt", "bbb.txt"}
    allocator = IdentifierAllocator(IdentifierConfig(), rng=scripted("aaa", "bbb", "ccc"))
    identifier, length = allocator.allocate(None, lambda name: name in taken, suffix=".txt")
    assert (identifier, length) == ("ccc", 3)


def test_allocate_moves_to_longer_ids_when_length_is_exhausted():
    taken = {"aaa", "bbb", "ccc"}
    allocator = IdentifierAllocator(IdentifierConfig(), rng=scripted("aaa", "bbb", "ccc", "dddd"))
    assert allocator.allocate(3, lambda name: name in taken) == ("dddd", 4)


@pytest.mark.asyncio
async def test_claim_treats_lost_race_as_collision():
    attempts = []

    async def try_create(name):
        attempts.append(name)
        return len(attempts) > 1

    allocator = IdentifierAllocator(IdentifierConfig(), rng=scripted("abc", "xyz"))
    assert await allocator.claim(None, try_create) == ("xyz", 3)
    assert attempts == ["abc", "xyz"]


def test_no_duplicate_ids_within_a_run():
    allocator = IdentifierAllocator(IdentifierConfig(min_id_length=1, max_id_length=1))
    taken: set[str] = set()
    for _ in range(200):
        identifier, _ = allocator.allocate(None, lambda name: name in taken)
        assert identifier not in taken
        taken.add(identifier)
    assert len(taken) == 200


def test_exhaustion_at_filesystem_name_limit():
    allocator = IdentifierAllocator(IdentifierConfig(min_id_length=3, max_id_length=3))
    suffix = "." + "x" * 250  # 251 байт, влезают только id длиной 3 и 4
    checked = []

    def exists(name):
        checked.append(name)
        return True

    with pytest.raises(IdentifierSpaceExhausted):
        allocator.allocate(None, exists, suffix=suffix)
    assert len(checked) == 2 * TRIES_PER_LENGTH


@pytest.mark.asyncio
async def test_claim_grows_length_and_passes_suffix():
    tried = []

    async def try_create(name):
        tried.append(name)
        return name == "dddd.txt"

    allocator = IdentifierAllocator(IdentifierConfig(), rng=scripted("aaa", "bbb", "ccc", "dddd"))
    assert await allocator.claim(3, try_create, suffix=".txt") == ("dddd", 4)
    assert tried == ["aaa.txt", "bbb.txt", "ccc.txt", "dddd.txt"]


@pytest.mark.asyncio
async def test_claim_exhaustion_at_filesystem_name_limit():
    allocator = IdentifierAllocator(IdentifierConfig(min_id_length=3, max_id_length=3))

    async def always_taken(name):
        return False

    with pytest.raises(IdentifierSpaceExhausted):
        await allocator.claim(None, always_taken, suffix="." + "x" * 250)
