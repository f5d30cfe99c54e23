"""Tests for fractional order keys."""

import random

import pytest

from taskboard.errors import KeyInvariantViolation
from taskboard.ordering import (
    DEFAULT_KEY,
    DIGITS,
    generate_position,
    generate_sequence,
    is_valid_position,
    position_to_debug_number,
)


def random_key(rng: random.Random) -> str:
    length = rng.randint(1, 6)
    body = "".join(rng.choice(DIGITS) for _ in range(length - 1))
    return body + rng.choice(DIGITS[1:])


class TestGeneratePosition:
    """Tests for generate_position."""

    def test_empty_list_gets_default_key(self):
        """Test that an empty partition gets the mid-range default."""
        assert generate_position(None, None) == DEFAULT_KEY == "V"

    def test_midpoint_digit(self):
        """Test inserting between keys with room between their digits."""
        assert generate_position("a", "c") == "b"

    def test_adjacent_digits_extend_key(self):
        """Test that adjacent keys get a longer key between them."""
        key = generate_position("a", "b")
        assert "a" < key < "b"
        assert key == "aV"

    def test_prefix_keys(self):
        """Test inserting between a key and its own extension."""
        key = generate_position("a", "aV")
        assert "a" < key < "aV"

        key = generate_position("a", "a1")
        assert "a" < key < "a1"
        assert is_valid_position(key)

    def test_head_insert_derives_from_after(self):
        """Test inserting before the first key."""
        assert generate_position(None, "V") == "F"
        assert generate_position(None, "1") == "0V"

    def test_tail_insert_derives_from_before(self):
        """Test inserting after the last key."""
        assert generate_position("V", None) == "k"
        assert generate_position("z", None) == "zV"

    def test_shared_prefix_is_kept(self):
        """Test that only the new key grows; the common prefix is kept."""
        key = generate_position("abc", "abd")
        assert key.startswith("abc")
        assert "abc" < key < "abd"

    def test_equal_keys_rejected(self):
        """Test that before == after is a contract violation."""
        with pytest.raises(KeyInvariantViolation):
            generate_position("a", "a")

    def test_reversed_keys_rejected(self):
        """Test that before > after is a contract violation."""
        with pytest.raises(KeyInvariantViolation):
            generate_position("c", "a")

    @pytest.mark.parametrize("bad", ["", "a0", "a-b", "é"])
    def test_malformed_keys_rejected(self, bad):
        """Test that malformed keys are refused on either side."""
        with pytest.raises(KeyInvariantViolation):
            generate_position(bad, None)
        with pytest.raises(KeyInvariantViolation):
            generate_position(None, bad)

    def test_violation_is_assertion_style(self):
        """Test that key violations are AssertionErrors."""
        with pytest.raises(AssertionError):
            generate_position("b", "a")

    def test_deterministic(self):
        """Test that the same inputs give the same key."""
        assert generate_position("Ab", "Ac") == generate_position("Ab", "Ac")

    def test_randomized_pairs_are_strictly_between(self):
        """Test density over 10,000 random key pairs."""
        rng = random.Random(1234)
        checked = 0
        while checked < 10_000:
            a, b = random_key(rng), random_key(rng)
            if a == b:
                continue
            before, after = min(a, b), max(a, b)
            key = generate_position(before, after)
            assert before < key < after, (before, after, key)
            assert is_valid_position(key)
            checked += 1

    def test_randomized_open_boundaries(self):
        """Test head and tail inserts for random keys."""
        rng = random.Random(99)
        for _ in range(2_000):
            key = random_key(rng)
            assert generate_position(None, key) < key
            assert generate_position(key, None) > key

    def test_repeated_insert_after_same_item(self):
        """Test inserting right after the same item 50 times."""
        before, after = "a", "b"
        for _ in range(50):
            key = generate_position(before, after)
            assert before < key < after
            after = key

    def test_repeated_insert_before_same_item(self):
        """Test inserting right before the same item 50 times."""
        before, after = "a", "b"
        for _ in range(50):
            key = generate_position(before, after)
            assert before < key < after
            before = key

    def test_repeated_head_and_tail_inserts(self):
        """Test 50 inserts at the head and 50 at the tail."""
        head = tail = DEFAULT_KEY
        for _ in range(50):
            new_head = generate_position(None, head)
            new_tail = generate_position(tail, None)
            assert new_head < head
            assert new_tail > tail
            head, tail = new_head, new_tail

    def test_repeated_inserts_keep_full_order(self):
        """Test that a list built by repeated middle inserts stays sorted."""
        keys = ["1", "z"]
        rng = random.Random(7)
        for _ in range(300):
            index = rng.randint(0, len(keys) - 2)
            keys.insert(index + 1, generate_position(keys[index], keys[index + 1]))
        assert keys == sorted(keys)
        assert len(set(keys)) == len(keys)


class TestIsValidPosition:
    """Tests for is_valid_position."""

    @pytest.mark.parametrize("key", ["V", "a1", "0V", "zzz", "5"])
    def test_valid(self, key):
        assert is_valid_position(key)

    @pytest.mark.parametrize("key", [None, "", "0", "a0", "a b", "a.b"])
    def test_invalid(self, key):
        assert not is_valid_position(key)


class TestGenerateSequence:
    """Tests for generate_sequence."""

    def test_empty(self):
        assert generate_sequence(0) == []

    def test_single(self):
        assert generate_sequence(1) == ["V"]

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            generate_sequence(-1)

    @pytest.mark.parametrize("count", [2, 10, 61, 62, 63, 500, 4000])
    def test_ascending_distinct_and_valid(self, count):
        """Test that sequences are sorted, unique and well formed."""
        keys = generate_sequence(count)
        assert len(keys) == count
        assert keys == sorted(keys)
        assert len(set(keys)) == count
        assert all(is_valid_position(key) for key in keys)

    def test_room_left_between_neighbours(self):
        """Test that a key fits between any two sequence neighbours."""
        keys = generate_sequence(30)
        for before, after in zip(keys, keys[1:]):
            assert before < generate_position(before, after) < after


class TestDebugNumber:
    """Tests for position_to_debug_number."""

    def test_matches_key_order(self):
        keys = generate_sequence(50)
        numbers = [position_to_debug_number(key) for key in keys]
        assert numbers == sorted(numbers)
        assert all(0 < number < 1 for number in numbers)

    def test_default_key_is_middle(self):
        assert position_to_debug_number("V") == pytest.approx(0.5)
