"""
Unit tests for push id generation.
"""

from harmony.utils.push_id import PUSH_CHARS, generate_push_id


class TestPushId:
    def test_length_and_alphabet(self):
        push_id = generate_push_id()

        assert len(push_id) == 20
        assert all(c in PUSH_CHARS for c in push_id)

    def test_ids_sort_in_generation_order(self):
        ids = [generate_push_id() for _ in range(200)]

        assert ids == sorted(ids)
        assert len(set(ids)) == len(ids)

    def test_same_millisecond_increments(self):
        now = 1_900_000_000_000
        first = generate_push_id(now)
        second = generate_push_id(now)

        assert first[:8] == second[:8]
        assert second > first

    def test_clock_step_back_keeps_order(self):
        later = generate_push_id(1_900_000_100_000)
        earlier = generate_push_id(1_900_000_000_000)

        assert earlier > later
