import itertools
import math
import random

import pytest

from strategy import (
    Strategy,
    entropy_for_guess,
    entropy_from_counts,
    feedback_of,
    format_bits,
    generate_all,
    parse_bits,
    parse_feedback,
)


@pytest.mark.parametrize("length", range(1, 9))
def test_generate_all_enumerates_binary_order(length):
    vectors = generate_all(length)
    assert len(vectors) == 2 ** length
    assert len(set(vectors)) == 2 ** length
    for i, v in enumerate(vectors):
        assert len(v) == length
        assert int(format_bits(v), 2) == i


def test_generate_all_example():
    assert generate_all(3)[5] == (1, 0, 1)
    assert generate_all(3)[0] == (0, 0, 0)
    assert generate_all(3)[-1] == (1, 1, 1)


def test_feedback_is_commutative_and_reflexive():
    vectors = generate_all(4)
    for a, b in itertools.product(vectors, repeat=2):
        assert feedback_of(a, b) == feedback_of(b, a)
    for a in vectors:
        assert feedback_of(a, a) == 4
    assert feedback_of((1, 0, 1), (0, 0, 0)) == 1


def test_entropy_from_counts():
    assert entropy_from_counts([4], 4) == 0.0
    assert entropy_from_counts([2, 2], 4) == pytest.approx(1.0)
    assert entropy_from_counts([1, 1, 1, 1], 4) == pytest.approx(2.0)
    expected = -(0.25 * math.log2(0.25) + 0.75 * math.log2(0.75))
    assert entropy_from_counts([0, 1, 0, 3], 4) == pytest.approx(expected)


def test_mirrored_histograms_score_equal():
    a = entropy_from_counts([1, 4, 11, 9, 12, 3, 1], 41)
    b = entropy_from_counts([1, 3, 12, 9, 11, 4, 1], 41)
    assert a == b


def test_entropy_tie_goes_to_first_enumerated_guess():
    s = Strategy(6)
    s.get_next_guess()
    history = [
        ("000000", 0),
        ("111111", 6),
        ("000001", 6),
        ("000010", 2),
        ("111110", 2),
        ("111100", 2),
    ]
    guess = None
    for i, (bits, fb) in enumerate(history):
        guess = s.get_next_guess(parse_bits(bits, 6), fb, i)
    assert len(s.possible_answers) == 41
    # 000100 and 011111 split the answers into mirrored buckets
    assert guess == (0, 0, 0, 1, 0, 0)


def test_entropy_branch_falls_back_when_space_exhausted():
    s = Strategy(2)
    guess = s.get_next_guess()
    returned = []
    for i in range(5):
        guess = s.get_next_guess(guess, 0, i)
        returned.append(guess)
    assert returned[:3] == [(1, 1), (0, 1), (1, 0)]
    assert len(s.possible_answers) == 4
    assert set(s.history) == set(generate_all(2))
    assert returned[3] == (0, 0)
    assert returned[4] == (1, 1)
    assert returned[4] == s.possible_answers[0]


def test_entropy_for_guess_single_bucket_is_zero():
    possible = [(1, 0), (0, 1)]
    # both answers agree with 11 in exactly one position
    assert entropy_for_guess((1, 1), possible) == pytest.approx(0.0)
    assert entropy_for_guess((1, 0), possible) == pytest.approx(1.0)
    assert entropy_for_guess((0, 0, 0), []) == 0.0


def test_parse_helpers():
    assert parse_bits(" 101010\n", 6) == (1, 0, 1, 0, 1, 0)
    with pytest.raises(ValueError):
        parse_bits("10101", 6)
    with pytest.raises(ValueError):
        parse_bits("10102a", 6)
    assert parse_feedback("3", 6) == 3
    for bad in ["7", "-1", "x", ""]:
        with pytest.raises(ValueError):
            parse_feedback(bad, 6)


def test_opening_guess_is_deterministic():
    assert Strategy(6).get_next_guess() == (0, 0, 0, 0, 0, 0)
    assert Strategy(3).get_next_guess() == Strategy(3).get_next_guess()
    assert Strategy(1).get_next_guess() == (0,)


def test_constraints_filter_possible_answers():
    s = Strategy(4)
    s.get_next_guess()
    s.get_next_guess((0, 0, 1, 1), 2)
    s.get_next_guess((0, 1, 0, 1), 2)
    assert (0, 1, 1, 0) in s.possible_answers
    for member in s.possible_answers:
        for g, f in s.constraints:
            assert feedback_of(g, member) == f
    assert s.history == ((0, 0, 1, 1), (0, 1, 0, 1))


def test_stored_guess_is_copied():
    s = Strategy(3)
    guess = [1, 1, 0]
    s.get_next_guess(guess, 1)
    guess[0] = 0
    assert s.history == ((1, 1, 0),)
    assert s.constraints == (((1, 1, 0), 1),)


def test_scenario_converges_on_101():
    answer = (1, 0, 1)
    s = Strategy(3)
    guess = s.get_next_guess()
    assert guess == (0, 0, 0)
    seen = [guess]
    while feedback_of(guess, answer) != 3:
        guess = s.get_next_guess(guess, feedback_of(guess, answer), len(seen))
        seen.append(guess)
        assert len(seen) <= 8
    assert seen == [(0, 0, 0), (0, 1, 1), (1, 0, 1)]


@pytest.mark.parametrize("length", [2, 3, 4])
def test_every_secret_is_found_without_repeats(length):
    for answer in generate_all(length):
        s = Strategy(length)
        guess = s.get_next_guess()
        guesses = [guess]
        while guess != answer:
            guess = s.get_next_guess(guess, feedback_of(guess, answer), len(guesses))
            assert guess not in guesses
            guesses.append(guess)
            assert len(guesses) <= 2 ** length
        assert answer in s.possible_answers


def test_noisy_feedback_never_repeats_until_exhausted():
    rng = random.Random(7)
    length = 3
    s = Strategy(length)
    guess = s.get_next_guess()
    guesses = [guess]
    for i in range(20):
        guess = s.get_next_guess(guess, rng.randint(0, length), i)
        assert len(guess) == length
        assert s.possible_answers
        if len(set(guesses)) < 2 ** length:
            assert guess not in guesses
        guesses.append(guess)


def test_relaxation_keeps_tolerance_band():
    s = Strategy(3)
    s.get_next_guess()
    assert s.get_next_guess((0, 0, 0), 0) == (1, 1, 1)
    s.get_next_guess((1, 1, 1), 0)
    # nothing agrees with both 000 and 111 in zero positions
    assert len(s.possible_answers) == 8
    assert s.possible_answers[:2] == ((0, 0, 0), (1, 1, 1))


def test_relaxation_drops_candidates_below_band():
    s = Strategy(3)
    s.get_next_guess()
    s.get_next_guess((0, 0, 0), 0)
    s.get_next_guess((1, 1, 1), 0)
    guess = s.get_next_guess((0, 0, 0), 0)
    assert s.possible_answers == ((1, 1, 1), (0, 0, 0))
    scores = [
        sum(feedback_of(g, c) == f for g, f in s.constraints)
        for c in s.possible_answers
    ]
    assert min(scores) >= max(scores) - 1
    # both survivors were already guessed
    assert guess == (0, 0, 1)


def test_out_of_range_feedback_is_absorbed():
    s = Strategy(3)
    s.get_next_guess()
    guess = s.get_next_guess((0, 0, 0), 5)
    assert len(s.possible_answers) == 8
    assert guess != (0, 0, 0)


def test_exhausted_history_returns_first_possible():
    s = Strategy(1)
    assert s.get_next_guess() == (0,)
    assert s.get_next_guess((0,), 0) == (1,)
    assert s.get_next_guess((1,), 0) == (0,)


def test_guess_index_is_inert():
    a = Strategy(4)
    b = Strategy(4)
    a.get_next_guess()
    b.get_next_guess()
    assert a.get_next_guess((0, 0, 0, 0), 2, 1) == b.get_next_guess((0, 0, 0, 0), 2, 99)


def test_engine_keeps_guessing_after_full_match():
    s = Strategy(3)
    s.get_next_guess()
    guess = s.get_next_guess((1, 0, 1), 3)
    assert s.possible_answers == ((1, 0, 1),)
    assert guess == (0, 0, 0)


def test_reset_matches_fresh_engine():
    s = Strategy(6)
    g = s.get_next_guess()
    s.get_next_guess(g, 2)
    s.reset(4)
    fresh = Strategy(4)
    assert s.length == 4
    assert s.constraints == ()
    assert s.history == ()
    assert s.possible_answers == fresh.possible_answers
    assert s.get_next_guess() == fresh.get_next_guess()
    s.reset(4)
    s.reset(4)
    assert len(s.possible_answers) == 16
