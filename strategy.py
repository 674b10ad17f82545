import math

DEFAULT_LENGTH = 6
SMALL_SET_THRESHOLD = 3
RELAXATION_TOLERANCE = 1


def generate_all(length):
    vectors = []
    for i in range(2 ** length):
        bits = format(i, "b").zfill(length)
        vectors.append(tuple(int(b) for b in bits))
    return vectors


def feedback_of(a, b):
    count = 0
    for x, y in zip(a, b):
        if x == y:
            count += 1
    return count


def entropy_from_counts(counts, total):
    # fsum keeps mirrored histograms exactly equal
    return math.fsum(-(c / total) * math.log2(c / total) for c in counts if c > 0)


def entropy_for_guess(guess, possible_answers):
    total = len(possible_answers)
    if total == 0:
        return 0.0
    counts = [0] * (len(guess) + 1)
    for ans in possible_answers:
        counts[feedback_of(guess, ans)] += 1
    return entropy_from_counts(counts, total)


def parse_bits(text, length):
    s = text.strip()
    if len(s) != length or any(c not in "01" for c in s):
        raise ValueError(f"Expected {length} binary digits, got {text!r}")
    return tuple(int(c) for c in s)


def format_bits(vector):
    return "".join(str(b) for b in vector)


def parse_feedback(text, length):
    try:
        value = int(text.strip())
    except ValueError:
        raise ValueError(f"Feedback must be an integer, got {text!r}") from None
    if value < 0 or value > length:
        raise ValueError(f"Feedback must be between 0 and {length}")
    return value


class Strategy:
    """Picks guesses for the binary code-breaking puzzle.

    The only public operations are ``reset`` and ``get_next_guess``. The
    strategy keeps no notion of winning: once the caller observes a match
    count equal to the length it must stop asking for guesses. Feedback is
    not validated here; impossible histories are absorbed by relaxing the
    possible-answers set.

    One instance serves one solving session at a time and must not be
    shared between threads.
    """

    def __init__(self, length=DEFAULT_LENGTH):
        self.reset(length)

    def reset(self, length=None):
        if length is not None:
            self._length = length
        self._possible = generate_all(self._length)
        self._constraints = []
        self._history = []

    @property
    def length(self):
        return self._length

    @property
    def possible_answers(self):
        return tuple(self._possible)

    @property
    def constraints(self):
        return tuple(self._constraints)

    @property
    def history(self):
        return tuple(self._history)

    def get_next_guess(self, last_guess=None, last_feedback=None, guess_index=0):
        # guess_index is informational only
        if last_guess and last_feedback is not None:
            self.add_constraint(last_guess, last_feedback)
            self.recompute_possible_answers()
        return self._choose_guess()

    def add_constraint(self, guess, feedback):
        guess = tuple(guess)
        self._constraints.append((guess, feedback))
        self._history.append(guess)

    def recompute_possible_answers(self):
        everything = generate_all(self._length)
        self._possible = [
            c for c in everything
            if all(feedback_of(g, c) == f for g, f in self._constraints)
        ]
        if not self._possible:
            self._possible = self._relaxed(everything)
        return list(self._possible)

    def _relaxed(self, everything):
        scores = [0] * len(everything)
        for i, c in enumerate(everything):
            for g, f in self._constraints:
                if feedback_of(g, c) == f:
                    scores[i] += 1
        best = max(scores)
        order = sorted(range(len(everything)), key=lambda i: -scores[i])
        kept = [everything[i] for i in order if scores[i] >= best - RELAXATION_TOLERANCE]
        return kept if kept else everything

    def _first_unguessed(self, vectors):
        seen = set(self._history)
        for v in vectors:
            if v not in seen:
                return v
        return None

    def _choose_guess(self):
        zero = tuple([0] * self._length)

        if len(self._possible) <= SMALL_SET_THRESHOLD:
            if not self._possible:
                return zero
            guess = self._first_unguessed(self._possible)
            if guess is None:
                guess = self._first_unguessed(generate_all(self._length))
            if guess is None:
                return self._possible[0]
            return guess

        seen = set(self._history)
        best_guess = None
        best_score = -1.0
        for g in generate_all(self._length):
            if g in seen:
                continue
            H = entropy_for_guess(g, self._possible)
            if H > best_score:
                best_score = H
                best_guess = g

        if best_guess is None:
            if self._possible:
                return self._possible[0]
            guess = self._first_unguessed(generate_all(self._length))
            return guess if guess is not None else zero
        return best_guess
