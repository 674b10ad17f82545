import argparse

from strategy import DEFAULT_LENGTH, Strategy, format_bits, parse_feedback

DEFAULT_MAX_GUESSES = 9


def print_candidates(cands, show=16):
    print(f"Possible answers left: {len(cands)}")
    if len(cands) <= show:
        print(" ".join(format_bits(c) for c in cands))
    else:
        print(" ".join(format_bits(c) for c in cands[:show]) + " ...")


def mode_manual_assist(length, max_guesses, read=input):
    strategy = Strategy(length)
    guess = strategy.get_next_guess()
    guesses = [guess]
    while True:
        print()
        print_candidates(strategy.possible_answers)
        print(f"\nGuess {len(guesses)}: {format_bits(guess)}")

        if len(guesses) > max_guesses:
            print(f"Past {max_guesses} guesses (the game would be lost)")

        line = read(f"Enter match count 0-{length}, r to reset OR q: ").strip().lower()
        if line == "q":
            return None
        if line == "r":
            strategy.reset(length)
            guess = strategy.get_next_guess()
            guesses = [guess]
            print("Session reset.")
            continue
        try:
            feedback = parse_feedback(line, length)
        except ValueError as e:
            print(f"Invalid input: {e}")
            continue

        if feedback == length:
            print(f"Solved! The answer is {format_bits(guess)} ({len(guesses)} guesses)")
            return guess

        guess = strategy.get_next_guess(guess, feedback, len(guesses))
        guesses.append(guess)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--length", type=int, default=DEFAULT_LENGTH)
    parser.add_argument("--max-guesses", type=int, default=DEFAULT_MAX_GUESSES)
    args = parser.parse_args()

    if args.length < 1:
        raise SystemExit("--length must be at least 1")

    mode_manual_assist(args.length, args.max_guesses)

if __name__ == "__main__":
    main()
