import argparse
import os
import random
import multiprocessing
from collections import Counter

from strategy import (
    DEFAULT_LENGTH,
    Strategy,
    feedback_of,
    format_bits,
    generate_all,
    parse_bits,
)

_BM_LENGTH = None
_BM_STARTERS = None
_BM_MAX_GUESSES = None
_BM_SEED = None


def load_starters(path, length):
    starters = []
    try:
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                s = line.strip()
                if s:
                    starters.append(parse_bits(s, length))
    except FileNotFoundError:
        return []
    return starters


def refine_candidates(candidates, guess, feedback):
    return [c for c in candidates if feedback_of(guess, c) == feedback]


def _finish(game_idx, guess_count, max_guesses):
    if game_idx is not None:
        print(f"[{game_idx}] {'success' if guess_count <= max_guesses else 'fail'} ({guess_count} guesses)")
    return guess_count


def play_random_game(secret, length, starters, max_guesses, game_idx=None, rng=None):
    rng = rng or random
    candidates = generate_all(length)
    guess_count = 0
    if game_idx is not None:
        print(f"[{game_idx}] {format_bits(secret)}")

    for g in starters:
        guess_count += 1
        fb = feedback_of(secret, g)
        if game_idx is not None:
            print(f"[{game_idx}] {format_bits(g)}, {fb}")
        if fb == length:
            return _finish(game_idx, guess_count, max_guesses)
        candidates = refine_candidates(candidates, g, fb)

    while True:
        if not candidates:
            if game_idx is not None:
                print(f"[{game_idx}] fail")
            return None

        guess = rng.choice(candidates)
        guess_count += 1
        fb = feedback_of(secret, guess)
        if game_idx is not None:
            print(f"[{game_idx}] {format_bits(guess)}, {fb}")

        if fb == length:
            return _finish(game_idx, guess_count, max_guesses)

        candidates = refine_candidates(candidates, guess, fb)


def play_strategy_game(secret, length, starters, max_guesses, game_idx=None):
    strategy = Strategy(length)
    limit = 2 ** length + len(starters)
    guess_count = 0
    guess = None
    fb = None
    if game_idx is not None:
        print(f"[{game_idx}] {format_bits(secret)}")

    for g in starters:
        if guess is not None:
            # get_next_guess is the only way to record an opening; its pick is discarded
            strategy.get_next_guess(guess, fb, guess_count)
        guess = g
        guess_count += 1
        fb = feedback_of(secret, guess)
        if game_idx is not None:
            print(f"[{game_idx}] {format_bits(guess)}, {fb}")
        if fb == length:
            return _finish(game_idx, guess_count, max_guesses)

    while guess_count < limit:
        guess = strategy.get_next_guess(guess, fb, guess_count)
        guess_count += 1
        fb = feedback_of(secret, guess)
        if game_idx is not None:
            print(f"[{game_idx}] {format_bits(guess)}, {fb}")
        if fb == length:
            return _finish(game_idx, guess_count, max_guesses)

    if game_idx is not None:
        print(f"[{game_idx}] fail")
    return None


def summarize_results(name, results, max_guesses):
    total = len(results)
    successes = [r for r in results if r is not None and r <= max_guesses]
    fails = total - len(successes)
    print(f"\n{name} results")
    print(f"Games: {total}")
    print(f"Max guesses allowed: {max_guesses}")
    print(f"Successes: {len(successes)}")
    print(f"Fails: {fails}")
    if total > 0:
        print(f"Success rate: {len(successes)/total*100:.2f}%")
    if successes:
        print(f"Average guesses (success only): {sum(successes)/len(successes):.3f}")
    numeric = [r for r in results if r is not None]
    if numeric:
        print(f"Average guesses (all): {sum(numeric)/len(numeric):.3f}")
        dist = Counter(numeric)
        print("Distribution (all guesses):")
        for g in sorted(dist):
            print(f"  {g}: {dist[g]}")


def pick_secrets(length, n_games, all_secrets=False, rng=None):
    rng = rng or random
    space = generate_all(length)
    if all_secrets:
        return space
    if n_games <= len(space):
        return rng.sample(space, n_games)
    return [rng.choice(space) for _ in range(n_games)]


def simulate_random_strategy(secrets, length, starters, max_guesses, seed=None):
    rng = random.Random(seed)
    results = []
    for i, sec in enumerate(secrets, 1):
        results.append(play_random_game(sec, length, starters, max_guesses, i, rng))
    summarize_results("Random (consistent candidates)", results, max_guesses)
    return results


def simulate_strategy(secrets, length, starters, max_guesses):
    results = []
    for i, sec in enumerate(secrets, 1):
        results.append(play_strategy_game(sec, length, starters, max_guesses, i))
    summarize_results("Entropy strategy", results, max_guesses)
    return results


def _benchmark_init(length, starters, max_guesses, seed):
    global _BM_LENGTH, _BM_STARTERS, _BM_MAX_GUESSES, _BM_SEED
    _BM_LENGTH = length
    _BM_STARTERS = starters
    _BM_MAX_GUESSES = max_guesses
    _BM_SEED = seed


def _benchmark_worker(task):
    idx, sec = task
    rng = random.Random(None if _BM_SEED is None else _BM_SEED + idx)
    r1 = play_random_game(sec, _BM_LENGTH, _BM_STARTERS, _BM_MAX_GUESSES, game_idx=None, rng=rng)
    r2 = play_strategy_game(sec, _BM_LENGTH, _BM_STARTERS, _BM_MAX_GUESSES, game_idx=None)
    return idx, sec, r1, r2


def next_log_path(logs_dir):
    os.makedirs(logs_dir, exist_ok=True)
    existing = [
        fn for fn in os.listdir(logs_dir)
        if fn.startswith("logs_") and fn.endswith(".csv")
    ]
    nums = []
    for fn in existing:
        core = fn[len("logs_"):-len(".csv")]
        try:
            nums.append(int(core))
        except ValueError:
            continue
    next_num = max(nums) + 1 if nums else 0
    return os.path.join(logs_dir, f"logs_{next_num}.csv")


def benchmark_all_modes(secrets, length, starters, max_guesses, n_jobs, logs_dir="logs", seed=None):
    log_path = next_log_path(logs_dir)
    tasks = list(enumerate(secrets))
    results_random = []
    results_strategy = []
    collected = []

    n_jobs = n_jobs or (os.cpu_count() or 1)
    with multiprocessing.Pool(
        processes=n_jobs,
        initializer=_benchmark_init,
        initargs=(length, starters, max_guesses, seed),
    ) as pool:
        for idx, sec, r1, r2 in pool.imap_unordered(_benchmark_worker, tasks):
            s1 = int(r1 is not None and r1 <= max_guesses)
            s2 = int(r2 is not None and r2 <= max_guesses)

            g1 = "" if r1 is None else r1
            g2 = "" if r2 is None else r2

            print(f"[{idx}] {format_bits(sec)}: rand={g1}({s1}) ent={g2}({s2})")

            results_random.append(r1)
            results_strategy.append(r2)
            collected.append((idx, format_bits(sec), g1, s1, g2, s2))

    collected.sort(key=lambda x: x[0])
    with open(log_path, "w", encoding="utf-8") as f:
        f.write("index,answer,rand,rand_s,ent,ent_s\n")
        for idx, sec, g1, s1, g2, s2 in collected:
            f.write(f"{idx},{sec},{g1},{s1},{g2},{s2}\n")

    print(f"\nBenchmark log saved to {log_path}")

    summarize_results("Random", results_random, max_guesses)
    summarize_results("Entropy strategy", results_strategy, max_guesses)
    return log_path


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--mode", type=int, choices=[0, 1, 2, 5], required=True)
    parser.add_argument("--length", type=int, default=DEFAULT_LENGTH)
    parser.add_argument("--starter", default="starter.txt")
    parser.add_argument("--max-guesses", type=int, default=9)
    parser.add_argument("--n-jobs", type=int, default=0)
    parser.add_argument("--n-games", type=int, default=1000)
    parser.add_argument("--all-secrets", action="store_true")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-dir", default="logs")
    args = parser.parse_args()

    if args.length < 1:
        raise SystemExit("--length must be at least 1")

    if args.mode == 0:
        from main import mode_manual_assist
        print("Mode 0: manual assist")
        mode_manual_assist(args.length, args.max_guesses)
        return

    starters = load_starters(args.starter, args.length)
    secrets = pick_secrets(args.length, args.n_games, args.all_secrets, random.Random(args.seed))
    n_jobs = args.n_jobs or (os.cpu_count() or 1)

    if args.mode == 1:
        print("Mode 1: random consistent solver")
        simulate_random_strategy(secrets, args.length, starters, args.max_guesses, args.seed)
    elif args.mode == 2:
        print("Mode 2: entropy strategy")
        simulate_strategy(secrets, args.length, starters, args.max_guesses)
    elif args.mode == 5:
        print("Mode 5: benchmark modes 1, 2")
        benchmark_all_modes(
            secrets,
            args.length,
            starters,
            args.max_guesses,
            n_jobs,
            args.log_dir,
            args.seed,
        )

if __name__ == "__main__":
    main()
