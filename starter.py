#!/usr/bin/env python3
import argparse
import csv
import json
import multiprocessing as mp
import os
import time

import numpy as np

from strategy import DEFAULT_LENGTH, format_bits, generate_all, parse_bits

_PATTERNS = None
_NUM_PATTERNS = None


def tfmt(sec):
    if sec < 1:
        return f"{sec*1000:.0f}ms"
    if sec < 60:
        return f"{sec:.1f}s"
    m = int(sec // 60)
    s = sec % 60
    return f"{m}m{s:.0f}s"


def build_feedback_matrix(length, chunk=256, verbose=False):
    """Match counts for every (guess, answer) pair, indexed by enumeration order."""
    codes = np.array(generate_all(length), dtype=np.int8)
    n = codes.shape[0]
    mat = np.empty((n, n), dtype=np.int16)
    start = time.time()
    for lo in range(0, n, chunk):
        hi = min(lo + chunk, n)
        mat[lo:hi] = (codes[lo:hi, None, :] == codes[None, :, :]).sum(axis=2)
        if verbose:
            elapsed = time.time() - start
            eta = (elapsed / hi) * (n - hi)
            print(f"\r[PAT] {hi}/{n} | elapsed {tfmt(elapsed)} | ETA {tfmt(eta)}", end="", flush=True)
    if verbose:
        print()
    return mat


def entropy_from_row(row, num_patterns):
    total = row.size
    counts = np.bincount(row, minlength=num_patterns).astype(np.float64)
    p = counts / total
    p = p[counts > 0]
    H = -np.sum(p * np.log2(p))
    return float(H)


def joint_entropy_from_rows(rows, num_patterns):
    keys = rows[0].astype(np.int64)
    mul = num_patterns
    for r in rows[1:]:
        keys = keys + mul * r.astype(np.int64)
        mul *= num_patterns
    _, counts = np.unique(keys, return_counts=True)
    p = counts.astype(np.float64) / counts.sum()
    H = -np.sum(p * np.log2(p))
    return float(H)


def _joint_init(patterns, num_patterns):
    global _PATTERNS, _NUM_PATTERNS
    _PATTERNS = patterns
    _NUM_PATTERNS = num_patterns


def _joint_worker(seq):
    H = joint_entropy_from_rows([_PATTERNS[i] for i in seq], _NUM_PATTERNS)
    return H, seq


def single_entropies(patterns, num_patterns):
    return [entropy_from_row(patterns[i], num_patterns) for i in range(patterns.shape[0])]


def ensure_dir(path):
    os.makedirs(path, exist_ok=True)


def write_level_csv(out_dir, level_idx, level, vectors):
    ensure_dir(out_dir)
    path = os.path.join(out_dir, f"L{level_idx:02d}_beam.csv")
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["rank", "entropy_bits", "sequence"])
        for i, (H, seq) in enumerate(level, 1):
            w.writerow([i, f"{H:.6f}", " ".join(format_bits(vectors[j]) for j in seq)])
    return path


def write_run_meta(out_dir, meta):
    ensure_dir(out_dir)
    path = os.path.join(out_dir, "run_meta.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(meta, f, indent=2, sort_keys=True)
    return path


def _extend(level, candidates):
    seen = set()
    tasks = []
    for _, seq in level:
        for c in candidates:
            if c in seq:
                continue
            key = frozenset(seq + (c,))
            if key in seen:
                continue
            seen.add(key)
            tasks.append(seq + (c,))
    return tasks


def search_best_starters(length, max_len, top_m, beam_width, top_print, n_jobs, out_dir=None):
    vectors = generate_all(length)
    num_patterns = length + 1
    t0 = time.time()
    patterns = build_feedback_matrix(length, verbose=True)

    ent = single_entropies(patterns, num_patterns)
    ranked = sorted(range(len(vectors)), key=lambda i: (-ent[i], i))
    candidates = ranked[:top_m]

    level = [(ent[i], (i,)) for i in candidates[:beam_width]]
    levels = [level]
    print(f"[L1] best {format_bits(vectors[level[0][1][0]])}: {level[0][0]:.6f} bits")
    if out_dir:
        write_level_csv(out_dir, 1, level, vectors)

    for depth in range(2, max_len + 1):
        tasks = _extend(level, candidates)
        if not tasks:
            break
        scored = []
        if n_jobs > 1 and len(tasks) > 1:
            with mp.Pool(n_jobs, initializer=_joint_init, initargs=(patterns, num_patterns)) as pool:
                for i, res in enumerate(pool.imap_unordered(_joint_worker, tasks, chunksize=64), 1):
                    scored.append(res)
                    if i % 500 == 0 or i == len(tasks):
                        print(f"\r[L{depth}] {i}/{len(tasks)}", end="", flush=True)
            print()
        else:
            for seq in tasks:
                scored.append((joint_entropy_from_rows([patterns[i] for i in seq], num_patterns), seq))
        scored.sort(key=lambda x: (-x[0], x[1]))
        level = scored[:beam_width]
        levels.append(level)
        best_H, best_seq = level[0]
        print(f"[L{depth}] best {' '.join(format_bits(vectors[i]) for i in best_seq)}: {best_H:.6f} bits")
        if out_dir:
            write_level_csv(out_dir, depth, level, vectors)

    print(f"\nTop openings (length {len(levels)}):")
    for H, seq in levels[-1][:top_print]:
        print(f"  {' '.join(format_bits(vectors[i]) for i in seq)}: {H:.6f}")
    print(f"Time: {tfmt(time.time() - t0)}")

    if out_dir:
        write_run_meta(out_dir, {
            "length": length,
            "max_len": max_len,
            "top_m": top_m,
            "beam_width": beam_width,
            "answer_space_bits": float(length),
        })
    return levels


def eval_sequence(seq, length):
    patterns = build_feedback_matrix(length)
    index = {v: i for i, v in enumerate(generate_all(length))}
    rows = [patterns[index[v]] for v in seq]
    return joint_entropy_from_rows(rows, length + 1)


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--length", type=int, default=DEFAULT_LENGTH)
    p.add_argument("--mode", choices=["search", "eval"], default="search")
    p.add_argument("--starter", nargs="+", default=None)
    p.add_argument("--max-len", type=int, default=3)
    p.add_argument("--top-m", type=int, default=64)
    p.add_argument("--beam-width", type=int, default=50)
    p.add_argument("--top-print", type=int, default=10)
    p.add_argument("--n-jobs", type=int, default=0)
    p.add_argument("--save-dir", default=None)
    args = p.parse_args()

    if args.length < 1:
        raise SystemExit("--length must be at least 1")
    n_jobs = args.n_jobs or (os.cpu_count() or 1)

    if args.mode == "search":
        search_best_starters(
            length=args.length,
            max_len=args.max_len,
            top_m=args.top_m,
            beam_width=args.beam_width,
            top_print=args.top_print,
            n_jobs=n_jobs,
            out_dir=args.save_dir,
        )
    elif args.mode == "eval":
        if not args.starter:
            raise SystemExit("Provide --starter 101010 010101 ...")
        try:
            seq = [parse_bits(s, args.length) for s in args.starter]
        except ValueError as e:
            raise SystemExit(str(e))
        t0 = time.time()
        H = eval_sequence(seq, args.length)
        print(f"Starter: {' '.join(format_bits(v) for v in seq)}")
        print(f"Entropy: {H:.6f} bits")
        print(f"Time: {tfmt(time.time() - t0)}")


if __name__ == "__main__":
    main()
