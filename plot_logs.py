import argparse
import os
import glob
import numpy as np
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

# log column prefix -> plot label
PLAYERS = {
    "rand": "Random",
    "ent": "Entropy strategy",
}


def load_all_logs(log_dir="logs"):
    pattern = os.path.join(log_dir, "logs_*.csv")
    files = sorted(glob.glob(pattern))
    if not files:
        raise FileNotFoundError(f"No log files found matching {pattern}")
    return pd.concat(
        (pd.read_csv(fp, dtype={"answer": str}) for fp in files),
        ignore_index=True,
    )


def to_long(df):
    frames = []
    for col in PLAYERS:
        frames.append(pd.DataFrame({
            "player": col,
            "answer": df["answer"],
            "guesses": pd.to_numeric(df[col], errors="coerce"),
            "solved": pd.to_numeric(df[f"{col}_s"], errors="coerce").fillna(0).astype(int),
        }))
    return pd.concat(frames, ignore_index=True)


def compute_stats(long_df):
    stats = {}
    for player, games in long_df.groupby("player"):
        finished = games["guesses"].dropna().astype(int).to_numpy()
        solved = games.loc[games["solved"] == 1, "guesses"].dropna().to_numpy()
        stats[player] = {
            "games": len(games),
            "finished": finished,
            "mean_all": finished.mean() if finished.size else np.nan,
            "mean_solved": solved.mean() if solved.size else np.nan,
            "fails": int((games["solved"] != 1).sum()),
        }
    return stats


def plot_hist(stats, out_path):
    longest = max((s["finished"].max() for s in stats.values() if s["finished"].size), default=10)
    xs = np.arange(1, longest + 1)

    fig, axes = plt.subplots(len(PLAYERS), 1, figsize=(8, 3.5 * len(PLAYERS)), sharex=True)
    for ax, (col, label) in zip(np.atleast_1d(axes), PLAYERS.items()):
        s = stats.get(col)
        if s is None:
            ax.set_title(f"{label}: no games")
            continue
        counts = np.bincount(s["finished"], minlength=longest + 1)[1:]
        ax.bar(xs, counts, width=0.8, edgecolor="black")
        if not np.isnan(s["mean_all"]):
            ax.axvline(s["mean_all"], color="red", linewidth=2, label=f"mean {s['mean_all']:.2f}")
        if not np.isnan(s["mean_solved"]):
            ax.axvline(s["mean_solved"], color="blue", linestyle="--", linewidth=2,
                       label=f"mean solved {s['mean_solved']:.2f}")
        ax.set_title(f"{label}: {s['games']} games, {s['fails']} over the limit")
        ax.set_ylabel("Games")
        if ax.get_legend_handles_labels()[0]:
            ax.legend()

    ax.set_xticks(xs)
    ax.set_xlabel("Guesses to solve")
    fig.tight_layout()
    fig.savefig(out_path, dpi=150)
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--log-dir", default="logs")
    args = parser.parse_args()

    stats = compute_stats(to_long(load_all_logs(args.log_dir)))
    for col, label in PLAYERS.items():
        s = stats[col]
        print(f"{label}: mean {s['mean_all']:.3f}, fails {s['fails']}/{s['games']}")

    out_path = os.path.join(args.log_dir, "summary_hist.png")
    plot_hist(stats, out_path)
    print(f"Histogram summary saved: {out_path}")

if __name__ == "__main__":
    main()
