"""Queue disciplines under overload: FIFO vs LIFO vs Adaptive LIFO.

Runs the same overloaded single-server queue three times, once per
discipline, and compares how many requests finish before the client gives
up.

## Architecture

```
  arrivals (fixed rate) ──► admission ──► queue ──► server (1 slot) ──► completed
                               │            │            │
                               ▼            ▼            ▼
                           rejected      dropped       wasted
                                      (timed out    (timed out
                                       waiting)      in service)
```

## Key Observations

- Under FIFO every request waits behind the whole backlog, so most of them
  reach the server already close to their deadline and the server burns
  capacity on work nobody is waiting for (wasted).
- LIFO serves the newest request first; old requests are dropped while
  still queued, so the server only spends time on requests that can finish.
- Adaptive LIFO behaves like FIFO while the queue is short and flips to LIFO
  once it crosses the congestion threshold.
"""

from __future__ import annotations

from pathlib import Path

from queuelab import (
    ManualClock,
    QueueDiscipline,
    Settings,
    Simulation,
    StatsSnapshot,
    configure_from_env,
    requests_to_dataframe,
    stats_to_dataframe,
)

# =============================================================================
# Simulation
# =============================================================================


def run_discipline(
    discipline: QueueDiscipline,
    duration_s: float,
    rate: float,
    seed: int,
) -> tuple[Simulation, StatsSnapshot]:
    """Run one discipline to completion and return its final stats."""
    settings = Settings(
        arrival_rate=rate,
        avg_service_time=400.0,
        variation=0.5,
        discipline=discipline,
        client_timeout=3000.0,
        adaptive_threshold=5,
        retention_ms=float("inf"),
        seed=seed,
    )
    sim = Simulation(settings)
    clock = ManualClock()
    sim.start(duration_seconds=duration_s, now=clock.now)
    sim.run(clock, until=duration_s * 1000.0)
    snapshot = sim.drain(clock)
    return sim, snapshot.stats


# =============================================================================
# Summary
# =============================================================================


def print_summary(results: dict[QueueDiscipline, StatsSnapshot]) -> None:
    print("\n" + "=" * 70)
    print("QUEUE DISCIPLINES UNDER OVERLOAD")
    print("=" * 70)

    print(
        f"\n  {'Discipline':>14s} {'Arrived':>8s} {'Done':>6s} {'Dropped':>8s}"
        f" {'Wasted':>7s} {'p50':>8s} {'p99':>8s}"
    )
    print(f"  {'-' * 64}")
    for discipline, stats in results.items():
        print(
            f"  {discipline.value:>14s} {stats.arrived:>8d} {stats.completed:>6d}"
            f" {stats.dropped:>8d} {stats.wasted:>7d}"
            f" {stats.percentile(50):>6.0f}ms {stats.percentile(99):>6.0f}ms"
        )

    print("\n" + "=" * 70)


def save_results(sims: dict[QueueDiscipline, Simulation], output_dir: Path) -> None:
    """Write per-request and summary tables as CSV."""
    output_dir.mkdir(parents=True, exist_ok=True)
    for discipline, sim in sims.items():
        slug = discipline.name.lower()
        snapshot = sim.snapshot()
        requests_to_dataframe(snapshot.requests).to_csv(
            output_dir / f"{slug}_requests.csv", index=False
        )
        stats_to_dataframe(snapshot.stats).to_csv(
            output_dir / f"{slug}_stats.csv", index=False
        )
    print(f"Saved: {output_dir}")


# =============================================================================
# Entry Point
# =============================================================================


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Queue discipline overload demo")
    parser.add_argument("--duration", type=float, default=60.0)
    parser.add_argument("--rate", type=float, default=4.0)
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--output", type=str, default="output/discipline_overload")
    parser.add_argument("--no-save", action="store_true")
    args = parser.parse_args()

    configure_from_env()
    print("Running discipline comparison...")

    sims: dict[QueueDiscipline, Simulation] = {}
    results: dict[QueueDiscipline, StatsSnapshot] = {}
    for discipline in QueueDiscipline:
        print(f"  {discipline.value}...")
        sims[discipline], results[discipline] = run_discipline(
            discipline, args.duration, args.rate, args.seed
        )

    print_summary(results)

    if not args.no_save:
        save_results(sims, Path(args.output))
